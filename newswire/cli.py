"""
Command-line interface for newswire.

Uses Typer for commands and Rich for progress display. Supports loading
.env files for proxy and logging overrides.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table
import typer

from .config import AppConfig, apply_env, load_config
from .core.errors import NewswireError
from .core.types import Article, BatchSummary, CrawlProgress, StageEvent
from .crawler import CrawlOrchestrator
from .extractor import ArticleExtractor
from .logging_utils import setup_logging
from .progress import ProgressBus
from .sources.registry import NEWS_SOURCES, get_source

app = typer.Typer(add_completion=False, help="Extract and crawl news articles.")
console = Console(stderr=True)


def _prepare(config: Path | None, log_level: str | None, log_dir: Path | None, no_proxy: bool) -> AppConfig:
    load_dotenv()
    cfg = apply_env(load_config(str(config) if config else None))
    if log_level:
        cfg.logging.level = log_level
    if log_dir is not None:
        cfg.logging.file = True
    if no_proxy:
        cfg.fetch.use_proxy = False
    setup_logging(cfg.logging, log_dir)
    return cfg


def _write_json(payload, output: Path | None) -> None:
    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    console.print(f"Wrote {output}")


@app.command()
def extract(
    url: str = typer.Argument(..., help="Article URL."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    fallback: bool = typer.Option(
        False, "--fallback/--strict", help="Return a placeholder record instead of failing."
    ),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_dir: Path | None = typer.Option(None, "--log-dir", help="Also write a log file here."),
    no_proxy: bool = typer.Option(False, "--no-proxy", help="Only fetch directly from the site."),
):
    """Extract a single article and print it as JSON."""
    cfg = _prepare(config, log_level, log_dir, no_proxy)
    bus = ProgressBus()

    def _show_stage(event) -> None:
        if isinstance(event, StageEvent):
            console.print(f"[{event.progress:>3}%] {event.stage.value}: {event.message}")

    if progress:
        bus.subscribe(_show_stage)

    async def _run() -> Article:
        extractor = ArticleExtractor(cfg, bus=bus)
        try:
            if fallback:
                return await extractor.extract_with_fallback(url)
            return await extractor.extract(url)
        finally:
            await extractor.aclose()

    try:
        article = asyncio.run(_run())
    except NewswireError as exc:
        console.print(f"[red]Extraction failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _write_json(article.to_dict(), output)


@app.command()
def crawl(
    source: list[str] = typer.Option([], "--source", "-s", help="Source id to crawl; repeatable."),
    max_articles: int | None = typer.Option(None, "--max-articles", "-n", help="Per-source article cap."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    concurrency: int | None = typer.Option(None, "--concurrency", help="Sources crawled at once."),
    dedup: bool | None = typer.Option(None, "--dedup/--no-dedup", help="Drop duplicate stories."),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_dir: Path | None = typer.Option(None, "--log-dir", help="Also write a log file here."),
    no_proxy: bool = typer.Option(False, "--no-proxy", help="Only fetch directly from the sites."),
):
    """Crawl news sources and print the articles as JSON, newest first."""
    cfg = _prepare(config, log_level, log_dir, no_proxy)
    if source:
        unknown = [source_id for source_id in source if get_source(source_id) is None]
        if unknown:
            console.print(f"[red]Unknown source id(s):[/red] {', '.join(unknown)}")
            raise typer.Exit(code=2)
        cfg.crawl.sources = list(dict.fromkeys(source))
    if concurrency is not None:
        cfg.crawl.concurrency = concurrency
    if dedup is not None:
        cfg.dedup.enabled = dedup

    bus = ProgressBus()
    orchestrator = CrawlOrchestrator(cfg, bus=bus)

    async def _run() -> list[Article]:
        try:
            return await orchestrator.run(max_articles=max_articles)
        finally:
            await orchestrator.aclose()

    if progress:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as bar:
            tasks: dict[str, int] = {}

            def _show_progress(event) -> None:
                if isinstance(event, CrawlProgress):
                    if event.source_id not in tasks:
                        tasks[event.source_id] = bar.add_task(event.source_name, total=100)
                    label = f"{event.source_name} [{event.status.value}]"
                    if event.articles_found:
                        label += f" {event.articles_processed}/{event.articles_found}"
                    bar.update(tasks[event.source_id], completed=event.progress, description=label)
                elif isinstance(event, BatchSummary):
                    bar.console.print(
                        f"Done: {event.completed}/{event.total_sources} sources, "
                        f"{event.errors} errors, {event.articles} articles"
                    )

            bus.subscribe(_show_progress)
            articles = asyncio.run(_run())
    else:
        articles = asyncio.run(_run())

    for entry in orchestrator.snapshot().values():
        if entry.error:
            console.print(f"[yellow]{entry.source_name}:[/yellow] {entry.error}")
    _write_json([article.to_dict() for article in articles], output)


@app.command()
def sources():
    """List the known news sources."""
    table = Table(title="News sources")
    table.add_column("id")
    table.add_column("name")
    table.add_column("category")
    table.add_column("country")
    table.add_column("feed")
    table.add_column("enabled")
    for item in NEWS_SOURCES:
        table.add_row(
            item.id,
            item.name,
            item.category,
            item.country,
            "yes" if item.feed_url else "no",
            "yes" if item.enabled else "no",
        )
    Console().print(table)


if __name__ == "__main__":
    app()
