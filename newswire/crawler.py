"""
Batch crawl orchestration across news sources.

A batch moves idle -> running -> idle:
1. One pending CrawlProgress per source is created and published
2. Sources are split into groups of ``crawl.concurrency``; groups run one
   after another, the sources inside a group run concurrently
3. Each worker discovers candidate articles (feed first, listing page as a
   fallback), extracts them in discovery order and publishes progress
4. Results are concatenated in source order and sorted newest first

One source failing never aborts the batch. stop() prevents further groups
from starting and discards anything in-flight workers produce afterwards.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
import logging

from .adapters import build_adapter
from .adapters.base import Clock, SourceAdapter
from .config import AppConfig
from .core.dedup import dedup_articles
from .core.errors import AlreadyRunning, DuplicateSource, FetchError
from .core.types import Article, BatchSummary, CrawlProgress, CrawlStatus, SourceConfig
from .extract.markup import decode_markup
from .fetch.feeds import FeedItem, discover_links, parse_feed
from .fetch.gateway import FetchRoutes, build_routes
from .logging_utils import log_event
from .progress import ProgressBus
from .sources.classifier import SourceClassifier
from .sources.registry import NEWS_SOURCES, enabled_sources, get_source


logger = logging.getLogger(__name__)


@dataclass
class _Batch:
    """Mutable state of the batch in flight."""

    sources: list[SourceConfig]
    cap: int
    results: dict[str, list[Article]] = field(default_factory=dict)
    failures: dict[str, int] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class CrawlOrchestrator:
    """Crawl many sources with bounded concurrency.

    Args:
        cfg: Application configuration
        routes: Fetch routes; built from ``cfg.fetch`` when omitted
        bus: Progress bus receiving CrawlProgress copies and a BatchSummary
        classifier: Used to resolve configured source ids
        clock: Time source handed to adapters
    """

    def __init__(
        self,
        cfg: AppConfig | None = None,
        routes: FetchRoutes | None = None,
        bus: ProgressBus | None = None,
        classifier: SourceClassifier | None = None,
        clock: Clock | None = None,
    ):
        self.cfg = cfg or AppConfig()
        self.routes = routes or build_routes(self.cfg.fetch)
        self.bus = bus or ProgressBus()
        self.classifier = classifier or SourceClassifier()
        self.clock = clock
        self._running = False
        self._stop_requested = False
        self._progress: dict[str, CrawlProgress] = {}
        self._articles: list[Article] = []
        self._categories: dict[str, str] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def articles(self) -> list[Article]:
        """Results of the last finished batch, newest first."""
        return list(self._articles)

    def snapshot(self) -> dict[str, CrawlProgress]:
        """Copies of the current per-source progress entries."""
        return {source_id: replace(entry) for source_id, entry in self._progress.items()}

    def stop(self) -> None:
        """Request cancellation of the running batch (and of run_periodic)."""
        self._stop_requested = True
        log_event(logger, "Crawl stop requested", event="crawl_stop", running=self._running)

    def default_sources(self) -> list[SourceConfig]:
        """Sources named in ``crawl.sources``, or every enabled source."""
        if not self.cfg.crawl.sources:
            return enabled_sources(self.classifier.sources or NEWS_SOURCES)
        selected = []
        for source_id in self.cfg.crawl.sources:
            source = get_source(source_id, self.classifier.sources)
            if source is None:
                log_event(logger, "Unknown source id", logging.WARNING, event="unknown_source", source_id=source_id)
                continue
            selected.append(source)
        return selected

    async def run(
        self,
        sources: list[SourceConfig] | None = None,
        max_articles: int | None = None,
    ) -> list[Article]:
        """Crawl one batch and return its articles, newest first.

        Raises:
            AlreadyRunning: A batch is already in flight; its state is untouched
            DuplicateSource: A source id appears more than once in ``sources``
        """
        if self._running:
            raise AlreadyRunning("A crawl batch is already running")
        selected = list(sources) if sources is not None else self.default_sources()
        ids = [source.id for source in selected]
        duplicates = sorted({source_id for source_id in ids if ids.count(source_id) > 1})
        if duplicates:
            raise DuplicateSource(f"Source ids listed more than once: {', '.join(duplicates)}")
        self._running = True
        self._stop_requested = False

        batch = _Batch(
            sources=selected,
            cap=max_articles if max_articles is not None else self.cfg.crawl.max_articles_per_source,
        )
        self._progress = {}
        self._categories = {source.id: source.category for source in batch.sources}
        summary = None
        try:
            for source in batch.sources:
                self._progress[source.id] = CrawlProgress(source_id=source.id, source_name=source.name)
            for entry in list(self._progress.values()):
                self.bus.publish(replace(entry))

            log_event(
                logger,
                "Crawl start",
                event="crawl_start",
                sources=[source.id for source in batch.sources],
                cap=batch.cap,
            )

            size = max(1, self.cfg.crawl.concurrency)
            groups = [batch.sources[i : i + size] for i in range(0, len(batch.sources), size)]
            for index, group in enumerate(groups):
                if self._stop_requested:
                    break
                await asyncio.gather(*(self._crawl_source(batch, source) for source in group))
                if index + 1 < len(groups) and not self._stop_requested:
                    await asyncio.sleep(self.cfg.crawl.group_delay_seconds)

            collected = [article for source in batch.sources for article in batch.results.get(source.id, [])]
            collected.sort(key=lambda article: article.publish_date, reverse=True)
            if self.cfg.dedup.enabled:
                collected = dedup_articles(collected, self.cfg.dedup.title_similarity_threshold)
            self._articles = collected
            self._finalize_cancelled()
            summary = self._summary(len(collected))
        finally:
            self._running = False

        log_event(
            logger,
            "Crawl complete",
            event="crawl_complete",
            articles=summary.articles,
            completed=summary.completed,
            errors=summary.errors,
            cancelled=summary.cancelled,
        )
        self.bus.publish(summary)
        return list(self._articles)

    async def run_periodic(
        self,
        interval_seconds: float,
        sources: list[SourceConfig] | None = None,
        max_articles: int | None = None,
    ) -> int:
        """Run batches every ``interval_seconds`` until stop() is called.

        Returns:
            Number of batches run
        """
        batches = 0
        while True:
            await self.run(sources, max_articles)
            batches += 1
            if self._stop_requested:
                break
            await asyncio.sleep(interval_seconds)
            if self._stop_requested:
                break
        return batches

    def articles_by_category(self, category: str) -> list[Article]:
        """Articles whose source category or section matches ``category``."""
        wanted = category.lower()
        return [
            article
            for article in self._articles
            if self._categories.get(article.source_id, "").lower() == wanted or article.section.lower() == wanted
        ]

    def articles_by_source(self, source_id: str) -> list[Article]:
        return [article for article in self._articles if article.source_id == source_id]

    def search(self, query: str) -> list[Article]:
        """Case-insensitive match against title, content and tags."""
        needle = query.lower()
        return [
            article
            for article in self._articles
            if needle in article.title.lower()
            or needle in article.content.lower()
            or any(needle in tag.lower() for tag in article.tags)
        ]

    # -- workers ----------------------------------------------------------

    async def _crawl_source(self, batch: _Batch, source: SourceConfig) -> None:
        adapter = build_adapter(source, self.cfg.extract, self.clock)
        self._update(source.id, status=CrawlStatus.CRAWLING, progress=0.0)
        if batch.cap <= 0:
            self._update(source.id, status=CrawlStatus.COMPLETED, articles_found=0, progress=100.0)
            return
        try:
            if source.feed_url:
                items = await self._read_feed(adapter, source, batch.cap)
                if items:
                    await self._process_feed(batch, adapter, items)
                else:
                    await self._process_listing(batch, adapter, source)
            else:
                await self._process_listing(batch, adapter, source)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
            log_event(
                logger,
                "Source crawl failed",
                logging.WARNING,
                event="source_failed",
                source_id=source.id,
                error=message,
            )
            self._update(source.id, status=CrawlStatus.ERROR, error=message)
            return
        self._update(source.id, status=CrawlStatus.COMPLETED, progress=100.0)

    async def _read_feed(self, adapter: SourceAdapter, source: SourceConfig, cap: int) -> list[FeedItem]:
        try:
            raw = await adapter.fetch(self.routes, source.feed_url)
        except FetchError as exc:
            log_event(
                logger,
                "Feed unavailable, falling back to listing page",
                logging.INFO,
                event="feed_failed",
                source_id=source.id,
                url=source.feed_url,
                error=str(exc),
            )
            return []
        return parse_feed(raw, cap)

    async def _process_feed(self, batch: _Batch, adapter: SourceAdapter, items: list[FeedItem]) -> None:
        self._update(adapter.source.id, articles_found=len(items))
        for index, item in enumerate(items):
            if index:
                await asyncio.sleep(self.cfg.crawl.request_delay_seconds)
            if self._stop_requested:
                return
            article = error = None
            try:
                article = await self._article_from_feed(adapter, item)
            except Exception as exc:  # noqa: BLE001
                error = self._log_article_failure(adapter, item.url, exc)
            await self._record(batch, adapter.source.id, article, index + 1, len(items), error)

    async def _process_listing(self, batch: _Batch, adapter: SourceAdapter, source: SourceConfig) -> None:
        raw = await adapter.fetch(self.routes, source.base_url)
        links = discover_links(decode_markup(raw), source.base_url, source.selectors.links, batch.cap)
        self._update(source.id, articles_found=len(links))
        for index, url in enumerate(links):
            if index:
                await asyncio.sleep(self.cfg.crawl.request_delay_seconds)
            if self._stop_requested:
                return
            article = error = None
            try:
                page = await adapter.fetch(self.routes, url)
                article = await asyncio.to_thread(adapter.extract, page, url)
            except Exception as exc:  # noqa: BLE001
                error = self._log_article_failure(adapter, url, exc)
            await self._record(batch, source.id, article, index + 1, len(links), error)

    async def _article_from_feed(self, adapter: SourceAdapter, item: FeedItem) -> Article:
        article = adapter.from_feed(item)
        if not article.extraction_failed and len(article.content) >= self.cfg.crawl.enrich_below_chars:
            return article
        try:
            page = await adapter.fetch(self.routes, item.url)
        except FetchError as exc:
            self._log_article_failure(adapter, item.url, exc)
            return article
        enriched = await asyncio.to_thread(adapter.extract, page, item.url)
        if enriched.extraction_failed:
            return article
        return adapter.merge_feed(enriched, item)

    async def _record(
        self,
        batch: _Batch,
        source_id: str,
        article: Article | None,
        processed: int,
        found: int,
        error: str | None = None,
    ) -> None:
        changes = {
            "articles_processed": processed,
            "progress": round(processed / found * 100, 1) if found else 100.0,
        }
        async with batch.lock:
            if self._stop_requested:
                return
            if article is not None and not article.extraction_failed:
                batch.results.setdefault(source_id, []).append(article)
            else:
                if article is not None:
                    error = article.failure_reason or "Extraction failed"
                    log_event(
                        logger,
                        "Article skipped",
                        logging.DEBUG,
                        event="article_skipped",
                        source_id=source_id,
                        url=article.url,
                        reason=error,
                    )
                failed = batch.failures[source_id] = batch.failures.get(source_id, 0) + 1
                # Partial failure keeps the source completed; the entry carries the latest cause.
                changes["error"] = f"{failed} of {found} articles failed; last: {error}"
        self._update(source_id, **changes)

    def _log_article_failure(self, adapter: SourceAdapter, url: str, exc: Exception) -> str:
        message = f"{type(exc).__name__}: {exc}"
        log_event(
            logger,
            "Article failed",
            logging.INFO,
            event="article_failed",
            source_id=adapter.source.id,
            url=url,
            error=message,
        )
        return message

    # -- progress ---------------------------------------------------------

    def _update(self, source_id: str, **changes) -> None:
        # Nothing is published for a source once stop() has been requested.
        if self._stop_requested:
            return
        entry = self._progress[source_id]
        for key, value in changes.items():
            setattr(entry, key, value)
        self.bus.publish(replace(entry))

    def _finalize_cancelled(self) -> None:
        if not self._stop_requested:
            return
        for entry in self._progress.values():
            if not entry.finished:
                entry.status = CrawlStatus.ERROR
                entry.error = "Crawl cancelled"

    def _summary(self, articles: int) -> BatchSummary:
        entries = list(self._progress.values())
        return BatchSummary(
            total_sources=len(entries),
            completed=sum(1 for entry in entries if entry.status == CrawlStatus.COMPLETED),
            errors=sum(1 for entry in entries if entry.status == CrawlStatus.ERROR),
            articles=articles,
            cancelled=self._stop_requested,
        )

    async def aclose(self) -> None:
        await self.routes.aclose()
