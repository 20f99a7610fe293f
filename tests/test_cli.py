"""Tests for the typer command-line interface."""

from __future__ import annotations

from datetime import datetime, timezone
import json

from typer.testing import CliRunner

from newswire import cli
from newswire.core.errors import Unreachable
from newswire.core.types import Article

runner = CliRunner()


class _FakeExtractor:
    fail = False

    def __init__(self, cfg, bus=None, **kwargs):
        self.cfg = cfg
        self.bus = bus

    async def extract(self, url):
        if self.fail:
            raise Unreachable(url, "HTTP 502 fetching " + url)
        return Article(
            url=url,
            title="Comet visible tonight",
            content="A bright comet will be visible tonight.",
            publish_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
            source_id="bbc-news",
            source_name="BBC News",
        )

    async def extract_with_fallback(self, url):
        return await self.extract(url)

    async def aclose(self):
        pass


def _quiet(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda cfg, output_dir=None: None)
    monkeypatch.setattr(cli, "load_dotenv", lambda: False)
    monkeypatch.delenv("NEWSWIRE_PROXY_URL", raising=False)
    monkeypatch.delenv("NEWSWIRE_LOG_LEVEL", raising=False)


def test_sources_lists_registry(monkeypatch):
    _quiet(monkeypatch)

    result = runner.invoke(cli.app, ["sources"])

    assert result.exit_code == 0
    assert "bbc-news" in result.output
    assert "nytimes" in result.output


def test_extract_writes_json(monkeypatch, tmp_path):
    _quiet(monkeypatch)
    monkeypatch.setattr(cli, "ArticleExtractor", _FakeExtractor)
    output = tmp_path / "article.json"

    result = runner.invoke(
        cli.app, ["extract", "https://www.bbc.com/news/x", "--no-progress", "--output", str(output)]
    )

    assert result.exit_code == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["title"] == "Comet visible tonight"
    assert data["publish_date"] == "2024-03-01T00:00:00+00:00"


def test_extract_failure_exits_nonzero(monkeypatch):
    _quiet(monkeypatch)
    monkeypatch.setattr(_FakeExtractor, "fail", True)
    monkeypatch.setattr(cli, "ArticleExtractor", _FakeExtractor)

    result = runner.invoke(cli.app, ["extract", "https://www.bbc.com/news/x", "--no-progress"])

    assert result.exit_code == 1


def test_crawl_rejects_unknown_source(monkeypatch):
    _quiet(monkeypatch)

    result = runner.invoke(cli.app, ["crawl", "--source", "nope", "--no-progress"])

    assert result.exit_code == 2
