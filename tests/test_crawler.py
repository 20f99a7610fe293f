"""Tests for batch crawl orchestration."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from urllib.parse import urlparse

import pytest

from newswire.config import AppConfig
from newswire.core.errors import AlreadyRunning, DuplicateSource, FetchTimeout, Unreachable
from newswire.core.types import BatchSummary, CrawlProgress, CrawlStatus, SourceConfig, SourceSelectors
from newswire.crawler import CrawlOrchestrator
from newswire.fetch.gateway import FetchRoutes
from newswire.progress import ProgressBus

BODY = (
    "This paragraph carries enough words to pass the minimum content length for a news story. "
    "It keeps going with a second sentence so the extraction threshold is comfortably met."
)
FEED_BODY = BODY + " " + BODY


class _FakeGateway:
    """Serves canned pages; hosts in ``fail_hosts`` always time out."""

    def __init__(self, pages: dict[str, bytes], fail_hosts: tuple[str, ...] = (), delay: float = 0.0):
        self.pages = pages
        self.fail_hosts = fail_hosts
        self.delay = delay
        self.calls: list[str] = []

    async def fetch(self, url: str, timeout: float | None = None) -> bytes:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if urlparse(url).hostname in self.fail_hosts:
            raise FetchTimeout(url, f"Timed out after 15s fetching {url}")
        if url not in self.pages:
            raise Unreachable(url, f"HTTP 404 fetching {url}")
        return self.pages[url]

    async def aclose(self) -> None:
        pass


def _source(source_id: str, feed_url: str | None = None) -> SourceConfig:
    return SourceConfig(
        id=source_id,
        name=f"Source {source_id.upper()}",
        base_url=f"https://{source_id}.test/",
        feed_url=feed_url,
        host_patterns=(f"{source_id}.test",),
        selectors=SourceSelectors(content=("article",), links=("a[href]",)),
    )


def _page(title: str, published: str) -> bytes:
    return (
        "<html><head>"
        f'<meta property="og:title" content="{title}">'
        f'<meta property="article:published_time" content="{published}">'
        f"</head><body><article><p>{BODY}</p></article></body></html>"
    ).encode()


def _site(source_id: str, stories: list[tuple[str, str]]) -> dict[str, bytes]:
    """Listing page plus one article page per (slug, date)."""
    links = "".join(f'<a href="/{slug}">{slug}</a>' for slug, _ in stories)
    pages = {f"https://{source_id}.test/": f"<html><body>{links}</body></html>".encode()}
    for slug, published in stories:
        pages[f"https://{source_id}.test/{slug}"] = _page(f"{source_id} {slug}", published)
    return pages


def _config(concurrency: int = 2) -> AppConfig:
    cfg = AppConfig()
    cfg.crawl.concurrency = concurrency
    cfg.crawl.request_delay_seconds = 0
    cfg.crawl.group_delay_seconds = 0
    return cfg


def _orchestrator(gateway: _FakeGateway, cfg: AppConfig | None = None, bus: ProgressBus | None = None):
    routes = FetchRoutes(direct=gateway, proxied=None)
    return CrawlOrchestrator(cfg or _config(), routes=routes, bus=bus or ProgressBus())


def test_results_are_sorted_newest_first():
    pages = _site(
        "a",
        [("jan", "2024-01-01T00:00:00Z"), ("mar", "2024-03-01T00:00:00Z"), ("feb", "2024-02-01T00:00:00Z")],
    )
    orchestrator = _orchestrator(_FakeGateway(pages))

    articles = asyncio.run(orchestrator.run([_source("a")]))

    assert [a.title for a in articles] == ["a mar", "a feb", "a jan"]
    assert [a.publish_date.month for a in articles] == [3, 2, 1]
    assert not orchestrator.is_running


def test_equal_dates_keep_discovery_order():
    same = "2024-05-05T05:00:00Z"
    pages = _site("a", [("one", same), ("two", same), ("three", same)])

    articles = asyncio.run(_orchestrator(_FakeGateway(pages)).run([_source("a")]))

    assert [a.title for a in articles] == ["a one", "a two", "a three"]


def test_partial_failure_keeps_other_sources():
    pages = _site(
        "b",
        [("x", "2024-01-01T00:00:00Z"), ("y", "2024-01-02T00:00:00Z"), ("z", "2024-01-03T00:00:00Z")],
    )
    bus = ProgressBus()
    summaries = []
    bus.subscribe(lambda event: isinstance(event, BatchSummary) and summaries.append(event))
    orchestrator = _orchestrator(_FakeGateway(pages, fail_hosts=("a.test",)), bus=bus)

    articles = asyncio.run(orchestrator.run([_source("a"), _source("b")]))

    assert len(articles) == 3
    assert {a.source_id for a in articles} == {"b"}
    snapshot = orchestrator.snapshot()
    assert snapshot["a"].status == CrawlStatus.ERROR
    assert "Timed out" in snapshot["a"].error
    assert snapshot["b"].status == CrawlStatus.COMPLETED
    assert snapshot["b"].articles_processed == 3
    assert not orchestrator.is_running
    assert summaries == [BatchSummary(total_sources=2, completed=1, errors=1, articles=3)]


def test_failed_article_pages_are_skipped():
    pages = _site("a", [("good", "2024-01-01T00:00:00Z"), ("short", "2024-01-02T00:00:00Z")])
    pages["https://a.test/short"] = b"<html><body><p>Nothing here.</p></body></html>"
    pages.update({"https://a.test/": b'<html><body><a href="/good">g</a><a href="/short">s</a><a href="/gone">x</a></body></html>'})

    orchestrator = _orchestrator(_FakeGateway(pages))
    articles = asyncio.run(orchestrator.run([_source("a")]))

    assert [a.title for a in articles] == ["a good"]
    entry = orchestrator.snapshot()["a"]
    assert entry.status == CrawlStatus.COMPLETED
    assert entry.articles_found == 3
    assert entry.articles_processed == 3
    assert entry.progress == 100.0


def test_concurrency_bound_and_final_states():
    sources = [_source(name) for name in "abcde"]
    pages = {}
    for source in sources:
        pages.update(_site(source.id, [("story", "2024-01-01T00:00:00Z")]))
    bus = ProgressBus()
    statuses: dict[str, CrawlStatus] = {}
    peak = {"crawling": 0}
    pending_events = []

    def watch(event):
        if not isinstance(event, CrawlProgress):
            return
        if event.status == CrawlStatus.PENDING:
            pending_events.append(event.source_id)
        statuses[event.source_id] = event.status
        crawling = sum(1 for status in statuses.values() if status == CrawlStatus.CRAWLING)
        peak["crawling"] = max(peak["crawling"], crawling)

    bus.subscribe(watch)
    orchestrator = _orchestrator(_FakeGateway(pages, delay=0.01), _config(concurrency=2), bus)

    articles = asyncio.run(orchestrator.run(sources))

    assert len(articles) == 5
    assert peak["crawling"] == 2
    assert pending_events == ["a", "b", "c", "d", "e"]
    snapshot = orchestrator.snapshot()
    assert len(snapshot) == len(sources)
    assert all(entry.status == CrawlStatus.COMPLETED for entry in snapshot.values())


def test_second_run_while_running_raises_and_keeps_progress():
    pages = _site("a", [("one", "2024-01-01T00:00:00Z"), ("two", "2024-01-02T00:00:00Z")])
    orchestrator = _orchestrator(_FakeGateway(pages, delay=0.02))

    async def scenario():
        task = asyncio.create_task(orchestrator.run([_source("a")]))
        await asyncio.sleep(0.01)
        assert orchestrator.is_running
        before = orchestrator.snapshot()
        with pytest.raises(AlreadyRunning):
            await orchestrator.run([_source("b")])
        assert orchestrator.snapshot() == before
        return await task

    articles = asyncio.run(scenario())

    assert len(articles) == 2
    assert not orchestrator.is_running


def test_stop_prevents_further_groups():
    sources = [_source(name) for name in "abc"]
    pages = {}
    for source in sources:
        pages.update(_site(source.id, [("story", "2024-01-01T00:00:00Z")]))
    bus = ProgressBus()
    gateway = _FakeGateway(pages)
    orchestrator = _orchestrator(gateway, _config(concurrency=1), bus)
    seen = []
    summaries = []

    def watch(event):
        if isinstance(event, BatchSummary):
            summaries.append(event)
            return
        seen.append((event.source_id, event.status))
        if event.source_id == "a" and event.status == CrawlStatus.COMPLETED:
            orchestrator.stop()

    bus.subscribe(watch)
    articles = asyncio.run(orchestrator.run(sources))

    assert [a.source_id for a in articles] == ["a"]
    assert not any(url.startswith("https://b.test") for url in gateway.calls)
    assert [status for source_id, status in seen if source_id == "b"] == [CrawlStatus.PENDING]
    snapshot = orchestrator.snapshot()
    assert snapshot["b"].status == CrawlStatus.ERROR
    assert snapshot["c"].error == "Crawl cancelled"
    assert summaries[0].cancelled
    assert not orchestrator.is_running


def test_stop_discards_in_flight_results():
    pages = _site(
        "a",
        [("one", "2024-01-01T00:00:00Z"), ("two", "2024-01-02T00:00:00Z"), ("three", "2024-01-03T00:00:00Z")],
    )
    bus = ProgressBus()
    orchestrator = _orchestrator(_FakeGateway(pages), bus=bus)
    events_after_stop = []

    def watch(event):
        if not isinstance(event, CrawlProgress):
            return
        if orchestrator._stop_requested:
            events_after_stop.append(event)
        if event.articles_processed == 1:
            orchestrator.stop()

    bus.subscribe(watch)
    articles = asyncio.run(orchestrator.run([_source("a")]))

    assert [a.title for a in articles] == ["a one"]
    assert events_after_stop == []
    assert orchestrator.snapshot()["a"].finished


def test_feed_entries_with_long_summaries_skip_page_fetch():
    feed = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Feed</title>
<item><title>First story</title><link>https://f.test/first</link>
<description>{FEED_BODY}</description><pubDate>Fri, 01 Mar 2024 10:00:00 GMT</pubDate></item>
<item><title>Second story</title><link>https://f.test/second</link>
<description>{FEED_BODY}</description><pubDate>Sat, 02 Mar 2024 10:00:00 GMT</pubDate></item>
<item><title>Not a web link</title><link>ftp://f.test/file</link><description>{FEED_BODY}</description></item>
</channel></rss>""".encode()
    gateway = _FakeGateway({"https://f.test/rss": feed})
    orchestrator = _orchestrator(gateway)

    articles = asyncio.run(orchestrator.run([_source("f", feed_url="https://f.test/rss")]))

    assert [a.title for a in articles] == ["Second story", "First story"]
    assert articles[0].publish_date == datetime(2024, 3, 2, 10, tzinfo=timezone.utc)
    assert gateway.calls == ["https://f.test/rss"]


def test_short_feed_entries_are_enriched_from_the_page():
    feed = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Feed</title>
<item><title>Teaser</title><link>https://f.test/full</link><description>Short teaser.</description>
<pubDate>Fri, 01 Mar 2024 10:00:00 GMT</pubDate><author>reporter@f.test (Robin Park)</author></item>
</channel></rss>"""
    page = f"<html><body><article><p>{BODY}</p></article></body></html>".encode()
    gateway = _FakeGateway({"https://f.test/rss": feed, "https://f.test/full": page})

    articles = asyncio.run(_orchestrator(gateway).run([_source("f", feed_url="https://f.test/rss")]))

    assert len(articles) == 1
    assert articles[0].content == BODY
    assert articles[0].title == "Teaser"
    assert articles[0].publish_date == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
    assert not articles[0].date_estimated


def test_feed_failure_falls_back_to_listing_page():
    pages = _site("f", [("story", "2024-01-01T00:00:00Z")])
    gateway = _FakeGateway(pages)

    orchestrator = _orchestrator(gateway)
    articles = asyncio.run(orchestrator.run([_source("f", feed_url="https://f.test/missing.rss")]))

    assert [a.title for a in articles] == ["f story"]
    assert gateway.calls[0] == "https://f.test/missing.rss"
    assert orchestrator.snapshot()["f"].status == CrawlStatus.COMPLETED


def test_max_articles_caps_each_source():
    stories = [(f"s{i}", f"2024-01-0{i}T00:00:00Z") for i in range(1, 6)]
    orchestrator = _orchestrator(_FakeGateway(_site("a", stories)))

    articles = asyncio.run(orchestrator.run([_source("a")], max_articles=2))

    assert len(articles) == 2


def test_queries_over_last_batch():
    pages = _site("a", [("one", "2024-01-01T00:00:00Z")])
    pages.update(_site("b", [("two", "2024-01-02T00:00:00Z")]))
    orchestrator = _orchestrator(_FakeGateway(pages))
    tech = SourceConfig(
        id="b",
        name="Source B",
        base_url="https://b.test/",
        host_patterns=("b.test",),
        selectors=SourceSelectors(content=("article",), links=("a[href]",)),
        category="technology",
    )

    asyncio.run(orchestrator.run([_source("a"), tech]))

    assert [a.source_id for a in orchestrator.articles_by_source("a")] == ["a"]
    assert [a.source_id for a in orchestrator.articles_by_category("Technology")] == ["b"]
    assert [a.title for a in orchestrator.search("TWO")] == ["b two"]
    assert len(orchestrator.search("minimum content length")) == 2
    assert orchestrator.search("nothing like this") == []


def test_run_periodic_stops_when_requested():
    pages = _site("a", [("one", "2024-01-01T00:00:00Z")])
    bus = ProgressBus()
    orchestrator = _orchestrator(_FakeGateway(pages), bus=bus)
    summaries = []

    def watch(event):
        if isinstance(event, BatchSummary):
            summaries.append(event)
            if len(summaries) == 2:
                orchestrator.stop()

    bus.subscribe(watch)
    batches = asyncio.run(orchestrator.run_periodic(0, [_source("a")]))

    assert batches == 2
    assert len(summaries) == 2


def test_dedup_drops_near_identical_titles():
    pages = _site("a", [("one", "2024-01-01T00:00:00Z")])
    pages.update(_site("b", [("one", "2024-01-02T00:00:00Z")]))
    pages["https://b.test/one"] = _page("a one", "2024-01-02T00:00:00Z")
    cfg = _config()
    cfg.dedup.enabled = True

    articles = asyncio.run(_orchestrator(_FakeGateway(pages), cfg).run([_source("a"), _source("b")]))

    assert [a.source_id for a in articles] == ["b"]


def test_duplicate_source_ids_are_rejected_before_crawling():
    gateway = _FakeGateway(_site("a", [("one", "2024-01-01T00:00:00Z")]))
    bus = ProgressBus()
    events = []
    bus.subscribe(events.append)
    orchestrator = _orchestrator(gateway, bus=bus)

    with pytest.raises(DuplicateSource, match="a"):
        asyncio.run(orchestrator.run([_source("a"), _source("b"), _source("a")]))

    assert gateway.calls == []
    assert events == []
    assert orchestrator.snapshot() == {}
    assert not orchestrator.is_running


def test_zero_cap_fetches_nothing():
    feed_source = _source("f", feed_url="https://f.test/rss")
    gateway = _FakeGateway(_site("a", [("one", "2024-01-01T00:00:00Z")]))
    orchestrator = _orchestrator(gateway)

    articles = asyncio.run(orchestrator.run([_source("a"), feed_source], max_articles=0))

    assert articles == []
    assert gateway.calls == []
    snapshot = orchestrator.snapshot()
    assert snapshot["a"].status == CrawlStatus.COMPLETED
    assert snapshot["a"].articles_found == 0
    assert snapshot["f"].status == CrawlStatus.COMPLETED


def test_article_failures_are_reported_on_the_source_entry():
    pages = {"https://a.test/": b'<html><body><a href="/x">x</a><a href="/y">y</a></body></html>'}
    orchestrator = _orchestrator(_FakeGateway(pages))

    articles = asyncio.run(orchestrator.run([_source("a")]))

    assert articles == []
    entry = orchestrator.snapshot()["a"]
    assert entry.status == CrawlStatus.COMPLETED
    assert entry.articles_processed == 2
    assert entry.error.startswith("2 of 2 articles failed")
    assert "HTTP 404 fetching https://a.test/y" in entry.error


def test_partial_article_failure_keeps_source_completed():
    pages = _site("a", [("good", "2024-01-01T00:00:00Z")])
    pages["https://a.test/"] = b'<html><body><a href="/good">g</a><a href="/gone">x</a></body></html>'
    orchestrator = _orchestrator(_FakeGateway(pages))

    articles = asyncio.run(orchestrator.run([_source("a")]))

    assert [a.title for a in articles] == ["a good"]
    entry = orchestrator.snapshot()["a"]
    assert entry.status == CrawlStatus.COMPLETED
    assert entry.error.startswith("1 of 2 articles failed")
