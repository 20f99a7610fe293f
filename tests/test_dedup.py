"""Tests for post-crawl deduplication."""

from __future__ import annotations

from datetime import datetime, timezone

from newswire.core.dedup import dedup_articles
from newswire.core.types import Article


def _article(url: str, title: str) -> Article:
    return Article(
        url=url,
        title=title,
        content="body",
        publish_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        source_id="test",
    )


def test_dedup_by_url_and_similar_title():
    articles = [
        _article("https://a.test/1", "Senate passes budget deal"),
        _article("https://a.test/1", "Different title same url"),
        _article("https://b.test/9", "Senate passes budget deal!"),
        _article("https://c.test/3", "Storm hits the coast"),
    ]

    kept = dedup_articles(articles, threshold=92)

    assert [a.url for a in kept] == ["https://a.test/1", "https://c.test/3"]


def test_dedup_threshold_100_only_drops_exact_titles():
    articles = [_article("https://a.test/1", "Budget deal"), _article("https://b.test/2", "Budget deal!")]

    assert len(dedup_articles(articles, threshold=100)) == 2


def test_dedup_ignores_fragment_trailing_slash_and_case():
    articles = [
        _article("https://a.test/story/", "Rates held steady"),
        _article("https://a.test/story#comments", "Unrelated headline"),
        _article("https://b.test/other", "RATES HELD   STEADY"),
    ]

    kept = dedup_articles(articles)

    assert [a.url for a in kept] == ["https://a.test/story/"]


def test_dedup_never_merges_empty_titles():
    articles = [_article("https://a.test/1", ""), _article("https://b.test/2", "")]

    assert len(dedup_articles(articles)) == 2
