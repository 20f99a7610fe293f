"""
Post-crawl deduplication.

Sources syndicate each other's stories, and a listing page can link the same
article twice. An article is dropped when its URL (ignoring the fragment and
a trailing slash) was already kept, or when its title is a fuzzy match for a
kept title.
"""

from __future__ import annotations

from urllib.parse import urldefrag

from rapidfuzz import fuzz, process

from .types import Article


def dedup_articles(articles: list[Article], threshold: int = 92) -> list[Article]:
    """Keep the first article of every duplicate group, order preserved.

    Args:
        articles: Articles in their final order
        threshold: rapidfuzz ratio (0-100) at which two titles are the same story
    """
    seen_urls: set[str] = set()
    kept_titles: list[str] = []
    kept: list[Article] = []

    for article in articles:
        url_key = _url_key(article.url)
        if url_key in seen_urls:
            continue
        title_key = " ".join(article.title.casefold().split())
        if title_key and process.extractOne(
            title_key, kept_titles, scorer=fuzz.ratio, score_cutoff=threshold
        ):
            continue
        seen_urls.add(url_key)
        if title_key:
            kept_titles.append(title_key)
        kept.append(article)

    return kept


def _url_key(url: str) -> str:
    return urldefrag(url)[0].rstrip("/")
