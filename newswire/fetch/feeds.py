"""
Candidate article discovery for a source.

Two discovery paths feed the crawler:
1. RSS/Atom feeds parsed with feedparser
2. Listing pages scanned with the source's link selectors
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from urllib.parse import urljoin, urlparse

import feedparser
from bs4 import BeautifulSoup

from ..extract.markup import clean_text, parse_html


logger = logging.getLogger(__name__)


@dataclass
class FeedItem:
    """One entry of a parsed feed, before page extraction."""

    url: str
    title: str = ""
    summary: str = ""
    author: str | None = None
    published: str | None = None
    image_url: str | None = None
    tags: list[str] = field(default_factory=list)


def parse_feed(raw: bytes | str, limit: int) -> list[FeedItem]:
    """Parse RSS/Atom bytes into at most ``limit`` feed items, in feed order.

    Entries without a usable http(s) link are skipped.
    """
    if limit <= 0:
        return []
    parsed = feedparser.parse(raw)
    items: list[FeedItem] = []
    for entry in parsed.entries:
        if len(items) >= limit:
            break
        link = entry.get("link") or entry.get("id") or ""
        if urlparse(link).scheme not in ("http", "https"):
            continue
        items.append(
            FeedItem(
                url=link,
                title=clean_text(entry.get("title", "")),
                summary=_summary_text(entry),
                author=entry.get("author") or None,
                published=entry.get("published") or entry.get("updated") or None,
                image_url=_entry_image(entry),
                tags=[t.get("term", "").strip() for t in entry.get("tags", []) if t.get("term")],
            )
        )
    return items


def _summary_text(entry) -> str:
    contents = entry.get("content") or []
    candidates = [c.get("value", "") for c in contents] + [entry.get("summary", "")]
    best = ""
    for candidate in candidates:
        if not candidate:
            continue
        text = clean_text(BeautifulSoup(candidate, "lxml").get_text(" "))
        if len(text) > len(best):
            best = text
    return best


def _entry_image(entry) -> str | None:
    for key in ("media_thumbnail", "media_content"):
        media = entry.get(key) or []
        for item in media:
            if item.get("url"):
                return item["url"]
    for enclosure in entry.get("enclosures", []):
        if str(enclosure.get("type", "")).startswith("image") and enclosure.get("href"):
            return enclosure["href"]
    return None


def discover_links(html: str, base_url: str, selectors: tuple[str, ...], limit: int) -> list[str]:
    """Collect article links from a listing page.

    Links are resolved against ``base_url``, restricted to http(s) URLs on
    the listing page's site, deduplicated and returned in document order.
    """
    if limit <= 0:
        return []
    soup = parse_html(html)
    site = _site_of(base_url)
    links: list[str] = []
    seen: set[str] = set()
    for selector in selectors or ("a[href]",):
        try:
            anchors = soup.select(selector)
        except (ValueError, NotImplementedError) as exc:
            logger.debug("Bad link selector %r: %s", selector, exc)
            continue
        for anchor in anchors:
            href = anchor.get("href")
            if not href:
                continue
            absolute = urljoin(base_url, href).split("#", 1)[0]
            if urlparse(absolute).scheme not in ("http", "https"):
                continue
            if site and _site_of(absolute) != site:
                continue
            if absolute in seen or absolute.rstrip("/") == base_url.rstrip("/"):
                continue
            seen.add(absolute)
            links.append(absolute)
            if len(links) >= limit:
                return links
    return links


def _site_of(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    parts = host.split(".")
    if len(parts) >= 3 and parts[-2] in ("co", "com", "org", "net") and len(parts[-1]) == 2:
        return ".".join(parts[-3:])
    return ".".join(parts[-2:])
