"""
Parse-tree helpers shared by every adapter.

Markup is parsed once into a BeautifulSoup tree; strategies query it with
CSS selectors, meta lookups and JSON-LD traversal instead of scanning raw
strings.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator

from bs4 import BeautifulSoup, Tag


logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")

# Elements that never hold article text.
NON_CONTENT_TAGS = ["script", "style", "noscript", "template", "svg", "iframe"]


def parse_html(markup: str | bytes) -> BeautifulSoup:
    return BeautifulSoup(markup, "lxml")


def decode_markup(raw: str | bytes) -> str:
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


def clean_text(text: str | None) -> str:
    """Collapse whitespace runs into single spaces and strip."""
    if not text:
        return ""
    return _WS_RE.sub(" ", text).strip()


def element_text(element: Tag) -> str:
    return clean_text(element.get_text(" "))


def meta_content(soup: BeautifulSoup, key: str) -> str | None:
    """Content of the first ``<meta>`` whose property/name/itemprop equals ``key``.

    Matching is case-insensitive on the key.
    """
    wanted = key.lower()
    for meta in soup.find_all("meta"):
        for attr in ("property", "name", "itemprop"):
            value = meta.get(attr)
            if value and value.strip().lower() == wanted:
                content = clean_text(meta.get("content"))
                if content:
                    return content
    return None


def meta_contents(soup: BeautifulSoup, key: str) -> list[str]:
    """Content of every ``<meta>`` matching ``key``, in document order."""
    wanted = key.lower()
    values = []
    for meta in soup.find_all("meta"):
        for attr in ("property", "name"):
            value = meta.get(attr)
            if value and value.strip().lower() == wanted:
                content = clean_text(meta.get("content"))
                if content:
                    values.append(content)
                break
    return values


def select_all(soup: BeautifulSoup | Tag, selector: str) -> list[Tag]:
    """CSS select that treats an unsupported selector as matching nothing."""
    try:
        return soup.select(selector)
    except (ValueError, NotImplementedError) as exc:
        logger.debug("Selector %r rejected: %s", selector, exc)
        return []


def select_first_text(soup: BeautifulSoup, selectors: tuple[str, ...] | list[str]) -> str | None:
    for selector in selectors:
        for element in select_all(soup, selector):
            text = element_text(element)
            if text:
                return text
    return None


def strip_non_content(soup: BeautifulSoup, extra: tuple[str, ...] = ()) -> BeautifulSoup:
    """Remove script/style-like elements (and any ``extra`` selectors) in place."""
    for tag in soup(NON_CONTENT_TAGS):
        if not tag.decomposed:
            tag.decompose()
    for selector in extra:
        for element in select_all(soup, selector):
            # Already gone if an earlier match contained it.
            if not element.decomposed:
                element.decompose()
    return soup


def json_ld_objects(soup: BeautifulSoup) -> Iterator[dict[str, Any]]:
    """Yield every JSON-LD object on the page.

    Top-level lists and ``@graph`` containers are flattened. Blocks that fail
    to parse are skipped.
    """
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("Skipping malformed JSON-LD block")
            continue
        yield from _flatten_ld(data)


def _flatten_ld(data: Any) -> Iterator[dict[str, Any]]:
    if isinstance(data, list):
        for item in data:
            yield from _flatten_ld(item)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                yield from _flatten_ld(item)
