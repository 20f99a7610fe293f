"""
Generic body-text heuristics, used when no site pattern or embedded data works.

The heuristic chain is:
1. paragraphs: scan ``<p>`` blocks, drop short and boilerplate fragments,
   join the first K survivors
2. trafilatura: purpose-built main-content extractor
3. readability: Mozilla's readability algorithm, converted to text with bs4
"""

from __future__ import annotations

import re
from typing import Callable

from bs4 import BeautifulSoup
import trafilatura
from readability import Document

from .markup import element_text, parse_html, strip_non_content


# Lowercased fragments that mark a paragraph as boilerplate.
NEGATIVE_KEYWORDS = (
    "subscribe",
    "advertisement",
    "sign up",
    "newsletter",
    "follow us",
    "download the app",
    "read more",
    "click here",
    "related:",
    "watch:",
    "all rights reserved",
    "© 20",
    "cookie",
)

_NUMBER_ONLY_RE = re.compile(r"^\s*\d+\s*$")
_SHOUTING_RE = re.compile(r"^[A-Z]{2,}\s*$")


def is_boilerplate(text: str, extra_keywords: tuple[str, ...] = ()) -> bool:
    lowered = text.lower()
    if _NUMBER_ONLY_RE.match(text) or _SHOUTING_RE.match(text):
        return True
    if " " not in text.strip():
        return True
    return any(keyword in lowered for keyword in NEGATIVE_KEYWORDS + extra_keywords)


def paragraph_text(
    soup: BeautifulSoup,
    min_chars: int,
    max_paragraphs: int,
    extra_keywords: tuple[str, ...] = (),
) -> str | None:
    """Join the first ``max_paragraphs`` non-boilerplate paragraphs.

    Args:
        soup: Parsed page; not modified
        min_chars: Paragraphs at or under this length are skipped
        max_paragraphs: Number of surviving paragraphs to keep
        extra_keywords: Site-specific boilerplate markers

    Returns:
        Paragraphs joined by blank lines, or None if nothing survives
    """
    kept: list[str] = []
    for p in soup.find_all("p"):
        text = element_text(p)
        if len(text) <= min_chars or is_boilerplate(text, extra_keywords):
            continue
        kept.append(text)
        if len(kept) >= max_paragraphs:
            break
    return "\n\n".join(kept) if kept else None


def document_text(html: str, order: list[str]) -> tuple[str | None, str | None]:
    """Run whole-document extractors in ``order`` until one yields text.

    Returns:
        Tuple of (text, extractor name), or (None, None) if all fail
    """
    for method in order:
        extractor = _get_extractor(method)
        if not extractor:
            continue
        text = extractor(html)
        if text and text.strip():
            return text.strip(), method
    return None, None


def _get_extractor(name: str) -> Callable[[str], str | None] | None:
    if name == "trafilatura":
        return _extract_trafilatura
    if name == "readability":
        return _extract_readability
    return None


def _extract_trafilatura(html: str) -> str | None:
    return trafilatura.extract(html, include_comments=False, include_tables=False)


def _extract_readability(html: str) -> str | None:
    doc = Document(html)
    soup = strip_non_content(parse_html(doc.summary()))
    text = soup.get_text(separator="\n")
    cleaned = "\n".join([line.strip() for line in text.splitlines() if line.strip()])
    return cleaned if cleaned else None
