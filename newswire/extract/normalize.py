"""
Field normalization: length caps, author cleanup, lenient dates, sections, tags.
"""

from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any, Iterable
from urllib.parse import urljoin, urlparse

from dateutil import parser as date_parser

from .markup import clean_text


_BY_PREFIX_RE = re.compile(r"^\s*by\s+", re.IGNORECASE)
# Job titles that follow a byline after a comma ("Jane Doe, Senior Correspondent").
_ROLE_RE = re.compile(
    r"\b(correspondent|reporter|editor|writer|contributor|staff|analyst|producer|columnist|bureau)\b",
    re.IGNORECASE,
)


def truncate(text: str, max_chars: int) -> str:
    """Cap text at ``max_chars``, preferring to cut at a word boundary."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    cut = text[:max_chars]
    space = cut.rfind(" ")
    if space > max_chars * 0.8:
        cut = cut[:space]
    return cut.rstrip()


def strip_title_suffix(title: str, suffixes: Iterable[str]) -> str:
    for suffix in suffixes:
        title = re.sub(rf"\s*[-|]\s*{re.escape(suffix)}\s*$", "", title, flags=re.IGNORECASE)
    return title.strip()


def normalize_author(
    author: str | None,
    source_names: Iterable[str] = (),
    max_chars: int = 120,
) -> str | None:
    """Normalize a byline into a bare author string.

    Strips a leading "By ", trailing comma qualifiers that name the source or
    a job title ("Jane Doe, CNN") and any occurrence of the source's own
    name. Co-author lists ("A, B and C") are kept.
    """
    if not author:
        return None
    names = [name for name in source_names if name]
    text = _BY_PREFIX_RE.sub("", clean_text(author))
    parts = [part.strip() for part in text.split(",")]
    while len(parts) > 1 and _is_qualifier(parts[-1], names):
        parts.pop()
    text = ", ".join(part for part in parts if part)
    text = _strip_names(text, names)
    text = clean_text(text).strip(" -|")
    if not text:
        return None
    return truncate(text, max_chars)


def _strip_names(text: str, names: Iterable[str]) -> str:
    for name in names:
        text = re.sub(rf"\b{re.escape(name)}\b", "", text, flags=re.IGNORECASE)
    return text


def _is_qualifier(part: str, names: list[str]) -> bool:
    if _ROLE_RE.search(part):
        return True
    return not clean_text(_strip_names(part, names)).strip(" -|")


def parse_date(value: Any) -> datetime | None:
    """Parse a date leniently; return None when nothing sensible comes out.

    Naive timestamps are taken to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = clean_text(str(value))
        if not text:
            return None
        try:
            parsed = date_parser.parse(text, fuzzy=True)
        except (ValueError, OverflowError, TypeError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def section_from_url(url: str, section_map: dict[str, str] | None = None, known_only: bool = False) -> str | None:
    """Derive a section name from the first path segment of ``url``.

    Year-like segments are skipped so "/2024/01/15/politics/..." yields
    "Politics". With ``known_only``, segments absent from ``section_map``
    give None.
    """
    section_map = section_map or {}
    segments = [s for s in urlparse(url).path.split("/") if s]
    for segment in segments:
        if segment.isdigit():
            continue
        key = segment.lower()
        if key in section_map:
            return section_map[key]
        if known_only or "." in segment:
            return None
        return segment[:1].upper() + segment[1:]
    return None


def absolutize(url: str | None, base_url: str) -> str | None:
    if not url:
        return None
    url = url.strip()
    if url.startswith("data:"):
        return None
    return urljoin(base_url, url)


def split_keywords(value: str | None) -> list[str]:
    if not value:
        return []
    return [clean_text(part) for part in value.split(",") if clean_text(part)]


def dedupe_tags(tags: Iterable[str], max_tags: int) -> list[str]:
    """Deduplicate tags case-insensitively, keeping first occurrence order."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags:
        tag = clean_text(tag)
        if not tag or tag.lower() in seen:
            continue
        seen.add(tag.lower())
        result.append(tag)
        if len(result) >= max_tags:
            break
    return result
