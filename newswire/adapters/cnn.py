"""
CNN adapter.

Sections come from the first URL segment, mapped to display names. The
article kind (video, live updates, opinion, analysis, breaking) is added as
a tag when the URL reveals it.
"""

from __future__ import annotations

from .base import SourceAdapter


CNN_SECTIONS = {
    "politics": "Politics",
    "business": "Business",
    "world": "World",
    "us": "US",
    "sport": "Sport",
    "entertainment": "Entertainment",
    "tech": "Technology",
    "health": "Health",
    "style": "Style",
    "travel": "Travel",
    "opinions": "Opinion",
}

BREAKING_MARKERS = ("breaking", "live-news", "developing")


def article_kind(url: str) -> str:
    lowered = url.lower()
    if "/video/" in lowered:
        return "Video"
    if "/live-news/" in lowered:
        return "Live Updates"
    if "/opinions/" in lowered:
        return "Opinion"
    if "/analysis/" in lowered:
        return "Analysis"
    if any(marker in lowered for marker in BREAKING_MARKERS):
        return "Breaking News"
    return "Article"


class CNNAdapter(SourceAdapter):
    FETCH_ROUTES = ("proxy", "direct")
    TITLE_SUFFIXES = ("CNN Politics", "CNN Business", "CNN")
    SECTION_MAP = CNN_SECTIONS
    SECTION_AS_TAG = True
    DEFAULT_SECTION = "General"
    AUTHOR_NOISE = ("CNN",)
    EXTRA_BOILERPLATE = ("cnn.com", "getty images")

    def extra_tags(self, url: str) -> list[str]:
        kind = article_kind(url)
        return [] if kind == "Article" else [kind]
