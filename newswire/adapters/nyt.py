"""
New York Times adapter.

Only known NYT sections are taken from the URL; anything else is reported
as "News". Paywalled teasers are filtered from the paragraph heuristic and
explained in the failure reason.
"""

from __future__ import annotations

from .base import SourceAdapter


NYT_SECTIONS = {
    "world": "World News",
    "us": "U.S. News",
    "politics": "Politics",
    "business": "Business",
    "technology": "Technology",
    "science": "Science",
    "health": "Health",
    "sports": "Sports",
    "arts": "Arts",
    "style": "Style",
    "food": "Food",
    "travel": "Travel",
    "magazine": "Magazine",
    "opinion": "Opinion",
    "realestate": "Real Estate",
    "automobiles": "Automobiles",
    "jobs": "Jobs",
}

PAYWALL_INDICATORS = (
    "subscribe to continue reading",
    "this article is for subscribers only",
    "create a free account",
    "sign up for free",
    "continue reading the main story",
    "subscriber benefit",
)


def is_paywalled(text: str) -> bool:
    lowered = text.lower()
    return any(indicator in lowered for indicator in PAYWALL_INDICATORS)


class NYTAdapter(SourceAdapter):
    # Direct first: the proxy is often served the paywalled variant.
    FETCH_ROUTES = ("direct", "proxy")
    TITLE_SUFFIXES = ("The New York Times", "NYTimes.com")
    SECTION_MAP = NYT_SECTIONS
    SECTION_KNOWN_ONLY = True
    SECTION_AS_TAG = True
    DEFAULT_SECTION = "News"
    EXTRA_BOILERPLATE = PAYWALL_INDICATORS
    AUTHOR_NOISE = ("The New York Times", "New York Times")

    def failure_hint(self, page_text: str) -> str | None:
        if is_paywalled(page_text):
            return "the article appears to be behind the subscriber paywall"
        return None
