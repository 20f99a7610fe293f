"""
Map article URLs onto known sources by hostname.
"""

from __future__ import annotations

from urllib.parse import urlparse

from ..core.types import SourceConfig
from .registry import GENERIC_SOURCE, NEWS_SOURCES


def host_matches(hostname: str, pattern: str) -> bool:
    """True if ``hostname`` is ``pattern`` or one of its subdomains.

    Both sides are compared case-insensitively; "nytimes.com" matches
    "www.nytimes.com" but not "notnytimes.com".
    """
    hostname = hostname.lower().rstrip(".")
    pattern = pattern.lower().lstrip("*.").rstrip(".")
    return hostname == pattern or hostname.endswith("." + pattern)


class SourceClassifier:
    """Classify URLs against a fixed source table.

    Args:
        sources: Known sources, checked in order
        generic: Source returned for hosts no known source claims
    """

    def __init__(
        self,
        sources: tuple[SourceConfig, ...] | list[SourceConfig] = NEWS_SOURCES,
        generic: SourceConfig = GENERIC_SOURCE,
    ):
        self.sources = tuple(sources)
        self.generic = generic

    def classify(self, url: str) -> SourceConfig | None:
        """Return the source for ``url``.

        Returns:
            The matching SourceConfig, the generic source for unknown hosts,
            or None when the URL is not an absolute http(s) URL
        """
        try:
            parsed = urlparse(url)
            hostname = parsed.hostname
        except (ValueError, TypeError, AttributeError):
            return None
        if parsed.scheme.lower() not in ("http", "https") or not hostname:
            return None
        for source in self.sources:
            if any(host_matches(hostname, pattern) for pattern in source.host_patterns):
                return source
        return self.generic
