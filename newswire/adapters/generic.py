"""
Adapter for hosts without a dedicated source entry.
"""

from __future__ import annotations

from .base import SourceAdapter


class GenericAdapter(SourceAdapter):
    """Broad selectors plus heuristics for arbitrary article pages."""

    FETCH_ROUTES = ("direct", "proxy")
    BOILERPLATE_SELECTORS = (
        "nav",
        "header",
        "footer",
        "aside",
        ".ads",
        ".advertisement",
        ".social-share",
        ".comments",
    )
    DEFAULT_SECTION = "General"
    # "Web" is a placeholder name, not something pages append to titles or bylines.
    NAME_IS_NOISE = False
