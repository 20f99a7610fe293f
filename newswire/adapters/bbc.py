"""
BBC News adapter.

BBC pages split the story into many ``data-component="text-block"`` nodes,
so short fragments (captions, share prompts) are dropped per block before
the blocks are joined.
"""

from __future__ import annotations

from .base import SourceAdapter


class BBCAdapter(SourceAdapter):
    FETCH_ROUTES = ("proxy", "direct")
    TITLE_SUFFIXES = ("BBC News", "BBC Sport", "BBC")
    BLOCK_MIN_CHARS = 50
    DEFAULT_SECTION = "News"
    AUTHOR_NOISE = ("BBC News", "BBC")
    EXTRA_BOILERPLATE = ("bbc is not responsible", "share this page")
