"""
Extraction building blocks.

This package holds the parse-tree helpers, the per-field strategy chain,
normalization and the generic heuristics that adapters compose.
"""

from .chain import NOT_FOUND, FieldChain, Found, Strategy, found_if
from .heuristics import NEGATIVE_KEYWORDS, document_text, is_boilerplate, paragraph_text
from .markup import clean_text, json_ld_objects, meta_content, parse_html
from .normalize import normalize_author, parse_date, section_from_url, truncate

__all__ = [
    "NOT_FOUND",
    "FieldChain",
    "Found",
    "Strategy",
    "found_if",
    "NEGATIVE_KEYWORDS",
    "document_text",
    "is_boilerplate",
    "paragraph_text",
    "clean_text",
    "json_ld_objects",
    "meta_content",
    "parse_html",
    "normalize_author",
    "parse_date",
    "section_from_url",
    "truncate",
]
