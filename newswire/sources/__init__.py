"""
Known news sources and URL classification.
"""

from .classifier import SourceClassifier, host_matches
from .registry import GENERIC_SOURCE, NEWS_SOURCES, enabled_sources, get_source

__all__ = [
    "SourceClassifier",
    "host_matches",
    "GENERIC_SOURCE",
    "NEWS_SOURCES",
    "enabled_sources",
    "get_source",
]
