"""
Per-source extraction adapters.

``build_adapter`` picks the adapter class for a SourceConfig; sources
without a dedicated class use SourceAdapter driven by their selectors.
"""

from __future__ import annotations

from ..config import ExtractConfig
from ..core.types import SourceConfig
from .base import Clock, SourceAdapter
from .bbc import BBCAdapter
from .cnn import CNNAdapter
from .generic import GenericAdapter
from .nyt import NYTAdapter

ADAPTERS: dict[str, type[SourceAdapter]] = {
    "bbc-news": BBCAdapter,
    "cnn": CNNAdapter,
    "nytimes": NYTAdapter,
    "generic": GenericAdapter,
}


def build_adapter(
    source: SourceConfig,
    cfg: ExtractConfig | None = None,
    clock: Clock | None = None,
) -> SourceAdapter:
    adapter_cls = ADAPTERS.get(source.id, SourceAdapter)
    return adapter_cls(source, cfg, clock)


__all__ = [
    "ADAPTERS",
    "BBCAdapter",
    "CNNAdapter",
    "GenericAdapter",
    "NYTAdapter",
    "SourceAdapter",
    "build_adapter",
]
