"""
Core domain models.

This package contains the data types, error hierarchy and post-processing
helpers shared by every pipeline stage.
"""

from .dedup import dedup_articles
from .errors import (
    AlreadyRunning,
    DuplicateSource,
    EmptyResponse,
    ExtractionError,
    FetchError,
    FetchTimeout,
    InsufficientContent,
    InvalidURL,
    NewswireError,
    Unreachable,
)
from .types import (
    Article,
    BatchSummary,
    CrawlProgress,
    CrawlStatus,
    ExtractionAttempt,
    ExtractionStage,
    SourceConfig,
    SourceSelectors,
    StageEvent,
    StrategyOutcome,
)

__all__ = [
    "Article",
    "BatchSummary",
    "CrawlProgress",
    "CrawlStatus",
    "ExtractionAttempt",
    "ExtractionStage",
    "SourceConfig",
    "SourceSelectors",
    "StageEvent",
    "StrategyOutcome",
    "dedup_articles",
    "NewswireError",
    "FetchError",
    "InvalidURL",
    "Unreachable",
    "FetchTimeout",
    "EmptyResponse",
    "ExtractionError",
    "InsufficientContent",
    "AlreadyRunning",
    "DuplicateSource",
]
