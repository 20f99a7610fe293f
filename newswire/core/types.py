"""
Core data types for the newswire pipeline.

This module defines the records that flow through the pipeline:
- SourceConfig / SourceSelectors: static description of a known site
- Article: normalized output of one extraction
- ExtractionAttempt / StrategyOutcome: diagnostics for one URL
- CrawlProgress / BatchSummary: crawl progress snapshots
- StageEvent: progress of a single-URL extraction
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class SourceSelectors:
    """Ordered CSS selector strategies per field, tried first to last."""

    title: tuple[str, ...] = ()
    content: tuple[str, ...] = ()
    author: tuple[str, ...] = ()
    date: tuple[str, ...] = ()
    image: tuple[str, ...] = ()
    links: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class SourceConfig:
    """Static, read-only description of a news site.

    Attributes:
        id: Stable identifier, also used as Article.source_id
        name: Display name
        base_url: Landing page used for link discovery
        feed_url: Optional RSS/Atom feed, preferred over link discovery
        host_patterns: Hostnames served by this source; each also matches subdomains
        selectors: Site-specific markup patterns per field
        category: Default section for articles from this source
        country: ISO country code of the publication
        language: ISO language code
        enabled: Whether the source is crawled by default
        placeholder_title: Title used when no title strategy succeeds
    """

    id: str
    name: str
    base_url: str
    feed_url: str | None = None
    host_patterns: tuple[str, ...] = ()
    selectors: SourceSelectors = field(default_factory=SourceSelectors)
    category: str = "general"
    country: str = ""
    language: str = "en"
    enabled: bool = True
    placeholder_title: str = "Untitled Article"


@dataclass
class Article:
    """Normalized article record.

    A successful article has a non-empty title and content of at least the
    configured minimum length. Failed extractions keep the same shape but
    set extraction_failed so callers can filter them out.
    """

    url: str
    title: str
    content: str
    publish_date: datetime
    source_id: str
    source_name: str = ""
    author: str | None = None
    image_url: str | None = None
    section: str = ""
    tags: list[str] = field(default_factory=list)
    date_estimated: bool = False
    extraction_failed: bool = False
    failure_reason: str | None = None
    id: str = field(default="", compare=False)
    crawled_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["publish_date"] = self.publish_date.isoformat()
        data["crawled_at"] = self.crawled_at.isoformat()
        return data


@dataclass
class StrategyOutcome:
    """One strategy evaluation for one field."""

    field: str
    strategy: str
    confidence: float
    found: bool
    error: str | None = None


@dataclass
class ExtractionAttempt:
    """Ephemeral diagnostics for extracting a single URL."""

    url: str
    source_id: str
    raw_markup: str
    tried: list[StrategyOutcome] = field(default_factory=list)
    winners: dict[str, str] = field(default_factory=dict)
    article: Article | None = None


class CrawlStatus(str, Enum):
    PENDING = "pending"
    CRAWLING = "crawling"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class CrawlProgress:
    """Per-source crawl state for one batch."""

    source_id: str
    source_name: str
    status: CrawlStatus = CrawlStatus.PENDING
    progress: float = 0.0
    articles_found: int = 0
    articles_processed: int = 0
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.status in (CrawlStatus.COMPLETED, CrawlStatus.ERROR)


@dataclass(frozen=True)
class BatchSummary:
    """Published once when a crawl batch ends."""

    total_sources: int
    completed: int
    errors: int
    articles: int
    cancelled: bool = False


class ExtractionStage(str, Enum):
    VALIDATING = "validating"
    FETCHING = "fetching"
    PARSING = "parsing"
    EXTRACTING = "extracting"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class StageEvent:
    """Progress of a single-URL extraction."""

    url: str
    stage: ExtractionStage
    progress: int
    message: str = ""
