"""
Single-URL article extraction.

Runs one URL through the same pipeline the crawler uses and reports each
real stage transition on the progress bus:

validating (10) -> fetching (25) -> parsing (50) -> extracting (75) -> complete (100)

A failure at any stage publishes an ``error`` stage and re-raises.
"""

from __future__ import annotations

import asyncio
import logging

from .adapters import build_adapter
from .adapters.base import Clock
from .config import AppConfig
from .core.errors import FetchError, InsufficientContent, InvalidURL
from .core.types import Article, ExtractionStage, StageEvent
from .extract.markup import decode_markup
from .fetch.gateway import FetchRoutes, build_routes, validate_url
from .logging_utils import log_event, truncate_text
from .progress import ProgressBus
from .sources.classifier import SourceClassifier


logger = logging.getLogger(__name__)


class ArticleExtractor:
    """Fetch and extract individual article URLs.

    Args:
        cfg: Application configuration
        routes: Fetch routes; built from ``cfg.fetch`` when omitted
        bus: Progress bus receiving StageEvents; a private bus when omitted
        classifier: URL to source mapping
        clock: Time source handed to adapters
    """

    def __init__(
        self,
        cfg: AppConfig | None = None,
        routes: FetchRoutes | None = None,
        bus: ProgressBus | None = None,
        classifier: SourceClassifier | None = None,
        clock: Clock | None = None,
    ):
        self.cfg = cfg or AppConfig()
        self.routes = routes or build_routes(self.cfg.fetch)
        self.bus = bus or ProgressBus()
        self.classifier = classifier or SourceClassifier()
        self.clock = clock

    async def extract(self, url: str) -> Article:
        """Extract one article.

        Raises:
            InvalidURL: Before any fetch, for malformed or non-http(s) URLs
            FetchError: When every fetch route failed
            InsufficientContent: When no strategy produced enough content
        """
        try:
            self._stage(url, ExtractionStage.VALIDATING, 10, "Validating URL")
            url = validate_url(url)
            source = self.classifier.classify(url)
            if source is None:
                raise InvalidURL(url, "URL could not be classified")
            adapter = build_adapter(source, self.cfg.extract, self.clock)

            self._stage(url, ExtractionStage.FETCHING, 25, f"Fetching from {source.name}")
            raw = await adapter.fetch(self.routes, url)

            self._stage(url, ExtractionStage.PARSING, 50, "Parsing page markup")
            markup = decode_markup(raw)

            self._stage(url, ExtractionStage.EXTRACTING, 75, "Extracting article fields")
            # Parsing and the document extractors are CPU-bound; keep them off the loop.
            attempt = await asyncio.to_thread(adapter.attempt, markup, url)
            article = attempt.article
            if article.extraction_failed:
                log_event(
                    logger,
                    "Extraction produced no content",
                    logging.DEBUG,
                    event="extract_empty",
                    url=url,
                    source_id=source.id,
                    markup_preview=truncate_text(markup, 500),
                )
                raise InsufficientContent(article.failure_reason or "Insufficient content")
        except Exception as exc:
            self._stage(url, ExtractionStage.ERROR, 0, str(exc))
            raise

        self._stage(url, ExtractionStage.COMPLETE, 100, "Extraction complete")
        log_event(
            logger,
            "Article extracted",
            event="article_extracted",
            url=url,
            source_id=source.id,
            winners=dict(attempt.winners),
            content_chars=len(article.content),
        )
        return article

    async def extract_with_fallback(self, url: str) -> Article:
        """Like extract(), but fetch and extraction failures return a placeholder."""
        try:
            return await self.extract(url)
        except (FetchError, InsufficientContent) as exc:
            source = self.classifier.classify(url) or self.classifier.generic
            adapter = build_adapter(source, self.cfg.extract, self.clock)
            log_event(
                logger,
                "Extraction failed, returning placeholder",
                logging.WARNING,
                event="extract_failed",
                url=url,
                source_id=source.id,
                error=str(exc),
            )
            return adapter.failure(str(url), str(exc))

    async def aclose(self) -> None:
        await self.routes.aclose()

    def _stage(self, url: str, stage: ExtractionStage, progress: int, message: str) -> None:
        self.bus.publish(StageEvent(url=url, stage=stage, progress=progress, message=message))
