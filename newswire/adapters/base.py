"""
Selector-driven article adapter with per-field fallback chains.

Every field is resolved independently through the same priority order:
1. Structured metadata (``<meta>`` tags)
2. Site-specific markup patterns from the SourceConfig
3. Embedded structured data (JSON-LD)
4. Generic heuristics
A field that no strategy fills falls back to a neutral default; missing
content turns the whole record into a failure placeholder instead of
raising.

Site adapters subclass SourceAdapter and tune class attributes (title
suffixes, section maps, fetch route order, boilerplate filters) rather
than re-implementing the chain.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Callable
import uuid

from bs4 import BeautifulSoup

from ..config import ExtractConfig
from ..core.errors import RETRYABLE_FETCH_ERRORS, InsufficientContent, Unreachable
from ..core.types import Article, ExtractionAttempt, SourceConfig
from ..extract.chain import NOT_FOUND, FieldChain, Found, Strategy, found_if
from ..extract.heuristics import document_text, is_boilerplate, paragraph_text
from ..extract.markup import (
    clean_text,
    decode_markup,
    element_text,
    json_ld_objects,
    meta_content,
    meta_contents,
    parse_html,
    select_all,
    strip_non_content,
)
from ..extract.normalize import (
    absolutize,
    dedupe_tags,
    normalize_author,
    parse_date,
    section_from_url,
    split_keywords,
    strip_title_suffix,
    truncate,
)
from ..fetch.feeds import FeedItem
from ..fetch.gateway import FetchRoutes
from ..logging_utils import log_event


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

TITLE_META_KEYS = ("og:title", "twitter:title")
AUTHOR_META_KEYS = ("author", "article:author", "byl", "dc.creator")
DATE_META_KEYS = (
    "article:published_time",
    "og:published_time",
    "publish-date",
    "publish_date",
    "publishdate",
    "pubdate",
    "date",
    "dc.date",
    "dc.date.issued",
)
IMAGE_META_KEYS = ("og:image", "twitter:image", "twitter:image:src")
SECTION_META_KEYS = ("article:section", "section")
ARTICLE_LD_TYPES = {
    "article",
    "newsarticle",
    "reportagenewsarticle",
    "analysisnewsarticle",
    "opinionnewsarticle",
    "blogposting",
    "webpage",
    "liveblogposting",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _Page:
    """A parsed page plus the lookups every strategy shares."""

    def __init__(self, markup: str, url: str, boilerplate_selectors: tuple[str, ...]):
        self.markup = markup
        self.url = url
        self.soup = parse_html(markup)
        # Content strategies scan a separate tree with non-content removed.
        self.body = strip_non_content(parse_html(markup), boilerplate_selectors)
        self.ld = [obj for obj in json_ld_objects(self.soup) if _is_article_ld(obj)]

    def ld_value(self, *keys: str) -> Any:
        for obj in self.ld:
            for key in keys:
                value = obj.get(key)
                if value:
                    return value
        return None


def _is_article_ld(obj: dict[str, Any]) -> bool:
    kind = obj.get("@type")
    kinds = kind if isinstance(kind, list) else [kind]
    return any(str(k).lower() in ARTICLE_LD_TYPES for k in kinds if k)


class SourceAdapter:
    """Turn raw markup from one source into an Article.

    Args:
        source: Static configuration of the source
        cfg: Extraction thresholds and caps
        clock: Returns "now"; used for crawled_at and the date fallback
    """

    # Fetch routes tried in order; a transient failure retries once on the next.
    FETCH_ROUTES: tuple[str, ...] = ("direct", "proxy")
    TITLE_SUFFIXES: tuple[str, ...] = ()
    SECTION_MAP: dict[str, str] = {}
    SECTION_KNOWN_ONLY = False
    SECTION_AS_TAG = False
    DEFAULT_SECTION: str | None = None
    # Text blocks matched by a content selector must be longer than this.
    BLOCK_MIN_CHARS = 0
    BOILERPLATE_SELECTORS: tuple[str, ...] = ()
    EXTRA_BOILERPLATE: tuple[str, ...] = ()
    AUTHOR_NOISE: tuple[str, ...] = ()
    # Whether the source name counts as a title suffix and byline noise.
    NAME_IS_NOISE = True

    def __init__(self, source: SourceConfig, cfg: ExtractConfig | None = None, clock: Clock | None = None):
        self.source = source
        self.cfg = cfg or ExtractConfig()
        self.clock = clock or utc_now

    # -- fetching ---------------------------------------------------------

    async def fetch(self, routes: FetchRoutes, url: str, timeout: float | None = None) -> bytes:
        """Fetch ``url`` following this adapter's route order.

        A timeout, network failure or empty payload on the first available
        route is retried once on the next route. InvalidURL is never retried.
        """
        last_error: Exception | None = None
        attempts = 0
        for name in self.FETCH_ROUTES:
            gateway = routes.get(name)
            if gateway is None:
                continue
            if attempts >= 2:
                break
            attempts += 1
            try:
                return await gateway.fetch(url, timeout)
            except RETRYABLE_FETCH_ERRORS as exc:
                last_error = exc
                log_event(
                    logger,
                    "Fetch route failed",
                    logging.INFO,
                    event="fetch_route_failed",
                    url=url,
                    route=name,
                    source_id=self.source.id,
                    error=str(exc),
                )
        if last_error is None:
            raise Unreachable(url, f"No fetch route available for {url}")
        raise last_error

    # -- extraction -------------------------------------------------------

    def extract(self, raw_markup: str | bytes, url: str) -> Article:
        """Extract an Article; markup problems yield a failure-flagged record."""
        return self.attempt(raw_markup, url).article

    def attempt(self, raw_markup: str | bytes, url: str) -> ExtractionAttempt:
        """Run every field chain and keep the diagnostics."""
        markup = decode_markup(raw_markup)
        attempt = ExtractionAttempt(url=url, source_id=self.source.id, raw_markup=markup)
        try:
            page = _Page(markup, url, self.BOILERPLATE_SELECTORS)
        except Exception as exc:  # noqa: BLE001
            attempt.article = self.failure(url, f"Markup could not be parsed: {type(exc).__name__}: {exc}")
            return attempt

        fields: dict[str, Any] = {}
        for name, chain in self._chains(page).items():
            result, winner = chain.resolve(attempt.tried)
            fields[name] = result.value if isinstance(result, Found) else None
            if winner:
                attempt.winners[name] = winner

        title = fields["title"] or self.source.placeholder_title
        section = fields["section"] or self.DEFAULT_SECTION or self.source.category.title()
        tags = self._tags(page, section)
        publish_date = fields["date"]
        content = fields["content"]

        if content is None:
            reason = InsufficientContent(
                f"No strategy produced at least {self.cfg.min_content_chars} characters of content"
            )
            hint = self._safe_hint(page)
            attempt.article = self.failure(
                url,
                f"{reason}{'; ' + hint if hint else ''}",
                title=title,
                author=fields["author"],
                section=section,
                image_url=fields["image"],
                tags=tags,
                publish_date=publish_date,
            )
        else:
            attempt.article = self._article(
                url=url,
                title=title,
                content=content,
                author=fields["author"],
                publish_date=publish_date,
                image_url=fields["image"],
                section=section,
                tags=tags,
            )

        log_event(
            logger,
            "Extraction finished",
            logging.DEBUG,
            event="extract_done",
            url=url,
            source_id=self.source.id,
            winners=dict(attempt.winners),
            failed=attempt.article.extraction_failed,
        )
        return attempt

    def failure(
        self,
        url: str,
        reason: str,
        *,
        title: str | None = None,
        author: str | None = None,
        section: str | None = None,
        image_url: str | None = None,
        tags: list[str] | None = None,
        publish_date: datetime | None = None,
    ) -> Article:
        """Build a failure placeholder that explains why extraction failed."""
        title = title or self.source.placeholder_title
        lines = [
            f"Unable to extract the article content from this {self.source.name} page.",
            f"Reason: {reason}",
            "",
            f"Article URL: {url}",
            f"Headline: {title}",
            f"Author: {author or 'Not detected'}",
            f"Section: {section or 'Not detected'}",
        ]
        return self._article(
            url=url,
            title=title,
            content="\n".join(lines),
            author=author,
            publish_date=publish_date,
            image_url=image_url,
            section=section or self.DEFAULT_SECTION or self.source.category.title(),
            tags=tags or [],
            failure_reason=reason,
        )

    def from_feed(self, item: FeedItem) -> Article:
        """Build an article from a feed entry alone.

        Entries whose summary is under the content minimum come back
        flagged as failed, like any other short extraction.
        """
        title = self._clean_title(item.title)
        content = self._clean_content(item.summary)
        author = self._clean_author(item.author)
        section = section_from_url(item.url, self.SECTION_MAP, self.SECTION_KNOWN_ONLY)
        section = section or self.DEFAULT_SECTION or self.source.category.title()
        tags = list(item.tags)
        if self.SECTION_AS_TAG:
            tags.insert(0, section)
        fields = dict(
            title=title.value if title else self.source.placeholder_title,
            author=author.value if author else None,
            section=section,
            image_url=absolutize(item.image_url, item.url),
            tags=dedupe_tags(tags + self.extra_tags(item.url), self.cfg.max_tags),
            publish_date=parse_date(item.published),
        )
        if not content or len(content.value) < self.cfg.min_content_chars:
            return self.failure(item.url, "Feed entry has no usable summary", **fields)
        return self._article(url=item.url, content=content.value, **fields)

    def merge_feed(self, article: Article, item: FeedItem) -> Article:
        """Fill fields the page did not provide from its feed entry."""
        if article.title == self.source.placeholder_title and item.title:
            title = self._clean_title(item.title)
            if title:
                article.title = title.value
        if not article.author and item.author:
            author = self._clean_author(item.author)
            article.author = author.value if author else None
        if not article.image_url:
            article.image_url = absolutize(item.image_url, item.url)
        if article.date_estimated:
            published = parse_date(item.published)
            if published:
                article.publish_date = published
                article.date_estimated = False
        article.tags = dedupe_tags(article.tags + list(item.tags), self.cfg.max_tags)
        return article

    def failure_hint(self, page_text: str) -> str | None:
        """Extra explanation for a failed extraction, e.g. a detected paywall."""
        return None

    def _safe_hint(self, page: _Page) -> str | None:
        try:
            return self.failure_hint(page.body.get_text(" ").lower())
        except Exception:  # noqa: BLE001
            return None

    def _article(
        self,
        *,
        url: str,
        title: str,
        content: str,
        author: str | None,
        publish_date: datetime | None,
        image_url: str | None,
        section: str,
        tags: list[str],
        failure_reason: str | None = None,
    ) -> Article:
        now = self.clock()
        return Article(
            id=f"{self.source.id}-{uuid.uuid4().hex[:12]}",
            url=url,
            title=title,
            content=content,
            author=author,
            publish_date=publish_date or now,
            date_estimated=publish_date is None,
            image_url=image_url,
            section=section,
            tags=tags,
            source_id=self.source.id,
            source_name=self.source.name,
            extraction_failed=failure_reason is not None,
            failure_reason=failure_reason,
            crawled_at=now,
        )

    # -- chains -----------------------------------------------------------

    def _chains(self, page: _Page) -> dict[str, FieldChain]:
        return {
            "title": self.title_chain(page),
            "content": self.content_chain(page),
            "author": self.author_chain(page),
            "date": self.date_chain(page),
            "image": self.image_chain(page),
            "section": self.section_chain(page),
        }

    def title_chain(self, page: _Page) -> FieldChain:
        strategies = [
            Strategy(f"meta:{key}", 0.95, lambda key=key: self._clean_title(meta_content(page.soup, key)))
            for key in TITLE_META_KEYS
        ]
        strategies += [
            Strategy(f"selector:{sel}", 0.8, lambda sel=sel: self._clean_title(self._first_text(page.soup, sel)))
            for sel in self.source.selectors.title
        ]
        strategies += [
            Strategy("json-ld:headline", 0.7, lambda: self._clean_title(page.ld_value("headline", "name"))),
            Strategy("heuristic:title-tag", 0.4, lambda: self._clean_title(page.soup.title and page.soup.title.get_text())),
            Strategy("heuristic:h1", 0.4, lambda: self._clean_title(self._first_text(page.soup, "h1"))),
        ]
        return FieldChain("title", strategies)

    def content_chain(self, page: _Page) -> FieldChain:
        strategies = [
            Strategy(f"selector:{sel}", 0.8, lambda sel=sel: self._selector_content(page.body, sel))
            for sel in self.source.selectors.content
        ]
        strategies += [
            Strategy("json-ld:articleBody", 0.7, lambda: self._clean_content(page.ld_value("articleBody", "text"))),
            Strategy("json-ld:description", 0.5, lambda: self._clean_content(page.ld_value("description"))),
            Strategy(
                "heuristic:paragraphs",
                0.4,
                lambda: self._clean_content(
                    paragraph_text(
                        page.body,
                        self.cfg.paragraph_min_chars,
                        self.cfg.max_paragraphs,
                        self.EXTRA_BOILERPLATE,
                    )
                ),
            ),
        ]
        strategies += [
            Strategy(
                f"heuristic:{name}",
                0.3,
                lambda name=name: self._clean_content(document_text(page.markup, [name])[0]),
            )
            for name in self.cfg.fallback
        ]
        return FieldChain(
            "content",
            strategies,
            accept=lambda text: len(text) >= self.cfg.min_content_chars,
        )

    def author_chain(self, page: _Page) -> FieldChain:
        strategies = [
            Strategy(f"meta:{key}", 0.9, lambda key=key: self._clean_author(meta_content(page.soup, key)))
            for key in AUTHOR_META_KEYS
        ]
        strategies += [
            Strategy(f"selector:{sel}", 0.8, lambda sel=sel: self._clean_author(self._first_text(page.soup, sel)))
            for sel in self.source.selectors.author
        ]
        strategies += [
            Strategy("json-ld:author", 0.7, lambda: self._clean_author(_ld_author(page.ld_value("author", "creator")))),
            Strategy("heuristic:rel-author", 0.4, lambda: self._clean_author(self._first_text(page.soup, '[rel="author"]'))),
            Strategy("heuristic:itemprop-author", 0.4, lambda: self._clean_author(self._first_text(page.soup, '[itemprop="author"]'))),
        ]
        return FieldChain("author", strategies)

    def date_chain(self, page: _Page) -> FieldChain:
        strategies = [
            Strategy(f"meta:{key}", 0.9, lambda key=key: found_if(parse_date(meta_content(page.soup, key))))
            for key in DATE_META_KEYS
        ]
        strategies += [
            Strategy(f"selector:{sel}", 0.7, lambda sel=sel: found_if(self._selector_date(page.soup, sel)))
            for sel in self.source.selectors.date
        ]
        strategies += [
            Strategy(
                "json-ld:datePublished",
                0.8,
                lambda: found_if(parse_date(_ld_scalar(page.ld_value("datePublished", "dateCreated")))),
            ),
            Strategy("heuristic:time", 0.3, lambda: found_if(self._selector_date(page.soup, "time[datetime]"))),
        ]
        return FieldChain("date", strategies)

    def image_chain(self, page: _Page) -> FieldChain:
        strategies = [
            Strategy(f"meta:{key}", 0.9, lambda key=key: found_if(absolutize(meta_content(page.soup, key), page.url)))
            for key in IMAGE_META_KEYS
        ]
        strategies += [
            Strategy(f"selector:{sel}", 0.7, lambda sel=sel: found_if(self._selector_image(page, sel)))
            for sel in self.source.selectors.image
        ]
        strategies.append(
            Strategy("json-ld:image", 0.8, lambda: found_if(absolutize(_ld_image(page.ld_value("image", "thumbnailUrl")), page.url)))
        )
        return FieldChain("image", strategies)

    def section_chain(self, page: _Page) -> FieldChain:
        strategies = [
            Strategy(f"meta:{key}", 0.9, lambda key=key: found_if(self._map_section(meta_content(page.soup, key))))
            for key in SECTION_META_KEYS
        ]
        strategies += [
            Strategy(
                "json-ld:articleSection",
                0.7,
                lambda: found_if(self._map_section(_ld_scalar(page.ld_value("articleSection")))),
            ),
            Strategy(
                "url:path",
                0.6,
                lambda: found_if(section_from_url(page.url, self.SECTION_MAP, self.SECTION_KNOWN_ONLY)),
            ),
        ]
        return FieldChain("section", strategies)

    def _tags(self, page: _Page, section: str | None) -> list[str]:
        tags: list[str] = []
        try:
            if self.SECTION_AS_TAG and section:
                tags.append(section)
            tags += split_keywords(meta_content(page.soup, "keywords"))
            tags += split_keywords(meta_content(page.soup, "news_keywords"))
            tags += meta_contents(page.soup, "article:tag")
            for sel in self.source.selectors.tags:
                tags += [element_text(el) for el in select_all(page.soup, sel)]
            keywords = page.ld_value("keywords")
            if isinstance(keywords, str):
                tags += split_keywords(keywords)
            elif isinstance(keywords, list):
                tags += [str(k) for k in keywords]
            tags += self.extra_tags(page.url)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Tag extraction failed for %s: %s", page.url, exc)
        return dedupe_tags(tags, self.cfg.max_tags)

    def extra_tags(self, url: str) -> list[str]:
        return []

    # -- field helpers ----------------------------------------------------

    def _first_text(self, soup: BeautifulSoup, selector: str) -> str | None:
        for element in select_all(soup, selector):
            text = element_text(element)
            if text:
                return text
        return None

    def _clean_title(self, value: Any):
        text = clean_text(str(value)) if value else ""
        text = strip_title_suffix(text, self.TITLE_SUFFIXES + self._own_names())
        return found_if(truncate(text, self.cfg.max_title_chars))

    def _clean_author(self, value: Any):
        if not value or str(value).startswith(("http://", "https://")):
            return NOT_FOUND
        noise = self.AUTHOR_NOISE + self._own_names()
        return found_if(normalize_author(str(value), noise, self.cfg.max_author_chars))

    def _own_names(self) -> tuple[str, ...]:
        return (self.source.name,) if self.NAME_IS_NOISE else ()

    def _clean_content(self, value: Any):
        if not value or not isinstance(value, str):
            return NOT_FOUND
        paragraphs = [clean_text(part) for part in value.split("\n")]
        text = "\n\n".join(part for part in paragraphs if part)
        return found_if(truncate(text, self.cfg.max_content_chars))

    def _selector_content(self, body: BeautifulSoup, selector: str):
        matched = select_all(body, selector)
        matched_ids = {id(el) for el in matched}
        blocks: list[str] = []
        for element in matched:
            # Skip elements nested inside another match to avoid duplicated text.
            if any(id(parent) in matched_ids for parent in element.parents):
                continue
            text = _block_text(element, self.EXTRA_BOILERPLATE)
            if len(text) > self.BLOCK_MIN_CHARS:
                blocks.append(text)
        return self._clean_content("\n".join(blocks))

    def _selector_date(self, soup: BeautifulSoup, selector: str) -> datetime | None:
        for element in select_all(soup, selector):
            value = element.get("datetime") or element.get("content") or element_text(element)
            parsed = parse_date(value)
            if parsed:
                return parsed
        return None

    def _selector_image(self, page: _Page, selector: str) -> str | None:
        for element in select_all(page.soup, selector):
            src = element.get("src") or element.get("data-src") or element.get("data-original")
            resolved = absolutize(src, page.url)
            if resolved:
                return resolved
        return None

    def _map_section(self, value: Any) -> str | None:
        if not value:
            return None
        text = clean_text(str(value))
        return self.SECTION_MAP.get(text.lower(), text) if text else None


def _block_text(element, extra_keywords: tuple[str, ...]) -> str:
    """Text of a content block, one paragraph per line when it has ``<p>`` children."""
    paragraphs = [element_text(p) for p in element.find_all("p")]
    paragraphs = [p for p in paragraphs if p and not is_boilerplate(p, extra_keywords)]
    if paragraphs:
        return "\n".join(paragraphs)
    return element_text(element)


def _ld_scalar(value: Any) -> Any:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("@value") or value.get("value") or value.get("name")
    return value


def _ld_author(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("name")
    if isinstance(value, list):
        names = [_ld_author(item) for item in value]
        names = [name for name in names if name]
        return " and ".join(names) if names else None
    return None


def _ld_image(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("url") or value.get("contentUrl")
    if isinstance(value, list):
        for item in value:
            resolved = _ld_image(item)
            if resolved:
                return resolved
    return None
