"""
Static table of known news sources.

Each SourceConfig lists, per field, the markup patterns that matched the
site's templates over time, newest first. The table is built once at
import time and never mutated.
"""

from __future__ import annotations

from ..core.types import SourceConfig, SourceSelectors


BBC_NEWS = SourceConfig(
    id="bbc-news",
    name="BBC News",
    base_url="https://www.bbc.com/news",
    feed_url="https://feeds.bbci.co.uk/news/rss.xml",
    host_patterns=("bbc.com", "bbc.co.uk"),
    selectors=SourceSelectors(
        title=(
            'h1[data-testid="headline"]',
            "h1.story-body__h1",
            "h1.post-title__text",
            ".media-object__title",
            "h1",
            ".story-headline",
        ),
        content=(
            '[data-component="text-block"]',
            ".story-body__inner",
            ".story-body",
            ".rich-text",
            ".post-content",
            "article",
            '[role="main"]',
        ),
        author=('[data-testid="byline"]', ".byline", ".author", '[rel="author"]', ".story-byline"),
        date=('[data-testid="timestamp"]', "time", ".date", ".story-date", "[datetime]"),
        image=('[data-testid="image"] img', ".story-image img", "article img", ".media-landscape__image img"),
        links=('a[href*="/news/"]', 'a[href*="/sport/"]', 'a[href*="/business/"]', 'a[href*="/technology/"]'),
        tags=(".tags a", ".story-topic a", '[data-testid="topic"] a'),
    ),
    category="general",
    country="GB",
    placeholder_title="BBC News Article",
)

CNN = SourceConfig(
    id="cnn",
    name="CNN",
    base_url="https://www.cnn.com",
    feed_url="http://rss.cnn.com/rss/edition.rss",
    host_patterns=("cnn.com",),
    selectors=SourceSelectors(
        title=("h1.headline__text", "h1", ".headline", "[data-analytics-link-article]"),
        content=(
            ".article__content",
            ".zn-body__paragraph",
            ".zn-body__read-all",
            ".pg-rail-tall__body",
            ".zn-body",
            ".cnn-article__content",
            ".Article__content",
            ".BasicArticle__main",
            ".ArticleBody",
            ".story-body",
            ".article-wrap",
            ".l-container",
        ),
        author=(".byline__names", ".byline", ".metadata__byline", ".author", "p.byline"),
        date=(".timestamp", ".update-time", "time"),
        image=(".image__container img", ".media img", ".image img"),
        links=('a[href*="/20"]',),
    ),
    category="general",
    country="US",
    placeholder_title="CNN Article",
)

NEW_YORK_TIMES = SourceConfig(
    id="nytimes",
    name="The New York Times",
    base_url="https://www.nytimes.com",
    feed_url="https://rss.nytimes.com/services/xml/rss/nyt/HomePage.xml",
    host_patterns=("nytimes.com",),
    selectors=SourceSelectors(
        title=('h1[data-testid="headline"]', "h1"),
        content=(
            '[name="articleBody"]',
            ".StoryBodyCompanionColumn",
            ".ArticleBody",
            ".story-body",
            ".article-body",
            ".css-53u6y8",
            ".css-at9mc1",
            ".css-1fanzo5",
            ".StoryBody",
            ".story-content",
            ".ArticleBody-articleBody",
            ".RichTextStoryBody",
            ".ArticleBodyInterstitial",
        ),
        author=("span.byline", "div.byline", "p.byline", '[itemprop="author"]'),
        date=("time[datetime]",),
        image=('[data-testid="photoviewer-wrapper"] img', "figure img"),
        links=('a[href*="/20"]',),
    ),
    category="general",
    country="US",
    placeholder_title="NY Times Article",
)

REUTERS = SourceConfig(
    id="reuters",
    name="Reuters",
    base_url="https://www.reuters.com",
    feed_url="https://www.reuters.com/arc/outboundfeeds/rss/",
    host_patterns=("reuters.com",),
    selectors=SourceSelectors(
        title=("h1", '[data-testid="Heading"]'),
        content=('[data-testid="ArticleBody"]', ".article-body"),
        author=('[data-testid="AuthorName"]', ".author"),
        date=('[data-testid="ArticleHeader"] time', ".date-line"),
        image=('[data-testid="Image"] img',),
        links=('a[href*="/world/"]', 'a[href*="/business/"]', 'a[href*="/technology/"]'),
    ),
    category="general",
    country="US",
    placeholder_title="Reuters Article",
)

GUARDIAN = SourceConfig(
    id="guardian",
    name="The Guardian",
    base_url="https://www.theguardian.com",
    feed_url="https://www.theguardian.com/world/rss",
    host_patterns=("theguardian.com",),
    selectors=SourceSelectors(
        title=("h1", ".content__headline"),
        content=(".content__article-body", ".article-body-commercial-selector"),
        author=(".byline", ".contributor-full-name"),
        date=(".content__dateline time", ".content__meta-container time"),
        image=(".content__main-column img", "figure img"),
        links=('a[href*="/20"]',),
    ),
    category="general",
    country="GB",
    placeholder_title="Guardian Article",
)

TECHCRUNCH = SourceConfig(
    id="techcrunch",
    name="TechCrunch",
    base_url="https://techcrunch.com",
    feed_url="https://techcrunch.com/feed/",
    host_patterns=("techcrunch.com",),
    selectors=SourceSelectors(
        title=("h1", ".article__title"),
        content=(".article-content", ".entry-content"),
        author=(".article__byline", ".byline"),
        date=(".article__meta time", ".byline time"),
        image=(".article__featured-image img",),
        links=('a[href*="/20"]',),
    ),
    category="technology",
    country="US",
    placeholder_title="TechCrunch Article",
)

ARS_TECHNICA = SourceConfig(
    id="ars-technica",
    name="Ars Technica",
    base_url="https://arstechnica.com",
    feed_url="https://feeds.arstechnica.com/arstechnica/index",
    host_patterns=("arstechnica.com",),
    selectors=SourceSelectors(
        title=("h1", ".post-title"),
        content=(".post-content", ".article-content"),
        author=(".byline", ".author"),
        date=(".byline time", ".post-meta time"),
        image=(".listing-image img", ".post-image img"),
        links=('a[href*="/20"]',),
    ),
    category="technology",
    country="US",
    placeholder_title="Ars Technica Article",
)

# Fallback for any host not in the table.
GENERIC_SOURCE = SourceConfig(
    id="generic",
    name="Web",
    base_url="",
    selectors=SourceSelectors(
        title=("h1", ".title", '[class*="headline"]', '[class*="title"]'),
        content=(
            "article",
            ".entry-content",
            ".post-content",
            ".article-body",
            ".story-body",
            '[class*="article"]',
            '[class*="story"]',
            '[class*="content"]',
            '[class*="post"]',
            "main",
            '[role="main"]',
        ),
        author=(".author", '[class*="author"]', '[rel="author"]', ".byline"),
        date=("time[datetime]", "time", ".date"),
        image=("article img", "main img"),
        links=("article a[href]", "a[href]"),
    ),
    category="general",
    placeholder_title="Untitled Article",
)

NEWS_SOURCES: tuple[SourceConfig, ...] = (
    BBC_NEWS,
    CNN,
    NEW_YORK_TIMES,
    REUTERS,
    GUARDIAN,
    TECHCRUNCH,
    ARS_TECHNICA,
)


def enabled_sources(sources: tuple[SourceConfig, ...] = NEWS_SOURCES) -> list[SourceConfig]:
    return [source for source in sources if source.enabled]


def get_source(source_id: str, sources: tuple[SourceConfig, ...] = NEWS_SOURCES) -> SourceConfig | None:
    for source in sources:
        if source.id == source_id:
            return source
    return None
