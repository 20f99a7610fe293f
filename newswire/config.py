"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: HTTP fetching and proxy settings
- ExtractConfig: Extraction thresholds and length caps
- CrawlConfig: Batch concurrency, caps and delays
- DedupConfig: Optional post-crawl deduplication
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any

import yaml


DEFAULT_PROXY_URL = "https://api.allorigins.win/get?url="

# Environment overrides, applied after the YAML file.
ENV_PROXY_URL = "NEWSWIRE_PROXY_URL"
ENV_LOG_LEVEL = "NEWSWIRE_LOG_LEVEL"


@dataclass
class FetchConfig:
    """Configuration for HTTP content fetching.

    Attributes:
        timeout_seconds: Hard per-fetch timeout
        user_agent: HTTP User-Agent header string
        trust_env: Whether to respect system proxy settings
        use_proxy: Whether adapters may route fetches through the proxy service
        proxy_url: Prefix of the fetch-by-URL proxy; the target URL is appended quoted
        proxy_envelope_field: JSON field of the proxy response holding the page markup
    """

    timeout_seconds: float = 15.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    trust_env: bool = True
    use_proxy: bool = True
    proxy_url: str = DEFAULT_PROXY_URL
    proxy_envelope_field: str = "contents"


@dataclass
class ExtractConfig:
    """Configuration for article extraction.

    Attributes:
        min_content_chars: Content shorter than this is a failed extraction
        max_content_chars: Content is truncated to this many characters
        max_title_chars: Title length cap
        max_author_chars: Author length cap
        max_tags: Maximum number of tags kept per article
        paragraph_min_chars: Paragraphs shorter than this are skipped by the heuristic
        max_paragraphs: Number of surviving paragraphs the heuristic concatenates
        fallback: Whole-document extractors tried after the paragraph heuristic
    """

    min_content_chars: int = 100
    max_content_chars: int = 10000
    max_title_chars: int = 300
    max_author_chars: int = 120
    max_tags: int = 20
    paragraph_min_chars: int = 30
    max_paragraphs: int = 15
    fallback: list[str] = field(default_factory=lambda: ["trafilatura", "readability"])


@dataclass
class CrawlConfig:
    """Configuration for batch crawling.

    Attributes:
        concurrency: Number of sources crawled at the same time
        max_articles_per_source: Cap on articles fetched from one source
        request_delay_seconds: Pause between article requests to the same source
        group_delay_seconds: Pause between concurrency groups
        enrich_below_chars: Feed items with shorter content are fetched in full
        sources: Source ids to crawl; empty means every enabled source
    """

    concurrency: int = 2
    max_articles_per_source: int = 10
    request_delay_seconds: float = 0.5
    group_delay_seconds: float = 2.0
    enrich_below_chars: int = 200
    sources: list[str] = field(default_factory=list)


@dataclass
class DedupConfig:
    """Configuration for post-crawl deduplication.

    Attributes:
        enabled: Whether to drop duplicate URLs and near-identical titles
        title_similarity_threshold: Fuzzy match threshold (0-100) for title similarity
    """

    enabled: bool = False
    title_similarity_threshold: int = 92


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file inside the output directory
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "run.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def apply_env(cfg: AppConfig) -> AppConfig:
    """Override proxy and log level from the environment (e.g. a .env file).

    An empty NEWSWIRE_PROXY_URL disables the proxy route.
    """
    proxy_url = os.getenv(ENV_PROXY_URL)
    if proxy_url is not None:
        cfg.fetch.proxy_url = proxy_url
        cfg.fetch.use_proxy = bool(proxy_url)
    log_level = os.getenv(ENV_LOG_LEVEL)
    if log_level:
        cfg.logging.level = log_level
    return cfg


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig.

    Unknown sections are ignored; unknown keys inside a known section raise
    TypeError when the section dataclass is rebuilt.
    """
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "fetch": {
            "timeout_seconds": cfg.fetch.timeout_seconds,
            "user_agent": cfg.fetch.user_agent,
            "trust_env": cfg.fetch.trust_env,
            "use_proxy": cfg.fetch.use_proxy,
            "proxy_url": cfg.fetch.proxy_url,
            "proxy_envelope_field": cfg.fetch.proxy_envelope_field,
        },
        "extract": {
            "min_content_chars": cfg.extract.min_content_chars,
            "max_content_chars": cfg.extract.max_content_chars,
            "max_title_chars": cfg.extract.max_title_chars,
            "max_author_chars": cfg.extract.max_author_chars,
            "max_tags": cfg.extract.max_tags,
            "paragraph_min_chars": cfg.extract.paragraph_min_chars,
            "max_paragraphs": cfg.extract.max_paragraphs,
            "fallback": list(cfg.extract.fallback),
        },
        "crawl": {
            "concurrency": cfg.crawl.concurrency,
            "max_articles_per_source": cfg.crawl.max_articles_per_source,
            "request_delay_seconds": cfg.crawl.request_delay_seconds,
            "group_delay_seconds": cfg.crawl.group_delay_seconds,
            "enrich_below_chars": cfg.crawl.enrich_below_chars,
            "sources": list(cfg.crawl.sources),
        },
        "dedup": {
            "enabled": cfg.dedup.enabled,
            "title_similarity_threshold": cfg.dedup.title_similarity_threshold,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "filename": cfg.logging.filename,
        },
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        extract=ExtractConfig(**data["extract"]),
        crawl=CrawlConfig(**data["crawl"]),
        dedup=DedupConfig(**data["dedup"]),
        logging=LoggingConfig(**data["logging"]),
    )
