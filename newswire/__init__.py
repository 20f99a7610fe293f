"""
newswire - multi-source news article extraction.

Fetches article pages from known news sites (and arbitrary URLs), extracts
normalized Article records through per-field fallback chains, and crawls
many sources concurrently while reporting progress on an in-process bus.

Main entry point is the CLI via the `newswire` command.

Example:
    $ newswire extract https://www.bbc.com/news/articles/c0000000
    $ newswire crawl --source bbc-news --max-articles 5
"""

__all__ = [
    "__version__",
    "Article",
    "ArticleExtractor",
    "CrawlOrchestrator",
    "ProgressBus",
    "SourceClassifier",
    "SourceConfig",
    "build_adapter",
    "load_config",
]
__version__ = "0.1.0"

from .adapters import build_adapter
from .config import load_config
from .core.types import Article, SourceConfig
from .crawler import CrawlOrchestrator
from .extractor import ArticleExtractor
from .progress import ProgressBus
from .sources.classifier import SourceClassifier
