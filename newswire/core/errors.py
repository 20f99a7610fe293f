"""
Exception hierarchy for the extraction pipeline.

Fetch errors are raised by the gateway and handled by adapters, the
single-URL extractor and the crawl orchestrator. Only AlreadyRunning is
meant to reach callers of the orchestrator.
"""

from __future__ import annotations


class NewswireError(Exception):
    """Base class for all pipeline errors."""


class FetchError(NewswireError):
    """A fetch through the gateway failed.

    Attributes:
        url: The URL that was being fetched
    """

    def __init__(self, url: str, message: str | None = None):
        self.url = url
        super().__init__(message or f"{self.__class__.__name__}: {url}")


class InvalidURL(FetchError):
    """URL is malformed or uses a scheme other than http/https."""


class Unreachable(FetchError):
    """Network or HTTP-level failure."""


class FetchTimeout(FetchError):
    """The per-call timeout expired before a response arrived."""


class EmptyResponse(FetchError):
    """The transport succeeded but returned no payload."""


# Errors worth retrying once over an alternate route.
RETRYABLE_FETCH_ERRORS = (Unreachable, FetchTimeout, EmptyResponse)


class ExtractionError(NewswireError):
    """Extraction could not produce a usable article."""


class InsufficientContent(ExtractionError):
    """Every content strategy ran but none met the minimum length."""


class AlreadyRunning(NewswireError):
    """A crawl batch was started while another one is still running."""


class DuplicateSource(NewswireError):
    """The same source id was passed to one crawl batch more than once."""
