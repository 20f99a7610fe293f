"""
Fetch gateway: validated, time-bounded fetches with uniform error mapping.

The gateway wraps one transport. It rejects anything that is not an
absolute http(s) URL, enforces a hard timeout, unwraps JSON envelopes and
maps every failure onto the FetchError taxonomy. It never retries; retry
policy lives with the adapters (see FetchRoutes).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import json
import logging
from urllib.parse import urlparse

import httpx

from ..config import FetchConfig
from ..core.errors import EmptyResponse, FetchTimeout, InvalidURL, Unreachable
from ..logging_utils import log_event
from .transports import DirectTransport, ProxyTransport, Transport


logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: str) -> str:
    """Return the URL unchanged if it is an absolute http(s) URL.

    Raises:
        InvalidURL: If the URL is malformed, relative or uses another scheme
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURL(str(url), "URL is empty")
    try:
        parsed = urlparse(url.strip())
    except ValueError as exc:
        raise InvalidURL(url, f"Malformed URL: {exc}") from exc
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURL(url, "Invalid URL protocol. Only HTTP and HTTPS are supported.")
    if not parsed.hostname:
        raise InvalidURL(url, "URL has no host")
    return url.strip()


class FetchGateway:
    """Issue GETs through a single transport.

    Args:
        transport: The transport used for every call
        default_timeout: Timeout in seconds when fetch() is called without one
        name: Route name used in log events
    """

    def __init__(self, transport: Transport, default_timeout: float = 15.0, name: str = "direct"):
        self.transport = transport
        self.default_timeout = default_timeout
        self.name = name

    async def fetch(self, url: str, timeout: float | None = None) -> bytes:
        """Fetch a URL and return the raw payload bytes.

        Raises:
            InvalidURL: URL rejected before any network call
            FetchTimeout: The timeout expired
            Unreachable: Network failure or HTTP error status
            EmptyResponse: Transport succeeded but the payload is missing
        """
        url = validate_url(url)
        limit = timeout if timeout is not None else self.default_timeout

        try:
            body = await asyncio.wait_for(self.transport.fetch_raw(url, limit), timeout=limit)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            log_event(logger, "Fetch timed out", logging.WARNING, event="fetch_timeout", url=url, route=self.name)
            raise FetchTimeout(url, f"Timed out after {limit:g}s fetching {url}") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            log_event(
                logger, "Fetch failed", logging.WARNING,
                event="fetch_failed", url=url, route=self.name, status_code=status,
            )
            raise Unreachable(url, f"HTTP {status} fetching {url}") from exc
        except (httpx.TransportError, OSError) as exc:
            log_event(
                logger, "Fetch failed", logging.WARNING,
                event="fetch_failed", url=url, route=self.name, error=f"{type(exc).__name__}: {exc}",
            )
            raise Unreachable(url, f"{type(exc).__name__}: {exc}") from exc

        payload = self._unwrap(url, body)
        log_event(logger, "Fetched", logging.DEBUG, event="fetch_ok", url=url, route=self.name, size=len(payload))
        return payload

    def _unwrap(self, url: str, body: bytes) -> bytes:
        field = self.transport.envelope_field
        if not field:
            if not body or not body.strip():
                raise EmptyResponse(url, f"Empty response body for {url}")
            return body

        try:
            envelope = json.loads(body)
        except (ValueError, UnicodeDecodeError) as exc:
            raise EmptyResponse(url, f"Proxy response for {url} is not JSON") from exc
        payload = envelope.get(field) if isinstance(envelope, dict) else None
        if not payload:
            raise EmptyResponse(url, f"Proxy response for {url} has no '{field}' payload")
        if isinstance(payload, str):
            return payload.encode("utf-8")
        return json.dumps(payload).encode("utf-8")

    async def aclose(self) -> None:
        await self.transport.aclose()


@dataclass
class FetchRoutes:
    """The fetch paths available to adapters.

    Attributes:
        direct: Gateway hitting the origin site
        proxied: Gateway going through the proxy service, if enabled
    """

    direct: FetchGateway
    proxied: FetchGateway | None = None

    def get(self, route: str) -> FetchGateway | None:
        if route == "direct":
            return self.direct
        if route == "proxy":
            return self.proxied
        return None

    async def aclose(self) -> None:
        await self.direct.aclose()
        if self.proxied is not None:
            await self.proxied.aclose()


def build_routes(cfg: FetchConfig) -> FetchRoutes:
    """Build the direct and (optionally) proxied gateways from config."""
    direct = FetchGateway(
        DirectTransport(cfg.user_agent, trust_env=cfg.trust_env),
        default_timeout=cfg.timeout_seconds,
        name="direct",
    )
    proxied = None
    if cfg.use_proxy and cfg.proxy_url:
        proxied = FetchGateway(
            ProxyTransport(cfg.proxy_url, cfg.proxy_envelope_field or None, trust_env=cfg.trust_env),
            default_timeout=cfg.timeout_seconds,
            name="proxy",
        )
    return FetchRoutes(direct=direct, proxied=proxied)
