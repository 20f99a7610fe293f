"""
Transports behind the fetch gateway.

A transport is anything with an async ``fetch_raw(url, timeout) -> bytes``
method and an ``envelope_field`` attribute. Two are provided:
1. DirectTransport: plain httpx GET against the target site
2. ProxyTransport: GET through a fetch-by-URL proxy that returns the page
   wrapped in a JSON envelope

Transports raise httpx exceptions; mapping them onto the pipeline's error
taxonomy is the gateway's job.
"""

from __future__ import annotations

from typing import Protocol
from urllib.parse import quote

import httpx


BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class Transport(Protocol):
    """Capability interface: fetch raw bytes for a URL."""

    envelope_field: str | None

    async def fetch_raw(self, url: str, timeout: float) -> bytes:
        ...

    async def aclose(self) -> None:
        ...


class DirectTransport:
    """Fetch pages straight from the origin site.

    Args:
        user_agent: User-Agent header string
        trust_env: Whether to respect system proxy settings from environment
        client: Optional pre-built client (tests inject one backed by httpx.MockTransport)
    """

    envelope_field: str | None = None

    def __init__(
        self,
        user_agent: str,
        trust_env: bool = True,
        client: httpx.AsyncClient | None = None,
    ):
        headers = dict(BROWSER_HEADERS)
        headers["User-Agent"] = user_agent
        self._client = client or httpx.AsyncClient(
            headers=headers,
            follow_redirects=True,
            trust_env=trust_env,
        )

    async def fetch_raw(self, url: str, timeout: float) -> bytes:
        resp = await self._client.get(url, timeout=timeout)
        resp.raise_for_status()
        return resp.content

    async def aclose(self) -> None:
        await self._client.aclose()


class ProxyTransport:
    """Fetch pages through a fetch-by-URL proxy service.

    The proxy is called as ``proxy_url + quote(url)`` and answers with JSON;
    the page markup lives under ``envelope_field``.

    Args:
        proxy_url: Proxy endpoint prefix, e.g. "https://api.allorigins.win/get?url="
        envelope_field: JSON field holding the page markup
        trust_env: Whether to respect system proxy settings from environment
        client: Optional pre-built client
    """

    def __init__(
        self,
        proxy_url: str,
        envelope_field: str | None = "contents",
        trust_env: bool = True,
        client: httpx.AsyncClient | None = None,
    ):
        self.proxy_url = proxy_url
        self.envelope_field = envelope_field
        self._client = client or httpx.AsyncClient(
            headers={"Accept": "application/json"},
            follow_redirects=True,
            trust_env=trust_env,
        )

    def build_url(self, url: str) -> str:
        return f"{self.proxy_url}{quote(url, safe='')}"

    async def fetch_raw(self, url: str, timeout: float) -> bytes:
        resp = await self._client.get(self.build_url(url), timeout=timeout)
        resp.raise_for_status()
        return resp.content

    async def aclose(self) -> None:
        await self._client.aclose()
