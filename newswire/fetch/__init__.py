"""
Network access: URL validation, transports, gateways and feed parsing.
"""

from .feeds import FeedItem, discover_links, parse_feed
from .gateway import FetchGateway, FetchRoutes, build_routes, validate_url
from .transports import DirectTransport, ProxyTransport, Transport

__all__ = [
    "FeedItem",
    "discover_links",
    "parse_feed",
    "FetchGateway",
    "FetchRoutes",
    "build_routes",
    "validate_url",
    "DirectTransport",
    "ProxyTransport",
    "Transport",
]
