"""Fetchers for migration artifacts and the builder that chains them."""

from migrate_core.fetch.base import Fetcher
from migrate_core.fetch.content_network import ContentNetworkFetcher
from migrate_core.fetch.fallback import ChainState, FallbackFetcher
from migrate_core.fetch.gateway import GatewayFetcher
from migrate_core.fetch.registry import build_fetcher, create_fetcher, register_fetcher_factory

__all__ = [
    "Fetcher",
    "ContentNetworkFetcher",
    "GatewayFetcher",
    "FallbackFetcher",
    "ChainState",
    "build_fetcher",
    "create_fetcher",
    "register_fetcher_factory",
]
