"""Registry mapping source kinds to fetcher factories, and the chain builder.

Usage:
    from migrate_core.fetch.registry import build_fetcher
    from migrate_core.sources import resolve_sources

    descriptors = resolve_sources(["ipfs", "https"])
    with build_fetcher(descriptors, hints) as fetcher:
        data = fetcher.fetch("fs-repo-11-to-12/versions")

Building never performs network I/O; fetchers connect on their first fetch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from migrate_core.exceptions import NoSourcesError
from migrate_core.fetch.base import Fetcher
from migrate_core.fetch.content_network import ContentNetworkFetcher
from migrate_core.fetch.fallback import FallbackFetcher
from migrate_core.fetch.gateway import GatewayFetcher
from migrate_core.repo_config import IpfsConfigHints
from migrate_core.settings import FetchSettings
from migrate_core.sources import SourceDescriptor, SourceKind

logger = logging.getLogger(__name__)

FetcherFactory = Callable[[SourceDescriptor, IpfsConfigHints, FetchSettings], Fetcher]


def _content_network_factory(
    descriptor: SourceDescriptor, hints: IpfsConfigHints, settings: FetchSettings
) -> Fetcher:
    return ContentNetworkFetcher(bootstrap=hints.bootstrap, peers=hints.peers, settings=settings)


def _gateway_default_factory(
    descriptor: SourceDescriptor, hints: IpfsConfigHints, settings: FetchSettings
) -> Fetcher:
    return GatewayFetcher(settings=settings)


def _gateway_custom_factory(
    descriptor: SourceDescriptor, hints: IpfsConfigHints, settings: FetchSettings
) -> Fetcher:
    return GatewayFetcher(descriptor.gateway_url, settings=settings)


_FACTORIES: dict[SourceKind, FetcherFactory] = {
    SourceKind.CONTENT_NETWORK: _content_network_factory,
    SourceKind.GATEWAY_DEFAULT: _gateway_default_factory,
    SourceKind.GATEWAY_CUSTOM: _gateway_custom_factory,
}


def register_fetcher_factory(kind: SourceKind, factory: FetcherFactory) -> None:
    """Replace the factory used for ``kind`` (useful for tests and mirrors)."""
    _FACTORIES[kind] = factory


def list_fetcher_kinds() -> list[str]:
    return sorted(kind.value for kind in _FACTORIES)


def create_fetcher(
    descriptor: SourceDescriptor,
    hints: IpfsConfigHints | None = None,
    *,
    settings: FetchSettings | None = None,
) -> Fetcher:
    """Instantiate the fetcher for one resolved source."""
    try:
        factory = _FACTORIES[descriptor.kind]
    except KeyError:
        available = ", ".join(list_fetcher_kinds())
        raise ValueError(f"No fetcher for source kind '{descriptor.kind}'. Available: {available}") from None
    return factory(descriptor, hints or IpfsConfigHints(), settings or FetchSettings())


def build_fetcher(
    descriptors: Sequence[SourceDescriptor],
    hints: IpfsConfigHints | None = None,
    *,
    settings: FetchSettings | None = None,
) -> Fetcher:
    """Build one fetcher per descriptor and compose them in order.

    A single descriptor gives its fetcher unwrapped; several give a
    :class:`FallbackFetcher`.

    Raises:
        NoSourcesError: if ``descriptors`` is empty
    """
    if not descriptors:
        raise NoSourcesError("no download sources specified")
    settings = settings or FetchSettings()
    fetchers: list[Fetcher] = []
    try:
        for descriptor in descriptors:
            fetchers.append(create_fetcher(descriptor, hints, settings=settings))
    except BaseException:
        for fetcher in fetchers:
            fetcher.close()
        raise
    if len(fetchers) == 1:
        logger.debug("Using single migration source: %s", fetchers[0].describe())
        return fetchers[0]
    chain = FallbackFetcher(fetchers)
    logger.debug("Using migration sources in order: %s", chain.describe())
    return chain
