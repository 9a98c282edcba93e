"""Test fixtures for migrate_core tests."""
from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

from migrate_core.cancellation import CancellationToken
from migrate_core.fetch.base import Fetcher

BOOTSTRAP_0 = "/dnsaddr/bootstrap.libp2p.io/p2p/QmcZf59bWwK5XFi76CZX8cbJ4BhTzzA3gU1ZjYZcYW3dwt"
BOOTSTRAP_1 = "/ip4/104.131.131.82/tcp/4001/p2p/QmaCpDMGvV2BGHeYERUEnRQAwe3N8SzbUtfsmvsqQLuvuJ"
PEER_ID = "12D3KooWGC6TvWhfapngX6wvJHMYvKpDMXPb3ZnCZ6dMoaMtimQ5"
PEER_ADDRS = ["/ip4/127.0.0.1/tcp/4001", "/ip4/127.0.0.1/udp/4001/quic"]


def node_config(**overrides: Any) -> dict[str, Any]:
    """A node config with bootstrap, migration and peering sections."""
    config: dict[str, Any] = {
        "Bootstrap": [BOOTSTRAP_0, BOOTSTRAP_1],
        "Migration": {
            "DownloadSources": ["IPFS", "HTTP", "127.0.0.1"],
            "Keep": "cache",
        },
        "Peering": {"Peers": [{"ID": PEER_ID, "Addrs": list(PEER_ADDRS)}]},
    }
    config.update(overrides)
    return config


class StubFetcher(Fetcher):
    """Fetcher double that returns content or raises a prepared error."""

    def __init__(
        self,
        name: str,
        *,
        content: bytes | None = None,
        error: BaseException | None = None,
        on_fetch: Callable[[CancellationToken | None], None] | None = None,
        close_error: BaseException | None = None,
    ) -> None:
        self.name = name
        self.content = content
        self.error = error
        self.on_fetch = on_fetch
        self.close_error = close_error
        self.calls: list[str] = []
        self.closed = False

    def describe(self) -> str:
        return self.name

    def fetch(self, path: str, *, cancel: CancellationToken | None = None) -> io.BytesIO:
        self.calls.append(path)
        if self.on_fetch is not None:
            self.on_fetch(cancel)
        if self.error is not None:
            raise self.error
        return io.BytesIO(self.content or b"")

    def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error
