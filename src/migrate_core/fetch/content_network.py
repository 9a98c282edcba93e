"""Fetch migration artifacts over the IPFS network through a local node.

The fetcher talks to the node's RPC API. Bootstrap and peering hints read from
the repo config are applied lazily, on the first fetch, and only for the
lifetime of the fetcher: peers added with ``swarm/peering/add`` are removed
again in :meth:`ContentNetworkFetcher.close`. Hints are best effort; failing to
apply one never fails a fetch.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from typing import Any

import requests

from migrate_core.cancellation import CancellationToken, check_cancelled
from migrate_core.exceptions import ArtifactNotFoundError, FetchError
from migrate_core.fetch.base import (
    CHUNK_SIZE,
    SessionFetcher,
    join_dist_path,
    read_limited,
    request_timeout,
)
from migrate_core.network_utils import fetch_error_from_request_exception
from migrate_core.peers import PeerRecord
from migrate_core.secrets import redact_url
from migrate_core.settings import FetchSettings

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = (
    "not found",
    "no link named",
    "could not resolve",
    "no such file",
)
HINT_TIMEOUT = 10.0


def hint_timeout(cancel: CancellationToken | None) -> float:
    """Timeout for one best-effort hint call, capped by the caller's deadline."""
    remaining = cancel.remaining() if cancel is not None else None
    if remaining is None:
        return HINT_TIMEOUT
    return max(min(HINT_TIMEOUT, remaining), 0.001)


def _api_error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return (response.text or "").strip()
    if isinstance(payload, dict) and payload.get("Message"):
        return str(payload["Message"])
    return (response.text or "").strip()


class ContentNetworkFetcher(SessionFetcher):
    """Retrieve ``<dist_path>/<path>`` with the node's ``cat`` command."""

    # The RPC API only accepts POST.
    allowed_methods = ("POST",)

    def __init__(
        self,
        *,
        bootstrap: Sequence[str] | None = None,
        peers: Sequence[PeerRecord] | None = None,
        settings: FetchSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(settings=settings, session=session)
        self.api_url = self.settings.ipfs_api_url.rstrip("/")
        self.bootstrap = tuple(bootstrap) if bootstrap is not None else None
        self.peers = tuple(peers) if peers is not None else None
        self._seeded = False
        self._peering_added: list[str] = []

    def describe(self) -> str:
        return f"ipfs node {redact_url(self.api_url)}"

    def _rpc(
        self,
        command: str,
        args: Sequence[str],
        *,
        cancel: CancellationToken | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        return self.session_for(cancel).post(
            f"{self.api_url}/api/v0/{command}", params=[("arg", a) for a in args], **kwargs
        )

    def _apply_hints(self, cancel: CancellationToken | None) -> None:
        if self._seeded:
            return
        self._seeded = True
        if self.peers:
            for peer in self.peers:
                check_cancelled(cancel)
                try:
                    response = self._rpc(
                        "swarm/peering/add",
                        peer.p2p_addrs() or (f"/p2p/{peer.id}",),
                        cancel=cancel,
                        timeout=hint_timeout(cancel),
                    )
                    response.close()
                except requests.exceptions.RequestException as exc:
                    logger.debug("Could not add peering for %s: %s", peer.id, exc)
                    continue
                if response.ok:
                    self._peering_added.append(peer.id)
                else:
                    logger.debug("Node refused peering for %s: HTTP %s", peer.id, response.status_code)
        if self.bootstrap:
            check_cancelled(cancel)
            try:
                response = self._rpc(
                    "swarm/connect", self.bootstrap, cancel=cancel, timeout=hint_timeout(cancel)
                )
                response.close()
            except requests.exceptions.RequestException as exc:
                logger.debug("Could not connect to bootstrap peers: %s", exc)
        logger.debug(
            "Applied network hints: %d peers, %d bootstrap addrs",
            len(self._peering_added),
            len(self.bootstrap or ()),
        )

    def fetch(self, path: str, *, cancel: CancellationToken | None = None) -> io.BytesIO:
        if self._closed:
            raise FetchError(f"{self.describe()} is closed", context={"source": self.describe()})
        check_cancelled(cancel)
        ipfs_path = join_dist_path(self.settings.dist_path, path)
        self._apply_hints(cancel)
        check_cancelled(cancel)
        logger.debug("cat %s via %s", ipfs_path, self.describe())
        try:
            with self._rpc(
                "cat",
                [ipfs_path],
                cancel=cancel,
                stream=True,
                timeout=request_timeout(self.settings, cancel),
            ) as response:
                if response.status_code >= 400:
                    raise self._error_for(response, ipfs_path)
                return read_limited(
                    response.iter_content(chunk_size=CHUNK_SIZE),
                    limit=self.settings.fetch_limit,
                    source=self.describe(),
                    cancel=cancel,
                )
        except requests.exceptions.RequestException as exc:
            raise fetch_error_from_request_exception(
                exc, source=self.describe(), url=ipfs_path
            ) from exc

    def _error_for(self, response: requests.Response, ipfs_path: str) -> FetchError:
        message = _api_error_message(response)
        context = {
            "source": self.describe(),
            "path": ipfs_path,
            "status_code": response.status_code,
        }
        lowered = message.lower()
        if response.status_code == 404 or any(marker in lowered for marker in NOT_FOUND_MARKERS):
            return ArtifactNotFoundError(f"{ipfs_path} not found on ipfs: {message}", context=context)
        return FetchError(f"ipfs cat {ipfs_path} failed: {message}", context=context)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self._peering_added:
                try:
                    self._rpc("swarm/peering/rm", self._peering_added, timeout=HINT_TIMEOUT).close()
                except requests.exceptions.RequestException as exc:
                    logger.warning("Could not remove temporary peering entries: %s", exc)
                self._peering_added = []
        finally:
            self.close_sessions()
