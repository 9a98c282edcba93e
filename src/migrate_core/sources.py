"""Resolve ``Migration.DownloadSources`` entries into source descriptors.

Resolution is a pure function of the configured strings: no fetcher is built
and nothing touches the network, so configuration mistakes surface before any
download starts.

    >>> [d.kind.value for d in resolve_sources(["IPFS", "https", "gw.example.org"])]
    ['ipfs', 'gateway', 'gateway_custom']
"""

from __future__ import annotations

import dataclasses
import enum
import re
from collections.abc import Sequence
from urllib.parse import urlsplit

from migrate_core.exceptions import (
    InvalidSourceError,
    NoSourcesError,
    UnsupportedSchemeError,
)

CONTENT_NETWORK_TOKENS = {"ipfs"}
GATEWAY_DEFAULT_TOKENS = {"http", "https"}
ALLOWED_SCHEMES = {"http", "https"}
DEFAULT_CUSTOM_SCHEME = "https"
# "ftp:host" names a scheme; "host:8080" names a port.
_SCHEME_PREFIX = re.compile(r"^([A-Za-z][A-Za-z0-9+-]*):(?!\d)")


class SourceKind(str, enum.Enum):
    CONTENT_NETWORK = "ipfs"
    GATEWAY_DEFAULT = "gateway"
    GATEWAY_CUSTOM = "gateway_custom"


@dataclasses.dataclass(frozen=True)
class SourceDescriptor:
    kind: SourceKind
    token: str
    gateway_url: str | None = None

    @property
    def host(self) -> str | None:
        if self.gateway_url is None:
            return None
        return urlsplit(self.gateway_url).netloc

    def describe(self) -> str:
        if self.kind is SourceKind.GATEWAY_CUSTOM:
            return f"gateway {self.gateway_url}"
        if self.kind is SourceKind.GATEWAY_DEFAULT:
            return "default gateway"
        return "ipfs"


def _resolve_custom_gateway(raw: str, index: int) -> SourceDescriptor:
    match = _SCHEME_PREFIX.match(raw)
    if match:
        scheme = match.group(1).lower()
        if scheme not in ALLOWED_SCHEMES:
            raise UnsupportedSchemeError(
                f"bad gateway address {raw!r}: url scheme must be http or https",
                context={"source": raw, "index": index, "scheme": scheme},
            )
        url = raw
    else:
        url = f"{DEFAULT_CUSTOM_SCHEME}://{raw}"

    try:
        parts = urlsplit(url)
        # accessing .port validates the port component
        parts.port
    except ValueError as exc:
        raise InvalidSourceError(
            f"bad gateway address {raw!r}: {exc}",
            context={"source": raw, "index": index},
        ) from exc
    if not parts.hostname or any(ch.isspace() for ch in raw):
        raise InvalidSourceError(
            f"bad gateway address {raw!r}: no host",
            context={"source": raw, "index": index},
        )
    gateway_url = f"{parts.scheme.lower()}://{parts.netloc}{parts.path.rstrip('/')}"
    return SourceDescriptor(SourceKind.GATEWAY_CUSTOM, raw, gateway_url)


def resolve_source(raw: str, index: int = 0) -> SourceDescriptor:
    """Resolve one configured download source.

    Raises:
        InvalidSourceError: empty entry or a gateway address without a host
        UnsupportedSchemeError: a URL whose scheme is not http or https
    """
    token = (raw or "").strip()
    if not token:
        raise InvalidSourceError(
            f"download source #{index} is empty", context={"index": index}
        )
    lowered = token.lower()
    if lowered in CONTENT_NETWORK_TOKENS:
        return SourceDescriptor(SourceKind.CONTENT_NETWORK, token)
    if lowered in GATEWAY_DEFAULT_TOKENS:
        return SourceDescriptor(SourceKind.GATEWAY_DEFAULT, token)
    return _resolve_custom_gateway(token, index)


def resolve_sources(tokens: Sequence[str] | None) -> tuple[SourceDescriptor, ...]:
    """Resolve every configured source, in order, without deduplication.

    Raises:
        NoSourcesError: no sources configured
        InvalidSourceError, UnsupportedSchemeError: see :func:`resolve_source`
    """
    if not tokens:
        raise NoSourcesError("no download sources specified")
    return tuple(resolve_source(token, index) for index, token in enumerate(tokens))
