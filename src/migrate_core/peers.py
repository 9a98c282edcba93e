"""Peer IDs, multiaddrs and the peer records read from ``Peering.Peers``."""

from __future__ import annotations

import dataclasses
import ipaddress
import re
from collections.abc import Iterable
from typing import Any

# base58btc multihash (Qm..., 12D3KooW..., 16Uiu2...) or CIDv1 in base32.
_B58_PEER_ID = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{46,60}$")
_B32_PEER_ID = re.compile(r"^b[a-z2-7]{50,70}$")
_HOSTNAME = re.compile(r"^(?=.{1,253}$)[A-Za-z0-9_]([A-Za-z0-9_-]{0,62})(\.[A-Za-z0-9_][A-Za-z0-9_-]{0,62})*\.?$")

_PORT_PROTOCOLS = {"tcp", "udp", "sctp", "dccp"}
_HOST_PROTOCOLS = {"dns", "dns4", "dns6", "dnsaddr"}
_PEER_PROTOCOLS = {"p2p", "ipfs"}
_VALUE_PROTOCOLS = {"ip6zone", "certhash", "sni", "unix"}
_FLAG_PROTOCOLS = {
    "quic",
    "quic-v1",
    "ws",
    "wss",
    "tls",
    "noise",
    "http",
    "https",
    "webtransport",
    "webrtc",
    "webrtc-direct",
    "p2p-circuit",
    "p2p-webrtc-star",
    "utp",
    "udt",
}


def is_valid_peer_id(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_B58_PEER_ID.match(value) or _B32_PEER_ID.match(value))


def _valid_component(protocol: str, value: str) -> bool:
    if protocol == "ip4":
        try:
            ipaddress.IPv4Address(value)
        except ValueError:
            return False
        return True
    if protocol == "ip6":
        try:
            ipaddress.IPv6Address(value)
        except ValueError:
            return False
        return True
    if protocol in _PORT_PROTOCOLS:
        return value.isdigit() and 0 <= int(value) <= 65535
    if protocol in _HOST_PROTOCOLS:
        return bool(_HOSTNAME.match(value))
    if protocol in _PEER_PROTOCOLS:
        return is_valid_peer_id(value)
    return bool(value)


def is_valid_multiaddr(value: Any) -> bool:
    """Check the textual form of a multiaddr such as ``/ip4/1.2.3.4/tcp/4001``."""
    if not isinstance(value, str) or not value.startswith("/") or value == "/":
        return False
    parts = value.rstrip("/").split("/")[1:]
    i = 0
    while i < len(parts):
        protocol = parts[i]
        if protocol in _FLAG_PROTOCOLS:
            i += 1
            continue
        if protocol == "unix":
            # unix paths swallow the rest of the address
            return len(parts) > i + 1
        known = (
            protocol in {"ip4", "ip6"}
            or protocol in _PORT_PROTOCOLS
            or protocol in _HOST_PROTOCOLS
            or protocol in _PEER_PROTOCOLS
            or protocol in _VALUE_PROTOCOLS
        )
        if not known or i + 1 >= len(parts):
            return False
        if not _valid_component(protocol, parts[i + 1]):
            return False
        i += 2
    return True


@dataclasses.dataclass(frozen=True)
class PeerRecord:
    id: str
    addrs: tuple[str, ...] = ()

    def p2p_addrs(self) -> tuple[str, ...]:
        """Addresses with the peer ID appended, as dialers expect them."""
        suffix = f"/p2p/{self.id}"
        return tuple(addr if addr.endswith(suffix) else addr + suffix for addr in self.addrs)

    @classmethod
    def from_config(cls, entry: Any) -> PeerRecord:
        """Build a record from one ``Peering.Peers`` entry.

        Raises:
            ValueError: if the ID or any address is invalid
        """
        if not isinstance(entry, dict):
            raise ValueError(f"peer entry must be an object, got {type(entry).__name__}")
        peer_id = entry.get("ID")
        if not is_valid_peer_id(peer_id):
            raise ValueError(f"invalid peer ID {peer_id!r}")
        addrs = entry.get("Addrs") or []
        if not isinstance(addrs, list):
            raise ValueError(f"Addrs of peer {peer_id} must be a list")
        bad = [addr for addr in addrs if not is_valid_multiaddr(addr)]
        if bad:
            raise ValueError(f"invalid multiaddr(s) for peer {peer_id}: {bad!r}")
        return cls(id=peer_id, addrs=tuple(addrs))


def all_valid_multiaddrs(values: Iterable[Any]) -> bool:
    return all(is_valid_multiaddr(value) for value in values)
