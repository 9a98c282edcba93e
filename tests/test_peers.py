from __future__ import annotations

import pytest

from migrate_core.peers import PeerRecord, all_valid_multiaddrs, is_valid_multiaddr, is_valid_peer_id
from tests.fixtures import BOOTSTRAP_0, BOOTSTRAP_1, PEER_ADDRS, PEER_ID


@pytest.mark.parametrize(
    "value",
    [
        PEER_ID,
        "QmcZf59bWwK5XFi76CZX8cbJ4BhTzzA3gU1ZjYZcYW3dwt",
        "bafzbeigai3eoy2ccc7ybwjfz5r3rdxqrinwi4rwytly24tdbh6yk7zslrm",
    ],
)
def test_valid_peer_ids(value: str) -> None:
    assert is_valid_peer_id(value)


@pytest.mark.parametrize("value", ["", "Qm123", "not a peer id", None, 42, "0OIl" * 12])
def test_invalid_peer_ids(value) -> None:
    assert not is_valid_peer_id(value)


@pytest.mark.parametrize(
    "value",
    [
        BOOTSTRAP_0,
        BOOTSTRAP_1,
        "/ip6/::1/tcp/4001",
        "/ip4/1.2.3.4/udp/4001/quic-v1/webtransport",
        "/dns4/node.example.org/tcp/443/wss",
        "/unix/var/run/ipfs.sock",
        *PEER_ADDRS,
    ],
)
def test_valid_multiaddrs(value: str) -> None:
    assert is_valid_multiaddr(value)


@pytest.mark.parametrize(
    "value",
    [
        "",
        "/",
        "ip4/1.2.3.4/tcp/4001",
        "/ip4/999.1.1.1/tcp/4001",
        "/ip4/1.2.3.4/tcp/99999",
        "/ip4/1.2.3.4/tcp",
        "/bogus/value",
        "/p2p/not-a-peer",
        None,
    ],
)
def test_invalid_multiaddrs(value) -> None:
    assert not is_valid_multiaddr(value)


def test_all_valid_multiaddrs() -> None:
    assert all_valid_multiaddrs([BOOTSTRAP_0, BOOTSTRAP_1])
    assert all_valid_multiaddrs([])
    assert not all_valid_multiaddrs([BOOTSTRAP_0, "nonsense"])


class TestPeerRecord:
    def test_from_config(self) -> None:
        record = PeerRecord.from_config({"ID": PEER_ID, "Addrs": PEER_ADDRS})

        assert record.id == PEER_ID
        assert record.addrs == tuple(PEER_ADDRS)

    def test_addrs_are_optional(self) -> None:
        assert PeerRecord.from_config({"ID": PEER_ID}).addrs == ()

    @pytest.mark.parametrize(
        "entry",
        [
            "peer",
            {"Addrs": PEER_ADDRS},
            {"ID": "bad", "Addrs": PEER_ADDRS},
            {"ID": PEER_ID, "Addrs": "/ip4/127.0.0.1/tcp/4001"},
            {"ID": PEER_ID, "Addrs": ["/ip4/127.0.0.1/tcp/4001", "garbage"]},
        ],
    )
    def test_rejects_bad_entries(self, entry) -> None:
        with pytest.raises(ValueError):
            PeerRecord.from_config(entry)

    def test_p2p_addrs(self) -> None:
        record = PeerRecord(PEER_ID, ("/ip4/127.0.0.1/tcp/4001", f"/ip4/10.0.0.1/tcp/4001/p2p/{PEER_ID}"))

        assert record.p2p_addrs() == (
            f"/ip4/127.0.0.1/tcp/4001/p2p/{PEER_ID}",
            f"/ip4/10.0.0.1/tcp/4001/p2p/{PEER_ID}",
        )
