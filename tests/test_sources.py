"""
Tests for download source resolution.

Resolution is pure: these tests never build a fetcher or touch the network.
"""

from __future__ import annotations

import pytest

from migrate_core.exceptions import (
    InvalidSourceError,
    NoSourcesError,
    SourceConfigError,
    UnsupportedSchemeError,
)
from migrate_core.sources import SourceKind, resolve_source, resolve_sources


class TestResolveSources:
    def test_preserves_configured_order(self) -> None:
        descriptors = resolve_sources(["IPFS", "HTTPS", "some.domain.io"])

        assert [d.kind for d in descriptors] == [
            SourceKind.CONTENT_NETWORK,
            SourceKind.GATEWAY_DEFAULT,
            SourceKind.GATEWAY_CUSTOM,
        ]

    def test_tokens_are_case_insensitive(self) -> None:
        descriptors = resolve_sources(["ipfs", "Ipfs", "http", "HTTP", "Https"])

        assert [d.kind for d in descriptors] == [
            SourceKind.CONTENT_NETWORK,
            SourceKind.CONTENT_NETWORK,
            SourceKind.GATEWAY_DEFAULT,
            SourceKind.GATEWAY_DEFAULT,
            SourceKind.GATEWAY_DEFAULT,
        ]

    def test_configured_token_is_kept(self) -> None:
        (descriptor,) = resolve_sources(["  HTTPS "])

        assert descriptor.token == "HTTPS"
        assert descriptor.gateway_url is None

    def test_duplicates_are_not_removed(self) -> None:
        descriptors = resolve_sources(["HTTPS", "https", "IPFS", "HTTPS"])

        assert len(descriptors) == 4

    def test_empty_list_fails(self) -> None:
        with pytest.raises(NoSourcesError):
            resolve_sources([])

    def test_none_fails(self) -> None:
        with pytest.raises(NoSourcesError):
            resolve_sources(None)

    def test_one_bad_entry_fails_the_whole_list(self) -> None:
        with pytest.raises(UnsupportedSchemeError) as exc_info:
            resolve_sources(["IPFS", "ftp://some.domain.io"])

        assert exc_info.value.context["index"] == 1
        assert exc_info.value.context["scheme"] == "ftp"

    def test_config_errors_share_a_base(self) -> None:
        for tokens in ([], [""], ["ftp://x.io"]):
            with pytest.raises(SourceConfigError):
                resolve_sources(tokens)


class TestCustomGateway:
    def test_bare_host_gets_https(self) -> None:
        descriptor = resolve_source("some.domain.io")

        assert descriptor.kind is SourceKind.GATEWAY_CUSTOM
        assert descriptor.gateway_url == "https://some.domain.io"
        assert descriptor.host == "some.domain.io"

    def test_explicit_http_is_kept(self) -> None:
        descriptor = resolve_source("http://127.0.0.1:8080/")

        assert descriptor.gateway_url == "http://127.0.0.1:8080"
        assert descriptor.host == "127.0.0.1:8080"

    def test_host_with_port(self) -> None:
        descriptor = resolve_source("gw.example.org:8443")

        assert descriptor.gateway_url == "https://gw.example.org:8443"

    def test_ip_address_is_a_custom_gateway(self) -> None:
        descriptor = resolve_source("127.0.0.1")

        assert descriptor.kind is SourceKind.GATEWAY_CUSTOM
        assert descriptor.gateway_url == "https://127.0.0.1"

    def test_scheme_is_normalized(self) -> None:
        descriptor = resolve_source("HTTPS://Gw.Example.org/base/")

        assert descriptor.gateway_url == "https://Gw.Example.org/base"

    @pytest.mark.parametrize(
        "token",
        ["ftp://some.domain.io", "ipfs://bafy", "file:///tmp/x", "ftp:bad.gateway.io", "mailto:ops@example.org"],
    )
    def test_unsupported_scheme(self, token: str) -> None:
        with pytest.raises(UnsupportedSchemeError, match="http or https"):
            resolve_source(token)

    @pytest.mark.parametrize("token", ["", "   "])
    def test_empty_token(self, token: str) -> None:
        with pytest.raises(InvalidSourceError, match="is empty"):
            resolve_source(token, 3)

    @pytest.mark.parametrize("token", ["https://", "gw.example.org:notaport", "gw example.org"])
    def test_malformed_address(self, token: str) -> None:
        with pytest.raises(InvalidSourceError):
            resolve_source(token)

    def test_describe(self) -> None:
        assert resolve_source("IPFS").describe() == "ipfs"
        assert resolve_source("HTTP").describe() == "default gateway"
        assert resolve_source("some.domain.io").describe() == "gateway https://some.domain.io"

    def test_scheme_without_slashes_reports_the_scheme(self) -> None:
        with pytest.raises(UnsupportedSchemeError) as exc_info:
            resolve_sources(["IPFS", "FTP:bad.gateway.io"])

        assert exc_info.value.context["scheme"] == "ftp"

    def test_host_and_port_is_not_a_scheme(self) -> None:
        assert resolve_source("localhost:8080").gateway_url == "https://localhost:8080"

    def test_http_scheme_without_host(self) -> None:
        with pytest.raises(InvalidSourceError, match="no host"):
            resolve_source("http:gw.example.org")
