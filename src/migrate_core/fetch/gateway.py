"""Fetch migration artifacts from an HTTP(S) gateway."""

from __future__ import annotations

import io
import logging

import requests

from migrate_core.cancellation import CancellationToken, check_cancelled
from migrate_core.exceptions import FetchError
from migrate_core.fetch.base import (
    CHUNK_SIZE,
    SessionFetcher,
    join_dist_path,
    read_limited,
    request_timeout,
)
from migrate_core.network_utils import classify_status, fetch_error_from_request_exception
from migrate_core.secrets import redact_url
from migrate_core.settings import FetchSettings

logger = logging.getLogger(__name__)

# Gateways put the reason for a failure in the body; keep logs readable.
MAX_ERROR_BODY = 512


class GatewayFetcher(SessionFetcher):
    """Download artifacts with ``GET <gateway><dist_path>/<path>``.

    Sessions are created lazily on the first fetch, so building a fetcher
    costs nothing and performs no I/O.
    """

    def __init__(
        self,
        gateway_url: str | None = None,
        *,
        settings: FetchSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(settings=settings, session=session)
        self.gateway_url = (gateway_url or self.settings.gateway_url).rstrip("/")
        self.is_default = gateway_url is None

    def describe(self) -> str:
        return f"gateway {redact_url(self.gateway_url)}"

    def url_for(self, path: str) -> str:
        return self.gateway_url + join_dist_path(self.settings.dist_path, path)

    def fetch(self, path: str, *, cancel: CancellationToken | None = None) -> io.BytesIO:
        if self._closed:
            raise FetchError(f"{self.describe()} is closed", context={"source": self.describe()})
        check_cancelled(cancel)
        url = self.url_for(path)
        logger.debug("GET %s", redact_url(url))
        try:
            timeout = request_timeout(self.settings, cancel)
            with self.session_for(cancel).get(url, stream=True, timeout=timeout) as response:
                if response.status_code >= 400:
                    error_cls = classify_status(response.status_code)
                    body = (response.text or "")[:MAX_ERROR_BODY].strip()
                    raise error_cls(
                        f"GET {redact_url(url)} error: {response.status_code} {response.reason}: {body}",
                        context={
                            "source": self.describe(),
                            "url": redact_url(url),
                            "status_code": response.status_code,
                        },
                    )
                return read_limited(
                    response.iter_content(chunk_size=CHUNK_SIZE),
                    limit=self.settings.fetch_limit,
                    source=self.describe(),
                    cancel=cancel,
                )
        except requests.exceptions.RequestException as exc:
            raise fetch_error_from_request_exception(
                exc, source=self.describe(), url=redact_url(url)
            ) from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.close_sessions()
