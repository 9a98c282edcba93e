from __future__ import annotations

import requests

from migrate_core.exceptions import (
    ArtifactNotFoundError,
    FetchError,
    SourceUnreachableError,
)

NOT_FOUND_STATUS_CODES = {404, 410}

_UNREACHABLE_EXCEPTIONS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.TooManyRedirects,
)


def classify_status(status_code: int) -> type[FetchError]:
    """Return the FetchError subclass for an HTTP error status.

    404/410 mean the source answered but has no such artifact; 5xx and 429
    mean the source could not serve the request right now.
    """
    if status_code in NOT_FOUND_STATUS_CODES:
        return ArtifactNotFoundError
    if status_code >= 500 or status_code == 429:
        return SourceUnreachableError
    return FetchError


def fetch_error_from_request_exception(
    exc: requests.exceptions.RequestException, *, source: str, url: str
) -> FetchError:
    """Translate a requests exception into the fetch error taxonomy."""
    context = {"source": source, "url": url, "error": repr(exc)}
    if isinstance(exc, requests.exceptions.HTTPError):
        status_code = exc.response.status_code if exc.response is not None else None
        if status_code is not None:
            error_cls = classify_status(status_code)
            return error_cls(
                f"GET {url} failed with HTTP {status_code}",
                context={**context, "status_code": status_code},
            )
        return FetchError(f"GET {url} failed: {exc}", context=context)
    if isinstance(exc, _UNREACHABLE_EXCEPTIONS):
        return SourceUnreachableError(f"{source} unreachable: {exc}", context=context)
    return FetchError(f"{source} request failed: {exc}", context=context)
