from __future__ import annotations

import abc
import io
import posixpath
from collections.abc import Iterable
from types import TracebackType

import requests

from migrate_core.cancellation import CancellationToken, check_cancelled
from migrate_core.exceptions import FetchLimitExceededError
from migrate_core.http import CHUNK_SIZE, create_retry_session
from migrate_core.settings import FetchSettings


class Fetcher(abc.ABC):
    """Something that can fetch a migration artifact by its logical path.

    ``path`` is relative to the distribution tree, e.g.
    ``fs-repo-11-to-12/versions``. Fetchers own their transport resources and
    release them in :meth:`close`; they are also context managers.
    """

    @abc.abstractmethod
    def fetch(self, path: str, *, cancel: CancellationToken | None = None) -> io.BytesIO:
        """Return the artifact content, or raise a FetchError subclass."""

    def close(self) -> None:
        """Release transport resources. Safe to call more than once."""

    @abc.abstractmethod
    def describe(self) -> str:
        """Short human-readable name of the source, used in logs and errors."""

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"


def join_dist_path(dist_path: str, path: str) -> str:
    """Join a relative artifact path onto the distribution root.

    Raises:
        ValueError: if the path tries to climb out of the distribution root
    """
    if ".." in path.split("/"):
        raise ValueError(f"artifact path {path!r} must not contain '..'")
    joined = posixpath.normpath(posixpath.join(dist_path, path.lstrip("/")))
    return joined if joined.startswith("/") else "/" + joined


def read_limited(
    chunks: Iterable[bytes],
    *,
    limit: int,
    source: str,
    cancel: CancellationToken | None = None,
) -> io.BytesIO:
    """Collect streamed chunks into memory, enforcing the fetch limit.

    A limit of 0 disables the check. Cancellation is checked between chunks.
    """
    buffer = io.BytesIO()
    total = 0
    for chunk in chunks:
        check_cancelled(cancel)
        if not chunk:
            continue
        total += len(chunk)
        if limit and total > limit:
            raise FetchLimitExceededError(
                f"{source}: artifact exceeds fetch limit of {limit} bytes",
                context={"source": source, "limit": limit},
            )
        buffer.write(chunk)
    buffer.seek(0)
    return buffer


def request_timeout(
    settings: FetchSettings, cancel: CancellationToken | None
) -> tuple[float, float]:
    """Connect/read timeouts for one request, capped by the caller's deadline."""
    connect, read = settings.timeout
    remaining = cancel.remaining() if cancel is not None else None
    if remaining is not None:
        connect = max(min(connect, remaining), 0.001)
        read = max(min(read, remaining), 0.001)
    return (connect, read)


class SessionFetcher(Fetcher):
    """Fetcher that talks HTTP through lazily created ``requests`` sessions.

    urllib3 retry backoff sleeps without looking at the cancellation token, so
    requests made under a deadline go out on a second session without retries.
    An injected session is used as is for every request.
    """

    allowed_methods: tuple[str, ...] = ("GET", "HEAD")

    def __init__(
        self,
        *,
        settings: FetchSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or FetchSettings()
        self._session = session
        self._deadline_session: requests.Session | None = None
        self._owns_session = session is None
        self._closed = False

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = create_retry_session(
                total_retries=self.settings.http_retries, allowed_methods=self.allowed_methods
            )
        return self._session

    def session_for(self, cancel: CancellationToken | None) -> requests.Session:
        if not self._owns_session or cancel is None or cancel.remaining() is None:
            return self.session
        if self._deadline_session is None:
            self._deadline_session = create_retry_session(
                total_retries=0, allowed_methods=self.allowed_methods
            )
        return self._deadline_session

    def close_sessions(self) -> None:
        if self._owns_session:
            for session in (self._session, self._deadline_session):
                if session is not None:
                    session.close()
        self._session = None
        self._deadline_session = None


__all__ = ["CHUNK_SIZE", "Fetcher", "SessionFetcher", "join_dist_path", "read_limited", "request_timeout"]
