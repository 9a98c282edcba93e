"""Sequential fallback across several fetchers.

Sources are tried strictly in configured priority order, never in parallel.
Each fetch moves through a small state machine::

    IDLE -> TRYING(0) -> SUCCEEDED
                      -> TRYING(1) -> ... -> EXHAUSTED
                      -> CANCELLED

Any FetchError (or other ordinary exception) from a member advances to the
next member with the same request. Cancellation ends the fetch at once.
"""

from __future__ import annotations

import enum
import io
import logging
from collections.abc import Sequence

from migrate_core.cancellation import CancellationToken, check_cancelled
from migrate_core.exceptions import (
    AllSourcesFailedError,
    FetchCancelledError,
    SourceFailure,
    failure_reason,
)
from migrate_core.fetch.base import Fetcher
from migrate_core.logging_config import LogContext

logger = logging.getLogger(__name__)


class ChainState(str, enum.Enum):
    IDLE = "idle"
    TRYING = "trying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class FallbackFetcher(Fetcher):
    """Try each member fetcher in order until one succeeds.

    The chain owns its members: :meth:`close` closes all of them.
    """

    def __init__(self, fetchers: Sequence[Fetcher]) -> None:
        if not fetchers:
            raise ValueError("FallbackFetcher needs at least one fetcher")
        self._fetchers = tuple(fetchers)
        self.state = ChainState.IDLE
        self.current_index: int | None = None
        self._closed = False

    def __len__(self) -> int:
        return len(self._fetchers)

    @property
    def fetchers(self) -> tuple[Fetcher, ...]:
        return self._fetchers

    def describe(self) -> str:
        return "fallback(" + ", ".join(f.describe() for f in self._fetchers) + ")"

    def _enter(self, state: ChainState, index: int | None = None) -> None:
        self.state = state
        self.current_index = index

    def fetch(self, path: str, *, cancel: CancellationToken | None = None) -> io.BytesIO:
        failures: list[SourceFailure] = []
        for index, fetcher in enumerate(self._fetchers):
            source = fetcher.describe()
            try:
                check_cancelled(cancel)
            except FetchCancelledError:
                self._enter(ChainState.CANCELLED, index)
                raise
            self._enter(ChainState.TRYING, index)
            with LogContext(artifact=path, source=source):
                try:
                    result = fetcher.fetch(path, cancel=cancel)
                except FetchCancelledError:
                    self._enter(ChainState.CANCELLED, index)
                    logger.info("Fetch of %s cancelled while trying %s", path, source)
                    raise
                except Exception as exc:
                    # Cancellation that fired during the attempt wins over
                    # whatever error the transport reported.
                    cancelled = cancel.error() if cancel is not None else None
                    if cancelled is not None:
                        self._enter(ChainState.CANCELLED, index)
                        raise cancelled from exc
                    reason = failure_reason(exc)
                    failures.append(SourceFailure(source=source, reason=reason, error=exc))
                    remaining = len(self._fetchers) - index - 1
                    logger.warning(
                        "Error fetching %s from %s (%s): %s%s",
                        path,
                        source,
                        reason,
                        exc,
                        f"; {remaining} more source(s) to try" if remaining else "",
                    )
                    continue
            self._enter(ChainState.SUCCEEDED, index)
            if index:
                logger.info("Fetched %s from fallback source %s", path, source)
            return result
        self._enter(ChainState.EXHAUSTED, None)
        raise AllSourcesFailedError(path, failures)

    def close(self) -> None:
        """Close every member; re-raise the first close error afterwards."""
        if self._closed:
            return
        self._closed = True
        first_error: BaseException | None = None
        for fetcher in self._fetchers:
            try:
                fetcher.close()
            except Exception as exc:
                logger.warning("Error closing %s: %s", fetcher.describe(), exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
