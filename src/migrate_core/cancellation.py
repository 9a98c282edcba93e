"""Cooperative cancellation for long-running artifact fetches.

A :class:`CancellationToken` is handed to every fetch. Fetchers check it while
streaming, and the fallback chain checks it before each attempt and after each
failure, so a cancelled or timed-out request stops the chain instead of falling
through to the next source.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from migrate_core.exceptions import FetchCancelledError


class CancellationToken:
    """Thread-safe cancellation token with an optional deadline.

    Examples:
        >>> token = CancellationToken.with_timeout(30)
        >>> token.raise_if_cancelled()  # no-op until cancelled or expired
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(
        self,
        *,
        deadline: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._deadline = deadline
        self._clock = clock
        self._reason = "cancelled"

    @classmethod
    def with_timeout(
        cls, seconds: float, *, clock: Callable[[], float] = time.monotonic
    ) -> CancellationToken:
        return cls(deadline=clock() + seconds, clock=clock)

    def cancel(self, reason: str = "cancelled") -> None:
        """Signal that cancellation has been requested."""
        self._reason = reason
        self._event.set()

    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    def is_cancelled(self) -> bool:
        return self._event.is_set() or self.expired()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None if there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def error(self) -> FetchCancelledError | None:
        """The error describing why the token fired, or None if it has not."""
        if self._event.is_set():
            return FetchCancelledError(
                f"fetch cancelled: {self._reason}", context={"reason": self._reason}
            )
        if self.expired():
            return FetchCancelledError(
                "fetch deadline exceeded", context={"reason": "deadline_exceeded"}
            )
        return None

    def raise_if_cancelled(self) -> None:
        error = self.error()
        if error is not None:
            raise error


def check_cancelled(token: CancellationToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()
