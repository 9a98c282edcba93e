from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass
class MigrateError(Exception):
    message: str
    code: str = "migrate_error"
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, message: str, *, code: str | None = None, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.context = dict(context or {})

    def __str__(self) -> str:
        return self.message

    def as_log_fields(self) -> dict[str, Any]:
        return {
            "error_code": self.code,
            "error_message": self.message,
            "error_context": self.context,
        }


class ConfigReadError(MigrateError):
    """The migration section of the repo config is missing or unreadable."""

    code = "config_read_error"


class SourceConfigError(MigrateError):
    """Base for mistakes in the configured download source list."""

    code = "source_config_error"


class InvalidSourceError(SourceConfigError):
    code = "invalid_source"


class NoSourcesError(SourceConfigError):
    code = "no_sources"


class UnsupportedSchemeError(SourceConfigError):
    code = "unsupported_scheme"


class FetchError(MigrateError):
    """A single source failed to deliver an artifact.

    Inside a fallback chain this is recoverable: the chain moves on to the next
    source.
    """

    code = "fetch_error"
    reason = "error"


class SourceUnreachableError(FetchError):
    code = "source_unreachable"
    reason = "unreachable"


class ArtifactNotFoundError(FetchError):
    code = "artifact_not_found"
    reason = "not_found"


class FetchLimitExceededError(FetchError):
    code = "fetch_limit_exceeded"


class FetchCancelledError(MigrateError):
    """The caller cancelled the fetch or its deadline passed."""

    code = "fetch_cancelled"


@dataclass(frozen=True)
class SourceFailure:
    source: str
    reason: str
    error: BaseException

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "reason": self.reason, "error": str(self.error)}


class AllSourcesFailedError(MigrateError):
    code = "all_sources_failed"

    def __init__(self, path: str, failures: Sequence[SourceFailure]) -> None:
        self.failures = tuple(failures)
        lines = [f"could not fetch {path} from any of {len(self.failures)} sources:"]
        lines.extend(f"- {f.source} ({f.reason}): {f.error}" for f in self.failures)
        super().__init__(
            "\n".join(lines),
            context={"path": path, "failures": [f.to_dict() for f in self.failures]},
        )

    @property
    def reasons(self) -> tuple[str, ...]:
        return tuple(f.reason for f in self.failures)

    @property
    def all_unreachable(self) -> bool:
        return bool(self.failures) and all(r == "unreachable" for r in self.reasons)

    @property
    def all_not_found(self) -> bool:
        return bool(self.failures) and all(r == "not_found" for r in self.reasons)


def failure_reason(exc: BaseException) -> str:
    """Map an exception raised by a fetcher onto a coarse failure class."""
    if isinstance(exc, FetchError):
        return exc.reason
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return "unreachable"
    if isinstance(exc, FileNotFoundError):
        return "not_found"
    return "error"
