"""Environment-driven settings for the migration fetcher.

Every value can be overridden through the environment so that operators can
point the tool at a mirror or a different local node without editing the repo
config:

    IPFS_PATH                repo root (default: ~/.ipfs)
    IPFS_DIST_PATH           path of the distribution tree on the network
    MIGRATE_GATEWAY_URL      gateway used for the ``http``/``https`` sources
    MIGRATE_IPFS_API_URL     RPC API of the local node used for ``ipfs``
    MIGRATE_FETCH_LIMIT      max artifact size in bytes (0 = unlimited)
    MIGRATE_CONNECT_TIMEOUT  seconds
    MIGRATE_READ_TIMEOUT     seconds
    MIGRATE_HTTP_RETRIES     per-source HTTP retries
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from pathlib import Path

from migrate_core.exceptions import ConfigReadError
from migrate_core.http import DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT

LATEST_IPFS_DIST = "/ipns/dist.ipfs.io"
DEFAULT_GATEWAY_URL = "https://ipfs.io"
DEFAULT_IPFS_API_URL = "http://127.0.0.1:5001"
DEFAULT_FETCH_LIMIT = 512 * 1024 * 1024
DEFAULT_HTTP_RETRIES = 3


def resolve_repo_root(explicit: str | os.PathLike[str] | None = None) -> Path:
    value = explicit or os.getenv("IPFS_PATH") or "~/.ipfs"
    return Path(value).expanduser()


def normalize_dist_path(value: str | None) -> str:
    if not value:
        return LATEST_IPFS_DIST
    value = value.strip().rstrip("/")
    if not value.startswith("/"):
        value = "/" + value
    return value


def _env_number(env: Mapping[str, str], name: str, default: float, cast: type) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError as exc:
        raise ConfigReadError(
            f"{name} must be a number, got {raw!r}",
            context={"variable": name, "value": raw},
        ) from exc
    if value < 0:
        raise ConfigReadError(
            f"{name} must not be negative, got {raw!r}",
            context={"variable": name, "value": raw},
        )
    return value


@dataclasses.dataclass(frozen=True)
class FetchSettings:
    dist_path: str = LATEST_IPFS_DIST
    gateway_url: str = DEFAULT_GATEWAY_URL
    ipfs_api_url: str = DEFAULT_IPFS_API_URL
    fetch_limit: int = DEFAULT_FETCH_LIMIT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    http_retries: int = DEFAULT_HTTP_RETRIES

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> FetchSettings:
        env = os.environ if env is None else env
        return cls(
            dist_path=normalize_dist_path(env.get("IPFS_DIST_PATH")),
            gateway_url=(env.get("MIGRATE_GATEWAY_URL") or DEFAULT_GATEWAY_URL).rstrip("/"),
            ipfs_api_url=(env.get("MIGRATE_IPFS_API_URL") or DEFAULT_IPFS_API_URL).rstrip("/"),
            fetch_limit=int(_env_number(env, "MIGRATE_FETCH_LIMIT", DEFAULT_FETCH_LIMIT, int)),
            connect_timeout=_env_number(
                env, "MIGRATE_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT, float
            ),
            read_timeout=_env_number(env, "MIGRATE_READ_TIMEOUT", DEFAULT_READ_TIMEOUT, float),
            http_retries=int(_env_number(env, "MIGRATE_HTTP_RETRIES", DEFAULT_HTTP_RETRIES, int)),
        )
