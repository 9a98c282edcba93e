"""Read the migration settings and network hints from a node repo config.

The repo config is a single JSON document (``<repo>/config``). Two readers
consume it:

* :func:`read_migration_config` needs the ``Migration`` section and fails hard
  with :class:`ConfigReadError` when it cannot get it.
* :func:`read_ipfs_config` extracts the optional ``Bootstrap`` and
  ``Peering.Peers`` hints. Each section is decoded on its own, so a corrupt
  ``Peering`` never costs the bootstrap list and vice versa, and the call never
  raises.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from migrate_core.config_validator import format_errors, section_errors
from migrate_core.exceptions import ConfigReadError
from migrate_core.peers import PeerRecord, all_valid_multiaddrs

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config"
KEEP_CACHE = "cache"
KEEP_DISCARD = "discard"
KEEP_POLICIES = (KEEP_CACHE, KEEP_DISCARD)
DEFAULT_KEEP = KEEP_CACHE
DEFAULT_DOWNLOAD_SOURCES = ("HTTPS", "IPFS")


@dataclasses.dataclass(frozen=True)
class MigrationConfig:
    download_sources: tuple[str, ...] = DEFAULT_DOWNLOAD_SOURCES
    keep: str = DEFAULT_KEEP

    @property
    def keep_cache(self) -> bool:
        return self.keep == KEEP_CACHE


@dataclasses.dataclass(frozen=True)
class IpfsConfigHints:
    """Bootstrap and peering hints; ``None`` means missing or unreadable."""

    bootstrap: tuple[str, ...] | None = None
    peers: tuple[PeerRecord, ...] | None = None

    def __iter__(self) -> Iterator[Any]:
        return iter((self.bootstrap, self.peers))


def config_filename(repo_root: str | os.PathLike[str]) -> Path:
    return Path(repo_root).expanduser() / CONFIG_FILENAME


def _load_document(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigReadError(
            f"repo config not found: {path}", context={"path": str(path)}
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigReadError(
            f"cannot read repo config {path}: {exc}",
            context={"path": str(path), "error": str(exc)},
        ) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigReadError(
            f"JSON parse error in {path}: {exc}",
            context={"path": str(path), "error": str(exc)},
        ) from exc
    if not isinstance(data, dict):
        raise ConfigReadError(
            f"repo config {path} must be a JSON object",
            context={"path": str(path), "type": type(data).__name__},
        )
    return data


def read_migration_config(repo_root: str | os.PathLike[str]) -> MigrationConfig:
    """Read the ``Migration`` section of the repo config.

    Raises:
        ConfigReadError: if the file or the section is missing or malformed,
            or ``Keep`` is not one of ``cache``/``discard``.
    """
    path = config_filename(repo_root)
    data = _load_document(path)
    section = data.get("Migration")
    if section is None:
        raise ConfigReadError(
            f"repo config {path} has no Migration section", context={"path": str(path)}
        )
    errors = section_errors(section, "migration")
    if errors:
        raise ConfigReadError(
            format_errors(str(path), "migration", errors),
            context={"path": str(path), "schema": "migration", "errors": errors},
        )

    keep = section.get("Keep") or DEFAULT_KEEP
    if keep not in KEEP_POLICIES:
        raise ConfigReadError(
            f"unknown Migration.Keep value {keep!r}, must be one of {', '.join(KEEP_POLICIES)}",
            context={"path": str(path), "keep": keep},
        )

    sources = section.get("DownloadSources")
    if sources is None:
        download_sources = DEFAULT_DOWNLOAD_SOURCES
    else:
        download_sources = tuple(sources)
    return MigrationConfig(download_sources=download_sources, keep=keep)


def _read_bootstrap(data: dict[str, Any], path: Path) -> tuple[str, ...] | None:
    if "Bootstrap" not in data or data["Bootstrap"] is None:
        return None
    value = data["Bootstrap"]
    errors = section_errors(value, "bootstrap")
    if errors:
        logger.warning("Ignoring unreadable Bootstrap in %s: %s", path, errors[0]["message"])
        return None
    if not all_valid_multiaddrs(value):
        logger.warning("Ignoring Bootstrap in %s: contains invalid multiaddrs", path)
        return None
    return tuple(value)


def _read_peers(data: dict[str, Any], path: Path) -> tuple[PeerRecord, ...] | None:
    if "Peering" not in data or data["Peering"] is None:
        return None
    section = data["Peering"]
    errors = section_errors(section, "peering")
    if errors:
        logger.warning("Ignoring unreadable Peering in %s: %s", path, errors[0]["message"])
        return None
    peers: list[PeerRecord] = []
    for index, entry in enumerate(section.get("Peers") or []):
        try:
            peers.append(PeerRecord.from_config(entry))
        except ValueError as exc:
            logger.warning("Dropping Peering.Peers[%d] in %s: %s", index, path, exc)
    return tuple(peers)


def read_ipfs_config(repo_root: str | os.PathLike[str] | None) -> IpfsConfigHints:
    """Read bootstrap and peering hints, tolerating damage to either section.

    Without a repo root there is no local node to take hints from, which is
    not an error.
    """
    if repo_root is None:
        return IpfsConfigHints()
    path = config_filename(repo_root)
    try:
        data = _load_document(path)
    except ConfigReadError as exc:
        logger.warning("Not using network hints from repo config: %s", exc.message)
        return IpfsConfigHints()
    return IpfsConfigHints(
        bootstrap=_read_bootstrap(data, path),
        peers=_read_peers(data, path),
    )
