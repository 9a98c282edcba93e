"""Entry point used by the repo migration runner.

``get_migration_fetcher`` reads the repo config, resolves the configured
download sources and builds the fetcher. All configuration errors are raised
here, before any network activity.
"""

from __future__ import annotations

import logging
import os

from migrate_core.fetch.base import Fetcher
from migrate_core.fetch.registry import build_fetcher
from migrate_core.repo_config import (
    IpfsConfigHints,
    MigrationConfig,
    read_ipfs_config,
    read_migration_config,
)
from migrate_core.settings import FetchSettings
from migrate_core.sources import resolve_sources

logger = logging.getLogger(__name__)


def get_migration_fetcher(
    cfg: MigrationConfig,
    hints: IpfsConfigHints | None = None,
    *,
    settings: FetchSettings | None = None,
) -> Fetcher:
    """Build the fetcher for an already-read migration config.

    Raises:
        NoSourcesError, InvalidSourceError, UnsupportedSchemeError
    """
    descriptors = resolve_sources(cfg.download_sources)
    return build_fetcher(descriptors, hints, settings=settings)


def fetcher_for_repo(
    repo_root: str | os.PathLike[str],
    *,
    settings: FetchSettings | None = None,
) -> tuple[Fetcher, MigrationConfig]:
    """Read ``<repo_root>/config`` and build the migration fetcher for it.

    Raises:
        ConfigReadError: the Migration section is missing or unreadable
        SourceConfigError: the download sources are invalid
    """
    cfg = read_migration_config(repo_root)
    hints = read_ipfs_config(repo_root)
    logger.debug(
        "Migration config: sources=%s keep=%s bootstrap=%s peers=%s",
        list(cfg.download_sources),
        cfg.keep,
        "absent" if hints.bootstrap is None else len(hints.bootstrap),
        "absent" if hints.peers is None else len(hints.peers),
    )
    return get_migration_fetcher(cfg, hints, settings=settings), cfg
