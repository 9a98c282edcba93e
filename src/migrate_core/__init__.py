"""Download-source selection for repo migration artifacts."""

from migrate_core.__version__ import __version__
from migrate_core.exceptions import (
    AllSourcesFailedError,
    ArtifactNotFoundError,
    ConfigReadError,
    FetchCancelledError,
    FetchError,
    InvalidSourceError,
    MigrateError,
    NoSourcesError,
    SourceUnreachableError,
    UnsupportedSchemeError,
)
from migrate_core.pipeline import fetcher_for_repo, get_migration_fetcher
from migrate_core.repo_config import (
    IpfsConfigHints,
    MigrationConfig,
    read_ipfs_config,
    read_migration_config,
)
from migrate_core.sources import SourceDescriptor, SourceKind, resolve_sources

__all__ = [
    "__version__",
    "MigrateError",
    "ConfigReadError",
    "InvalidSourceError",
    "NoSourcesError",
    "UnsupportedSchemeError",
    "FetchError",
    "SourceUnreachableError",
    "ArtifactNotFoundError",
    "FetchCancelledError",
    "AllSourcesFailedError",
    "MigrationConfig",
    "IpfsConfigHints",
    "read_migration_config",
    "read_ipfs_config",
    "SourceKind",
    "SourceDescriptor",
    "resolve_sources",
    "get_migration_fetcher",
    "fetcher_for_repo",
]
