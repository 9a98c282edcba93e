#!/usr/bin/env python3
"""Command line interface for inspecting and using the migration sources."""

from __future__ import annotations

import argparse
import logging
import shutil
import signal
import sys
from pathlib import Path
from types import FrameType

from migrate_core.cancellation import CancellationToken
from migrate_core.exceptions import (
    AllSourcesFailedError,
    ConfigReadError,
    FetchCancelledError,
    FetchError,
    SourceConfigError,
)
from migrate_core.fetch.fallback import FallbackFetcher
from migrate_core.logging_config import add_logging_args, configure_logging
from migrate_core.pipeline import fetcher_for_repo
from migrate_core.repo_config import read_ipfs_config, read_migration_config
from migrate_core.settings import FetchSettings, resolve_repo_root
from migrate_core.sources import resolve_sources

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FETCH_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_CANCELLED = 130


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="migrate-fetch", description="Fetch repo migration artifacts."
    )
    add_logging_args(parser)
    parser.add_argument(
        "--repo-root",
        default=None,
        help="Node repo containing the config file (default: $IPFS_PATH or ~/.ipfs).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("sources", help="Show the download sources in fallback order.")

    fetch = sub.add_parser("fetch", help="Fetch one artifact through the configured sources.")
    fetch.add_argument("path", help="Artifact path relative to the distribution root.")
    fetch.add_argument("-o", "--output", required=True, help="File to write the artifact to.")
    fetch.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up after this many seconds across all sources.",
    )
    return parser.parse_args(argv)


def _cmd_sources(repo_root: Path) -> int:
    cfg = read_migration_config(repo_root)
    descriptors = resolve_sources(cfg.download_sources)
    hints = read_ipfs_config(repo_root)
    for index, descriptor in enumerate(descriptors):
        print(f"{index}\t{descriptor.kind.value}\t{descriptor.describe()}")
    print(f"keep\t{cfg.keep}")
    print(f"bootstrap\t{'absent' if hints.bootstrap is None else len(hints.bootstrap)}")
    print(f"peers\t{'absent' if hints.peers is None else len(hints.peers)}")
    return EXIT_OK


def _cmd_fetch(repo_root: Path, path: str, output: Path, timeout: float | None) -> int:
    settings = FetchSettings.from_env()
    token = CancellationToken.with_timeout(timeout) if timeout else CancellationToken()

    def _on_sigint(signum: int, frame: FrameType | None) -> None:
        token.cancel("interrupted")

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        fetcher, _cfg = fetcher_for_repo(repo_root, settings=settings)
        with fetcher:
            if isinstance(fetcher, FallbackFetcher):
                logger.info("Fetching %s from %d sources", path, len(fetcher))
            data = fetcher.fetch(path, cancel=token)
    finally:
        signal.signal(signal.SIGINT, previous)
    output.parent.mkdir(parents=True, exist_ok=True)
    tmp = output.with_name(f"{output.name}.part")
    try:
        with tmp.open("wb") as handle:
            shutil.copyfileobj(data, handle)
        tmp.replace(output)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    logger.info("Wrote %s (%d bytes)", output, output.stat().st_size)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(level=args.log_level, fmt=args.log_format)
    repo_root = resolve_repo_root(args.repo_root)
    try:
        if args.command == "sources":
            return _cmd_sources(repo_root)
        return _cmd_fetch(repo_root, args.path, Path(args.output), args.timeout)
    except (ConfigReadError, SourceConfigError) as exc:
        logger.error("Configuration error: %s", exc.message, extra=exc.as_log_fields())
        return EXIT_CONFIG_ERROR
    except FetchCancelledError as exc:
        logger.error("%s", exc.message)
        return EXIT_CANCELLED
    except (AllSourcesFailedError, FetchError) as exc:
        logger.error("%s", exc.message)
        return EXIT_FETCH_FAILED
    except OSError as exc:
        logger.error("Cannot write artifact: %s", exc)
        return EXIT_FETCH_FAILED


if __name__ == "__main__":
    sys.exit(main())
