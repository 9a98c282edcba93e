"""
Shared pytest fixtures for migrate_core tests.

Provides common fixtures for:
- Node repo configs (healthy and partially corrupt)
- Fake streamed HTTP responses
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if SRC_ROOT.is_dir():
    sys.path.insert(0, str(SRC_ROOT))

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


# =============================================================================
# Repo config fixtures
# =============================================================================


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[..., Path]:
    """Write a node repo config and return the repo root.

    Accepts a dict (serialized as JSON) or raw text; defaults to a healthy config.
    """
    from tests.fixtures import node_config

    counter = {"n": 0}

    def _make(content: dict[str, Any] | str | None = None) -> Path:
        counter["n"] += 1
        repo = tmp_path / f"repo{counter['n']}"
        repo.mkdir()
        if content is None:
            content = node_config()
        text = content if isinstance(content, str) else json.dumps(content, indent=2)
        (repo / "config").write_text(text, encoding="utf-8")
        return repo

    return _make


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep operator environment overrides out of the tests."""
    for name in (
        "IPFS_PATH",
        "IPFS_DIST_PATH",
        "MIGRATE_GATEWAY_URL",
        "MIGRATE_IPFS_API_URL",
        "MIGRATE_FETCH_LIMIT",
        "MIGRATE_CONNECT_TIMEOUT",
        "MIGRATE_READ_TIMEOUT",
        "MIGRATE_HTTP_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# HTTP response fixtures
# =============================================================================


@pytest.fixture
def fake_http_response() -> Callable[..., MagicMock]:
    """Create a fake streamed HTTP response usable as a context manager."""

    def _create(
        content: bytes = b"test content",
        status_code: int = 200,
        reason: str = "OK",
        json_body: Any = None,
        chunks: list[bytes] | None = None,
    ) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.reason = reason
        response.ok = 200 <= status_code < 400
        response.text = content.decode("utf-8", errors="replace")
        if json_body is None:
            response.json.side_effect = ValueError("not json")
        else:
            response.json.return_value = json_body
            response.text = json.dumps(json_body)
        response.iter_content.return_value = iter(chunks if chunks is not None else [content])
        response.__enter__.return_value = response
        response.__exit__.return_value = False
        return response

    return _create
