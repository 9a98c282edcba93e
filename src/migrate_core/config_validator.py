from __future__ import annotations

import json
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator

_FALLBACK_SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"
MAX_REPORTED_ERRORS = 10


def _load_schema_from_package(schema_name: str) -> dict[str, Any] | None:
    try:
        schema_path = resources.files("migrate_core").joinpath(
            "schemas",
            f"{schema_name}.schema.json",
        )
        return json.loads(schema_path.read_text(encoding="utf-8"))
    except (FileNotFoundError, ModuleNotFoundError, AttributeError):
        return None


@cache
def load_schema(schema_name: str) -> dict[str, Any]:
    schema = _load_schema_from_package(schema_name)
    if schema is not None:
        return schema
    schema_path = _FALLBACK_SCHEMA_DIR / f"{schema_name}.schema.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))


def section_errors(value: Any, schema_name: str) -> list[dict[str, str]]:
    """Validate one config section and return its errors (empty when valid).

    Sections are validated one at a time so a broken section never hides a
    healthy sibling.
    """
    validator = Draft7Validator(load_schema(schema_name))
    errors = sorted(validator.iter_errors(value), key=lambda exc: list(exc.path))
    details: list[dict[str, str]] = []
    for error in errors[:MAX_REPORTED_ERRORS]:
        path = ".".join(str(p) for p in error.path) if error.path else "<root>"
        details.append({"path": path, "message": error.message})
    return details


def format_errors(location: str, schema_name: str, errors: list[dict[str, str]]) -> str:
    lines = [f"Schema validation failed for {location} ({schema_name})."]
    lines.extend(f"- {error['path']}: {error['message']}" for error in errors)
    return "\n".join(lines)
