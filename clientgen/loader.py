"""Load an API description and look up its parts.

Reads JSON or YAML from a file, or from stdin when the source is ``-``, and
extracts paths, schemas and ``$ref`` targets.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import yaml

from .exceptions import SpecLoadError


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON, then as YAML (YAML first when *hint* says so)."""
    if hint != "yaml":
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            return data

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise SpecLoadError(f"Could not parse API description: {exc}") from exc

    if not isinstance(data, dict):
        raise SpecLoadError("API description must be a JSON or YAML object")
    return data


def load_spec(source: str | Path) -> dict[str, Any]:
    """Load an API description from a file path, or stdin for ``-``."""
    if str(source) == "-":
        content = sys.stdin.read()
        if not content.strip():
            raise SpecLoadError("No input received from stdin")
        return _parse_content(content)

    path = Path(source)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(f"Could not read {path}: {exc}") from exc

    hint = "yaml" if path.suffix.lower() in (".yaml", ".yml") else ""
    return _parse_content(content, hint)


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the API description."""
    return spec.get("paths") or {}


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the API description."""
    return (spec.get("components") or {}).get("schemas") or {}


def resolve_ref(spec: dict[str, Any], ref: str) -> dict[str, Any]:
    """Resolve a local $ref pointer in the API description."""
    parts = ref.lstrip("#/").split("/")
    node: Any = spec
    for part in parts:
        node = node[part.replace("~1", "/").replace("~0", "~")]
    return node
