"""JSON helpers for layered configuration files.

Use:
- read_config_layer() for a layer that must exist (raises LoadError if missing)
- read_optional_layer() for a layer that may be absent (returns None)
- merge_layers() to overlay one parsed layer onto another
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from clipstash.core.errors import LoadError

logger = logging.getLogger(__name__)


def read_config_layer(path: Path) -> dict[str, Any]:
    """Read and parse one JSON config layer.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed object. An empty or whitespace-only file yields an empty dict.

    Raises:
        LoadError: If the file is missing or unreadable, is not valid JSON,
            or holds something other than a JSON object.
    """
    resolved = path.resolve()
    if not resolved.is_file():
        raise LoadError(f"Config file not found: {path}")

    try:
        # utf-8-sig tolerates a BOM left by Windows editors
        raw = resolved.read_text(encoding="utf-8-sig").strip()
    except OSError as e:
        raise LoadError(f"Failed to read config file {path}: {e}") from e

    if not raw:
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise LoadError(f"Expected object in {path}, got {type(data).__name__}")
    return data


def read_optional_layer(path: Path) -> dict[str, Any] | None:
    """Like read_config_layer(), but a missing file returns None."""
    if not path.resolve().is_file():
        logger.debug("No config layer at %s", path)
        return None
    logger.debug("Reading config layer %s", path)
    return read_config_layer(path)


def merge_layers(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay override onto base, recursing into nested objects.

    Lists and sets (such as excluded_bundle_ids) are replaced, not extended,
    so a project layer can clear a list set globally.

    Returns:
        New merged dict. Neither input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_layers(current, value)
        else:
            merged[key] = value
    return merged
