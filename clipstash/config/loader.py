"""Configuration loading with layered merging.

Layers, later overriding earlier:
1. Global user config (~/.clipstash/config.json) OR shipped defaults when no
   global config exists
2. Project local config (<cwd>/.clipstash/config.json)
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from clipstash.config.load_utils import merge_layers, read_config_layer, read_optional_layer
from clipstash.config.schema import Config
from clipstash.core.constants import CLIPSTASH_DIR_NAME, get_clipstash_dir, get_defaults_dir
from clipstash.core.errors import ConfigError, LoadError

logger = logging.getLogger(__name__)

DEFAULTS_DIR = get_defaults_dir()
DEFAULT_CONFIG = DEFAULTS_DIR / "config.json"


def _read_layer(path: Path) -> dict[str, Any] | None:
    try:
        return read_optional_layer(path)
    except LoadError as e:
        raise ConfigError(e.message) from e


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load configuration.

    Args:
        path: Explicit config file path. If provided, skips layered loading.
        cwd: Working directory for the project layer. Defaults to Path.cwd().

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If a config file is malformed or the merged result
            fails validation.
    """
    if path is not None:
        return _load_from_path(path)

    merged: dict[str, Any] = {}
    sources: list[Path] = []

    global_config = get_clipstash_dir() / "config.json"
    global_data = _read_layer(global_config)
    if global_data is not None:
        merged = merge_layers(merged, global_data)
        sources.append(global_config)
    else:
        default_data = _read_layer(DEFAULT_CONFIG)
        if default_data:
            merged = merge_layers(merged, default_data)
            sources.append(DEFAULT_CONFIG)

    local_config = (cwd or Path.cwd()) / CLIPSTASH_DIR_NAME / "config.json"
    if local_config.resolve() != global_config.resolve():
        local_data = _read_layer(local_config)
        if local_data is not None:
            merged = merge_layers(merged, local_data)
            sources.append(local_config)

    if sources:
        logger.info("Config loaded from: %s", [str(p) for p in sources])
    else:
        logger.debug("No config files found, using built-in defaults")

    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        where = ", ".join(str(p) for p in sources) or "defaults"
        raise ConfigError(f"Config validation failed (merged from {where}): {e}") from e


def _load_from_path(path: Path) -> Config:
    try:
        data = read_config_layer(path)
    except LoadError as e:
        raise ConfigError(e.message) from e

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed for {path}: {e}") from e
