"""Configuration loading and validation."""

from clipstash.config.loader import DEFAULT_CONFIG, DEFAULTS_DIR, load_config
from clipstash.config.schema import (
    CaptureConfig,
    Config,
    HistoryConfig,
    LoggingConfig,
    SearchConfig,
    StorageConfig,
)

__all__ = [
    "CaptureConfig",
    "Config",
    "DEFAULT_CONFIG",
    "DEFAULTS_DIR",
    "HistoryConfig",
    "LoggingConfig",
    "SearchConfig",
    "StorageConfig",
    "load_config",
]
