"""Core constants and paths for clipstash.

Single source of truth for global paths. All modules should import from here
instead of hardcoding paths like `Path.home() / ".clipstash"`.
"""

from pathlib import Path

CLIPSTASH_DIR_NAME = ".clipstash"

# Delay before the monitor resumes after writing to the pasteboard itself
DEFAULT_RESUME_DELAY = 0.6

# Window during which a capture counts as "Just Now"
JUST_NOW_SECONDS = 5 * 60


def get_clipstash_dir() -> Path:
    """Get ~/.clipstash (global config directory)."""
    return Path.home() / CLIPSTASH_DIR_NAME


def get_defaults_dir() -> Path:
    """Get package defaults directory (shipped with package)."""
    import clipstash
    return Path(clipstash.__file__).parent / "defaults"


def get_default_db_path() -> Path:
    """Get default history database path."""
    return get_clipstash_dir() / "history.db"


def get_default_config_path() -> Path:
    """Get default config file path."""
    return get_clipstash_dir() / "config.json"


def get_log_dir() -> Path:
    """Get default log directory."""
    return get_clipstash_dir() / "logs"
