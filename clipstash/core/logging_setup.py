"""Logging configuration for clipstash processes.

Every module logs through `logging.getLogger(__name__)`, so all records land
under the `clipstash` namespace logger configured here.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from clipstash.core.secure_io import secure_mkdir

logger = logging.getLogger(__name__)

ROOT_LOGGER_NAME = "clipstash"
LOG_FILE_NAME = "clipstash.log"


def configure_logging(
    log_dir: Path | None,
    level: int = logging.INFO,
    console_level: int = logging.WARNING,
) -> Path | None:
    """Configure the clipstash namespace logger.

    Sets up a stderr handler at console_level and, when log_dir is given, a
    rotating file handler at level writing `{log_dir}/clipstash.log`
    (max 5MB per file, 3 backup files).

    Calling again replaces the handlers rather than stacking duplicates.

    Args:
        log_dir: Directory for the log file, created owner-only. None
            disables file logging.
        level: Logging level for file output (default INFO).
        console_level: Logging level for stderr output (default WARNING).

    Returns:
        Path to the log file, or None when file logging is disabled.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    root.addHandler(console_handler)

    log_file: Path | None = None
    effective = console_level
    if log_dir is not None:
        secure_mkdir(log_dir)
        log_file = log_dir / LOG_FILE_NAME
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root.addHandler(file_handler)
        effective = min(level, console_level)

    root.setLevel(effective)
    # Don't double-print through the root logger
    root.propagate = False

    if log_file is not None:
        logger.info("Logging configured: %s", log_file)
    return log_file
