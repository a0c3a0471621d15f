"""Pydantic models for clipstash configuration validation."""

import logging
import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class HistoryConfig(BaseModel):
    """History retention and dedup policy.

    Example in config.json:
        "history": {
            "max_history_count": 1000,
            "retention_days": 0
        }
    """

    model_config = ConfigDict(extra="forbid")

    max_history_count: int = Field(default=500, ge=1)
    """Maximum number of non-pinned items kept. Oldest are evicted first."""

    retention_days: int = Field(default=30, ge=0)
    """Non-pinned items older than this many days are removed. 0 = keep forever."""

    deduplicate_consecutive: bool = True
    """Reject a capture identical to the most recent non-pinned item."""


class CaptureConfig(BaseModel):
    """Clipboard polling behavior."""

    model_config = ConfigDict(extra="forbid")

    poll_interval: float = Field(default=0.5, gt=0)
    """Seconds between pasteboard change checks. A change check is a single
    integer comparison, so short intervals are cheap."""

    resume_delay: float = Field(default=0.6, ge=0)
    """Seconds to stay suspended after clipstash itself writes to the pasteboard."""

    excluded_bundle_ids: set[str] = Field(default_factory=set)
    """Source application ids whose copies are never recorded."""

    use_default_exclusions: bool = True
    """Also exclude the built-in list of password managers."""

    verify_self_writes: bool = False
    """After resuming, also skip a capture whose content hashes equal to the
    last content clipstash wrote. Guards against slow pasteboard propagation."""

    retention_interval: float = Field(default=900.0, gt=0)
    """Seconds between background retention sweeps while monitoring."""

    @field_validator("excluded_bundle_ids", mode="before")
    @classmethod
    def _split_ids(cls, value: object) -> object:
        if isinstance(value, str):
            return {part.strip() for part in value.split(",") if part.strip()}
        return value


class SearchConfig(BaseModel):
    """Search behavior for interactive presentation layers."""

    model_config = ConfigDict(extra="forbid")

    debounce: float = Field(default=0.2, ge=0)
    """Quiet period in seconds before a search request runs."""

    max_results: int = Field(default=100, ge=1)
    """Maximum items returned per search."""


class StorageConfig(BaseModel):
    """Database location."""

    model_config = ConfigDict(extra="forbid")

    db_path: str | None = None
    """History database path. None = ~/.clipstash/history.db."""

    @field_validator("db_path")
    @classmethod
    def _expand(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return os.path.abspath(os.path.expanduser(value))


class LoggingConfig(BaseModel):
    """Log output settings."""

    model_config = ConfigDict(extra="forbid")

    level: LogLevel = "INFO"
    """Level for the log file."""

    console_level: LogLevel = "WARNING"
    """Level for stderr output."""

    log_dir: str | None = None
    """Directory for clipstash.log. None = ~/.clipstash/logs."""

    def level_value(self) -> int:
        return getattr(logging, self.level)

    def console_level_value(self) -> int:
        return getattr(logging, self.console_level)


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    history: HistoryConfig = Field(default_factory=HistoryConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
