"""Typed exception hierarchy for clipstash."""

from __future__ import annotations


class ClipStashError(Exception):
    """Base class for all clipstash errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(ClipStashError):
    """Raised for configuration issues (missing file, invalid JSON, validation failure)."""


class LoadError(ClipStashError):
    """Base class for loading errors (config files)."""

    pass


class StorageError(ClipStashError):
    """Raised when a read or write against the history database fails.

    Transient: callers report it and carry on. The next natural trigger
    (next poll tick, next command) is the retry.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage {operation} failed: {reason}")


class PasteboardError(ClipStashError):
    """Raised when the system pasteboard cannot be read or written."""


class ItemNotFoundError(ClipStashError):
    """Raised when a history position does not resolve to an item.

    Only positional lookups raise this. Lookups by id treat a missing
    item as a no-op.
    """

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"No item at index {index}.")
