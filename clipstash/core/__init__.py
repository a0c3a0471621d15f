"""Core types, errors and utilities."""

from clipstash.core.cache import LRUCache
from clipstash.core.debounce import Debouncer
from clipstash.core.errors import (
    ClipStashError,
    ConfigError,
    ItemNotFoundError,
    LoadError,
    PasteboardError,
    StorageError,
)
from clipstash.core.interfaces import NotificationPort, PasteboardPort
from clipstash.core.types import ContentType, PasteboardContents, Representation

__all__ = [
    "ClipStashError",
    "ConfigError",
    "ContentType",
    "Debouncer",
    "ItemNotFoundError",
    "LRUCache",
    "LoadError",
    "NotificationPort",
    "PasteboardContents",
    "PasteboardError",
    "PasteboardPort",
    "Representation",
    "StorageError",
]
