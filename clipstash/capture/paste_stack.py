"""Paste stack: collect several copies, then paste them back one by one."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum

from clipstash.core.types import ContentType
from clipstash.history.types import ClipboardItem

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 80


class PasteMode(str, Enum):
    STACK = "stack"  # LIFO
    QUEUE = "queue"  # FIFO

    @property
    def display_name(self) -> str:
        return "Stack (LIFO)" if self is PasteMode.STACK else "Queue (FIFO)"


@dataclass(frozen=True)
class PasteStackEntry:
    item_id: str
    content_type: ContentType
    text: str | None
    preview: str


class PasteStack:
    """Collects captured items while active.

    The capture monitor pushes from its worker thread and the presentation
    layer pops, so every operation takes the same lock.
    """

    def __init__(self, mode: PasteMode = PasteMode.QUEUE) -> None:
        self._mode = mode
        self._entries: deque[PasteStackEntry] = deque()
        self._active = False
        self._lock = threading.Lock()

    @property
    def mode(self) -> PasteMode:
        return self._mode

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def depth(self) -> int:
        with self._lock:
            return len(self._entries)

    def activate(self) -> None:
        with self._lock:
            self._active = True
            self._entries.clear()
        logger.debug("Paste stack active (%s)", self._mode.value)

    def deactivate(self) -> None:
        with self._lock:
            self._active = False
            self._entries.clear()

    def toggle_mode(self) -> PasteMode:
        self._mode = PasteMode.STACK if self._mode is PasteMode.QUEUE else PasteMode.QUEUE
        return self._mode

    def push(self, item: ClipboardItem) -> None:
        """Record a captured item. Ignored while inactive."""
        text = item.text_content
        preview = text[:PREVIEW_LENGTH] if text is not None else item.content_type.display_name
        entry = PasteStackEntry(item.id, item.content_type, text, preview)
        with self._lock:
            if self._active:
                self._entries.append(entry)

    def paste_next(self) -> PasteStackEntry | None:
        """Remove and return the next entry: oldest in queue mode, newest in stack mode."""
        with self._lock:
            if not self._entries:
                return None
            if self._mode is PasteMode.QUEUE:
                return self._entries.popleft()
            return self._entries.pop()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
