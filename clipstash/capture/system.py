"""Live system clipboard adapter built on pyperclip.

pyperclip only exposes plain text, so this adapter offers a single TEXT
representation and has no notion of a source application. Its change
counter is synthesized: it advances whenever the text differs from the
previous read.
"""

from __future__ import annotations

import logging
import threading

import pyperclip

from clipstash.core.errors import PasteboardError
from clipstash.core.types import ContentType, PasteboardContents, Representation

logger = logging.getLogger(__name__)

_WRITABLE = frozenset({ContentType.TEXT, ContentType.LINK, ContentType.FILE})


class SystemPasteboard:
    """PasteboardPort over the OS clipboard (text only)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0
        self._last_text: str | None = None

    def _paste(self) -> str:
        try:
            return pyperclip.paste() or ""
        except pyperclip.PyperclipException as e:
            raise PasteboardError(f"Cannot read clipboard: {e}") from e

    def change_count(self) -> int:
        text = self._paste()
        with self._lock:
            if text != self._last_text:
                if self._last_text is not None:
                    self._count += 1
                self._last_text = text
            return self._count

    def read(self) -> PasteboardContents:
        text = self._paste()
        if not text:
            return PasteboardContents()
        return PasteboardContents({Representation.TEXT: text.encode("utf-8")})

    def write(self, content_type: ContentType, data: bytes) -> None:
        if content_type not in _WRITABLE:
            raise PasteboardError(f"Cannot write {content_type.display_name} to the text clipboard")
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PasteboardError(f"Clipboard text is not valid UTF-8: {e}") from e
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise PasteboardError(f"Cannot write clipboard: {e}") from e
        with self._lock:
            if text != self._last_text:
                self._count += 1
            self._last_text = text
        logger.debug("Wrote %d characters to clipboard", len(text))
