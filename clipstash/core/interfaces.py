"""Collaborator ports consumed by the clipstash core.

Ports are Protocols so adapters (the live system clipboard, test fakes,
a GUI's notification bridge) satisfy them structurally without inheriting
from anything.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from clipstash.core.types import ContentType, PasteboardContents

if TYPE_CHECKING:
    from clipstash.history.types import ClipboardItem


class PasteboardPort(Protocol):
    """Access to the OS-level shared clipboard.

    Example:
        class FakePasteboard:
            def change_count(self) -> int:
                return self.count

            def read(self) -> PasteboardContents:
                return self.contents

            def write(self, content_type: ContentType, data: bytes) -> None:
                self.count += 1
    """

    def change_count(self) -> int:
        """Monotonic counter that changes whenever the pasteboard content does."""
        ...

    def read(self) -> PasteboardContents:
        """Return every representation currently on the pasteboard.

        Raises:
            PasteboardError: If the pasteboard cannot be read.
        """
        ...

    def write(self, content_type: ContentType, data: bytes) -> None:
        """Replace the pasteboard content.

        Args:
            content_type: Kind of content being written.
            data: Content bytes, encoded as for the matching Representation.

        Raises:
            PasteboardError: If the pasteboard cannot be written.
        """
        ...


class NotificationPort(Protocol):
    """Fire-and-forget "new item available" signal to the presentation layer.

    Delivery may repeat; receivers refresh idempotently.
    """

    def notify_new_item(self, item: ClipboardItem) -> None:
        ...
