"""Core value types shared by capture, history and rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ContentType(str, Enum):
    """Kind of content held by a clipboard item."""

    TEXT = "text"
    RICH_TEXT = "richText"
    IMAGE = "image"
    FILE = "file"
    LINK = "link"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    ContentType.TEXT: "Text",
    ContentType.RICH_TEXT: "Rich Text",
    ContentType.IMAGE: "Image",
    ContentType.FILE: "File",
    ContentType.LINK: "Link",
}


class Representation(str, Enum):
    """Raw pasteboard representations, as exposed by a pasteboard port.

    Byte encodings:
        FILES: UTF-8 paths separated by newlines, in pasteboard order.
        IMAGE: encoded image bytes (PNG preferred).
        RTF: raw RTF document bytes.
        TEXT: UTF-8 text.
    """

    FILES = "files"
    IMAGE = "image"
    RTF = "rtf"
    TEXT = "text"


@dataclass(frozen=True)
class PasteboardContents:
    """One read of the pasteboard: representations plus provenance."""

    representations: dict[Representation, bytes] = field(default_factory=dict)
    source_bundle_id: str | None = None
    source_app_name: str | None = None

    def get(self, rep: Representation) -> bytes | None:
        return self.representations.get(rep)
