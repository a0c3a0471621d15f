"""Turn raw pasteboard representations into a typed payload, and back."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from clipstash.core.errors import PasteboardError
from clipstash.core.types import ContentType, PasteboardContents, Representation
from clipstash.history.types import (
    FilePayload,
    ImagePayload,
    LinkPayload,
    Payload,
    RichTextPayload,
    TextPayload,
)

logger = logging.getLogger(__name__)


def _decode(contents: PasteboardContents, rep: Representation) -> str | None:
    data = contents.get(rep)
    if data is None:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PasteboardError(f"Undecodable {rep.value} representation: {e}") from e


def as_link(text: str) -> str | None:
    """The URL if text is exactly one http(s) URL with a host, else None."""
    candidate = text.strip()
    if not candidate.lower().startswith(("http://", "https://")):
        return None
    if any(ch.isspace() for ch in candidate):
        return None
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return None
    return candidate if parts.netloc else None


def classify(contents: PasteboardContents) -> Payload | None:
    """Pick the payload for one pasteboard read.

    Priority: file list > image > rich text > link > plain text. Rich text
    takes its plain-text rendering from the TEXT representation when one is
    present. Whitespace-only text is not captured.

    Returns:
        The payload, or None if nothing capturable is on the pasteboard.

    Raises:
        PasteboardError: If a text-bearing representation is not valid UTF-8.
    """
    files = _decode(contents, Representation.FILES)
    if files:
        paths = tuple(line for line in files.split("\n") if line)
        if paths:
            return FilePayload(paths)

    image = contents.get(Representation.IMAGE)
    if image:
        return ImagePayload(image)

    text = _decode(contents, Representation.TEXT)

    rtf = contents.get(Representation.RTF)
    if rtf:
        return RichTextPayload(rtf, text)

    if text is None or not text.strip():
        return None

    url = as_link(text)
    if url is not None:
        return LinkPayload(url)
    return TextPayload(text)


def encode_payload(payload: Payload) -> tuple[ContentType, bytes]:
    """Content type and bytes to hand to PasteboardPort.write()."""
    if isinstance(payload, TextPayload):
        return ContentType.TEXT, payload.text.encode("utf-8")
    if isinstance(payload, LinkPayload):
        return ContentType.LINK, payload.url.encode("utf-8")
    if isinstance(payload, RichTextPayload):
        return ContentType.RICH_TEXT, payload.rtf
    if isinstance(payload, ImagePayload):
        return ContentType.IMAGE, payload.image
    return ContentType.FILE, "\n".join(payload.paths).encode("utf-8")
