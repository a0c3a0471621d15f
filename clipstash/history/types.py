"""Clipboard history types and dataclasses."""

from __future__ import annotations

import hashlib
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Union

from clipstash.core.types import ContentType


@dataclass(frozen=True)
class TextPayload:
    """Plain text."""

    text: str


@dataclass(frozen=True)
class LinkPayload:
    """A single http(s) URL."""

    url: str


@dataclass(frozen=True)
class RichTextPayload:
    """RTF document with the plain text the pasteboard offered alongside it."""

    rtf: bytes
    plain_text: str | None = None


@dataclass(frozen=True)
class ImagePayload:
    """Encoded image bytes. The thumbnail is supplied by the capturer, if at all."""

    image: bytes
    thumbnail: bytes | None = None


@dataclass(frozen=True)
class FilePayload:
    """Ordered list of file paths."""

    paths: tuple[str, ...]


Payload = Union[TextPayload, LinkPayload, RichTextPayload, ImagePayload, FilePayload]

_PAYLOAD_TYPES: dict[type, ContentType] = {
    TextPayload: ContentType.TEXT,
    LinkPayload: ContentType.LINK,
    RichTextPayload: ContentType.RICH_TEXT,
    ImagePayload: ContentType.IMAGE,
    FilePayload: ContentType.FILE,
}


def content_type_of(payload: Payload) -> ContentType:
    """Return the ContentType a payload variant represents."""
    try:
        return _PAYLOAD_TYPES[type(payload)]
    except KeyError:
        raise TypeError(f"Not a clipboard payload: {type(payload).__name__}") from None


def payload_text(payload: Payload) -> str | None:
    """Text carried by the payload, if any.

    Rich text falls back to its plain-text rendering. Images and file lists
    carry no text.
    """
    if isinstance(payload, TextPayload):
        return payload.text
    if isinstance(payload, LinkPayload):
        return payload.url
    if isinstance(payload, RichTextPayload):
        return payload.plain_text
    return None


def payload_hash(payload: Payload) -> str:
    """Stable digest of (content type, payload) used for duplicate detection.

    Image thumbnails are derived from the image, so they do not count.
    """
    digest = hashlib.sha256()
    digest.update(content_type_of(payload).value.encode("utf-8"))
    digest.update(b"\x00")
    if isinstance(payload, TextPayload):
        digest.update(payload.text.encode("utf-8"))
    elif isinstance(payload, LinkPayload):
        digest.update(payload.url.encode("utf-8"))
    elif isinstance(payload, RichTextPayload):
        digest.update(payload.rtf)
        digest.update(b"\x00")
        digest.update((payload.plain_text or "").encode("utf-8"))
    elif isinstance(payload, ImagePayload):
        digest.update(payload.image)
    elif isinstance(payload, FilePayload):
        digest.update("\n".join(payload.paths).encode("utf-8"))
    return digest.hexdigest()


@dataclass
class DerivedFields:
    """Analysis results supplied by an external analyzer.

    The store keeps these opaquely; nothing in clipstash computes them.
    """

    character_count: int | None = None
    sensitive_types: list[str] = field(default_factory=list)
    is_masked: bool = False
    summary: str | None = None
    ocr_text: str | None = None
    embedding: bytes | None = None
    detected_language: str | None = None
    is_markdown: bool = False


@dataclass
class ClipboardItem:
    """A single clipboard history record."""

    id: str
    payload: Payload
    created_at: float
    last_used_at: float
    source_bundle_id: str | None = None
    source_app_name: str | None = None
    use_count: int = 0
    is_pinned: bool = False
    pinned_order: int = 0
    derived: DerivedFields = field(default_factory=DerivedFields)
    # False when binary payload fields were not loaded (listing queries)
    blobs_loaded: bool = True

    @classmethod
    def create(
        cls,
        payload: Payload,
        *,
        source_bundle_id: str | None = None,
        source_app_name: str | None = None,
        now: float | None = None,
    ) -> ClipboardItem:
        """Create a fresh item with a new id and matching timestamps."""
        ts = time.time() if now is None else now
        text = payload_text(payload)
        return cls(
            id=uuid.uuid4().hex,
            payload=payload,
            created_at=ts,
            last_used_at=ts,
            source_bundle_id=source_bundle_id,
            source_app_name=source_app_name,
            derived=DerivedFields(character_count=len(text) if text is not None else None),
        )

    @property
    def content_type(self) -> ContentType:
        return content_type_of(self.payload)

    @property
    def text_content(self) -> str | None:
        return payload_text(self.payload)

    @property
    def file_paths(self) -> tuple[str, ...] | None:
        if isinstance(self.payload, FilePayload):
            return self.payload.paths
        return None

    @property
    def content_hash(self) -> str:
        return payload_hash(self.payload)

    @property
    def preview(self) -> str:
        """Short human-readable summary of the content."""
        text = self.text_content
        if self.content_type in (ContentType.TEXT, ContentType.LINK):
            return (text or "")[:150]
        if self.content_type == ContentType.RICH_TEXT:
            return (text or "Rich Text")[:150]
        if self.content_type == ContentType.IMAGE:
            return "Image"
        count = len(self.file_paths or ())
        return f"{count} file{'' if count == 1 else 's'}"

    def with_payload(self, payload: Payload) -> ClipboardItem:
        """Copy of this item carrying a different payload of the same kind."""
        if content_type_of(payload) != self.content_type:
            raise ValueError(
                f"Payload kind {content_type_of(payload).value} does not match "
                f"item kind {self.content_type.value}"
            )
        return replace(self, payload=payload)
