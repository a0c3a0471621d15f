"""Clipboard rule types."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import Enum

from clipstash.core.types import ContentType


class TransformKind(str, Enum):
    """Text transformation a rule applies to captured content."""

    STRIP_ANSI = "stripAnsi"
    PRETTIFY_JSON = "prettifyJson"
    STRIP_TRACKING_PARAMS = "stripTrackingParams"
    REGEX_REPLACE = "regexReplace"
    TRIM_WHITESPACE = "trimWhitespace"
    LOWERCASE_ALL = "lowercaseAll"
    UPPERCASE_ALL = "uppercaseAll"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def needs_pattern(self) -> bool:
        return self is TransformKind.REGEX_REPLACE


_DISPLAY_NAMES = {
    TransformKind.STRIP_ANSI: "Strip ANSI Codes",
    TransformKind.PRETTIFY_JSON: "Prettify JSON",
    TransformKind.STRIP_TRACKING_PARAMS: "Strip Tracking Params",
    TransformKind.REGEX_REPLACE: "Regex Replace",
    TransformKind.TRIM_WHITESPACE: "Trim Whitespace",
    TransformKind.LOWERCASE_ALL: "Lowercase",
    TransformKind.UPPERCASE_ALL: "Uppercase",
}


@dataclass
class ClipboardRule:
    """A user-defined transformation applied to captured text.

    Attributes:
        id: Unique rule id (uuid4 hex).
        name: Display name.
        transform: What the rule does to the text.
        enabled: Disabled rules are stored but never applied.
        source_bundle_id: Only apply to copies from this application.
        source_app_name: Display name for source_bundle_id.
        content_type: Only apply to captures of this content type.
        pattern: Regular expression, for REGEX_REPLACE.
        replacement: re.sub() replacement template, for REGEX_REPLACE.
        sort_order: Application order, ascending.
        created_at: Unix timestamp; breaks sort_order ties.
    """

    id: str
    name: str
    transform: TransformKind
    enabled: bool = True
    source_bundle_id: str | None = None
    source_app_name: str | None = None
    content_type: ContentType | None = None
    pattern: str | None = None
    replacement: str | None = None
    sort_order: int = 0
    created_at: float = 0.0

    @classmethod
    def create(
        cls,
        name: str,
        transform: TransformKind,
        *,
        enabled: bool = True,
        source_bundle_id: str | None = None,
        source_app_name: str | None = None,
        content_type: ContentType | None = None,
        pattern: str | None = None,
        replacement: str | None = None,
        sort_order: int = 0,
        now: float | None = None,
    ) -> ClipboardRule:
        """Create a rule with a fresh id."""
        return cls(
            id=uuid.uuid4().hex,
            name=name,
            transform=transform,
            enabled=enabled,
            source_bundle_id=source_bundle_id,
            source_app_name=source_app_name,
            content_type=content_type,
            pattern=pattern,
            replacement=replacement,
            sort_order=sort_order,
            created_at=time.time() if now is None else now,
        )

    def matches(self, source_bundle_id: str | None, content_type: ContentType) -> bool:
        """True if this rule is enabled and its filters accept the capture."""
        if not self.enabled:
            return False
        if self.source_bundle_id and self.source_bundle_id != source_bundle_id:
            return False
        if self.content_type is not None and self.content_type != content_type:
            return False
        return True
