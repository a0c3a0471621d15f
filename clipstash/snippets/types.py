"""Snippet and folder types."""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass

from clipstash.core.cache import LRUCache

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

_placeholder_cache: LRUCache[str, tuple[str, ...]] = LRUCache(capacity=128)


def extract_placeholders(content: str) -> tuple[str, ...]:
    """Names of {{name}} placeholders in first-seen order, without repeats."""
    cached = _placeholder_cache.get(content)
    if cached is None:
        cached = tuple(dict.fromkeys(PLACEHOLDER_RE.findall(content)))
        _placeholder_cache.set(content, cached)
    return cached


@dataclass
class SnippetFolder:
    id: str
    name: str
    icon_name: str = "folder"
    sort_order: int = 0
    created_at: float = 0.0

    @classmethod
    def create(cls, name: str, *, icon_name: str = "folder", sort_order: int = 0) -> SnippetFolder:
        return cls(
            id=uuid.uuid4().hex,
            name=name,
            icon_name=icon_name,
            sort_order=sort_order,
            created_at=time.time(),
        )


@dataclass
class Snippet:
    """A reusable text template.

    folder_id may point at a folder that no longer exists; such snippets
    are treated as uncategorized.
    """

    id: str
    title: str
    content: str
    folder_id: str | None = None
    is_builtin: bool = False
    created_at: float = 0.0
    last_used_at: float = 0.0
    use_count: int = 0
    sort_order: int = 0

    @classmethod
    def create(
        cls,
        title: str,
        content: str,
        *,
        folder_id: str | None = None,
        is_builtin: bool = False,
        sort_order: int = 0,
        now: float | None = None,
    ) -> Snippet:
        ts = time.time() if now is None else now
        return cls(
            id=uuid.uuid4().hex,
            title=title,
            content=content,
            folder_id=folder_id,
            is_builtin=is_builtin,
            created_at=ts,
            last_used_at=ts,
            sort_order=sort_order,
        )

    @property
    def placeholders(self) -> tuple[str, ...]:
        return extract_placeholders(self.content)
