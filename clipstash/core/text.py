"""Text normalization helpers shared by search and dedup."""

from __future__ import annotations

import unicodedata

from clipstash.core.cache import LRUCache

_fold_cache: LRUCache[str, str] = LRUCache(capacity=256)


def fold(text: str) -> str:
    """Fold text for case- and diacritic-insensitive comparison.

    Decomposes to NFKD, drops combining marks, then casefolds, so
    "Café" and "CAFE" fold to the same key.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def fold_query(query: str) -> str:
    """fold() for short, frequently repeated search queries (memoized)."""
    cached = _fold_cache.get(query)
    if cached is None:
        cached = fold(query)
        _fold_cache.set(query, cached)
    return cached


def truncate(text: str, limit: int, *, single_line: bool = True) -> str:
    """Shorten text for one-line previews."""
    if single_line:
        text = text.replace("\n", "\\n")
    if len(text) <= limit:
        return text
    return text[: max(limit - 1, 0)] + "…"
