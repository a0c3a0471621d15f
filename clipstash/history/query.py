"""Search queries over the history and a debounced browser for interactive use."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from clipstash.config.schema import SearchConfig
from clipstash.core.cache import LRUCache
from clipstash.core.debounce import Debouncer
from clipstash.core.types import ContentType
from clipstash.history.store import HistoryStore
from clipstash.history.types import ClipboardItem

logger = logging.getLogger(__name__)

_pattern_cache: LRUCache[str, re.Pattern[str] | None] = LRUCache(capacity=64)


class SearchMode(str, Enum):
    SUBSTRING = "substring"
    REGEX = "regex"


@dataclass(frozen=True)
class SearchQuery:
    """One request from a presentation layer."""

    text: str = ""
    mode: SearchMode = SearchMode.SUBSTRING
    content_type: ContentType | None = None
    pinned_only: bool = False
    limit: int | None = None


def compile_search_pattern(source: str) -> re.Pattern[str] | None:
    """Compile a case-insensitive search regex. Invalid patterns return None."""
    if source in _pattern_cache:
        return _pattern_cache.get(source)
    try:
        pattern: re.Pattern[str] | None = re.compile(source, re.IGNORECASE)
    except re.error as e:
        logger.debug("Invalid search pattern %r: %s", source, e)
        pattern = None
    _pattern_cache.set(source, pattern)
    return pattern


def _searchable_text(item: ClipboardItem) -> str | None:
    if item.file_paths is not None:
        return "\n".join(item.file_paths)
    return item.text_content


def run_query(store: HistoryStore, query: SearchQuery) -> list[ClipboardItem]:
    """Execute query against store, newest first.

    Substring mode delegates to HistoryStore.fetch(). Regex mode fetches with
    the other filters applied and keeps items whose text (or newline-joined
    file paths) the pattern matches. An invalid pattern matches nothing.
    """
    if query.mode == SearchMode.SUBSTRING or not query.text:
        return store.fetch(
            filter_type=query.content_type,
            search_text=query.text,
            pinned_only=query.pinned_only,
            limit=query.limit,
        )

    pattern = compile_search_pattern(query.text)
    if pattern is None:
        return []

    matches: list[ClipboardItem] = []
    for item in store.fetch(filter_type=query.content_type, pinned_only=query.pinned_only):
        text = _searchable_text(item)
        if text is not None and pattern.search(text):
            matches.append(item)
            if query.limit is not None and len(matches) >= query.limit:
                break
    return matches


ResultHandler = Callable[[SearchQuery, list[ClipboardItem]], Awaitable[None] | None]


class HistoryBrowser:
    """Debounced search front end for a presentation layer.

    Each keystroke calls search(); only the latest query within the debounce
    window runs, in a worker thread, and its results go to on_results.
    """

    def __init__(
        self,
        store: HistoryStore,
        on_results: ResultHandler,
        config: SearchConfig | None = None,
    ) -> None:
        self._store = store
        self._on_results = on_results
        self._config = config or SearchConfig()
        self._debouncer: Debouncer[SearchQuery] = Debouncer(self._config.debounce, self._run)
        self.last_query: SearchQuery | None = None

    @property
    def dropped(self) -> int:
        """Queries superseded before they ran."""
        return self._debouncer.dropped

    def search(self, query: SearchQuery) -> None:
        """Request a search. Must be called from the event loop."""
        if query.limit is None:
            query = SearchQuery(
                text=query.text,
                mode=query.mode,
                content_type=query.content_type,
                pinned_only=query.pinned_only,
                limit=self._config.max_results,
            )
        self._debouncer.submit(query)

    def cancel(self) -> None:
        self._debouncer.cancel()

    async def wait(self) -> None:
        """Wait until the pending search, if any, has published its results."""
        await self._debouncer.wait()

    async def _run(self, query: SearchQuery) -> None:
        items = await asyncio.to_thread(run_query, self._store, query)
        self.last_query = query
        result = self._on_results(query, items)
        if result is not None:
            await result
