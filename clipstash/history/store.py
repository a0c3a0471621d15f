"""HistoryStore - dedup, pinning and retention policy over HistoryStorage."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from clipstash.config.schema import HistoryConfig
from clipstash.core.errors import ItemNotFoundError, StorageError
from clipstash.core.types import ContentType
from clipstash.history.storage import HistoryStorage, UsageRow
from clipstash.history.types import ClipboardItem, TextPayload
from clipstash.storage.database import Database, storage_errors

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class HistoryStore:
    """Durable clipboard history.

    Every mutating operation runs inside one database transaction under the
    database writer lock, so a dedup check and the insert it guards (or the
    two phases of a retention sweep) never interleave with another writer.
    Reads go through per-thread reader connections and only ever see
    committed state.
    """

    def __init__(
        self,
        db: Database,
        config: HistoryConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            db: Open database. The store does not own it unless created via open().
            config: Retention and dedup policy (defaults to HistoryConfig()).
            clock: Time source, overridable for tests.
        """
        self._db = db
        self._storage = HistoryStorage(db)
        self._config = config or HistoryConfig()
        self._clock = clock
        self._owns_db = False

    @classmethod
    def open(
        cls,
        db_path: Path,
        config: HistoryConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> HistoryStore:
        """Open a store on its own database file. close() closes the file."""
        with storage_errors("open"):
            db = Database(db_path)
        store = cls(db, config, clock=clock)
        store._owns_db = True
        return store

    @property
    def config(self) -> HistoryConfig:
        return self._config

    @property
    def db(self) -> Database:
        return self._db

    def now(self) -> float:
        return self._clock()

    # --- Core Operations ---

    def insert(self, item: ClipboardItem) -> bool:
        """Persist a new item, then enforce retention.

        With deduplicate_consecutive enabled, an item whose content type and
        payload equal those of the most recently created non-pinned item is
        rejected. Nothing is mutated in that case; a capture is not a use.

        Returns:
            True if stored, False if rejected as a duplicate.

        Raises:
            StorageError: If the item cannot be written. A failing retention
                sweep is logged instead and does not fail the insert.
        """
        with storage_errors("insert"), self._db.transaction():
            if self._config.deduplicate_consecutive:
                if self._storage.latest_unpinned_hash() == item.content_hash:
                    logger.debug("Rejected duplicate %s item", item.content_type.value)
                    return False
            self._storage.insert(item)
        logger.debug("Stored %s item %s", item.content_type.value, item.id)

        try:
            self.retention_sweep()
        except StorageError as e:
            logger.warning("Retention sweep after insert failed: %s", e.reason)
        return True

    def add_text(
        self,
        text: str,
        *,
        source_bundle_id: str | None = None,
        source_app_name: str | None = None,
    ) -> ClipboardItem | None:
        """Create and insert a plain text item.

        Returns:
            The stored item, or None if it was rejected as a duplicate.
        """
        item = ClipboardItem.create(
            TextPayload(text),
            source_bundle_id=source_bundle_id,
            source_app_name=source_app_name,
            now=self.now(),
        )
        return item if self.insert(item) else None

    def restore(self, item: ClipboardItem) -> None:
        """Put a previously deleted item back exactly as it was (undo delete).

        Skips dedup. An id that is still present is left untouched.
        """
        full = self.load_payload(item)
        with storage_errors("restore"), self._db.transaction():
            if self._storage.pin_state(full.id) is not None:
                return
            self._storage.insert(full)
        logger.debug("Restored item %s", full.id)

    def fetch(
        self,
        filter_type: ContentType | None = None,
        search_text: str = "",
        pinned_only: bool = False,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ClipboardItem]:
        """Items ordered by created_at, newest first.

        Args:
            filter_type: Only items of this content type.
            search_text: Case- and diacritic-insensitive substring matched
                against text content or the newline-joined file paths.
                Empty means no text filter.
            pinned_only: Only pinned items.
            limit: Maximum number of items.
            offset: Number of leading matches to skip.

        Binary payload fields are not loaded; use load_payload() for that.
        """
        with storage_errors("fetch"):
            return self._storage.query(
                content_type=filter_type,
                search_text=search_text,
                pinned_only=pinned_only,
                limit=limit,
                offset=offset,
            )

    def get(self, item_id: str, *, with_blobs: bool = True) -> ClipboardItem | None:
        """Get item by id, or None if not found."""
        with storage_errors("get"):
            return self._storage.get(item_id, with_blobs=with_blobs)

    def item_at(self, index: int) -> ClipboardItem:
        """Item at position index of the newest-first history (0 = most recent).

        Raises:
            ItemNotFoundError: If index is negative or past the end.
        """
        if index < 0:
            raise ItemNotFoundError(index)
        items = self.fetch(limit=1, offset=index)
        if not items:
            raise ItemNotFoundError(index)
        return self.load_payload(items[0])

    def load_payload(self, item: ClipboardItem) -> ClipboardItem:
        """Return item with its out-of-line binary fields loaded."""
        with storage_errors("get"):
            return self._storage.load_payload(item)

    def touch(self, item_id: str) -> None:
        """Record a use: last_used_at = now, use_count += 1. Unknown ids are ignored."""
        with storage_errors("touch"):
            if not self._storage.record_use(item_id, self.now()):
                logger.debug("touch: no item %s", item_id)

    def toggle_pin(self, item_id: str) -> bool | None:
        """Flip the pinned flag.

        Pinning appends: pinned_order becomes one more than the highest order
        ever assigned. Unpinning leaves pinned_order in place, so values are
        never reused.

        Returns:
            The new pinned state, or None if the id is unknown.
        """
        with storage_errors("toggle_pin"), self._db.transaction():
            state = self._storage.pin_state(item_id)
            if state is None:
                return None
            pinned, _ = state
            if pinned:
                self._storage.set_pinned(item_id, False)
                return False
            self._storage.set_pinned(item_id, True, self._storage.max_pinned_order() + 1)
            return True

    def delete(self, item_id: str) -> None:
        """Remove an item. Deleting an unknown id is a no-op."""
        with storage_errors("delete"):
            self._storage.delete(item_id)

    def clear_all(self, keep_pinned: bool = True) -> int:
        """Remove every item, or every non-pinned item. Returns the count removed."""
        with storage_errors("clear"):
            removed = self._storage.clear(keep_pinned=keep_pinned)
        logger.info("Cleared %d item(s) (keep_pinned=%s)", removed, keep_pinned)
        return removed

    def retention_sweep(self) -> int:
        """Apply the age limit, then the count limit, to non-pinned items.

        1. When retention_days > 0, remove non-pinned items created more
           than retention_days ago.
        2. If more than max_history_count non-pinned items remain, remove
           the oldest until exactly max_history_count remain.

        Pinned items are never removed.

        Returns:
            Number of items removed.
        """
        removed = 0
        with storage_errors("retention_sweep"), self._db.transaction():
            if self._config.retention_days > 0:
                cutoff = self.now() - self._config.retention_days * SECONDS_PER_DAY
                removed += self._storage.delete_unpinned_before(cutoff)
            removed += self._storage.trim_unpinned(self._config.max_history_count)
        if removed:
            logger.info("Retention sweep removed %d item(s)", removed)
        return removed

    # --- Derived fields ---

    def update_derived(self, item_id: str, **fields: Any) -> bool:
        """Store analyzer output (OCR text, summary, language, ...) for an item.

        Returns:
            False if the id is unknown.

        Raises:
            ValueError: If a field name is not a DerivedFields attribute.
        """
        with storage_errors("update_derived"):
            return self._storage.update_derived(item_id, fields)

    def toggle_mask(self, item_id: str) -> bool | None:
        """Flip the masked flag. Returns the new state, or None if unknown."""
        with storage_errors("toggle_mask"), self._db.transaction():
            item = self._storage.get(item_id, with_blobs=False)
            if item is None:
                return None
            masked = not item.derived.is_masked
            self._storage.update_derived(item_id, {"is_masked": masked})
            return masked

    # --- Aggregates ---

    def count(self, *, pinned: bool | None = None) -> int:
        with storage_errors("count"):
            return self._storage.count(pinned=pinned)

    def usage_rows(self) -> list[UsageRow]:
        with storage_errors("usage"):
            return self._storage.usage_rows()

    def close(self) -> None:
        """Close the database if this store opened it."""
        if self._owns_db:
            self._db.close()
