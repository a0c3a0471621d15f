"""SQLite row storage for clipboard history items.

Policy (dedup, retention, locking order) lives in HistoryStore; this module
only maps ClipboardItem to and from the `items` / `item_blobs` tables.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from clipstash.core.text import fold, fold_query
from clipstash.core.types import ContentType
from clipstash.history.types import (
    ClipboardItem,
    DerivedFields,
    FilePayload,
    ImagePayload,
    LinkPayload,
    Payload,
    RichTextPayload,
    TextPayload,
)
from clipstash.storage.database import Database

# item_blobs.kind values
BLOB_RTF = "rtf"
BLOB_IMAGE = "image"
BLOB_THUMBNAIL = "thumbnail"
BLOB_EMBEDDING = "embedding"

_ORDER_NEWEST = "ORDER BY created_at DESC, seq DESC"

DERIVED_COLUMNS = frozenset({
    "character_count",
    "sensitive_types",
    "is_masked",
    "summary",
    "ocr_text",
    "detected_language",
    "is_markdown",
})


@dataclass(frozen=True)
class UsageRow:
    """Lightweight projection used by analytics."""

    id: str
    content_type: ContentType
    created_at: float
    use_count: int
    source_bundle_id: str | None
    source_app_name: str | None


def build_search_key(
    text: str | None,
    paths: Iterable[str] | None,
    ocr_text: str | None = None,
    summary: str | None = None,
    source_app_name: str | None = None,
) -> str:
    """Folded text that substring search runs against."""
    parts: list[str] = []
    if text:
        parts.append(text)
    if paths:
        parts.append("\n".join(paths))
    if ocr_text:
        parts.append(ocr_text)
    if summary:
        parts.append(summary)
    if source_app_name:
        parts.append(source_app_name)
    return fold("\n".join(parts))


class HistoryStorage:
    """Row-level access to clipboard items in a clipstash Database."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @property
    def db(self) -> Database:
        return self._db

    # --- Mapping ---

    def _blobs_for(self, payload: Payload, derived: DerivedFields) -> list[tuple[str, bytes]]:
        blobs: list[tuple[str, bytes]] = []
        if isinstance(payload, RichTextPayload):
            blobs.append((BLOB_RTF, payload.rtf))
        elif isinstance(payload, ImagePayload):
            blobs.append((BLOB_IMAGE, payload.image))
            if payload.thumbnail is not None:
                blobs.append((BLOB_THUMBNAIL, payload.thumbnail))
        if derived.embedding is not None:
            blobs.append((BLOB_EMBEDDING, derived.embedding))
        return blobs

    def _row_to_item(self, row: sqlite3.Row, blobs: dict[str, bytes] | None) -> ClipboardItem:
        content_type = ContentType(row["content_type"])
        loaded = blobs is not None
        blobs = blobs or {}

        payload: Payload
        if content_type == ContentType.TEXT:
            payload = TextPayload(row["text_content"] or "")
        elif content_type == ContentType.LINK:
            payload = LinkPayload(row["text_content"] or "")
        elif content_type == ContentType.RICH_TEXT:
            payload = RichTextPayload(blobs.get(BLOB_RTF, b""), row["text_content"])
        elif content_type == ContentType.IMAGE:
            payload = ImagePayload(blobs.get(BLOB_IMAGE, b""), blobs.get(BLOB_THUMBNAIL))
        else:
            payload = FilePayload(tuple(json.loads(row["file_paths"] or "[]")))

        derived = DerivedFields(
            character_count=row["character_count"],
            sensitive_types=json.loads(row["sensitive_types"] or "[]"),
            is_masked=bool(row["is_masked"]),
            summary=row["summary"],
            ocr_text=row["ocr_text"],
            embedding=blobs.get(BLOB_EMBEDDING),
            detected_language=row["detected_language"],
            is_markdown=bool(row["is_markdown"]),
        )
        return ClipboardItem(
            id=row["id"],
            payload=payload,
            created_at=row["created_at"],
            last_used_at=row["last_used_at"],
            source_bundle_id=row["source_bundle_id"],
            source_app_name=row["source_app_name"],
            use_count=row["use_count"],
            is_pinned=bool(row["is_pinned"]),
            pinned_order=row["pinned_order"],
            derived=derived,
            blobs_loaded=loaded or content_type not in (ContentType.RICH_TEXT, ContentType.IMAGE),
        )

    def _load_blobs(self, conn: sqlite3.Connection, item_id: str) -> dict[str, bytes]:
        cur = conn.execute("SELECT kind, data FROM item_blobs WHERE item_id = ?", (item_id,))
        return {row["kind"]: bytes(row["data"]) for row in cur.fetchall()}

    # --- Reads (committed state) ---

    def get(self, item_id: str, *, with_blobs: bool = True) -> ClipboardItem | None:
        """Get item by id, or None if not found."""
        conn = self._db.reader()
        row = conn.execute("SELECT * FROM items WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_item(row, self._load_blobs(conn, item_id) if with_blobs else None)

    def query(
        self,
        *,
        content_type: ContentType | None = None,
        search_text: str = "",
        pinned_only: bool = False,
        limit: int | None = None,
        offset: int = 0,
        with_blobs: bool = False,
    ) -> list[ClipboardItem]:
        """Items matching every given filter, newest first."""
        clauses: list[str] = []
        params: list[Any] = []
        if content_type is not None:
            clauses.append("content_type = ?")
            params.append(content_type.value)
        if pinned_only:
            clauses.append("is_pinned = 1")
        if search_text:
            clauses.append("instr(search_key, ?) > 0")
            params.append(fold_query(search_text))

        sql = "SELECT * FROM items"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += f" {_ORDER_NEWEST}"
        if limit is not None or offset:
            sql += " LIMIT ? OFFSET ?"
            params.extend([-1 if limit is None else limit, offset])

        conn = self._db.reader()
        rows = conn.execute(sql, params).fetchall()
        return [
            self._row_to_item(row, self._load_blobs(conn, row["id"]) if with_blobs else None)
            for row in rows
        ]

    def load_payload(self, item: ClipboardItem) -> ClipboardItem:
        """Return item with binary payload fields populated."""
        if item.blobs_loaded:
            return item
        full = self.get(item.id, with_blobs=True)
        return full if full is not None else item

    def count(self, *, pinned: bool | None = None) -> int:
        sql = "SELECT COUNT(*) FROM items"
        params: tuple[Any, ...] = ()
        if pinned is not None:
            sql += " WHERE is_pinned = ?"
            params = (1 if pinned else 0,)
        return self._db.reader().execute(sql, params).fetchone()[0]

    def usage_rows(self) -> list[UsageRow]:
        """All items as UsageRow, oldest first."""
        cur = self._db.reader().execute(
            "SELECT id, content_type, created_at, use_count, source_bundle_id, "
            "source_app_name FROM items ORDER BY created_at, seq"
        )
        return [
            UsageRow(
                id=row["id"],
                content_type=ContentType(row["content_type"]),
                created_at=row["created_at"],
                use_count=row["use_count"],
                source_bundle_id=row["source_bundle_id"],
                source_app_name=row["source_app_name"],
            )
            for row in cur.fetchall()
        ]

    # --- Writes (join the caller's transaction when there is one) ---

    def latest_unpinned_hash(self) -> str | None:
        """content_hash of the most recently created non-pinned item."""
        with self._db.transaction() as conn:
            row = conn.execute(
                f"SELECT content_hash FROM items WHERE is_pinned = 0 {_ORDER_NEWEST} LIMIT 1"
            ).fetchone()
        return row["content_hash"] if row else None

    def insert(self, item: ClipboardItem) -> None:
        """Write item and its blobs. Raises sqlite3.IntegrityError on duplicate id."""
        derived = item.derived
        paths = item.file_paths
        with self._db.transaction() as conn:
            conn.execute(
                """INSERT INTO items
                   (id, content_type, text_content, file_paths, content_hash, search_key,
                    source_bundle_id, source_app_name, created_at, last_used_at,
                    use_count, is_pinned, pinned_order, character_count, sensitive_types,
                    is_masked, summary, ocr_text, detected_language, is_markdown)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    item.id,
                    item.content_type.value,
                    item.text_content,
                    json.dumps(list(paths)) if paths is not None else None,
                    item.content_hash,
                    build_search_key(
                        item.text_content,
                        paths,
                        derived.ocr_text,
                        derived.summary,
                        item.source_app_name,
                    ),
                    item.source_bundle_id,
                    item.source_app_name,
                    item.created_at,
                    item.last_used_at,
                    item.use_count,
                    1 if item.is_pinned else 0,
                    item.pinned_order,
                    derived.character_count,
                    json.dumps(derived.sensitive_types),
                    1 if derived.is_masked else 0,
                    derived.summary,
                    derived.ocr_text,
                    derived.detected_language,
                    1 if derived.is_markdown else 0,
                ),
            )
            conn.executemany(
                "INSERT INTO item_blobs (item_id, kind, data) VALUES (?, ?, ?)",
                [(item.id, kind, data) for kind, data in self._blobs_for(item.payload, derived)],
            )

    def record_use(self, item_id: str, now: float) -> bool:
        """Bump use_count and last_used_at. Returns False if the id is unknown.

        last_used_at never moves below created_at.
        """
        with self._db.transaction() as conn:
            cur = conn.execute(
                """UPDATE items SET use_count = use_count + 1,
                   last_used_at = MAX(created_at, ?) WHERE id = ?""",
                (now, item_id),
            )
        return cur.rowcount > 0

    def pin_state(self, item_id: str) -> tuple[bool, int] | None:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT is_pinned, pinned_order FROM items WHERE id = ?", (item_id,)
            ).fetchone()
        return (bool(row["is_pinned"]), row["pinned_order"]) if row else None

    def max_pinned_order(self) -> int:
        """Highest pinned_order ever assigned to a stored item (0 if none)."""
        with self._db.transaction() as conn:
            row = conn.execute("SELECT MAX(pinned_order) FROM items").fetchone()
        return row[0] or 0

    def set_pinned(self, item_id: str, pinned: bool, pinned_order: int | None = None) -> None:
        with self._db.transaction() as conn:
            if pinned_order is None:
                conn.execute(
                    "UPDATE items SET is_pinned = ? WHERE id = ?", (1 if pinned else 0, item_id)
                )
            else:
                conn.execute(
                    "UPDATE items SET is_pinned = ?, pinned_order = ? WHERE id = ?",
                    (1 if pinned else 0, pinned_order, item_id),
                )

    def delete(self, item_id: str) -> bool:
        """Delete item by id. Returns True if deleted, False if not found."""
        with self._db.transaction() as conn:
            cur = conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
        return cur.rowcount > 0

    def clear(self, *, keep_pinned: bool) -> int:
        """Delete all items (or all non-pinned items). Returns deleted count."""
        sql = "DELETE FROM items"
        if keep_pinned:
            sql += " WHERE is_pinned = 0"
        with self._db.transaction() as conn:
            cur = conn.execute(sql)
        return cur.rowcount

    def delete_unpinned_before(self, cutoff: float) -> int:
        """Delete non-pinned items created before cutoff."""
        with self._db.transaction() as conn:
            cur = conn.execute(
                "DELETE FROM items WHERE is_pinned = 0 AND created_at < ?", (cutoff,)
            )
        return cur.rowcount

    def trim_unpinned(self, keep: int) -> int:
        """Delete the oldest non-pinned items so at most `keep` remain."""
        with self._db.transaction() as conn:
            cur = conn.execute(
                f"""DELETE FROM items WHERE seq IN (
                       SELECT seq FROM items WHERE is_pinned = 0 {_ORDER_NEWEST}
                       LIMIT -1 OFFSET ?)""",
                (keep,),
            )
        return cur.rowcount

    def update_derived(self, item_id: str, values: dict[str, Any]) -> bool:
        """Store analyzer output. Unknown ids return False.

        Args:
            item_id: Target item.
            values: DerivedFields attribute names to new values.
        """
        unknown = set(values) - DERIVED_COLUMNS - {"embedding"}
        if unknown:
            raise ValueError(f"Unknown derived fields: {sorted(unknown)}")

        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT text_content, file_paths, ocr_text, summary, source_app_name "
                "FROM items WHERE id = ?",
                (item_id,),
            ).fetchone()
            if row is None:
                return False

            updates: list[str] = []
            params: list[Any] = []
            for name, value in values.items():
                if name == "embedding":
                    continue
                if name == "sensitive_types":
                    value = json.dumps(list(value or []))
                elif name in ("is_masked", "is_markdown"):
                    value = 1 if value else 0
                updates.append(f"{name} = ?")
                params.append(value)

            if "ocr_text" in values or "summary" in values:
                paths = json.loads(row["file_paths"]) if row["file_paths"] else None
                updates.append("search_key = ?")
                params.append(build_search_key(
                    row["text_content"],
                    paths,
                    values.get("ocr_text", row["ocr_text"]),
                    values.get("summary", row["summary"]),
                    row["source_app_name"],
                ))

            if updates:
                params.append(item_id)
                conn.execute(f"UPDATE items SET {', '.join(updates)} WHERE id = ?", params)

            if "embedding" in values:
                if values["embedding"] is None:
                    conn.execute(
                        "DELETE FROM item_blobs WHERE item_id = ? AND kind = ?",
                        (item_id, BLOB_EMBEDDING),
                    )
                else:
                    conn.execute(
                        "INSERT OR REPLACE INTO item_blobs (item_id, kind, data) VALUES (?, ?, ?)",
                        (item_id, BLOB_EMBEDDING, values["embedding"]),
                    )
        return True
