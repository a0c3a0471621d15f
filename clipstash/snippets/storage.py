"""SnippetStore - snippet and folder persistence plus template resolution."""

from __future__ import annotations

import logging
import re
import sqlite3
import time
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from clipstash.core.text import fold, fold_query
from clipstash.snippets.types import PLACEHOLDER_RE, Snippet, SnippetFolder
from clipstash.storage.database import Database, storage_errors

logger = logging.getLogger(__name__)

BUILTIN_SNIPPETS: tuple[tuple[str, str], ...] = (
    ("Date Stamp", "{{date}} {{time}}"),
    ("Code Comment Block", "# --- {{section}} ---\n# TODO: {{description}}"),
    (
        "Bug Report",
        "## Bug Report\n**Steps to reproduce:**\n1. {{steps}}\n"
        "**Expected:** {{expected}}\n**Actual:** {{actual}}",
    ),
    (
        "Email Reply",
        "Hi {{name}},\n\nThank you for your email regarding {{topic}}.\n\n"
        "{{clipboard}}\n\nBest regards",
    ),
)

_SNIPPET_FIELDS = frozenset({"title", "content", "folder_id", "sort_order"})


def builtin_variables(clipboard_text: str = "", now: float | None = None) -> dict[str, str]:
    """Values for the built-in template variables."""
    ts = time.time() if now is None else now
    local = datetime.fromtimestamp(ts)
    return {
        "date": f"{local:%b} {local.day}, {local.year}",
        "time": f"{local:%H:%M}",
        "timestamp": datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "uuid": str(uuid.uuid4()).upper(),
        "clipboard": clipboard_text,
    }


def resolve_template(
    snippet: Snippet,
    variables: Mapping[str, str] | None = None,
    clipboard_text: str = "",
    now: float | None = None,
) -> str:
    """Fill a snippet's {{name}} placeholders.

    Built-in variables (date, time, timestamp, uuid, clipboard) are always
    available; a user value with the same name wins. Placeholders with no
    value are left as written. Substituted values are not scanned again.
    """
    values = builtin_variables(clipboard_text, now)
    values.update(variables or {})

    def _sub(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return PLACEHOLDER_RE.sub(_sub, snippet.content)


class SnippetStore:
    """CRUD for snippets and snippet folders."""

    def __init__(self, db: Database, *, clock: Callable[[], float] = time.time) -> None:
        self._db = db
        self._clock = clock

    # --- Snippets ---

    def _row_to_snippet(self, row: sqlite3.Row) -> Snippet:
        return Snippet(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            folder_id=row["folder_id"],
            is_builtin=bool(row["is_builtin"]),
            created_at=row["created_at"],
            last_used_at=row["last_used_at"],
            use_count=row["use_count"],
            sort_order=row["sort_order"],
        )

    def add(self, snippet: Snippet) -> None:
        with storage_errors("add snippet"), self._db.transaction() as conn:
            conn.execute(
                """INSERT INTO snippets
                   (id, title, content, folder_id, is_builtin, created_at,
                    last_used_at, use_count, sort_order)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    snippet.id,
                    snippet.title,
                    snippet.content,
                    snippet.folder_id,
                    1 if snippet.is_builtin else 0,
                    snippet.created_at,
                    snippet.last_used_at,
                    snippet.use_count,
                    snippet.sort_order,
                ),
            )
        logger.debug("Saved snippet: %s", snippet.title)

    def get(self, snippet_id: str) -> Snippet | None:
        with storage_errors("get snippet"):
            row = self._db.reader().execute(
                "SELECT * FROM snippets WHERE id = ?", (snippet_id,)
            ).fetchone()
        return self._row_to_snippet(row) if row else None

    def list_snippets(self, folder_id: str | None = None, search_text: str = "") -> list[Snippet]:
        """Snippets ordered by sort_order then title.

        Args:
            folder_id: Only snippets in this folder.
            search_text: Case- and diacritic-insensitive match on title or content.
        """
        sql = "SELECT * FROM snippets"
        params: tuple[Any, ...] = ()
        if folder_id is not None:
            sql += " WHERE folder_id = ?"
            params = (folder_id,)
        sql += " ORDER BY sort_order, title, seq"
        with storage_errors("list snippets"):
            rows = self._db.reader().execute(sql, params).fetchall()
        snippets = [self._row_to_snippet(row) for row in rows]

        if search_text:
            needle = fold_query(search_text)
            snippets = [
                s for s in snippets if needle in fold(s.title) or needle in fold(s.content)
            ]
        return snippets

    def uncategorized(self) -> list[Snippet]:
        """Snippets with no folder, or whose folder no longer exists."""
        folder_ids = {folder.id for folder in self.list_folders()}
        return [s for s in self.list_snippets() if s.folder_id not in folder_ids]

    def update(self, snippet_id: str, **fields: Any) -> bool:
        """Change title, content, folder_id or sort_order. False if the id is unknown."""
        unknown = set(fields) - _SNIPPET_FIELDS
        if unknown:
            raise ValueError(f"Cannot update snippet fields: {sorted(unknown)}")
        if not fields:
            return self.get(snippet_id) is not None
        assignments = ", ".join(f"{name} = ?" for name in fields)
        with storage_errors("update snippet"), self._db.transaction() as conn:
            cur = conn.execute(
                f"UPDATE snippets SET {assignments} WHERE id = ?",
                (*fields.values(), snippet_id),
            )
        return cur.rowcount > 0

    def delete(self, snippet_id: str) -> bool:
        with storage_errors("delete snippet"), self._db.transaction() as conn:
            cur = conn.execute("DELETE FROM snippets WHERE id = ?", (snippet_id,))
        return cur.rowcount > 0

    def touch(self, snippet_id: str) -> None:
        """Record a use of the snippet. Unknown ids are ignored."""
        with storage_errors("touch snippet"), self._db.transaction() as conn:
            conn.execute(
                "UPDATE snippets SET use_count = use_count + 1, "
                "last_used_at = MAX(created_at, ?) WHERE id = ?",
                (self._clock(), snippet_id),
            )

    # --- Folders ---

    def add_folder(self, folder: SnippetFolder) -> None:
        with storage_errors("add folder"), self._db.transaction() as conn:
            conn.execute(
                """INSERT INTO snippet_folders (id, name, icon_name, sort_order, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (folder.id, folder.name, folder.icon_name, folder.sort_order, folder.created_at),
            )

    def list_folders(self) -> list[SnippetFolder]:
        with storage_errors("list folders"):
            rows = self._db.reader().execute(
                "SELECT * FROM snippet_folders ORDER BY sort_order, name, seq"
            ).fetchall()
        return [
            SnippetFolder(
                id=row["id"],
                name=row["name"],
                icon_name=row["icon_name"],
                sort_order=row["sort_order"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def rename_folder(self, folder_id: str, name: str) -> bool:
        with storage_errors("rename folder"), self._db.transaction() as conn:
            cur = conn.execute(
                "UPDATE snippet_folders SET name = ? WHERE id = ?", (name, folder_id)
            )
        return cur.rowcount > 0

    def delete_folder(self, folder_id: str) -> bool:
        """Delete a folder; its snippets become uncategorized."""
        with storage_errors("delete folder"), self._db.transaction() as conn:
            conn.execute("UPDATE snippets SET folder_id = NULL WHERE folder_id = ?", (folder_id,))
            cur = conn.execute("DELETE FROM snippet_folders WHERE id = ?", (folder_id,))
        return cur.rowcount > 0

    # --- Seeding ---

    def seed_builtins(self) -> int:
        """Add the built-in snippets unless some built-in already exists."""
        with storage_errors("seed snippets"), self._db.transaction() as conn:
            if conn.execute("SELECT COUNT(*) FROM snippets WHERE is_builtin = 1").fetchone()[0]:
                return 0
            now = self._clock()
            for index, (title, content) in enumerate(BUILTIN_SNIPPETS):
                self.add(Snippet.create(title, content, is_builtin=True, sort_order=index, now=now))
        logger.info("Seeded %d built-in snippets", len(BUILTIN_SNIPPETS))
        return len(BUILTIN_SNIPPETS)
