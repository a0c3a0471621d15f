"""SQLite database shared by the history, rule and snippet stores."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from clipstash.core.errors import StorageError
from clipstash.core.secure_io import secure_mkdir, secure_touch

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS items (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    content_type TEXT NOT NULL,
    text_content TEXT,
    file_paths TEXT,
    content_hash TEXT NOT NULL,
    search_key TEXT NOT NULL DEFAULT '',
    source_bundle_id TEXT,
    source_app_name TEXT,
    created_at REAL NOT NULL,
    last_used_at REAL NOT NULL,
    use_count INTEGER NOT NULL DEFAULT 0,
    is_pinned INTEGER NOT NULL DEFAULT 0,
    pinned_order INTEGER NOT NULL DEFAULT 0,
    character_count INTEGER,
    sensitive_types TEXT,
    is_masked INTEGER NOT NULL DEFAULT 0,
    summary TEXT,
    ocr_text TEXT,
    detected_language TEXT,
    is_markdown INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_items_created ON items(created_at, seq);
CREATE INDEX IF NOT EXISTS idx_items_pinned ON items(is_pinned, created_at);

-- Large binary fields live apart from item metadata so listing stays cheap
CREATE TABLE IF NOT EXISTS item_blobs (
    item_id TEXT NOT NULL,
    kind TEXT NOT NULL,
    data BLOB NOT NULL,
    PRIMARY KEY (item_id, kind),
    FOREIGN KEY (item_id) REFERENCES items(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS rules (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    enabled INTEGER NOT NULL DEFAULT 1,
    source_bundle_id TEXT,
    source_app_name TEXT,
    content_type TEXT,
    transform TEXT NOT NULL,
    pattern TEXT,
    replacement TEXT,
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS snippet_folders (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    icon_name TEXT NOT NULL DEFAULT 'folder',
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at REAL NOT NULL
);

-- folder_id is deliberately not a foreign key: a dangling reference is allowed
CREATE TABLE IF NOT EXISTS snippets (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    folder_id TEXT,
    is_builtin INTEGER NOT NULL DEFAULT 0,
    created_at REAL NOT NULL,
    last_used_at REAL NOT NULL,
    use_count INTEGER NOT NULL DEFAULT 0,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise sqlite3 failures inside the block as StorageError."""
    try:
        yield
    except sqlite3.Error as e:
        raise StorageError(operation, str(e)) from e


class Database:
    """One clipstash SQLite file.

    Writes go through a single writer connection guarded by a re-entrant
    lock (`transaction()`), so read-then-write sequences never interleave.
    Reads use one connection per thread (`reader()`); with WAL journaling a
    reader sees only committed transactions and does not block the writer.
    """

    def __init__(self, db_path: Path) -> None:
        """Open (creating if needed) the database at db_path.

        The file is created owner-only inside an owner-only directory.
        """
        self._db_path = db_path
        self._write_lock = threading.RLock()
        self._writer: sqlite3.Connection | None = None
        self._local = threading.local()
        self._readers: list[sqlite3.Connection] = []
        self._readers_lock = threading.Lock()
        self._ensure_db()

    @property
    def path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False, timeout=5.0)
        conn.row_factory = sqlite3.Row
        # Needed for ON DELETE CASCADE on item_blobs
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_db(self) -> None:
        if not self._db_path.parent.exists():
            secure_mkdir(self._db_path.parent)
        secure_touch(self._db_path)

        self._writer = self._connect()
        self._writer.execute("PRAGMA journal_mode=WAL")
        self._writer.executescript(SCHEMA_SQL)

        row = self._writer.execute(
            "SELECT value FROM metadata WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            self._writer.execute(
                "INSERT INTO metadata (key, value) VALUES (?, ?)",
                ("schema_version", str(SCHEMA_VERSION)),
            )
            self._writer.commit()
        logger.debug("Opened database %s", self._db_path)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the writer lock for one transaction.

        Commits on normal exit and rolls back on any exception, so other
        connections never observe a partial write. Nested use on the same
        thread joins the outer transaction.
        """
        with self._write_lock:
            conn = self._writer
            if conn is None:
                raise sqlite3.ProgrammingError("Database is closed")
            depth = getattr(self._local, "tx_depth", 0)
            self._local.tx_depth = depth + 1
            try:
                yield conn
                if depth == 0:
                    conn.commit()
            except BaseException:
                if depth == 0:
                    conn.rollback()
                raise
            finally:
                self._local.tx_depth = depth

    def reader(self) -> sqlite3.Connection:
        """Connection for reads on the calling thread.

        Inside transaction() on the same thread the writer connection is
        returned instead, so a mutation can read its own uncommitted rows.
        """
        if getattr(self._local, "tx_depth", 0) > 0:
            assert self._writer is not None
            return self._writer
        conn: sqlite3.Connection | None = getattr(self._local, "reader", None)
        if conn is None:
            if self._writer is None:
                raise sqlite3.ProgrammingError("Database is closed")
            conn = self._connect()
            # Autocommit: each SELECT sees the latest committed snapshot
            conn.isolation_level = None
            self._local.reader = conn
            with self._readers_lock:
                self._readers.append(conn)
        return conn

    def get_metadata(self, key: str) -> str | None:
        row = self.reader().execute(
            "SELECT value FROM metadata WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_metadata(self, key: str, value: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                (key, value),
            )

    def close(self) -> None:
        """Close the writer and every reader connection."""
        with self._readers_lock:
            for conn in self._readers:
                conn.close()
            self._readers.clear()
        self._local = threading.local()
        with self._write_lock:
            if self._writer is not None:
                self._writer.close()
                self._writer = None
