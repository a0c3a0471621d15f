"""Tests for clipstash.storage.database."""

import sqlite3
import stat
import threading
from pathlib import Path

import pytest

from clipstash.core.errors import StorageError
from clipstash.storage.database import SCHEMA_VERSION, Database, storage_errors


def insert_meta(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute("INSERT INTO metadata (key, value) VALUES (?, ?)", (key, value))


class TestDatabaseCreation:
    def test_creates_missing_directories(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "history.db"
        db = Database(path)
        try:
            assert path.is_file()
            assert db.path == path
        finally:
            db.close()

    @pytest.mark.unix_only
    def test_file_is_owner_only(self, db: Database) -> None:
        mode = stat.S_IMODE(db.path.stat().st_mode)
        assert mode == 0o600

    @pytest.mark.unix_only
    def test_existing_parent_permissions_untouched(self, tmp_path: Path) -> None:
        tmp_path.chmod(0o755)
        db = Database(tmp_path / "history.db")
        db.close()

        assert stat.S_IMODE(tmp_path.stat().st_mode) == 0o755

    def test_schema_version_recorded(self, db: Database) -> None:
        assert db.get_metadata("schema_version") == str(SCHEMA_VERSION)

    def test_reopen_keeps_data(self, db_path: Path) -> None:
        first = Database(db_path)
        first.set_metadata("marker", "kept")
        first.close()

        second = Database(db_path)
        try:
            assert second.get_metadata("marker") == "kept"
            assert second.get_metadata("schema_version") == str(SCHEMA_VERSION)
        finally:
            second.close()


class TestTransactions:
    def test_commit_on_success(self, db: Database) -> None:
        with db.transaction() as conn:
            insert_meta(conn, "k", "v")

        assert db.get_metadata("k") == "v"

    def test_rollback_on_exception(self, db: Database) -> None:
        with pytest.raises(RuntimeError):
            with db.transaction() as conn:
                insert_meta(conn, "k", "v")
                raise RuntimeError("abort")

        assert db.get_metadata("k") is None

    def test_nested_transaction_joins_outer(self, db: Database) -> None:
        with pytest.raises(RuntimeError):
            with db.transaction() as outer:
                insert_meta(outer, "outer", "1")
                with db.transaction() as inner:
                    assert inner is outer
                    insert_meta(inner, "inner", "1")
                raise RuntimeError("abort")

        # The inner block did not commit on its own
        assert db.get_metadata("outer") is None
        assert db.get_metadata("inner") is None

    def test_reader_inside_transaction_sees_own_writes(self, db: Database) -> None:
        with db.transaction() as conn:
            insert_meta(conn, "k", "pending")
            assert db.get_metadata("k") == "pending"

    def test_other_thread_sees_only_committed_data(self, db: Database) -> None:
        seen: list[str | None] = []

        def read() -> None:
            seen.append(db.get_metadata("k"))

        with db.transaction() as conn:
            insert_meta(conn, "k", "v")
            worker = threading.Thread(target=read)
            worker.start()
            worker.join()

        worker = threading.Thread(target=read)
        worker.start()
        worker.join()

        assert seen == [None, "v"]

    def test_closed_database_refuses_work(self, db_path: Path) -> None:
        db = Database(db_path)
        db.close()

        with pytest.raises(sqlite3.ProgrammingError):
            with db.transaction():
                pass
        with pytest.raises(sqlite3.ProgrammingError):
            db.reader()


class TestStorageErrors:
    def test_sqlite_error_translated(self) -> None:
        with pytest.raises(StorageError) as exc_info:
            with storage_errors("fetch"):
                raise sqlite3.OperationalError("disk I/O error")

        assert exc_info.value.operation == "fetch"
        assert exc_info.value.reason == "disk I/O error"
        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)

    def test_other_errors_pass_through(self) -> None:
        with pytest.raises(KeyError):
            with storage_errors("fetch"):
                raise KeyError("x")
