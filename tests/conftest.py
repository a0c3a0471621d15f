"""Shared pytest fixtures and configuration for pytest."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

from clipstash.config.schema import HistoryConfig
from clipstash.core.errors import PasteboardError
from clipstash.core.types import ContentType, PasteboardContents, Representation
from clipstash.history.store import HistoryStore
from clipstash.storage.database import Database

# 2026-10-14 12:00 local time, a Wednesday
BASE_TIME = datetime(2026, 10, 14, 12, 0).timestamp()


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for platform-specific tests."""
    config.addinivalue_line("markers", "windows: mark test to run only on Windows")
    config.addinivalue_line("markers", "unix_only: mark test to run only on Unix")


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Auto-skip tests based on platform markers."""
    skip_windows = pytest.mark.skip(reason="Windows-only test")
    skip_unix = pytest.mark.skip(reason="Unix-only test")

    for item in items:
        if "windows" in item.keywords and sys.platform != "win32":
            item.add_marker(skip_windows)
        if "unix_only" in item.keywords and sys.platform == "win32":
            item.add_marker(skip_unix)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "history.db"


@pytest.fixture
def db(db_path: Path) -> Database:
    database = Database(db_path)
    yield database
    database.close()


@pytest.fixture
def history_config() -> HistoryConfig:
    """Policy with age expiry off, so fixed timestamps never expire."""
    return HistoryConfig(retention_days=0)


@pytest.fixture
def store(db: Database, history_config: HistoryConfig, clock: FakeClock) -> HistoryStore:
    return HistoryStore(db, history_config, clock=clock)


class FakePasteboard:
    """In-memory PasteboardPort with a controllable change counter."""

    def __init__(self) -> None:
        self.count = 0
        self.contents = PasteboardContents()
        self.writes: list[tuple[ContentType, bytes]] = []
        self.fail_reads = False
        self.fail_counts = False
        # False simulates a pasteboard whose counter lags behind writes
        self.propagate_writes = True

    def put_text(
        self,
        text: str,
        source_bundle_id: str | None = None,
        source_app_name: str | None = None,
    ) -> None:
        """Simulate another application copying text."""
        self.put({Representation.TEXT: text.encode("utf-8")}, source_bundle_id, source_app_name)

    def put(
        self,
        representations: dict[Representation, bytes],
        source_bundle_id: str | None = None,
        source_app_name: str | None = None,
    ) -> None:
        self.contents = PasteboardContents(representations, source_bundle_id, source_app_name)
        self.count += 1

    def change_count(self) -> int:
        if self.fail_counts:
            raise PasteboardError("pasteboard unavailable")
        return self.count

    def read(self) -> PasteboardContents:
        if self.fail_reads:
            raise PasteboardError("pasteboard unavailable")
        return self.contents

    def write(self, content_type: ContentType, data: bytes) -> None:
        self.writes.append((content_type, data))
        self.contents = PasteboardContents({Representation.TEXT: data})
        if self.propagate_writes:
            self.count += 1


@pytest.fixture
def pasteboard() -> FakePasteboard:
    return FakePasteboard()
