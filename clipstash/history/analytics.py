"""Read-only usage statistics over the clipboard history."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from clipstash.core.types import ContentType
from clipstash.history.store import HistoryStore
from clipstash.history.types import ClipboardItem

logger = logging.getLogger(__name__)

UNKNOWN_APP = "Unknown"


@dataclass(frozen=True)
class DailyCount:
    day: date
    count: int


@dataclass(frozen=True)
class ContentTypeShare:
    content_type: ContentType
    count: int
    percentage: float


@dataclass(frozen=True)
class AppUsage:
    app_name: str
    bundle_id: str | None
    count: int


@dataclass(frozen=True)
class HourlyCount:
    hour: int
    count: int


class AnalyticsAggregator:
    """Aggregate queries over a HistoryStore.

    Never mutates the store. Day and hour boundaries use local time, and the
    store's clock is the reference for "today".
    """

    def __init__(self, store: HistoryStore) -> None:
        self._store = store

    def _today(self) -> date:
        return datetime.fromtimestamp(self._store.now()).date()

    def copies_per_day(self, last_days: int = 30) -> list[DailyCount]:
        """Items created per day from last_days ago through today, oldest first.

        Days without captures are present with a zero count.
        """
        if last_days < 0:
            raise ValueError(f"last_days must be >= 0, got {last_days}")
        today = self._today()
        start = today - timedelta(days=last_days)

        per_day: Counter[date] = Counter()
        for row in self._store.usage_rows():
            day = datetime.fromtimestamp(row.created_at).date()
            if start <= day <= today:
                per_day[day] += 1

        return [
            DailyCount(start + timedelta(days=offset), per_day[start + timedelta(days=offset)])
            for offset in range(last_days + 1)
        ]

    def content_type_distribution(self) -> list[ContentTypeShare]:
        """Count and percentage of each content type present, most common first."""
        counts = Counter(row.content_type for row in self._store.usage_rows())
        total = sum(counts.values())
        if not total:
            return []
        return [
            ContentTypeShare(content_type, count, count / total * 100)
            for content_type, count in counts.most_common()
        ]

    def peak_usage_hours(self) -> list[HourlyCount]:
        """Captures per local hour of day; always 24 entries."""
        counts = Counter(
            datetime.fromtimestamp(row.created_at).hour for row in self._store.usage_rows()
        )
        return [HourlyCount(hour, counts[hour]) for hour in range(24)]

    def top_source_apps(self, limit: int = 10) -> list[AppUsage]:
        """Source applications by capture count. Items without one count as "Unknown"."""
        counts: Counter[str] = Counter()
        bundle_ids: dict[str, str | None] = {}
        for row in self._store.usage_rows():
            name = row.source_app_name or UNKNOWN_APP
            counts[name] += 1
            # most recent bundle id wins, rows arrive oldest first
            bundle_ids[name] = row.source_bundle_id
        return [AppUsage(name, bundle_ids[name], count) for name, count in counts.most_common(limit)]

    def most_reused_items(self, limit: int = 10) -> list[ClipboardItem]:
        """Items with use_count > 0, most used first."""
        rows = [row for row in self._store.usage_rows() if row.use_count > 0]
        rows.sort(key=lambda row: row.use_count, reverse=True)
        items: list[ClipboardItem] = []
        for row in rows[:limit]:
            item = self._store.get(row.id, with_blobs=False)
            if item is not None:
                items.append(item)
        return items

    def total_items(self) -> int:
        return self._store.count()

    def items_today(self) -> int:
        today = self._today()
        return sum(
            1
            for row in self._store.usage_rows()
            if datetime.fromtimestamp(row.created_at).date() == today
        )

    def average_copies_per_day(self, last_days: int = 30) -> float:
        daily = self.copies_per_day(last_days)
        if not daily:
            return 0.0
        return sum(entry.count for entry in daily) / len(daily)
