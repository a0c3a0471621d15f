"""Time-bucketed sections for displaying history.

Everything here is pure: callers pass the item list and (optionally) the
reference time, and get display structures back. Calendar boundaries are
computed in local time.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol, TypeVar

from clipstash.core.constants import JUST_NOW_SECONDS


class Groupable(Protocol):
    created_at: float
    is_pinned: bool


T = TypeVar("T", bound=Groupable)


@dataclass
class TimeSection:
    """A named run of items for display."""

    id: str
    title: str
    items: list = field(default_factory=list)


# (id, title) in evaluation order, after the pinned section
_BUCKETS: tuple[tuple[str, str], ...] = (
    ("just_now", "Just Now"),
    ("today", "Today"),
    ("yesterday", "Yesterday"),
    ("this_week", "This Week"),
    ("this_month", "This Month"),
    ("earlier", "Earlier"),
)


def _lower_bounds(now: float, first_weekday: int) -> list[float]:
    """Lower bound timestamp of each bucket except Earlier."""
    local_now = datetime.fromtimestamp(now)
    start_of_today = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    start_of_yesterday = start_of_today - timedelta(days=1)
    days_into_week = (start_of_today.weekday() - first_weekday) % 7
    start_of_week = start_of_today - timedelta(days=days_into_week)
    start_of_month = start_of_today.replace(day=1)
    return [
        now - JUST_NOW_SECONDS,
        start_of_today.timestamp(),
        start_of_yesterday.timestamp(),
        start_of_week.timestamp(),
        start_of_month.timestamp(),
    ]


def group_by_time(
    items: Sequence[T],
    now: float | None = None,
    first_weekday: int = 0,
) -> list[TimeSection]:
    """Split items into display sections.

    Pinned items form a leading "Pinned" section in the order supplied. The
    rest go to the first bucket whose lower bound they satisfy: Just Now
    (within 5 minutes), Today, Yesterday, This Week, This Month, Earlier.
    Empty sections are omitted. Item order within a section is preserved.

    Args:
        items: Items carrying created_at and is_pinned.
        now: Reference timestamp (defaults to the current time).
        first_weekday: First day of the calendar week, 0 = Monday ... 6 = Sunday.

    Returns:
        Non-empty sections in display order.
    """
    if not 0 <= first_weekday <= 6:
        raise ValueError(f"first_weekday must be in 0..6, got {first_weekday}")
    ref = time.time() if now is None else now

    pinned = [item for item in items if item.is_pinned]
    sections: list[TimeSection] = []
    if pinned:
        sections.append(TimeSection("pinned", "Pinned", pinned))

    bounds = _lower_bounds(ref, first_weekday)
    buckets: list[list[T]] = [[] for _ in _BUCKETS]
    for item in items:
        if item.is_pinned:
            continue
        for index, bound in enumerate(bounds):
            if item.created_at >= bound:
                buckets[index].append(item)
                break
        else:
            buckets[-1].append(item)

    for (section_id, title), bucket in zip(_BUCKETS, buckets):
        if bucket:
            sections.append(TimeSection(section_id, title, bucket))
    return sections


def relative_time(ts: float, now: float | None = None) -> str:
    """Short relative timestamp such as "Just now", "5m ago" or "Yesterday".

    Anything a week old or more is shown as a date ("Oct 3, 2026").
    """
    ref = time.time() if now is None else now
    elapsed = ref - ts
    if elapsed < 60:
        return "Just now"
    if elapsed < 3600:
        return f"{int(elapsed // 60)}m ago"
    if elapsed < 86400:
        return f"{int(elapsed // 3600)}h ago"
    if elapsed < 2 * 86400:
        return "Yesterday"
    if elapsed < 7 * 86400:
        return f"{int(elapsed // 86400)}d ago"
    dt = datetime.fromtimestamp(ts)
    return f"{dt:%b} {dt.day}, {dt.year}"
