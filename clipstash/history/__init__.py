"""Clipboard history: items, persistence, search, grouping and statistics."""

from clipstash.history.analytics import (
    AnalyticsAggregator,
    AppUsage,
    ContentTypeShare,
    DailyCount,
    HourlyCount,
)
from clipstash.history.grouping import TimeSection, group_by_time, relative_time
from clipstash.history.query import HistoryBrowser, SearchMode, SearchQuery, run_query
from clipstash.history.store import HistoryStore
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

__all__ = [
    "AnalyticsAggregator",
    "AppUsage",
    "ClipboardItem",
    "ContentTypeShare",
    "DailyCount",
    "DerivedFields",
    "FilePayload",
    "HistoryBrowser",
    "HistoryStore",
    "HourlyCount",
    "ImagePayload",
    "LinkPayload",
    "Payload",
    "RichTextPayload",
    "SearchMode",
    "SearchQuery",
    "TextPayload",
    "TimeSection",
    "group_by_time",
    "relative_time",
]
