"""Rich-based output utilities for the clipstash CLI."""

import sys
from datetime import datetime

from rich.console import Console
from rich.markup import escape

from clipstash.core.text import truncate
from clipstash.history.grouping import relative_time
from clipstash.history.types import ClipboardItem

# Shared console instances. soft_wrap keeps long previews on one line.
console = Console(highlight=False, emoji=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_info(message: str) -> None:
    console.print(escape(message))


def print_raw(text: str) -> None:
    """Write text to stdout exactly as given, with no added newline."""
    sys.stdout.write(text)
    sys.stdout.flush()


def format_timestamp(ts: float) -> str:
    dt = datetime.fromtimestamp(ts)
    return f"{dt:%b} {dt.day}, {dt.year} at {dt:%H:%M}"


def item_content(item: ClipboardItem, limit: int | None) -> str:
    """Text shown for an item in listings. limit=None shows everything."""
    text = item.text_content
    if text is None:
        paths = item.file_paths
        text = "\n".join(paths) if paths else item.preview
    if limit is None:
        return text
    return truncate(text, limit)


def print_item_list(items: list[ClipboardItem], *, full: bool, now: float) -> None:
    """Print items as `[i] type date [source]` headers with indented content."""
    for index, item in enumerate(items):
        type_label = item.content_type.value.ljust(6)
        source = f" [{item.source_app_name}]" if item.source_app_name else ""
        pinned = " 📌" if item.is_pinned else ""
        header = (
            f"[{index}] {type_label} {format_timestamp(item.created_at)} "
            f"({relative_time(item.created_at, now)}){source}{pinned}"
        )
        console.print(escape(header))
        console.print(escape(f"    {item_content(item, None if full else 80)}"))
        if index < len(items) - 1:
            console.print()


def print_search_results(query: str, items: list[ClipboardItem]) -> None:
    console.print(escape(f'Found {len(items)} item(s) matching "{query}":'))
    console.print()
    for index, item in enumerate(items):
        console.print(escape(f"[{index}] {format_timestamp(item.created_at)}"))
        console.print(escape(f"    {item_content(item, 100)}"))
        if index < len(items) - 1:
            console.print()
