"""clipstash command-line entry point.

A thin shell over HistoryStore:
    clipstash list [--count N] [--full]
    clipstash copy TEXT
    clipstash paste [INDEX]
    clipstash search QUERY [--regex]
    clipstash watch
    clipstash pin INDEX | delete INDEX | clear [--all] | stats

Exit codes: 1 when an index does not resolve, a paste target has no text,
or a clipstash error occurs; 0 otherwise, including empty results.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from rich.markup import escape
from rich.table import Table

from clipstash.capture.monitor import CaptureMonitor
from clipstash.capture.system import SystemPasteboard
from clipstash.cli.arg_parser import parse_args
from clipstash.cli.output import (
    console,
    item_content,
    print_error,
    print_info,
    print_item_list,
    print_raw,
    print_search_results,
)
from clipstash.config.loader import load_config
from clipstash.config.schema import Config
from clipstash.core.constants import get_default_db_path, get_log_dir
from clipstash.core.errors import ClipStashError
from clipstash.core.logging_setup import configure_logging
from clipstash.core.types import ContentType
from clipstash.history.analytics import AnalyticsAggregator
from clipstash.history.query import SearchMode, SearchQuery, run_query
from clipstash.history.store import HistoryStore
from clipstash.history.types import ClipboardItem
from clipstash.rules.storage import RuleStorage

logger = logging.getLogger(__name__)


def _resolve_db_path(args: argparse.Namespace, config: Config) -> Path:
    if args.db:
        return Path(args.db).expanduser()
    if config.storage.db_path:
        return Path(config.storage.db_path)
    return get_default_db_path()


# --- Commands ---


def cmd_list(store: HistoryStore, args: argparse.Namespace) -> int:
    items = store.fetch(limit=args.count)
    if not items:
        print_info("No clipboard items found.")
        return 0
    print_item_list(items, full=args.full, now=store.now())
    return 0


def cmd_copy(store: HistoryStore, args: argparse.Namespace) -> int:
    # History only records what actually reached the clipboard
    SystemPasteboard().write(ContentType.TEXT, args.text.encode("utf-8"))
    store.add_text(args.text)
    print_info("Copied to clipboard and saved to history.")
    return 0


def cmd_paste(store: HistoryStore, args: argparse.Namespace) -> int:
    item = store.item_at(args.index)
    if item.text_content is not None:
        print_raw(item.text_content)
        return 0
    if item.file_paths is not None:
        print_raw("\n".join(item.file_paths))
        return 0
    print_error(f"Item at index {args.index} has no text content.")
    return 1


def cmd_search(store: HistoryStore, args: argparse.Namespace, config: Config) -> int:
    query = SearchQuery(
        text=args.query,
        mode=SearchMode.REGEX if args.regex else SearchMode.SUBSTRING,
        limit=config.search.max_results,
    )
    items = run_query(store, query)
    if not items:
        print_info(f'No items matching "{args.query}".')
        return 0
    print_search_results(args.query, items)
    return 0


def cmd_pin(store: HistoryStore, args: argparse.Namespace) -> int:
    item = store.item_at(args.index)
    pinned = store.toggle_pin(item.id)
    print_info(f"{'Pinned' if pinned else 'Unpinned'} item {args.index}.")
    return 0


def cmd_delete(store: HistoryStore, args: argparse.Namespace) -> int:
    item = store.item_at(args.index)
    store.delete(item.id)
    print_info(f"Deleted item {args.index}.")
    return 0


def cmd_clear(store: HistoryStore, args: argparse.Namespace) -> int:
    removed = store.clear_all(keep_pinned=not args.include_pinned)
    print_info(f"Removed {removed} item(s).")
    return 0


def cmd_stats(store: HistoryStore, args: argparse.Namespace) -> int:
    stats = AnalyticsAggregator(store)
    console.print(f"Total items:        {stats.total_items()}")
    console.print(f"Copied today:       {stats.items_today()}")
    console.print(f"Average per day:    {stats.average_copies_per_day():.1f}")

    shares = stats.content_type_distribution()
    if shares:
        table = Table(title="Content types")
        table.add_column("Type")
        table.add_column("Count", justify="right")
        table.add_column("Share", justify="right")
        for share in shares:
            table.add_row(share.content_type.display_name, str(share.count), f"{share.percentage:.1f}%")
        console.print(table)

    apps = stats.top_source_apps(limit=5)
    if apps:
        table = Table(title="Top source apps")
        table.add_column("App")
        table.add_column("Count", justify="right")
        for app in apps:
            table.add_row(escape(app.app_name), str(app.count))
        console.print(table)
    return 0


class _ConsoleNotifier:
    """Prints each captured item while watching."""

    def notify_new_item(self, item: ClipboardItem) -> None:
        console.print(escape(f"+ {item.content_type.value}: {item_content(item, 80)}"))


async def _watch(store: HistoryStore, config: Config) -> None:
    rules = RuleStorage(store.db)
    rules.seed_defaults()
    monitor = CaptureMonitor(
        SystemPasteboard(),
        store,
        config.capture,
        rules=rules.enabled_rules,
        notifier=_ConsoleNotifier(),
        on_error=lambda e: print_error(e.message),
    )
    await monitor.run()


def cmd_watch(store: HistoryStore, args: argparse.Namespace, config: Config) -> int:
    log_dir = Path(config.logging.log_dir) if config.logging.log_dir else get_log_dir()
    log_file = configure_logging(
        log_dir,
        level=config.logging.level_value(),
        console_level=logging.DEBUG if args.verbose else config.logging.console_level_value(),
    )
    print_info(f"Watching the clipboard (log: {log_file}). Press Ctrl+C to stop.")
    try:
        asyncio.run(_watch(store, config))
    except KeyboardInterrupt:
        print_info("Stopped.")
    return 0


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command. Returns the process exit code."""
    config = load_config(Path(args.config) if args.config else None)
    if args.verbose and args.command != "watch":
        configure_logging(None, console_level=logging.DEBUG)

    store = HistoryStore.open(_resolve_db_path(args, config), config.history)
    try:
        if args.command == "list":
            return cmd_list(store, args)
        if args.command == "copy":
            return cmd_copy(store, args)
        if args.command == "paste":
            return cmd_paste(store, args)
        if args.command == "search":
            return cmd_search(store, args, config)
        if args.command == "watch":
            return cmd_watch(store, args, config)
        if args.command == "pin":
            return cmd_pin(store, args)
        if args.command == "delete":
            return cmd_delete(store, args)
        if args.command == "clear":
            return cmd_clear(store, args)
        if args.command == "stats":
            return cmd_stats(store, args)
        raise ValueError(f"Unknown command: {args.command}")
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        return run(args)
    except ClipStashError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print_error(e.message)
        return 1
