"""Argument parsing for the clipstash CLI."""

import argparse
import sys


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def add_index_arg(parser: argparse.ArgumentParser, default: int | None = None) -> None:
    """Add the positional history index argument (0 = most recent)."""
    if default is None:
        parser.add_argument("index", type=int, help="History index (0 = most recent)")
    else:
        parser.add_argument(
            "index",
            type=int,
            nargs="?",
            default=default,
            help=f"History index (0 = most recent, default: {default})",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipstash",
        description="Clipboard history from the terminal.",
    )
    parser.add_argument(
        "--db",
        metavar="PATH",
        help="History database (default: storage.db_path from config, else ~/.clipstash/history.db)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Use this config file instead of the layered ~/.clipstash and ./.clipstash configs",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug output to stderr",
    )

    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List recent clipboard items")
    list_parser.add_argument(
        "--count", "-c",
        type=_non_negative,
        default=10,
        help="Number of items to show (default: 10)",
    )
    list_parser.add_argument(
        "--full", "-f",
        action="store_true",
        help="Show full content instead of a truncated preview",
    )

    copy_parser = subparsers.add_parser("copy", help="Add text to history and the clipboard")
    copy_parser.add_argument("text", help="The text to copy")

    paste_parser = subparsers.add_parser("paste", help="Print a history item to stdout")
    add_index_arg(paste_parser, default=0)

    search_parser = subparsers.add_parser("search", help="Search clipboard history")
    search_parser.add_argument("query", help="Search text")
    search_parser.add_argument(
        "--regex", "-r",
        action="store_true",
        help="Treat the query as a case-insensitive regular expression",
    )

    subparsers.add_parser("watch", help="Record clipboard changes until interrupted")

    pin_parser = subparsers.add_parser("pin", help="Pin or unpin a history item")
    add_index_arg(pin_parser)

    delete_parser = subparsers.add_parser("delete", help="Delete a history item")
    add_index_arg(delete_parser)

    clear_parser = subparsers.add_parser("clear", help="Delete history items")
    clear_parser.add_argument(
        "--all", "-a",
        dest="include_pinned",
        action="store_true",
        help="Also delete pinned items",
    )

    subparsers.add_parser("stats", help="Show usage statistics")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments. With no subcommand, defaults to `list`."""
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args([*argv, "list"])
    return args
