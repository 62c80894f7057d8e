"""Diagnostics CLI for the verse and audio caches.

Inspects and maintains the persistent caches of a versecache installation:
occupancy statistics, startup-style sweeping of expired audio URLs, clearing,
and read-only lookups.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from . import __version__
from .cache.records import GroupKey, StoreStatus
from .cache.session import CacheSession, open_session
from .cache.store import StoreError
from .config import Config, get_config
from .ui.console import ConsoleManager
from .utils.logging_factory import LoggingFactory

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="versecache",
        description="Inspect and maintain the scripture text and audio URL caches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Show cache occupancy
  versecache stats

  # Remove expired audio URLs
  versecache sweep

  # Show the cached verses of a chapter
  versecache lookup verses KJV Genesis 1

  # Drop every cached verse
  versecache clear --verses
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-output",
        action="store_true",
        help="Emit machine-readable JSON on stdout",
    )
    parser.add_argument(
        "--log-to-file",
        action="store_true",
        help="Also write logs to versecache.log under $LOG_DIR",
    )
    parser.add_argument("--cache-dir", help="Store directory (default: $CACHE_DIR or ./cache)")
    parser.add_argument(
        "--backend",
        choices=["sqlite", "memory"],
        help="Store backend (default: $STORE_BACKEND or sqlite)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    subparsers.add_parser("stats", help="Show cache occupancy statistics")
    subparsers.add_parser("sweep", help="Remove expired audio URLs")

    clear_parser = subparsers.add_parser("clear", help="Clear cached data")
    clear_parser.add_argument("--verses", action="store_true", help="Only clear the verse cache")
    clear_parser.add_argument("--audio", action="store_true", help="Only clear the audio cache")

    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Look up a cached chapter",
        description="Look up a chapter without fetching it (verse lookups refresh recency)",
    )
    lookup_parser.add_argument("kind", choices=["verses", "audio"], help="Which cache to query")
    lookup_parser.add_argument("version", help="Translation tag, e.g. KJV")
    lookup_parser.add_argument("book", help="Book identifier, e.g. Genesis")
    lookup_parser.add_argument("chapter", type=int, help="Chapter number")

    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Apply command line overrides on top of the environment configuration."""
    config = get_config()
    overrides = {}
    if args.cache_dir:
        overrides["cache_dir"] = Path(args.cache_dir)
    if args.backend:
        overrides["store_backend"] = args.backend
    return replace(config, **overrides).validate() if overrides else config


def stats_command(session: CacheSession, console: ConsoleManager) -> int:
    stats = session.stats.collect()
    console.print_stats(stats)
    return 0


def sweep_command(session: CacheSession, console: ConsoleManager) -> int:
    removed = session.audio.sweep_expired()
    console.print_status("sweep", session.audio.last_status, f"{removed} expired URL(s) removed")
    return 0 if session.audio.last_status is not StoreStatus.WRITE_FAILED else 1


def clear_command(args: argparse.Namespace, session: CacheSession, console: ConsoleManager) -> int:
    # Neither flag means both caches
    clear_all = not args.verses and not args.audio
    statuses = []
    if args.verses or clear_all:
        statuses.append(session.verses.clear())
        console.print_status("clear verses", statuses[-1])
    if args.audio or clear_all:
        statuses.append(session.audio.clear())
        console.print_status("clear audio", statuses[-1])
    return 0 if all(status is StoreStatus.OK for status in statuses) else 1


def lookup_command(args: argparse.Namespace, session: CacheSession, console: ConsoleManager) -> int:
    group = str(GroupKey(args.version, args.book, args.chapter))
    if args.kind == "verses":
        console.print_verses(group, session.verses.lookup_group(args.version, args.book, args.chapter))
    else:
        console.print_audio(group, session.audio.lookup(args.version, args.book, args.chapter))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    LoggingFactory.configure_verbose(args.verbose)
    console = ConsoleManager(verbose=args.verbose, json_output=args.json_output)
    console.setup_logging(logging.getLogger("versecache"))

    try:
        config = build_config(args)
    except ValueError as e:
        logger.error(str(e))
        return 2

    if args.log_to_file:
        # The console handler is already attached to the package logger
        LoggingFactory.initialize_from_config(config, stream=False)

    # Sweeping happens explicitly in the sweep command
    try:
        session = open_session(config, sweep=False)
    except (OSError, StoreError) as e:
        logger.error(f"Cannot open cache store: {e}")
        return 2

    try:
        if args.command == "stats":
            return stats_command(session, console)
        elif args.command == "sweep":
            return sweep_command(session, console)
        elif args.command == "clear":
            return clear_command(args, session, console)
        elif args.command == "lookup":
            return lookup_command(args, session, console)
        else:
            parser.print_help()
            return 1
    except ValueError as e:
        logger.error(f"Invalid cache key: {e}")
        return 2
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user")
        return 1
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
