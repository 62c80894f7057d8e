"""Console management with Rich integration.

This module provides a ConsoleManager that adapts diagnostics output to:
- Rich-rendered tables and panels for interactive use
- JSON-only output for machine-readable consumers (scripts, CI)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..cache.records import StoreStatus, Verse
from ..cache.stats import CacheStats


class ConsoleManager:
    """Manages console output with Rich integration."""

    def __init__(self, verbose: bool = False, json_output: bool = False, console: Optional[Console] = None):
        self.verbose = verbose
        self.json_output = json_output
        self.console = console or Console(stderr=True)

    def setup_logging(self, logger: logging.Logger) -> None:
        """Configure logging with Rich handler or JSON/plain formatter.

        Adds a handler and sets logger level based on `verbose`.
        """

        # Prevent duplicate handlers if called multiple times
        def _has_handler_of_type(h_type):
            return any(isinstance(h, h_type) for h in logger.handlers)

        if self.json_output:
            if not _has_handler_of_type(logging.StreamHandler):
                handler = logging.StreamHandler(sys.stderr)
                handler.setFormatter(logging.Formatter("%(message)s"))
                logger.addHandler(handler)
        else:
            if not _has_handler_of_type(RichHandler):
                handler = RichHandler(
                    console=self.console,
                    show_time=True,
                    show_path=self.verbose,
                    rich_tracebacks=True,
                )
                logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

    def print_stats(self, stats: CacheStats) -> None:
        """Print cache occupancy as a table, or as JSON on stdout."""
        if self.json_output:
            self._print_json({"type": "stats", "stats": stats.to_dict()})
            return

        table = Table(title="Cache Statistics")
        table.add_column("Cache", style="cyan")
        table.add_column("Metric")
        table.add_column("Value", style="green", justify="right")

        table.add_row("verses", "used", stats.usage)
        table.add_row("verses", "percentage", f"{stats.percentage_used:.1f}%")
        table.add_row("audio", "groups", str(stats.audio_group_count))
        table.add_row(
            "audio",
            "expired",
            str(stats.audio_expired_count),
            style="yellow" if stats.audio_expired_count else None,
        )
        self.console.print(table)

    def print_verses(self, group: str, verses: Optional[Sequence[Verse]]) -> None:
        """Print the cached verses of a chapter, or a miss notice."""
        if self.json_output:
            payload = None if verses is None else [verse.to_dict() for verse in verses]
            self._print_json({"type": "verses", "group": group, "verses": payload})
            return

        if verses is None:
            self.console.print(f"[yellow]{group}: not cached[/yellow]")
            return

        table = Table(title=group)
        table.add_column("Verse", style="cyan", justify="right")
        table.add_column("Text")
        for verse in verses:
            table.add_row(str(verse.verse), verse.text)
        self.console.print(table)

    def print_audio(self, group: str, audio_url: Optional[str]) -> None:
        """Print the cached audio URL of a chapter, or a miss notice."""
        if self.json_output:
            self._print_json({"type": "audio", "group": group, "audio_url": audio_url})
        elif audio_url is None:
            self.console.print(f"[yellow]{group}: not cached or expired[/yellow]")
        else:
            self.console.print(f"{group}: {audio_url}")

    def print_status(self, action: str, status: StoreStatus, detail: str = "") -> None:
        """Print the outcome of a cache maintenance action."""
        if self.json_output:
            self._print_json({"type": "status", "action": action, "status": status.value, "detail": detail})
            return

        color = {
            StoreStatus.OK: "green",
            StoreStatus.READ_FAILED: "yellow",
            StoreStatus.WRITE_FAILED: "red",
        }[status]
        message = f"[bold]{action}[/bold]: {status.value}"
        if detail:
            message = f"{message} ({detail})"
        self.console.print(Panel(message, style=color, padding=(0, 1)))

    def _print_json(self, payload: dict[str, Any]) -> None:
        payload = {"timestamp": self._get_timestamp(), **payload}
        print(json.dumps(payload, ensure_ascii=False))

    def _get_timestamp(self) -> str:
        """Get ISO timestamp for JSON output."""
        return datetime.now().isoformat()
