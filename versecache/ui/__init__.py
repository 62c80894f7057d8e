"""Console output for the diagnostics CLI."""

from .console import ConsoleManager

__all__ = ["ConsoleManager"]
