"""Utility modules for versecache."""

from .logging_factory import LoggingFactory

__all__ = ["LoggingFactory"]
