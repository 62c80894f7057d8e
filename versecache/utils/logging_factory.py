"""Process-wide logging setup for versecache.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the application embedding the caches (or by the
diagnostics CLI):

- a file handler writing ``versecache.log`` under ``LOG_DIR``
- optionally a plain stream handler, for embedders without their own console
  handler (the CLI installs a RichHandler instead)

Usage:
    LoggingFactory.initialize_from_config(get_config())
    LoggingFactory.configure_verbose(args.verbose)
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ..config import Config

PACKAGE_LOGGER = "versecache"
CACHE_LOGGER = "versecache.cache"
LOG_FILE_NAME = "versecache.log"


class LoggingFactory:
    """Installs the root handlers for the cache logs, at most once.

    Class Attributes:
        _initialized: Whether handlers have been installed
        _log_dir: Directory holding versecache.log
    """

    _initialized = False
    _log_dir = Path("logs")

    @classmethod
    def initialize(
        cls,
        log_dir: Optional[Path] = None,
        level: int = logging.INFO,
        format_string: Optional[str] = None,
        stream: bool = True,
    ) -> None:
        """Configure the root logger for cache logging. Later calls are ignored.

        Args:
            log_dir: Directory for versecache.log (default: ./logs)
            level: Root logging level
            format_string: Record format (default: time - name - level - message)
            stream: Also log to stderr. Pass False when a console handler is
                already attached to the package logger, to avoid printing
                every record twice.
        """
        if cls._initialized:
            return

        if log_dir:
            cls._log_dir = log_dir
        cls._log_dir.mkdir(parents=True, exist_ok=True)

        if format_string is None:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

        handlers: List[logging.Handler] = [logging.FileHandler(cls._log_dir / LOG_FILE_NAME)]
        if stream:
            handlers.append(logging.StreamHandler())
        logging.basicConfig(level=level, format=format_string, handlers=handlers)

        # Evictions, sweeps and store failures must reach the log file
        logging.getLogger(CACHE_LOGGER).setLevel(min(level, logging.INFO))

        cls._initialized = True

    @classmethod
    def initialize_from_config(cls, config: Config, stream: bool = True) -> None:
        """Initialize from the LOG_DIR / LOG_LEVEL / LOG_FORMAT settings."""
        cls.initialize(
            log_dir=config.log_dir,
            level=getattr(logging, config.log_level, logging.INFO),
            format_string=config.log_format,
            stream=stream,
        )

    @classmethod
    def configure_verbose(cls, verbose: bool = False) -> None:
        """Switch the root and package loggers between DEBUG and INFO.

        Cache hits and misses are logged at DEBUG, so verbose mode shows them.
        """
        level = logging.DEBUG if verbose else logging.INFO

        logging.getLogger().setLevel(level)
        logging.getLogger(PACKAGE_LOGGER).setLevel(level)
        logging.getLogger(CACHE_LOGGER).setLevel(level)
