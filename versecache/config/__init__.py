"""Simplified configuration management using environment variables."""
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from .validation import CacheConfigModel

logger = logging.getLogger(__name__)


def _load_environment() -> None:
    """Load the first .env file found, without overriding the environment."""
    env_paths = [Path(".env"), Path("../.env"), Path.home() / ".env"]

    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path, override=False)
            logger.debug(f"Loaded environment from {env_path}")
            break


def _parse_bool(value: str | bool | None) -> bool:
    """Parse boolean value from various formats."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on", "enabled")
    return bool(value)


def _getenv(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


def _getenv_int(key: str, default: int) -> int:
    """Get integer environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Parsed integer value

    Raises:
        ValueError: If value cannot be parsed as integer
    """
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid integer value for {key}='{value}'. "
            f"Expected integer, got: {value}"
        ) from e


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # ========== Paths ==========
    cache_dir: Path = field(default_factory=lambda: Path(_getenv("CACHE_DIR", "./cache")))
    log_dir: Path = field(default_factory=lambda: Path(_getenv("LOG_DIR", "./logs")))

    # ========== Store ==========
    store_backend: str = field(default_factory=lambda: _getenv("STORE_BACKEND", "sqlite").lower())
    store_db_name: str = field(default_factory=lambda: _getenv("STORE_DB_NAME", "store.db"))
    store_quota_bytes: int = field(default_factory=lambda: _getenv_int("STORE_QUOTA_BYTES", 5 * 1024 * 1024))

    # ========== Caching ==========
    verse_cache_capacity: int = field(default_factory=lambda: _getenv_int("VERSE_CACHE_CAPACITY", 500))
    audio_cache_default_ttl: int = field(default_factory=lambda: _getenv_int("AUDIO_CACHE_DEFAULT_TTL", 86400))
    sweep_on_start: bool = field(default_factory=lambda: _parse_bool(_getenv("SWEEP_ON_START", "true")))

    # ========== Logging ==========
    log_level: str = field(default_factory=lambda: _getenv("LOG_LEVEL", "INFO").upper())
    log_format: str = field(
        default_factory=lambda: _getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}

    def validate(self) -> "Config":
        """Validate configuration values.

        Returns:
            self, for chaining

        Raises:
            ValueError: If any value is out of range
        """
        try:
            CacheConfigModel(**self.to_dict())
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e
        return self


# Singleton instance with thread-safe initialization
_config_instance: Optional[Config] = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get global config instance (singleton pattern, thread-safe)."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            # Double-check pattern to prevent race conditions
            if _config_instance is None:
                _load_environment()
                _config_instance = Config().validate()
    return _config_instance


def reset_config() -> None:
    """Drop the global config so the next get_config() re-reads the environment."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = ["Config", "get_config", "reset_config"]
