"""Configuration validation schemas."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.types import PositiveInt

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("sqlite", "memory")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CacheConfigModel(BaseModel):
    """Cache and store configuration model."""

    cache_dir: Path = Field(Path("./cache"), description="Directory holding the SQLite store")
    log_dir: Path = Field(Path("./logs"), description="Directory for log files")
    store_backend: str = Field("sqlite", description="Store backend: sqlite or memory")
    store_db_name: str = Field("store.db", description="SQLite database file name")
    store_quota_bytes: Optional[PositiveInt] = Field(None, description="Quota of the memory store")
    verse_cache_capacity: PositiveInt = Field(500, description="Maximum cached verses")
    audio_cache_default_ttl: PositiveInt = Field(86400, description="Audio URL lifetime without Expires")
    sweep_on_start: bool = Field(True, description="Sweep expired audio URLs at startup")
    log_level: str = Field("INFO", description="Root logging level")
    log_format: str = Field("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    @field_validator("store_backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Ensure the backend is known."""
        if v not in STORE_BACKENDS:
            raise ValueError(f"store_backend must be one of {STORE_BACKENDS}, got {v!r}")
        return v

    @field_validator("store_db_name")
    @classmethod
    def validate_db_name(cls, v: str) -> str:
        """Ensure the database name is a bare file name."""
        if not v or Path(v).name != v:
            raise ValueError(f"store_db_name must be a file name, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {v!r}")
        return v

    @field_validator("verse_cache_capacity")
    @classmethod
    def validate_capacity(cls, v: int) -> int:
        if v > 500:
            logger.warning(f"Verse cache capacity {v} exceeds the licensed limit of 500 verses")
        return v
