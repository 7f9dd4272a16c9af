"""
config.py — pydantic-settings Settings class and the CacheOptions record.

Environment variables for durable-cache are declared on ``Settings``; the
options a single CacheStore runs with live on ``CacheOptions``.

Usage:
    from durable_cache.config import CacheOptions, settings

    options = CacheOptions.from_settings(settings)
    options = CacheOptions(default_ttl=30, collection_name="sessions")
    faster = options.with_overrides(sweep_interval=5, start_sweep=True)
"""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TTL = timedelta(minutes=1)
DEFAULT_COLLECTION_NAME = "cache_entries"
DEFAULT_SWEEP_INTERVAL = timedelta(minutes=1)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Cache behaviour
    # -------------------------------------------------------------------------
    cache_default_ttl_seconds: float = Field(default=DEFAULT_TTL.total_seconds())
    cache_collection_name: str = Field(default=DEFAULT_COLLECTION_NAME)
    cache_sweep_interval_seconds: float = Field(
        default=DEFAULT_SWEEP_INTERVAL.total_seconds()
    )
    cache_start_sweep: bool = Field(default=False)

    # -------------------------------------------------------------------------
    # Backend
    # -------------------------------------------------------------------------
    cache_backend: Literal["duckdb", "supabase", "memory"] = Field(default="duckdb")
    duckdb_path: str = Field(default="./data/cache.duckdb")
    supabase_url: str = Field(default="http://localhost:54321")
    supabase_service_key: str = Field(default="")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    @field_validator("supabase_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v


class CacheOptions(BaseModel):
    """
    Validated, immutable configuration for one CacheStore.

    Durations accept a ``timedelta`` or a number of seconds. The default TTL
    and the sweep interval must be strictly positive.
    """

    model_config = ConfigDict(frozen=True)

    default_ttl: timedelta = DEFAULT_TTL
    collection_name: str = DEFAULT_COLLECTION_NAME
    sweep_interval: timedelta = DEFAULT_SWEEP_INTERVAL
    start_sweep: bool = False

    @field_validator("default_ttl", "sweep_interval")
    @classmethod
    def must_be_positive(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("must be a positive duration")
        return v

    @field_validator("collection_name")
    @classmethod
    def must_be_identifier(cls, v: str) -> str:
        if not _IDENTIFIER_RE.match(v):
            raise ValueError(f"{v!r} is not a valid collection name")
        return v

    @classmethod
    def from_settings(cls, source: Settings) -> "CacheOptions":
        return cls(
            default_ttl=timedelta(seconds=source.cache_default_ttl_seconds),
            collection_name=source.cache_collection_name,
            sweep_interval=timedelta(seconds=source.cache_sweep_interval_seconds),
            start_sweep=source.cache_start_sweep,
        )

    def with_overrides(self, **changes: Any) -> "CacheOptions":
        """Return a re-validated copy with the given fields replaced."""
        return type(self).model_validate({**self.model_dump(), **changes})


# ---------------------------------------------------------------------------
# Module-level settings — the document store itself is never a singleton
# ---------------------------------------------------------------------------
settings = Settings()
