"""Configuration management for storedb."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_APPLICATION_ID = 1111199999
"""Stamped into ``PRAGMA application_id`` so foreign SQLite files are rejected."""


class StorageConfig(BaseModel):
    """SQLite engine configuration."""

    journal_mode: Literal["wal", "delete", "truncate", "persist"] = Field(
        default="wal", description="SQLite journal mode"
    )
    synchronous: Literal["off", "normal", "full", "extra"] = Field(
        default="normal", description="SQLite synchronous level"
    )
    busy_timeout_ms: int = Field(
        default=5000, ge=0, description="How long a writer waits for the write lock"
    )
    cache_size_kib: int = Field(
        default=64 * 1024, ge=16, le=512 * 1024, description="Page cache size in KiB"
    )
    mmap_size_bytes: int = Field(
        default=256 * 1024 * 1024,
        ge=0,
        le=2 * 1024 * 1024 * 1024,
        description="Memory-mapped I/O size in bytes (0 disables)",
    )
    pool_size: int = Field(
        default=4, ge=0, description="Idle connections kept for reuse"
    )
    application_id: int = Field(
        default=DEFAULT_APPLICATION_ID, description="SQLite application_id of storedb files"
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="storedb", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for storedb."""

    model_config = SettingsConfigDict(
        env_prefix="STOREDB_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
