"""Unit tests for configuration module."""

from __future__ import annotations

import pytest

from storedb.infrastructure.config import (
    DEFAULT_APPLICATION_ID,
    Config,
    ObservabilityConfig,
    StorageConfig,
    get_config,
)


@pytest.mark.unit
class TestConfig:
    """Tests for Config class."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = Config()

        assert config.storage.journal_mode == "wal"
        assert config.storage.synchronous == "normal"
        assert config.storage.busy_timeout_ms == 5000
        assert config.storage.pool_size == 4
        assert config.storage.application_id == DEFAULT_APPLICATION_ID
        assert config.observability.log_format == "json"
        assert config.observability.otel_endpoint is None

    def test_custom_storage_config(self) -> None:
        """Test custom storage configuration."""
        storage = StorageConfig(
            journal_mode="delete",
            synchronous="full",
            busy_timeout_ms=0,
            pool_size=0,
        )

        assert storage.journal_mode == "delete"
        assert storage.synchronous == "full"
        assert storage.busy_timeout_ms == 0
        assert storage.pool_size == 0

    def test_invalid_journal_mode(self) -> None:
        """Test that an unknown journal mode raises validation error."""
        with pytest.raises(ValueError):
            StorageConfig(journal_mode="memory")  # type: ignore

    def test_invalid_cache_size(self) -> None:
        """Test that a too small page cache raises validation error."""
        with pytest.raises(ValueError):
            StorageConfig(cache_size_kib=1)

    def test_negative_busy_timeout(self) -> None:
        """Test that a negative busy timeout raises validation error."""
        with pytest.raises(ValueError):
            StorageConfig(busy_timeout_ms=-1)

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Nested settings are read from STOREDB_ environment variables."""
        monkeypatch.setenv("STOREDB_STORAGE__BUSY_TIMEOUT_MS", "250")
        monkeypatch.setenv("STOREDB_OBSERVABILITY__LOG_FORMAT", "console")

        config = Config()

        assert config.storage.busy_timeout_ms == 250
        assert config.observability.log_format == "console"

    def test_log_levels(self) -> None:
        """Test valid log levels."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            obs = ObservabilityConfig(log_level=level)  # type: ignore
            assert obs.log_level == level


@pytest.mark.unit
class TestConfigSingleton:
    """Tests for get_config singleton."""

    def test_get_config_returns_same_instance(self) -> None:
        """Test that get_config returns the same instance."""
        config1 = get_config()
        config2 = get_config()
        assert config1 is config2
