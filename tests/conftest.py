"""Pytest configuration and fixtures for storedb tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from storedb.application import Database
from storedb.infrastructure.config import StorageConfig
from storedb.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    """Path of a database file that does not exist yet."""
    return temp_dir / "data" / "test.db"


@pytest.fixture
def test_config() -> StorageConfig:
    """Provide a storage configuration tuned for tests."""
    return StorageConfig(
        synchronous="off",  # Faster for tests
        busy_timeout_ms=200,
        cache_size_kib=1024,
        mmap_size_bytes=0,
        pool_size=2,
    )


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def db(
    db_path: Path, test_config: StorageConfig, metrics_registry: MetricsRegistry
) -> Generator[Database, None, None]:
    """Provide an open database, closed after the test."""
    database = Database.open(db_path, config=test_config, metrics=metrics_registry)
    yield database
    database.close()


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
