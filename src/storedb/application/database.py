"""Database entry point.

``Database`` owns one ``SQLiteRowStore`` and hands out typed collection
handles that share it.

Example:
    >>> with Database.open("data/app.db") as db:
    ...     users = db.get_collection("users", INT_CODEC, ModelCodec(User, "user.v1"))
    ...     with users.begin() as tx:
    ...         print(tx.get(1))
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TypeVar

from storedb.adapters.outbound.sqlite_row_store import SQLiteRowStore
from storedb.application.collection import Collection, schema_for
from storedb.domain.errors import DatabaseClosedError
from storedb.domain.value_objects import CollectionSchema, validate_collection_name
from storedb.infrastructure.config import StorageConfig, get_config
from storedb.infrastructure.logging import get_logger
from storedb.infrastructure.metrics import MetricsRegistry, get_metrics
from storedb.infrastructure.tracing import trace_span
from storedb.ports.outbound.codec import Codec

K = TypeVar("K")
V = TypeVar("V")

logger = get_logger(__name__)


class Database:
    """A storedb database file.

    Thread Safety:
        A Database may be shared between threads. Each transaction gets its
        own connection; the handle cache is guarded by a lock.
    """

    def __init__(
        self,
        path: str | Path,
        config: StorageConfig | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Open (creating if needed) the database at ``path``.

        Args:
            path: Database file. Parent directories are created.
            config: Engine settings (defaults from ``get_config().storage``).
            metrics: Metrics registry (global one if omitted).

        Raises:
            StorageError: If the file cannot be opened or ``path`` is ":memory:".
            SchemaError: If the file exists but is not a storedb database.
        """
        self._config = config or get_config().storage
        self._metrics = metrics or get_metrics()
        with trace_span("storedb.database.open", {"storedb.path": str(path)}):
            self._store = SQLiteRowStore(path, self._config, self._metrics)
        self._lock = threading.Lock()
        self._collections: dict[str, Collection] = {}
        logger.info(
            "database_opened",
            path=self._store.path,
            journal_mode=self._config.journal_mode,
            synchronous=self._config.synchronous,
        )

    @classmethod
    def open(
        cls,
        path: str | Path,
        config: StorageConfig | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> Database:
        """Open (creating if needed) the database at ``path``."""
        return cls(path, config, metrics)

    @property
    def path(self) -> str:
        return self._store.path

    @property
    def config(self) -> StorageConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._store.closed

    def get_collection(
        self, name: str, key_codec: Codec[K], value_codec: Codec[V]
    ) -> Collection[K, V]:
        """Return a handle to ``name``, creating the collection on first use.

        Repeated calls with the same codec tags return the same handle.

        Raises:
            ValueError: If ``name`` is empty.
            DatabaseClosedError: If the database was closed.
            TypeMismatchError: If the collection exists with other tags.
        """
        validate_collection_name(name)
        self._ensure_open()
        expected = schema_for(key_codec, value_codec)

        with self._lock:
            cached = self._collections.get(name)
        if cached is not None and cached.schema == expected:
            return cached

        collection = Collection.open(self._store, name, key_codec, value_codec, self._metrics)
        with self._lock:
            return self._collections.setdefault(name, collection)

    def list_collections(self) -> dict[str, CollectionSchema]:
        """Return every collection recorded in the file with its type tags."""
        self._ensure_open()
        engine = self._store.begin_transaction(writable=False)
        try:
            return engine.list_schemas()
        finally:
            engine.rollback()

    def close(self) -> None:
        """Close the database. Open transactions are rolled back. Idempotent."""
        if self._store.closed:
            return
        open_txns = self._store.open_transactions
        self._store.close()
        with self._lock:
            self._collections.clear()
        logger.info("database_closed", path=self.path, abandoned_transactions=open_txns)

    def _ensure_open(self) -> None:
        if self._store.closed:
            raise DatabaseClosedError(f"Database {self.path} is closed")

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Database({self.path!r}, {state})"
