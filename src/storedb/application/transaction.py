"""Typed, single-collection transactions.

A ``Transaction`` wraps one engine transaction and converts between typed
keys/values and the opaque bytes the row store keeps, using the
collection's codecs.

Write policies are explicit per call:

    put(key, value)   strict insert, raises DuplicateKeyError if the key exists
    set(key, value)   upsert, silently replaces an existing value

Usage:
    with users.begin(writable=True) as tx:
        tx.put(1, alice)
        tx.commit()

    Leaving the ``with`` block without committing rolls the transaction back.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Generic, Iterator, TypeVar

from storedb.domain.errors import (
    CommitError,
    DuplicateKeyError,
    ReadOnlyTransactionError,
    StorageError,
    TransactionClosedError,
)
from storedb.domain.value_objects import TransactionMode, TransactionState
from storedb.infrastructure.logging import get_logger
from storedb.infrastructure.metrics import MetricsRegistry, get_metrics
from storedb.infrastructure.tracing import trace_span
from storedb.ports.outbound.codec import Codec
from storedb.ports.outbound.row_store import EngineTransaction

K = TypeVar("K")
V = TypeVar("V")

logger = get_logger(__name__)


class Transaction(Generic[K, V]):
    """A unit of work against exactly one collection.

    Ordering:
        ``keys`` and ``scan`` return entries in ascending order of the
        *encoded* key bytes. That equals logical key order only if the key
        codec is order-preserving; with the msgpack codecs it is not for
        integers above 127 or below 0.

    Thread Safety:
        Not thread-safe. Use one transaction per thread.
    """

    def __init__(
        self,
        engine: EngineTransaction,
        collection: str,
        key_codec: Codec[K],
        value_codec: Codec[V],
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Wrap an engine transaction.

        Args:
            engine: The engine transaction to run on. Owned from here on.
            collection: Name of the collection every row belongs to.
            key_codec: Codec for keys.
            value_codec: Codec for values.
            metrics: Metrics registry (global one if omitted).
        """
        self._engine = engine
        self._collection = collection
        self._key_codec = key_codec
        self._value_codec = value_codec
        self._metrics = metrics or get_metrics()
        self._mode = TransactionMode.from_flag(engine.writable)
        self._state = TransactionState.ACTIVE

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def mode(self) -> TransactionMode:
        return self._mode

    @property
    def writable(self) -> bool:
        return self._mode.writable

    def is_active(self) -> bool:
        """Return True if the transaction can still run operations."""
        return self._state.is_active() and not self._engine.closed

    # --- Writes ---------------------------------------------------------------

    def put(self, key: K, value: V) -> None:
        """Insert a new key.

        Raises:
            DuplicateKeyError: If the key already exists in this collection,
                including keys written earlier in this same transaction.
                The stored value is left untouched.
        """
        self._ensure_writable()
        with self._instrument("put"):
            key_bytes = self._key_codec.encode(key)
            value_bytes = self._value_codec.encode(value)
            if self._engine.contains(self._collection, key_bytes):
                raise DuplicateKeyError(self._collection, key)
            self._engine.put(self._collection, key_bytes, value_bytes)

    def set(self, key: K, value: V) -> None:
        """Insert a key or replace its value."""
        self._ensure_writable()
        with self._instrument("set"):
            key_bytes = self._key_codec.encode(key)
            value_bytes = self._value_codec.encode(value)
            self._engine.put(self._collection, key_bytes, value_bytes)

    def remove(self, key: K) -> None:
        """Delete a key. Removing an absent key is a no-op."""
        self._ensure_writable()
        with self._instrument("remove"):
            self._engine.delete(self._collection, self._key_codec.encode(key))

    def clear(self) -> int:
        """Delete every key of the collection and return how many were removed."""
        self._ensure_writable()
        with self._instrument("clear"):
            return self._engine.clear(self._collection)

    # --- Reads ----------------------------------------------------------------

    def get(self, key: K) -> V | None:
        """Return the value stored for a key, or None."""
        self._ensure_active()
        with self._instrument("get"):
            data = self._engine.get(self._collection, self._key_codec.encode(key))
            return None if data is None else self._value_codec.decode(data)

    def contains(self, key: K) -> bool:
        self._ensure_active()
        with self._instrument("contains"):
            return self._engine.contains(self._collection, self._key_codec.encode(key))

    def keys(self) -> list[K]:
        """Return every key of the collection in encoded-byte order.

        Raises:
            DecodeError: If any stored key fails to decode. No partial list
                is returned.
        """
        self._ensure_active()
        with self._instrument("keys"):
            return [self._key_codec.decode(k) for k in self._engine.keys(self._collection)]

    def scan(self) -> list[tuple[K, V]]:
        """Return every (key, value) pair in encoded-key byte order.

        Raises:
            DecodeError: If any stored key or value fails to decode. No
                partial list is returned.
        """
        self._ensure_active()
        with self._instrument("scan"):
            return [
                (self._key_codec.decode(k), self._value_codec.decode(v))
                for k, v in self._engine.scan(self._collection)
            ]

    def count(self) -> int:
        """Return the number of keys in the collection."""
        self._ensure_active()
        with self._instrument("count"):
            return self._engine.count(self._collection)

    # --- Lifecycle ------------------------------------------------------------

    def commit(self) -> None:
        """Make every change of this transaction durable and visible.

        Raises:
            TransactionClosedError: If the transaction already ended.
            CommitError: If the engine failed to commit. The transaction
                moves to FAILED; whether its changes landed is undefined.
        """
        self._ensure_active()
        start = time.perf_counter()
        attributes = {"storedb.collection": self._collection, "storedb.mode": self._mode.value}
        with trace_span("storedb.transaction.commit", attributes):
            try:
                self._engine.commit()
            except CommitError as e:
                self._state = TransactionState.FAILED
                self._record_end("commit_failed")
                logger.error(
                    "transaction_commit_failed", collection=self._collection, error=str(e)
                )
                raise
        self._state = TransactionState.COMMITTED
        self._metrics.commit_latency_seconds.observe(time.perf_counter() - start)
        self._record_end("commit")
        logger.debug("transaction_committed", collection=self._collection, mode=self._mode.value)

    def rollback(self) -> None:
        """Discard every change of this transaction.

        Raises:
            TransactionClosedError: If the transaction already ended.
        """
        self._ensure_active()
        try:
            self._engine.rollback()
        finally:
            self._state = TransactionState.ROLLED_BACK
            self._record_end("rollback")
        logger.debug("transaction_rolled_back", collection=self._collection, mode=self._mode.value)

    def cancel(self) -> None:
        """Alias of ``rollback``."""
        self.rollback()

    def __enter__(self) -> Transaction[K, V]:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self.is_active():
            return
        if exc_type is None:
            self.rollback()
            return
        # Keep the exception already in flight
        try:
            self.rollback()
        except StorageError as e:
            logger.warning(
                "rollback_failed",
                collection=self._collection,
                error=str(e),
                pending=exc_type.__name__,
            )

    def __repr__(self) -> str:
        return (
            f"Transaction(collection={self._collection!r}, mode={self._mode.value}, "
            f"state={self._state.name})"
        )

    # --- Internal -------------------------------------------------------------

    def _ensure_active(self) -> None:
        if not self._state.is_active():
            raise TransactionClosedError(
                f"Transaction on {self._collection!r} is {self._state.name.lower()}"
            )
        if self._engine.closed:
            # The database was closed underneath us and rolled us back
            self._state = TransactionState.ROLLED_BACK
            raise TransactionClosedError(
                f"Transaction on {self._collection!r} ended because the database was closed"
            )

    def _ensure_writable(self) -> None:
        self._ensure_active()
        if not self._mode.writable:
            raise ReadOnlyTransactionError(
                f"Cannot write to {self._collection!r} in a read-only transaction"
            )

    def _record_end(self, status: str) -> None:
        self._metrics.transactions_total.labels(mode=self._mode.value, status=status).inc()

    @contextmanager
    def _instrument(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        status = "error"
        try:
            yield
            status = "success"
        finally:
            self._metrics.operations_total.labels(operation=operation, status=status).inc()
            self._metrics.operation_latency_seconds.labels(operation=operation).observe(
                time.perf_counter() - start
            )
