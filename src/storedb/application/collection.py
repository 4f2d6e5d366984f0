"""Typed collection handles.

A collection is a named, typed partition of the shared row table. Its key
and value type tags are recorded on first open and checked on every later
open, so two parts of a program can never read the same rows with
different codecs.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from storedb.application.transaction import Transaction
from storedb.domain.errors import TypeMismatchError
from storedb.domain.value_objects import CollectionSchema, TypeTag, validate_collection_name
from storedb.infrastructure.logging import get_logger
from storedb.infrastructure.metrics import MetricsRegistry, get_metrics
from storedb.infrastructure.tracing import trace_span
from storedb.ports.outbound.codec import Codec
from storedb.ports.outbound.row_store import RowStore

K = TypeVar("K")
V = TypeVar("V")

logger = get_logger(__name__)


def schema_for(key_codec: Codec, value_codec: Codec) -> CollectionSchema:
    """Return the schema a pair of codecs would record."""
    return CollectionSchema(TypeTag(key_codec.type_tag), TypeTag(value_codec.type_tag))


class Collection(Generic[K, V]):
    """Handle to one collection of a database.

    Handles are cheap and stateless apart from their codecs. Obtain them
    through ``Database.get_collection`` (or ``Collection.open``), which
    validates the stored type tags first.

    Example:
        >>> users = db.get_collection("users", INT_CODEC, ModelCodec(User, "user.v1"))
        >>> with users.begin(writable=True) as tx:
        ...     tx.put(1, User(id=1, name="alice"))
        ...     tx.commit()
    """

    def __init__(
        self,
        store: RowStore,
        name: str,
        key_codec: Codec[K],
        value_codec: Codec[V],
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._store = store
        self._name = name
        self._key_codec = key_codec
        self._value_codec = value_codec
        self._schema = schema_for(key_codec, value_codec)
        self._metrics = metrics or get_metrics()

    @classmethod
    def open(
        cls,
        store: RowStore,
        name: str,
        key_codec: Codec[K],
        value_codec: Codec[V],
        metrics: MetricsRegistry | None = None,
    ) -> Collection[K, V]:
        """Create the collection or validate its recorded type tags.

        Check and creation happen in one writable transaction, so two
        processes racing to create the same collection agree on its tags.

        Args:
            store: Row store holding the collection.
            name: Collection name.
            key_codec: Codec for keys.
            value_codec: Codec for values.
            metrics: Metrics registry (global one if omitted).

        Returns:
            A handle bound to ``store``.

        Raises:
            ValueError: If ``name`` is empty.
            TypeMismatchError: If the collection exists with other tags.
            StorageError: If the metadata cannot be read or written.
        """
        validate_collection_name(name)
        metrics = metrics or get_metrics()
        expected = schema_for(key_codec, value_codec)

        with trace_span("storedb.collection.open", {"storedb.collection": name}):
            engine = store.begin_transaction(writable=True)
            try:
                found = engine.get_schema(name)
                if found is None:
                    engine.put_schema(name, expected)
                    engine.commit()
                    outcome = "created"
                else:
                    engine.rollback()
                    if found != expected:
                        metrics.collections_opened_total.labels(outcome="type_mismatch").inc()
                        logger.warning(
                            "collection_type_mismatch",
                            collection=name,
                            expected=repr(expected),
                            found=repr(found),
                        )
                        raise TypeMismatchError(name, expected, found)
                    outcome = "validated"
            finally:
                if not engine.closed:
                    engine.rollback()

        metrics.collections_opened_total.labels(outcome=outcome).inc()
        if outcome == "created":
            logger.info(
                "collection_created",
                collection=name,
                key_type=expected.key_type,
                value_type=expected.value_type,
            )
        return cls(store, name, key_codec, value_codec, metrics)

    @property
    def name(self) -> str:
        return self._name

    @property
    def schema(self) -> CollectionSchema:
        return self._schema

    @property
    def key_codec(self) -> Codec[K]:
        return self._key_codec

    @property
    def value_codec(self) -> Codec[V]:
        return self._value_codec

    def begin(self, writable: bool = False) -> Transaction[K, V]:
        """Start a transaction on this collection.

        Args:
            writable: Open a write transaction. Only one write transaction
                per database file runs at a time; others wait up to the
                configured busy timeout.

        Raises:
            DatabaseClosedError: If the database was closed.
            StorageError: If the engine could not begin (e.g. busy).
        """
        engine = self._store.begin_transaction(writable)
        return Transaction(engine, self._name, self._key_codec, self._value_codec, self._metrics)

    def __repr__(self) -> str:
        return f"Collection({self._name!r}, {self._schema!r})"
