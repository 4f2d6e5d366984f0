"""Unit tests for collection handles."""

from __future__ import annotations

from pathlib import Path

import pytest

from storedb.adapters.outbound.msgpack_codec import BYTES_CODEC, INT_CODEC, STR_CODEC
from storedb.adapters.outbound.sqlite_row_store import SQLiteRowStore
from storedb.application import Collection
from storedb.domain.errors import DecodeError, TypeMismatchError
from storedb.domain.value_objects import CollectionSchema, TypeTag
from storedb.infrastructure.config import StorageConfig
from storedb.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def store(
    db_path: Path, test_config: StorageConfig, metrics_registry: MetricsRegistry
) -> SQLiteRowStore:
    """Create a row store for testing."""
    s = SQLiteRowStore(db_path, test_config, metrics_registry)
    yield s
    s.close()


def opened(metrics_registry: MetricsRegistry, outcome: str) -> float | None:
    return metrics_registry.registry.get_sample_value(
        "storedb_collections_opened_total", {"outcome": outcome}
    )


@pytest.mark.unit
class TestCollectionOpen:
    """Tests for Collection.open."""

    def test_first_open_records_schema(self, store: SQLiteRowStore,
                                       metrics_registry: MetricsRegistry) -> None:
        """Opening a new collection records its tags."""
        names = Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)

        assert names.name == "names"
        assert names.schema == CollectionSchema(TypeTag("int"), TypeTag("str"))
        assert names.key_codec is INT_CODEC
        assert names.value_codec is STR_CODEC

        txn = store.begin_transaction(writable=False)
        assert txn.list_schemas() == {"names": names.schema}
        txn.rollback()
        assert opened(metrics_registry, "created") == 1

    def test_reopen_validates(self, store: SQLiteRowStore,
                              metrics_registry: MetricsRegistry) -> None:
        """Opening again with the same tags succeeds."""
        Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)
        Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)

        assert opened(metrics_registry, "created") == 1
        assert opened(metrics_registry, "validated") == 1

    def test_mismatched_value_type(self, store: SQLiteRowStore,
                                   metrics_registry: MetricsRegistry) -> None:
        """Opening with another value tag raises TypeMismatchError."""
        Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)

        with pytest.raises(TypeMismatchError) as exc_info:
            Collection.open(store, "names", INT_CODEC, BYTES_CODEC, metrics_registry)

        err = exc_info.value
        assert err.collection == "names"
        assert err.expected == CollectionSchema(TypeTag("int"), TypeTag("bytes"))
        assert err.found == CollectionSchema(TypeTag("int"), TypeTag("str"))
        assert opened(metrics_registry, "type_mismatch") == 1

    def test_mismatched_key_type(self, store: SQLiteRowStore,
                                 metrics_registry: MetricsRegistry) -> None:
        """Opening with another key tag raises TypeMismatchError."""
        Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)

        with pytest.raises(TypeMismatchError):
            Collection.open(store, "names", STR_CODEC, STR_CODEC, metrics_registry)

    def test_mismatch_leaves_no_open_transaction(self, store: SQLiteRowStore,
                                                 metrics_registry: MetricsRegistry) -> None:
        """The metadata transaction is released on mismatch."""
        Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)
        with pytest.raises(TypeMismatchError):
            Collection.open(store, "names", INT_CODEC, BYTES_CODEC, metrics_registry)

        assert store.open_transactions == 0

    def test_empty_name(self, store: SQLiteRowStore,
                        metrics_registry: MetricsRegistry) -> None:
        """Empty names are rejected before touching the store."""
        with pytest.raises(ValueError):
            Collection.open(store, "", INT_CODEC, STR_CODEC, metrics_registry)


@pytest.mark.unit
class TestCollectionBegin:
    """Tests for Collection.begin."""

    def test_transactions_share_the_store(self, store: SQLiteRowStore,
                                          metrics_registry: MetricsRegistry) -> None:
        """Two handles on one collection see each other's commits."""
        a = Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)
        b = Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)

        with a.begin(writable=True) as tx:
            tx.put(1, "alice")
            tx.commit()

        with b.begin() as tx:
            assert tx.get(1) == "alice"

    def test_default_is_read_only(self, store: SQLiteRowStore,
                                  metrics_registry: MetricsRegistry) -> None:
        """begin() without arguments opens a read-only transaction."""
        names = Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)
        with names.begin() as tx:
            assert not tx.writable


@pytest.mark.unit
class TestUndecodableRows:
    """Rows whose bytes the collection's codecs cannot read."""

    def seed(self, store: SQLiteRowStore, rows: list[tuple[bytes, bytes]]) -> None:
        txn = store.begin_transaction(writable=True)
        for key, value in rows:
            txn.put("names", key, value)
        txn.commit()

    def test_bad_key_fails_keys_and_scan(self, store: SQLiteRowStore,
                                         metrics_registry: MetricsRegistry) -> None:
        """One undecodable key makes keys() and scan() raise, with no partial list."""
        names = Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)
        self.seed(store, [
            (INT_CODEC.encode(1), STR_CODEC.encode("alice")),
            (STR_CODEC.encode("not-an-int"), STR_CODEC.encode("bob")),
        ])

        with names.begin() as tx:
            with pytest.raises(DecodeError):
                tx.keys()
            with pytest.raises(DecodeError):
                tx.scan()
            # Good rows stay readable
            assert tx.get(1) == "alice"
            assert tx.count() == 2

    def test_bad_value_fails_get_and_scan(self, store: SQLiteRowStore,
                                          metrics_registry: MetricsRegistry) -> None:
        """An undecodable value raises on get() and scan() but not keys()."""
        names = Collection.open(store, "names", INT_CODEC, STR_CODEC, metrics_registry)
        self.seed(store, [(INT_CODEC.encode(1), b"\xc1")])

        with names.begin() as tx:
            with pytest.raises(DecodeError):
                tx.get(1)
            with pytest.raises(DecodeError):
                tx.scan()
            assert tx.keys() == [1]
