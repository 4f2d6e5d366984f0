"""Row Store port: durable collection-scoped byte rows.

This outbound port defines what the collection and transaction layers need
from the underlying relational engine:

- one shared row table keyed by ``(collection, key_bytes)``
- a metadata table mapping a collection name to its ``CollectionSchema``
- engine transactions with begin/commit/rollback

Keys and values are opaque byte strings. ``keys`` and ``scan`` return rows
in ascending raw-byte order of the key, which matches the logical key order
only when the key codec is order-preserving.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from storedb.domain.value_objects import CollectionSchema


class EngineTransaction(Protocol):
    """A single engine transaction.

    Row operations are upserts and deletes with no policy attached: the
    engine never rejects a duplicate key. Duplicate-key rejection lives one
    layer up, in the collection transaction.

    Thread Safety:
        Not thread-safe. One operation at a time.
    """

    @property
    @abstractmethod
    def writable(self) -> bool:
        """Return True if the transaction may write."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Return True once committed, rolled back, or torn down by the store."""
        ...

    @abstractmethod
    def get(self, collection: str, key: bytes) -> bytes | None:
        """Return the value bytes for a key, or None if absent."""
        ...

    @abstractmethod
    def put(self, collection: str, key: bytes, value: bytes) -> None:
        """Insert or replace a row."""
        ...

    @abstractmethod
    def delete(self, collection: str, key: bytes) -> None:
        """Delete a row. Deleting an absent key is a no-op."""
        ...

    @abstractmethod
    def contains(self, collection: str, key: bytes) -> bool:
        """Return True if a row exists for the key."""
        ...

    @abstractmethod
    def keys(self, collection: str) -> list[bytes]:
        """Return all keys of a collection in ascending byte order."""
        ...

    @abstractmethod
    def scan(self, collection: str) -> list[tuple[bytes, bytes]]:
        """Return all (key, value) rows of a collection in ascending key byte order."""
        ...

    @abstractmethod
    def count(self, collection: str) -> int:
        """Return the number of rows in a collection."""
        ...

    @abstractmethod
    def clear(self, collection: str) -> int:
        """Delete every row of a collection and return how many were removed."""
        ...

    @abstractmethod
    def get_schema(self, collection: str) -> CollectionSchema | None:
        """Return the stored schema of a collection, or None if unknown."""
        ...

    @abstractmethod
    def put_schema(self, collection: str, schema: CollectionSchema) -> None:
        """Record the schema of a new collection."""
        ...

    @abstractmethod
    def list_schemas(self) -> dict[str, CollectionSchema]:
        """Return every recorded collection schema by name."""
        ...

    @abstractmethod
    def commit(self) -> None:
        """Make all changes durable and visible.

        Raises:
            CommitError: If the engine fails to commit. The transaction is
                closed either way.
        """
        ...

    @abstractmethod
    def rollback(self) -> None:
        """Discard all changes and release the transaction."""
        ...


class RowStore(Protocol):
    """Protocol for the storage engine behind a database file."""

    @property
    @abstractmethod
    def path(self) -> str:
        """Return the path of the database file."""
        ...

    @abstractmethod
    def begin_transaction(self, writable: bool) -> EngineTransaction:
        """Start an engine transaction.

        Writable transactions take the engine's write lock up front.
        Read-only transactions see a snapshot fixed at begin time.

        Raises:
            StorageError: If the engine cannot start the transaction
                (e.g. the write lock stays busy past the timeout).
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Roll back open transactions and release every connection."""
        ...
