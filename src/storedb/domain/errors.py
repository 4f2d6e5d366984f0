"""Error taxonomy for storedb.

Every error raised across the public API derives from ``StoreError``.
Engine exceptions (``sqlite3.Error``) never escape the row store adapter;
they are translated and chained as ``__cause__``.
"""

from __future__ import annotations

from typing import Any

from storedb.domain.value_objects.identifiers import CollectionSchema


class StoreError(Exception):
    """Base class for all storedb errors."""


class StorageError(StoreError):
    """Engine or I/O failure. The database remains usable."""


class CommitError(StorageError):
    """The engine failed to commit; the transaction is unusable afterwards.

    Whether any of its effects landed is undefined: re-query before
    assuming either outcome.
    """


class SchemaError(StoreError):
    """The file is not a storedb database or its tables have an unexpected shape."""


class DatabaseClosedError(StoreError):
    """The database was used after ``close()``."""


class TypeMismatchError(StoreError):
    """A collection was opened with codecs whose tags differ from the stored ones."""

    def __init__(
        self, collection: str, expected: CollectionSchema, found: CollectionSchema
    ) -> None:
        super().__init__(
            f"Collection {collection!r} type mismatch: expected "
            f"key={expected.key_type}, value={expected.value_type}, "
            f"found key={found.key_type}, value={found.value_type}"
        )
        self.collection = collection
        self.expected = expected
        self.found = found


class DuplicateKeyError(StoreError):
    """A strict ``put`` targeted a key that already exists."""

    def __init__(self, collection: str, key: Any) -> None:
        super().__init__(f"Key {key!r} already exists in collection {collection!r}")
        self.collection = collection
        self.key = key


class CodecError(StoreError):
    """Base class for serialization failures."""


class EncodeError(CodecError):
    """A value could not be encoded."""


class DecodeError(CodecError):
    """Stored bytes could not be decoded into the collection's type."""


class TransactionError(StoreError):
    """Base class for transaction misuse."""


class TransactionClosedError(TransactionError):
    """An operation was invoked on a transaction that already ended."""


class ReadOnlyTransactionError(TransactionError):
    """A write was attempted in a read-only transaction."""
