"""Domain layer: value objects and the error taxonomy."""

from storedb.domain.errors import (
    CodecError,
    CommitError,
    DatabaseClosedError,
    DecodeError,
    DuplicateKeyError,
    EncodeError,
    ReadOnlyTransactionError,
    SchemaError,
    StorageError,
    StoreError,
    TransactionClosedError,
    TransactionError,
    TypeMismatchError,
)
from storedb.domain.value_objects import (
    CollectionSchema,
    TransactionMode,
    TransactionState,
    TypeTag,
)

__all__ = [
    "CodecError",
    "CommitError",
    "DatabaseClosedError",
    "DecodeError",
    "DuplicateKeyError",
    "EncodeError",
    "ReadOnlyTransactionError",
    "SchemaError",
    "StorageError",
    "StoreError",
    "TransactionClosedError",
    "TransactionError",
    "TypeMismatchError",
    "CollectionSchema",
    "TransactionMode",
    "TransactionState",
    "TypeTag",
]
