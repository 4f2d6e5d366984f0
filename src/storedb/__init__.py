"""
storedb - Typed key/value collections on top of SQLite

Named collections of typed keys and values share one SQLite file. Each
collection records the type tags of its codecs on creation and rejects
handles opened with different ones. Transactions are scoped to a single
collection and get snapshot isolation from SQLite's WAL mode.
"""

__version__ = "0.1.0"

from storedb.adapters.outbound.msgpack_codec import (
    BOOL_CODEC,
    BYTES_CODEC,
    FLOAT_CODEC,
    INT_CODEC,
    STR_CODEC,
    ModelCodec,
    MsgpackCodec,
)
from storedb.application import Collection, Database, Transaction
from storedb.domain import (
    CodecError,
    CollectionSchema,
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
    TransactionMode,
    TransactionState,
    TypeMismatchError,
    TypeTag,
)
from storedb.infrastructure.config import Config, StorageConfig, get_config
from storedb.ports import Codec

__all__ = [
    "__version__",
    # Entry points
    "Database",
    "Collection",
    "Transaction",
    # Codecs
    "Codec",
    "MsgpackCodec",
    "ModelCodec",
    "INT_CODEC",
    "STR_CODEC",
    "BYTES_CODEC",
    "FLOAT_CODEC",
    "BOOL_CODEC",
    # Configuration
    "Config",
    "StorageConfig",
    "get_config",
    # Types
    "CollectionSchema",
    "TypeTag",
    "TransactionMode",
    "TransactionState",
    # Errors
    "StoreError",
    "StorageError",
    "CommitError",
    "SchemaError",
    "DatabaseClosedError",
    "TypeMismatchError",
    "DuplicateKeyError",
    "CodecError",
    "EncodeError",
    "DecodeError",
    "TransactionError",
    "TransactionClosedError",
    "ReadOnlyTransactionError",
]
