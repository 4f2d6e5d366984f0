"""Outbound adapters - implementations of outbound ports.

These adapters implement the storage engine (SQLite) and the value
serializers (msgpack, pydantic) behind the collection layer.
"""

from storedb.adapters.outbound.msgpack_codec import (
    BOOL_CODEC,
    BYTES_CODEC,
    FLOAT_CODEC,
    INT_CODEC,
    STR_CODEC,
    ModelCodec,
    MsgpackCodec,
)
from storedb.adapters.outbound.sqlite_row_store import (
    SQLiteEngineTransaction,
    SQLiteRowStore,
)

__all__ = [
    "SQLiteRowStore",
    "SQLiteEngineTransaction",
    "MsgpackCodec",
    "ModelCodec",
    "INT_CODEC",
    "STR_CODEC",
    "BYTES_CODEC",
    "FLOAT_CODEC",
    "BOOL_CODEC",
]
