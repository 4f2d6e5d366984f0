"""Adapters layer - concrete implementations of port interfaces."""

from storedb.adapters.outbound import (
    ModelCodec,
    MsgpackCodec,
    SQLiteEngineTransaction,
    SQLiteRowStore,
)

__all__ = [
    "SQLiteRowStore",
    "SQLiteEngineTransaction",
    "MsgpackCodec",
    "ModelCodec",
]
