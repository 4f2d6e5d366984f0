"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for the storage engine and the value
serializer that the collection layer depends on.
"""

from storedb.ports.outbound.codec import Codec
from storedb.ports.outbound.row_store import EngineTransaction, RowStore

__all__ = [
    "Codec",
    "EngineTransaction",
    "RowStore",
]
