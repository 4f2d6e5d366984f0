"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are protocols that define contracts between the collection layer and
its collaborators. Adapters implement them with concrete functionality.
"""

from storedb.ports.outbound import Codec, EngineTransaction, RowStore

__all__ = [
    "Codec",
    "EngineTransaction",
    "RowStore",
]
