"""Value objects for the storedb domain.

Exports:
    Identifiers:
        - TypeTag: Caller-chosen identifier of a key or value type
        - CollectionSchema: (key tag, value tag) pair stored per collection
        - validate_collection_name: Collection name check

    Transaction Types:
        - TransactionState: ACTIVE, COMMITTED, ROLLED_BACK, FAILED
        - TransactionMode: READ_ONLY or WRITABLE
"""

from storedb.domain.value_objects.identifiers import (
    CollectionSchema,
    TypeTag,
    validate_collection_name,
)
from storedb.domain.value_objects.transaction_types import (
    TransactionMode,
    TransactionState,
)

__all__ = [
    # Identifiers
    "TypeTag",
    "CollectionSchema",
    "validate_collection_name",
    # Transaction types
    "TransactionState",
    "TransactionMode",
]
