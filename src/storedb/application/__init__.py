"""Application layer for storedb.

Exports:
    Database:
        - Database: Entry point owning the database file
    Collection:
        - Collection: Typed handle to one collection
    Transaction:
        - Transaction: Typed unit of work on one collection
"""

from storedb.application.collection import Collection
from storedb.application.database import Database
from storedb.application.transaction import Transaction

__all__ = [
    "Database",
    "Collection",
    "Transaction",
]
