"""Transaction-related types and enumerations."""

from __future__ import annotations

from enum import Enum, auto


class TransactionState(Enum):
    """Transaction lifecycle states.

    State machine:

        ACTIVE ──commit()──> COMMITTED
           │        │
           │        └──commit() fails──> FAILED
           │
           └──rollback()──> ROLLED_BACK

    Every state but ACTIVE is terminal: the transaction has released its
    connection and any further call raises ``TransactionClosedError``.
    """

    ACTIVE = auto()
    """Transaction is running and can execute operations."""

    COMMITTED = auto()
    """Transaction committed. All changes are durable and visible."""

    ROLLED_BACK = auto()
    """Transaction rolled back. None of its changes are visible."""

    FAILED = auto()
    """Commit failed. The outcome is undefined and must be re-queried."""

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self is not TransactionState.ACTIVE

    def is_active(self) -> bool:
        """Check if transaction can still perform operations."""
        return self is TransactionState.ACTIVE


class TransactionMode(Enum):
    """Whether a transaction may write."""

    READ_ONLY = "read"
    WRITABLE = "write"

    @classmethod
    def from_flag(cls, writable: bool) -> TransactionMode:
        """Map the ``writable`` flag of ``begin`` to a mode."""
        return cls.WRITABLE if writable else cls.READ_ONLY

    @property
    def writable(self) -> bool:
        return self is TransactionMode.WRITABLE
