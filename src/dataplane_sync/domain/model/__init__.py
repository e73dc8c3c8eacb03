"""Domain model for versioned configuration and its indexed collections."""

from __future__ import annotations

from .indexed import (
    APPLY_ORDER,
    IndexedCollection,
    IndexedItem,
    ObservedSnapshot,
    ParentKind,
    ParentRef,
    ResourceKind,
)
from .transaction import ConfigVersion, Transaction, TransactionStatus

__all__ = [
    "APPLY_ORDER",
    "ConfigVersion",
    "IndexedCollection",
    "IndexedItem",
    "ObservedSnapshot",
    "ParentKind",
    "ParentRef",
    "ResourceKind",
    "Transaction",
    "TransactionStatus",
]
