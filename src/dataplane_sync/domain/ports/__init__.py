"""Domain port definitions for adapters."""

from __future__ import annotations

from .drivers import DriversByKind, IndexedResourceDriver
from .remote import TransactionRemote

__all__ = [
    "DriversByKind",
    "IndexedResourceDriver",
    "TransactionRemote",
]
