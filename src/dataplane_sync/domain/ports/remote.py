"""Port for the transaction primitives of the remote configuration store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dataplane_sync.domain.model import ConfigVersion, Transaction


@runtime_checkable
class TransactionRemote(Protocol):
    """Version read, transaction open/commit/discard against the remote store."""

    def get_version(self) -> ConfigVersion: ...

    def create_transaction(self, version: ConfigVersion) -> Transaction: ...

    def commit_transaction(self, transaction_id: str) -> None: ...

    def discard_transaction(self, transaction_id: str) -> None: ...
