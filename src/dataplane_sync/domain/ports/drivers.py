"""Per-collection resource driver contract.

One driver serves every parent of one ``ResourceKind``. The reconciler only ever
talks to this protocol, so a new indexed resource kind needs a driver and a
strategy entry, not new reconciliation code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dataplane_sync.domain.model import (
        IndexedCollection,
        IndexedItem,
        ParentRef,
        ResourceKind,
    )


@runtime_checkable
class IndexedResourceDriver(Protocol):
    @property
    def kind(self) -> ResourceKind: ...

    def create_at(self, transaction_id: str, parent: ParentRef, item: IndexedItem) -> None: ...

    def read_all(self, parent: ParentRef) -> IndexedCollection: ...

    def update_at(
        self,
        transaction_id: str,
        parent: ParentRef,
        index: int,
        item: IndexedItem,
    ) -> None: ...

    def delete_at(self, transaction_id: str, parent: ParentRef, index: int) -> None: ...

    def outgoing(self, content: Mapping[str, object]) -> Mapping[str, object]:
        """Return ``content`` in the shape the remote stores it, or raise ``ValidationError``."""
        ...


type DriversByKind = Mapping[ResourceKind, IndexedResourceDriver]
