"""Indexed resource drivers backed by the Data Plane client."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

import pydantic

from dataplane_sync.domain.errors import DataPlaneAPIError, ValidationError
from dataplane_sync.domain.model import IndexedCollection, IndexedItem, ResourceKind

from .schema import PAYLOAD_MODELS, IndexedPayload

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dataplane_sync.domain.model import ParentRef

    from .client import DataPlaneClient

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DataPlaneDriver:
    """One driver per ``ResourceKind``; the kind picks the path segment and payload model."""

    client: DataPlaneClient
    kind: ResourceKind

    @property
    def payload_model(self) -> type[IndexedPayload]:
        return PAYLOAD_MODELS[self.kind]

    def read_all(self, parent: ParentRef) -> IndexedCollection:
        members = self.client.list_items(self.kind, parent)
        items: list[IndexedItem] = []
        for position, member in enumerate(members):
            try:
                payload = self.payload_model.model_validate(member)
            except pydantic.ValidationError as exc:
                raise DataPlaneAPIError(
                    f"Unexpected {self.kind} at position {position} on {parent}: {exc}"
                ) from exc
            if payload.index is not None and payload.index != position:
                log.debug(
                    "%s on %s reports index %d at position %d; using position",
                    self.kind,
                    parent,
                    payload.index,
                    position,
                )
            items.append(IndexedItem(index=position, content=payload.to_content()))
        return IndexedCollection(parent=parent, kind=self.kind, items=tuple(items))

    def create_at(self, transaction_id: str, parent: ParentRef, item: IndexedItem) -> None:
        self.client.create_item(
            transaction_id, self.kind, parent, item.index, self.outgoing(item.content)
        )

    def update_at(
        self,
        transaction_id: str,
        parent: ParentRef,
        index: int,
        item: IndexedItem,
    ) -> None:
        self.client.replace_item(
            transaction_id, self.kind, parent, index, self.outgoing(item.content)
        )

    def delete_at(self, transaction_id: str, parent: ParentRef, index: int) -> None:
        self.client.delete_item(transaction_id, self.kind, parent, index)

    def outgoing(self, content: Mapping[str, object]) -> dict[str, object]:
        """Validate desired content against the kind's payload model before it is sent."""

        unknown = sorted(set(content) - set(self.payload_model.model_fields))
        if unknown:
            raise ValidationError(f"Unknown {self.kind} field(s): {', '.join(unknown)}")
        try:
            payload = self.payload_model.model_validate(dict(content))
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid {self.kind} payload: {exc}") from exc
        return payload.to_content()


def build_drivers(client: DataPlaneClient) -> dict[ResourceKind, DataPlaneDriver]:
    return {kind: DataPlaneDriver(client=client, kind=kind) for kind in ResourceKind}

