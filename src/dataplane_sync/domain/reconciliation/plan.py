"""Reconciliation plan types shared by the diff engine and the plan applier.

The plan is the contract between:
- the diff (read-only comparison of observed and desired collections)
- execution through a driver inside a transaction

Deleting index ``i`` shifts every later index down by one on the remote side, so
the plan owns the execution order instead of leaving it to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dataplane_sync.domain.model import IndexedItem, ParentRef, ResourceKind


class PlanAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True, kw_only=True)
class PlanEntry:
    """One remote operation.

    ``item`` is the desired item for creates and updates and the observed item for
    deletes. ``recreate`` marks both halves of a delete+create pair that replaces
    an item which could not be updated in place.
    """

    action: PlanAction
    index: int
    item: IndexedItem | None = None
    recreate: bool = False
    reason: str | None = None

    def describe(self) -> str:
        label = f"{self.action} #{self.index}"
        if self.recreate:
            label += " (recreate)"
        if self.reason:
            label += f": {self.reason}"
        return label


@dataclass(slots=True)
class ReconciliationPlan:
    """Create/update/delete partition for one (parent, kind) collection."""

    parent: ParentRef
    kind: ResourceKind
    to_create: list[PlanEntry] = field(default_factory=list["PlanEntry"])
    to_update: list[PlanEntry] = field(default_factory=list["PlanEntry"])
    to_delete: list[PlanEntry] = field(default_factory=list["PlanEntry"])

    def add(self, entry: PlanEntry) -> None:
        if entry.action is PlanAction.CREATE:
            self.to_create.append(entry)
        elif entry.action is PlanAction.UPDATE:
            self.to_update.append(entry)
        else:
            self.to_delete.append(entry)

    def sort(self) -> None:
        self.to_create.sort(key=lambda entry: entry.index)
        self.to_update.sort(key=lambda entry: entry.index)
        self.to_delete.sort(key=lambda entry: entry.index, reverse=True)

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)

    @property
    def recreated_indices(self) -> tuple[int, ...]:
        return tuple(entry.index for entry in self.to_create if entry.recreate)

    def steps(self) -> Iterator[PlanEntry]:
        """Yield entries in the only order that is safe against index shifting.

        All deletions run first, highest index first, so none invalidates a later
        one. Creations follow in ascending order so each lands at its final
        position. Updates run last, when every index already is final.
        """

        yield from sorted(self.to_delete, key=lambda entry: entry.index, reverse=True)
        yield from sorted(self.to_create, key=lambda entry: entry.index)
        yield from sorted(self.to_update, key=lambda entry: entry.index)

    def summary(self) -> str:
        return (
            f"{self.kind} on {self.parent}: create={len(self.to_create)} "
            f"update={len(self.to_update)} delete={len(self.to_delete)}"
        )
