"""Diff an observed ordered collection against the desired one.

Both sides are indexed by position. Matching purely by position turns "insert
before 3" into "replace 3..N-1 and create N", which is the intended reading for
rule chains where order is semantics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from dataplane_sync.domain.errors import PlanConflictError

from .plan import PlanAction, PlanEntry, ReconciliationPlan
from .strategy import ResourceStrategy, default_strategies

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dataplane_sync.domain.model import IndexedCollection, IndexedItem, ResourceKind

log = getLogger(__name__)


def reconcile(
    observed: IndexedCollection,
    desired: IndexedCollection,
    *,
    strategy: ResourceStrategy | None = None,
) -> ReconciliationPlan:
    """Compute the create/update/delete plan moving ``observed`` to ``desired``."""

    _check_compatible(observed, desired, strategy)
    active = strategy or ResourceStrategy(kind=desired.kind)

    # The remote has reported stale index fields before; list order is authoritative.
    current_by_index = {position: item for position, item in enumerate(observed.items)}
    target_by_index = _index_desired(desired)

    plan = ReconciliationPlan(parent=desired.parent, kind=desired.kind)
    for index in sorted(current_by_index.keys() | target_by_index.keys()):
        current = current_by_index.get(index)
        target = target_by_index.get(index)
        if target is None:
            plan.add(PlanEntry(action=PlanAction.DELETE, index=index, item=current))
        elif current is None:
            plan.add(PlanEntry(action=PlanAction.CREATE, index=index, item=target))
        else:
            for entry in _diff_pair(index, current, target, active):
                plan.add(entry)

    plan.sort()
    log.debug("Planned %s", plan.summary())
    return plan


def _check_compatible(
    observed: IndexedCollection,
    desired: IndexedCollection,
    strategy: ResourceStrategy | None,
) -> None:
    if observed.kind is not desired.kind:
        raise PlanConflictError(
            f"Cannot reconcile {observed.kind} against {desired.kind}: kinds differ"
        )
    if observed.parent != desired.parent:
        raise PlanConflictError(
            f"Cannot reconcile {observed.parent} against {desired.parent}: parents differ"
        )
    if strategy is not None and strategy.kind is not desired.kind:
        raise PlanConflictError(
            f"Strategy for {strategy.kind} cannot reconcile {desired.kind} collections"
        )


def _index_desired(desired: IndexedCollection) -> dict[int, IndexedItem]:
    by_index: dict[int, IndexedItem] = {}
    for item in desired.items:
        if item.index in by_index:
            raise PlanConflictError(
                f"Duplicate desired index {item.index} for {desired.kind} on {desired.parent}"
            )
        by_index[item.index] = item

    expected = set(range(len(by_index)))
    if by_index.keys() != expected:
        missing = sorted(expected - by_index.keys())
        raise PlanConflictError(
            f"Desired {desired.kind} indices on {desired.parent} must be contiguous from 0; "
            f"missing {missing}"
        )
    return by_index


def _diff_pair(
    index: int,
    current: IndexedItem,
    target: IndexedItem,
    strategy: ResourceStrategy,
) -> tuple[PlanEntry, ...]:
    before = strategy.normalize(current.content)
    after = strategy.normalize(target.content)
    if before == after:
        return ()

    target_item = target.at(index)
    if strategy.identity(before) != strategy.identity(after):
        return _recreate(index, current, target_item, reason="identity changed")

    changed = strategy.changed_fields(before, after)
    if strategy.can_update(changed):
        return (
            PlanEntry(
                action=PlanAction.UPDATE,
                index=index,
                item=target_item,
                reason=f"changed {', '.join(sorted(changed))}",
            ),
        )

    return _recreate(
        index,
        current,
        target_item,
        reason=f"immutable fields changed: {', '.join(sorted(changed))}",
    )


def _recreate(
    index: int,
    current: IndexedItem,
    target: IndexedItem,
    *,
    reason: str,
) -> tuple[PlanEntry, ...]:
    return (
        PlanEntry(
            action=PlanAction.DELETE,
            index=index,
            item=current,
            recreate=True,
            reason=reason,
        ),
        PlanEntry(
            action=PlanAction.CREATE,
            index=index,
            item=target,
            recreate=True,
            reason=reason,
        ),
    )


@dataclass(slots=True)
class CollectionReconciler:
    """Reconciler bound to a strategy table, one entry per resource kind."""

    strategies: Mapping[ResourceKind, ResourceStrategy] = field(
        default_factory=default_strategies
    )

    def strategy_for(self, kind: ResourceKind) -> ResourceStrategy:
        strategy = self.strategies.get(kind)
        if strategy is None:
            return ResourceStrategy(kind=kind)
        return strategy

    def plan(self, observed: IndexedCollection, desired: IndexedCollection) -> ReconciliationPlan:
        return reconcile(observed, desired, strategy=self.strategy_for(desired.kind))
