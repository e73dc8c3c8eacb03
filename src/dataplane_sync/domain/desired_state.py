"""Application service moving a frontend's or backend's nested collections to a desired state."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from dataplane_sync.domain.errors import PlanConflictError
from dataplane_sync.domain.model import APPLY_ORDER, IndexedCollection, IndexedItem
from dataplane_sync.domain.reconciliation import (
    ApplyResult,
    CollectionReconciler,
    ReconciliationPlan,
    apply_plan,
)

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable, Mapping

    from dataplane_sync.domain.model import ObservedSnapshot, ParentRef, ResourceKind
    from dataplane_sync.domain.ports import DriversByKind, IndexedResourceDriver
    from dataplane_sync.domain.transaction import TransactionCoordinator

log = getLogger(__name__)


@dataclass(slots=True)
class DesiredStateService:
    """Apply or tear down every indexed collection of one parent in a single transaction.

    Observed state is read from the remote inside each attempt, never cached, so a
    retried attempt plans against whatever the racing writer left behind.
    """

    coordinator: TransactionCoordinator
    drivers: DriversByKind
    reconciler: CollectionReconciler = field(default_factory=CollectionReconciler)

    def plan(
        self,
        parent: ParentRef,
        desired_by_kind: Mapping[ResourceKind, IndexedCollection],
    ) -> dict[ResourceKind, ReconciliationPlan]:
        """Dry run: plan every kind against the committed remote state, outside a transaction."""

        prepared = self._prepare(parent, desired_by_kind)
        return {kind: self._plan_kind(parent, kind, desired) for kind, desired in prepared.items()}

    def apply_desired_state(
        self,
        parent: ParentRef,
        desired_by_kind: Mapping[ResourceKind, IndexedCollection],
        *,
        cancel: threading.Event | None = None,
    ) -> ObservedSnapshot:
        prepared = self._prepare(parent, desired_by_kind)

        def unit_of_work(transaction_id: str) -> dict[ResourceKind, ApplyResult]:
            results: dict[ResourceKind, ApplyResult] = {}
            for kind, desired in prepared.items():
                plan = self._plan_kind(parent, kind, desired)
                results[kind] = apply_plan(
                    plan, driver=self._driver(kind), transaction_id=transaction_id
                )
            return results

        results = self.coordinator.run(unit_of_work, cancel=cancel)
        for kind, result in results.items():
            log.info(
                "Applied %s on %s: created=%d updated=%d deleted=%d skipped=%d",
                kind,
                parent,
                result.created,
                result.updated,
                result.deleted,
                result.skipped,
            )

        return {kind: self._driver(kind).read_all(parent) for kind in prepared}

    def delete_all(
        self,
        parent: ParentRef,
        kinds: Iterable[ResourceKind] | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """Remove every item of ``kinds`` (default: all managed kinds), rules before ACLs.

        Kinds that cannot exist on ``parent``, such as stick rules on a frontend, are
        skipped when no explicit ``kinds`` are given and rejected otherwise.
        """

        if kinds is None:
            selected = {kind for kind in self.drivers if kind.accepts(parent)}
        else:
            selected = set(kinds)
            for kind in selected:
                self._check_parent(parent, kind)
        ordered = [kind for kind in reversed(APPLY_ORDER) if kind in selected]

        def unit_of_work(transaction_id: str) -> int:
            deleted = 0
            for kind in ordered:
                empty = IndexedCollection.empty(parent, kind)
                plan = self._plan_kind(parent, kind, empty)
                deleted += apply_plan(
                    plan, driver=self._driver(kind), transaction_id=transaction_id
                ).deleted
            return deleted

        deleted = self.coordinator.run(unit_of_work, cancel=cancel)
        log.info("Deleted %d item(s) from %s", deleted, parent)

    def _plan_kind(
        self,
        parent: ParentRef,
        kind: ResourceKind,
        desired: IndexedCollection,
    ) -> ReconciliationPlan:
        observed = self._driver(kind).read_all(parent).reindexed()
        return self.reconciler.plan(observed, desired)

    def _driver(self, kind: ResourceKind) -> IndexedResourceDriver:
        driver = self.drivers.get(kind)
        if driver is None:
            raise PlanConflictError(f"No driver registered for {kind}")
        return driver

    def _prepare(
        self,
        parent: ParentRef,
        desired_by_kind: Mapping[ResourceKind, IndexedCollection],
    ) -> dict[ResourceKind, IndexedCollection]:
        """Check desired collections and coerce their content the way the driver sends it.

        Observed content arrives in the remote's shape; desired content must match it
        (``"80"`` becomes ``80``) before the two are diffed. No remote call is made.
        """

        prepared: dict[ResourceKind, IndexedCollection] = {}
        for kind in APPLY_ORDER:
            desired = desired_by_kind.get(kind)
            if desired is None:
                continue
            self._check_desired(parent, kind, desired)
            driver = self._driver(kind)
            items = tuple(
                IndexedItem(index=item.index, content=driver.outgoing(item.content))
                for item in desired
            )
            prepared[kind] = IndexedCollection(parent=parent, kind=kind, items=items)
        return prepared

    def _check_desired(
        self,
        parent: ParentRef,
        kind: ResourceKind,
        desired: IndexedCollection,
    ) -> None:
        if desired.kind is not kind or desired.parent != parent:
            raise PlanConflictError(
                f"Desired collection for {desired.kind} on {desired.parent} "
                f"was passed as {kind} on {parent}"
            )
        self._check_parent(parent, kind)

    def _check_parent(self, parent: ParentRef, kind: ResourceKind) -> None:
        if not kind.accepts(parent):
            raise PlanConflictError(f"{kind} collections do not exist on {parent}")
        self._driver(kind)
