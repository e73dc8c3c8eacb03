"""Execute a reconciliation plan through a resource driver inside a transaction."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from dataplane_sync.domain.errors import NotFoundError, PlanConflictError

from .plan import PlanAction

if TYPE_CHECKING:
    from dataplane_sync.domain.model import IndexedItem
    from dataplane_sync.domain.ports import IndexedResourceDriver

    from .plan import PlanEntry, ReconciliationPlan

log = getLogger(__name__)


@dataclass(slots=True)
class ApplyResult:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0

    @property
    def applied(self) -> int:
        return self.created + self.updated + self.deleted


def apply_plan(
    plan: ReconciliationPlan,
    *,
    driver: IndexedResourceDriver,
    transaction_id: str,
) -> ApplyResult:
    """Run every plan step in order; the first failure stops execution and propagates.

    A delete that finds nothing at its index is skipped, since the end state is
    what the plan asked for. Every other driver error, including a missing item
    on update, aborts the enclosing unit of work unchanged.
    """

    if driver.kind is not plan.kind:
        raise PlanConflictError(f"Driver for {driver.kind} cannot apply a {plan.kind} plan")

    result = ApplyResult()
    if plan.is_empty:
        log.debug("Nothing to apply for %s %s", plan.kind, plan.parent)
        return result

    log.info("Applying %s in transaction %s", plan.summary(), transaction_id)
    for entry in plan.steps():
        log.debug("%s %s: %s", plan.kind, plan.parent, entry.describe())
        if entry.action is PlanAction.DELETE:
            try:
                driver.delete_at(transaction_id, plan.parent, entry.index)
            except NotFoundError:
                log.info(
                    "%s #%d on %s already absent; skipping delete",
                    plan.kind,
                    entry.index,
                    plan.parent,
                )
                result.skipped += 1
                continue
            result.deleted += 1
        elif entry.action is PlanAction.CREATE:
            driver.create_at(transaction_id, plan.parent, _require_item(entry))
            result.created += 1
        else:
            driver.update_at(transaction_id, plan.parent, entry.index, _require_item(entry))
            result.updated += 1

    return result


def _require_item(entry: PlanEntry) -> IndexedItem:
    if entry.item is None:
        raise PlanConflictError(f"Plan entry {entry.describe()} has no item to send")
    return entry.item
