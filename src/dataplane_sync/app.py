"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from dataplane_sync.adapters.dataplane import DataPlaneClient, build_drivers
from dataplane_sync.config import get_dataplane_config
from dataplane_sync.domain.desired_state import DesiredStateService
from dataplane_sync.domain.model import IndexedCollection
from dataplane_sync.domain.reconciliation import CollectionReconciler
from dataplane_sync.domain.transaction import TransactionCoordinator, TransactionLock

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable, Mapping, Sequence

    import httpx

    from dataplane_sync.config import DataPlaneConfig
    from dataplane_sync.domain.model import ObservedSnapshot, ParentRef, ResourceKind
    from dataplane_sync.domain.reconciliation import ResourceStrategy

log = getLogger(__name__)

# Every coordinator built here shares it, so at most one transaction is open per process.
_TRANSACTION_LOCK = TransactionLock()


def build_service(
    *,
    config: DataPlaneConfig | None = None,
    strategies: Mapping[ResourceKind, ResourceStrategy] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> tuple[DesiredStateService, DataPlaneClient]:
    """Wire client, drivers and coordinator; the caller owns closing the returned client."""

    effective_config = config or get_dataplane_config()
    client = DataPlaneClient(effective_config, transport=transport)
    coordinator = TransactionCoordinator(
        client, policy=effective_config.transaction, lock=_TRANSACTION_LOCK
    )
    reconciler = (
        CollectionReconciler(strategies=strategies)
        if strategies is not None
        else CollectionReconciler()
    )
    service = DesiredStateService(
        coordinator=coordinator,
        drivers=build_drivers(client),
        reconciler=reconciler,
    )
    return service, client


def desired_collections(
    parent: ParentRef,
    contents_by_kind: Mapping[ResourceKind, Sequence[Mapping[str, object]]],
) -> dict[ResourceKind, IndexedCollection]:
    """Index plain per-kind content lists by position."""

    return {
        kind: IndexedCollection.from_contents(parent, kind, contents)
        for kind, contents in contents_by_kind.items()
    }


def apply_desired_state(
    parent: ParentRef,
    contents_by_kind: Mapping[ResourceKind, Sequence[Mapping[str, object]]],
    *,
    config: DataPlaneConfig | None = None,
    cancel: threading.Event | None = None,
    transport: httpx.BaseTransport | None = None,
) -> ObservedSnapshot:
    """Move every given collection of ``parent`` to the desired contents in one transaction."""

    service, client = build_service(config=config, transport=transport)
    log.info(
        "Applying desired state to %s: %s",
        parent,
        ", ".join(f"{kind}={len(items)}" for kind, items in contents_by_kind.items()),
    )
    with client:
        return service.apply_desired_state(
            parent, desired_collections(parent, contents_by_kind), cancel=cancel
        )


def delete_all(
    parent: ParentRef,
    kinds: Iterable[ResourceKind] | None = None,
    *,
    config: DataPlaneConfig | None = None,
    cancel: threading.Event | None = None,
    transport: httpx.BaseTransport | None = None,
) -> None:
    """Remove every managed collection item from ``parent`` in one transaction."""

    service, client = build_service(config=config, transport=transport)
    log.info("Deleting managed collections from %s", parent)
    with client:
        service.delete_all(parent, kinds, cancel=cancel)
