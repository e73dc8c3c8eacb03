"""Run a unit of work inside one Data Plane transaction, retrying on version races.

One attempt is: read the configuration version, open a transaction bound to it,
hand the transaction id to the unit of work, commit. A recoverable conflict from
any of those steps restarts the whole cycle from the version read; every other
error propagates unchanged.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from dataplane_sync.domain.errors import (
    ConflictError,
    ConflictReason,
    DataPlaneError,
    NestedTransactionError,
    TransactionCancelledError,
    TransactionRetriesExhaustedError,
    as_conflict,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from dataplane_sync.domain.model import Transaction
    from dataplane_sync.domain.ports import TransactionRemote

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class TransactionPolicy:
    """Retry budget for recoverable transaction conflicts.

    ``max_attempts`` counts full cycles including the first one. The delay before
    attempt ``n + 1`` is ``retry_delay_seconds * backoff_factor ** (n - 1)``, capped
    at ``max_delay_seconds``.
    """

    max_attempts: int = 5
    retry_delay_seconds: float = 2.0
    backoff_factor: float = 1.0
    max_delay_seconds: float = 30.0
    discard_abandoned: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.retry_delay_seconds < 0:
            raise ValueError(
                f"retry_delay_seconds must be >= 0, got {self.retry_delay_seconds}"
            )
        if self.backoff_factor < 1.0:
            raise ValueError(f"backoff_factor must be >= 1.0, got {self.backoff_factor}")
        if self.max_delay_seconds < 0:
            raise ValueError(f"max_delay_seconds must be >= 0, got {self.max_delay_seconds}")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""

        delay = self.retry_delay_seconds * self.backoff_factor ** (attempt - 1)
        return min(delay, self.max_delay_seconds)


class TransactionLock:
    """Mutex for the version read to commit window that knows which thread holds it.

    Coordinators sharing one instance reject a nested ``run`` from the holding
    thread instead of blocking on the lock forever.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: int | None = None

    @property
    def held_by_current_thread(self) -> bool:
        return self._owner == threading.get_ident()

    def __enter__(self) -> TransactionLock:
        if self.held_by_current_thread:
            raise NestedTransactionError(
                "run() called from inside a unit of work; compose the mutations into one"
            )
        self._lock.acquire()
        self._owner = threading.get_ident()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._owner = None
        self._lock.release()


class TransactionCoordinator:
    """Critical section around version read → commit for one remote store.

    Sharing one coordinator across the process, or passing every coordinator the
    same ``TransactionLock``, is what enforces "at most one open transaction".
    Compose related mutations into a single unit of work; two separate ``run``
    calls would race each other on the version.
    """

    def __init__(
        self,
        remote: TransactionRemote,
        *,
        policy: TransactionPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        lock: TransactionLock | None = None,
    ) -> None:
        self.remote = remote
        self.policy = policy or TransactionPolicy()
        self._sleep = sleep
        self._lock = lock or TransactionLock()
        self._active: Transaction | None = None

    @property
    def active_transaction(self) -> Transaction | None:
        return self._active

    def run[T](
        self,
        unit_of_work: Callable[[str], T],
        *,
        cancel: threading.Event | None = None,
    ) -> T:
        """Execute ``unit_of_work(transaction_id)`` and commit it atomically.

        Raises ``TransactionRetriesExhaustedError`` once every attempt ended in a
        recoverable conflict, and ``TransactionCancelledError`` when ``cancel`` is
        set; a cancelled transaction is never committed.
        """

        with self._lock:
            try:
                return self._run_with_retries(unit_of_work, cancel)
            finally:
                self._active = None

    def _run_with_retries[T](
        self,
        unit_of_work: Callable[[str], T],
        cancel: threading.Event | None,
    ) -> T:
        attempts = self.policy.max_attempts
        last_conflict: ConflictError | None = None

        for attempt in range(1, attempts + 1):
            if cancel is not None and cancel.is_set():
                raise TransactionCancelledError()
            try:
                return self._attempt(unit_of_work, cancel, attempt)
            except DataPlaneError as exc:
                conflict = as_conflict(exc)
                if conflict is None:
                    raise
                last_conflict = conflict

            if attempt < attempts:
                delay = self.policy.delay_for(attempt)
                log.warning(
                    "Transaction conflict on attempt %d/%d (%s: %s); retrying in %.1fs",
                    attempt,
                    attempts,
                    last_conflict.reason,
                    last_conflict,
                    delay,
                )
                self._sleep(delay)

        if last_conflict is None:
            raise RuntimeError("Transaction retry loop ended without an outcome")
        log.error("Giving up after %d attempt(s): %s", attempts, last_conflict)
        raise TransactionRetriesExhaustedError(
            attempts=attempts, last_error=last_conflict
        ) from last_conflict

    def _attempt[T](
        self,
        unit_of_work: Callable[[str], T],
        cancel: threading.Event | None,
        attempt: int,
    ) -> T:
        version = self.remote.get_version()
        transaction = self.remote.create_transaction(version)
        self._active = transaction
        log.info(
            "Opened transaction %s at version %d (attempt %d/%d)",
            transaction.id,
            version,
            attempt,
            self.policy.max_attempts,
        )

        try:
            result = unit_of_work(transaction.id)
            if cancel is not None and cancel.is_set():
                raise TransactionCancelledError(transaction.id)
            self.remote.commit_transaction(transaction.id)
        except BaseException as exc:
            self._abandon(transaction, exc)
            raise
        finally:
            self._active = None

        transaction.mark_committed()
        log.info("Committed transaction %s", transaction.id)
        return result

    def _abandon(self, transaction: Transaction, error: BaseException) -> None:
        if not transaction.is_terminal:
            transaction.mark_aborted()
        log.info("Abandoning transaction %s: %s", transaction.id, error)

        if not self.policy.discard_abandoned or isinstance(error, TransactionCancelledError):
            return
        conflict = as_conflict(error)
        if conflict is not None and conflict.reason is ConflictReason.TRANSACTION_NOT_FOUND:
            return

        try:
            self.remote.discard_transaction(transaction.id)
        except DataPlaneError as discard_error:
            log.warning("Could not discard transaction %s: %s", transaction.id, discard_error)
