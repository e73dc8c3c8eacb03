"""Server-side transaction handle bound to one configuration version."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from dataplane_sync.domain.errors import TransactionStateError

type ConfigVersion = int


class TransactionStatus(StrEnum):
    CREATED = "created"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass(slots=True)
class Transaction:
    id: str
    version: ConfigVersion
    status: TransactionStatus = TransactionStatus.CREATED

    @property
    def is_terminal(self) -> bool:
        return self.status is not TransactionStatus.CREATED

    def mark_committed(self) -> None:
        self._transition(TransactionStatus.COMMITTED)

    def mark_aborted(self) -> None:
        self._transition(TransactionStatus.ABORTED)

    def _transition(self, target: TransactionStatus) -> None:
        if self.is_terminal:
            raise TransactionStateError(
                f"Transaction {self.id} is already {self.status}; cannot move to {target}"
            )
        self.status = target
