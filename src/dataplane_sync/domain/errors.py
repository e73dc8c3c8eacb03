"""Error taxonomy shared by the coordinator, the reconciler and the drivers.

The Data Plane API reports failures as ``{"code": int, "message": str}``. The only
way to tell a racing writer apart from a genuine failure is the code plus a
message fragment, so that matching lives in exactly one place:
``classify_conflict``.
"""

from __future__ import annotations

from enum import StrEnum


class ConflictReason(StrEnum):
    """Transaction-protocol failures that are resolved by retrying the whole cycle."""

    TRANSACTION_NOT_FOUND = "transaction_not_found"
    VERSION_NOT_SPECIFIED = "version_not_specified"
    VERSION_MISMATCH = "version_mismatch"
    TRANSACTION_OUTDATED = "transaction_outdated"


_CONFLICT_SIGNATURES: tuple[tuple[ConflictReason, int, tuple[str, ...]], ...] = (
    (ConflictReason.TRANSACTION_NOT_FOUND, 400, ("transaction does not exist",)),
    (ConflictReason.VERSION_NOT_SPECIFIED, 400, ("version or transaction not specified",)),
    (ConflictReason.VERSION_MISMATCH, 409, ("version mismatch",)),
    (
        ConflictReason.TRANSACTION_OUTDATED,
        406,
        ("transaction", "is outdated and cannot be committed"),
    ),
)


def classify_conflict(code: int | None, message: str | None) -> ConflictReason | None:
    """Return the conflict reason for an API error, or ``None`` if it is not recoverable."""

    if code is None or not message:
        return None
    lowered = message.lower()
    for reason, expected_code, fragments in _CONFLICT_SIGNATURES:
        if code == expected_code and all(fragment in lowered for fragment in fragments):
            return reason
    return None


class DataPlaneError(RuntimeError):
    """Base class for every error raised by dataplane-sync."""


class DataPlaneAPIError(DataPlaneError):
    """Raised when the Data Plane API answers with an error payload."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else status_code
        self.status_code = status_code

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"[{self.code}] {self.message}"


class ConflictError(DataPlaneAPIError):
    """Recoverable transaction conflict; the coordinator retries the full cycle."""

    def __init__(
        self,
        message: str,
        *,
        reason: ConflictReason,
        code: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code=code, status_code=status_code)
        self.reason = reason


class NotFoundError(DataPlaneAPIError):
    """The addressed resource does not exist remotely."""


class ValidationError(DataPlaneAPIError):
    """The remote (or the local payload model) rejected a malformed payload."""


class TransportError(DataPlaneError):
    """Network failure or timeout talking to the Data Plane API."""


class PlanConflictError(DataPlaneError):
    """A reconciliation invariant was violated by the caller's input."""


class TransactionStateError(DataPlaneError):
    """A transaction was moved through an illegal lifecycle transition."""


class NestedTransactionError(DataPlaneError):
    """``run`` was called from inside a unit of work holding the same transaction lock."""


class TransactionCancelledError(DataPlaneError):
    """The caller cancelled before commit; the transaction was left uncommitted."""

    def __init__(self, transaction_id: str | None = None) -> None:
        if transaction_id is None:
            super().__init__("Cancelled before a transaction was opened")
        else:
            super().__init__(f"Transaction {transaction_id} cancelled before commit")
        self.transaction_id = transaction_id


class TransactionRetriesExhaustedError(DataPlaneError):
    """Every attempt ended in a recoverable conflict."""

    def __init__(self, *, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"Transaction failed after {attempts} attempt(s); last error: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


def as_conflict(error: BaseException) -> ConflictError | None:
    """Reclassify ``error`` as a ``ConflictError`` if it carries a recoverable signature."""

    if isinstance(error, ConflictError):
        return error
    if not isinstance(error, DataPlaneAPIError):
        return None
    reason = classify_conflict(error.code, error.message)
    if reason is None:
        return None
    conflict = ConflictError(
        error.message,
        reason=reason,
        code=error.code,
        status_code=error.status_code,
    )
    conflict.__cause__ = error
    return conflict
