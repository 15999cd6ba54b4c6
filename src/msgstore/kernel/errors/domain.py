"""Domain errors — conflicts and broken store invariants."""

from __future__ import annotations

from typing import Any

from msgstore.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a store rule / invariant is violated."""

    default_code = "domain_error"


class ConflictError(DomainError):
    """The operation conflicts with existing state."""

    default_code = "conflict"


class OptimisticLockConflictError(ConflictError):
    """A version-guarded update found a different stored version.

    This is an expected outcome: the caller should re-read the message and
    retry with the fresh version. ``current_version`` is ``None`` when the
    record no longer exists or could not be read.
    """

    default_code = "optimistic_lock_conflict"

    def __init__(
        self,
        message_id: int,
        expected_version: int,
        current_version: int | None = None,
        **kwargs: Any,
    ) -> None:
        found = "missing" if current_version is None else str(current_version)
        super().__init__(
            f"Attempt to update message id={message_id} with wrong version "
            f"({expected_version}), where current version is {found}",
            detail={
                "message_id": message_id,
                "expected_version": expected_version,
                "current_version": current_version,
            },
            **kwargs,
        )
        self.message_id = message_id
        self.expected_version = expected_version
        self.current_version = current_version


class InvariantViolationError(DomainError):
    """An internal invariant was violated."""

    default_code = "invariant_violation"


class IntegrityViolationError(InvariantViolationError):
    """A single-id statement touched more than one row.

    Surrogate ids are unique, so this means the backing table lost its
    primary-key guarantee. The operation is aborted.
    """

    default_code = "integrity_violation"

    def __init__(self, message_id: int, operation: str, rowcount: int, **kwargs: Any) -> None:
        super().__init__(
            f"{operation} of message id={message_id} affected {rowcount} rows",
            detail={"message_id": message_id, "operation": operation, "rowcount": rowcount},
            **kwargs,
        )
        self.message_id = message_id
        self.operation = operation
        self.rowcount = rowcount


__all__ = [
    "ConflictError",
    "DomainError",
    "IntegrityViolationError",
    "InvariantViolationError",
    "OptimisticLockConflictError",
]
