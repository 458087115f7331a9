"""Typed errors raised by the ledger engine.

Every business-rule failure is detected before any write and raised as one
of the ``LedgerError`` subclasses below, so callers can branch on
``error.kind`` instead of matching message text. The HTTP layer renders
them as ``{"kind": ..., "detail": ...}``.

Example:
    try:
        ledger.transactions.record_expense(db, family_id, user_id, data)
    except InsufficientFunds as e:
        logger.warning(f"Expense rejected: {e.detail}")
"""

from typing import Any, Optional


class LedgerError(Exception):
    """Base class for all ledger failures.

    Attributes:
        kind: Stable machine-readable error kind.
        detail: Human-readable description.
        context: Optional ids/amounts involved in the failure.
    """

    kind = "LedgerError"

    def __init__(self, detail: str, *, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, "detail": self.detail}
        if self.context:
            payload["context"] = self.context
        return payload


class InsufficientFunds(LedgerError):
    """Available balance (balance - blocked balance) is below the amount."""

    kind = "InsufficientFunds"


class InvalidAmount(LedgerError):
    """Amount is not positive or exceeds what remains on an obligation."""

    kind = "InvalidAmount"


class InvalidState(LedgerError):
    """Entity is in the wrong state for the operation."""

    kind = "InvalidState"


class HasDependents(LedgerError):
    """Delete blocked because other records reference the entity."""

    kind = "HasDependents"


class NotFound(LedgerError):
    kind = "NotFound"


class InvalidOperation(LedgerError):
    kind = "InvalidOperation"


class AccessDenied(LedgerError):
    """The store itself refused the write for authorization reasons."""

    kind = "AccessDenied"


class Conflict(LedgerError):
    """Another operation held the rows too long or deadlocked with this one; safe to retry."""

    kind = "Conflict"
