from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session
from sqlalchemy.exc import DBAPIError

from household_ledger.exceptions import AccessDenied, Conflict, LedgerError
from household_ledger.logging_config import get_logger

logger = get_logger(__name__)

# SQLSTATE for insufficient_privilege on PostgreSQL
PG_INSUFFICIENT_PRIVILEGE = "42501"

PERMISSION_MARKERS = (
    "permission denied",
    "insufficient privilege",
    "readonly database",
    "read-only",
)

# deadlock_detected, serialization_failure and lock_not_available on PostgreSQL
PG_CONFLICT_CODES = ("40P01", "40001", "55P03")

CONFLICT_MARKERS = (
    "database is locked",
    "deadlock detected",
)


def is_permission_error(error: DBAPIError) -> bool:
    """True when the store rejected a statement for authorization reasons."""
    orig = error.orig
    if getattr(orig, "pgcode", None) == PG_INSUFFICIENT_PRIVILEGE:
        return True
    message = str(orig).lower()
    return any(marker in message for marker in PERMISSION_MARKERS)


def is_conflict_error(error: DBAPIError) -> bool:
    """True when the statement lost a lock race and the operation can be retried."""
    orig = error.orig
    if getattr(orig, "pgcode", None) in PG_CONFLICT_CODES:
        return True
    message = str(orig).lower()
    return any(marker in message for marker in CONFLICT_MARKERS)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Run a read-validate-write block as one transaction.

    Everything done on ``db`` inside the block is committed together when the
    block exits normally, and rolled back when anything raises. Store-level
    authorization failures are re-raised as AccessDenied, lock timeouts and
    deadlocks as Conflict. Any other exception propagates unchanged after the
    rollback.
    """
    try:
        yield db
        db.commit()
    except DBAPIError as e:
        db.rollback()
        if is_permission_error(e):
            logger.warning(f"Store refused write: {e.orig}")
            raise AccessDenied("The data store refused this operation.") from e
        if is_conflict_error(e):
            logger.warning(f"Lock conflict: {e.orig}")
            raise Conflict("The accounts involved are busy with another operation; retry.") from e
        raise
    except LedgerError as e:
        db.rollback()
        logger.warning(f"Rejected: {e.kind}: {e.detail}")
        raise
    except Exception:
        db.rollback()
        raise
