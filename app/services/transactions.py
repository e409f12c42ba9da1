"""
Transaction Boundary

run_in_transaction() is the single place where service-layer units of work
are committed. A unit of work is a callable taking the session; everything
it does is committed together or rolled back together.

Failure mapping:
- Contention (serialization failure, deadlock, locked SQLite database,
  stale ORM row): rolled back and retried up to
  settings.conflict_max_retries times, then ConflictError
- Unique constraint violation: DuplicateError
- Any other integrity violation (NOT NULL, CHECK, foreign key):
  InvalidInputError
- Any other database error: StoreUnavailableError
- Domain errors raised by the unit of work: rolled back and re-raised
"""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.config import get_settings
from app.exceptions import (
    ConflictError,
    DuplicateError,
    InvalidInputError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL: serialization_failure, deadlock_detected
CONFLICT_SQLSTATES = {"40001", "40P01"}
UNIQUE_VIOLATION_SQLSTATE = "23505"


def _sqlstate(orig: BaseException | None) -> str | None:
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_conflict(exc: SQLAlchemyError) -> bool:
    """Return True if the error means a concurrent writer got in the way."""
    if isinstance(exc, StaleDataError):
        return True
    if not isinstance(exc, DBAPIError):
        return False

    if _sqlstate(exc.orig) in CONFLICT_SQLSTATES:
        return True
    return "database is locked" in str(exc.orig).lower()


def is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc.orig) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    return "unique constraint failed" in str(exc.orig).lower()


def run_in_transaction(
    db: Session,
    work: Callable[[Session], T],
    *,
    retries: int | None = None,
    backoff: float | None = None,
) -> T:
    """
    Run `work(db)` and commit it as one transaction.

    Args:
        db: Session to run in; must not have pending uncommitted work
        work: The unit of work; may be called more than once on conflict
        retries: Override for settings.conflict_max_retries
        backoff: Override for settings.conflict_retry_backoff (seconds)

    Returns:
        Whatever `work` returned on the attempt that committed

    Raises:
        ConflictError: Contention persisted through every retry
        DuplicateError: A unique constraint was violated
        InvalidInputError: Any other constraint was violated
        StoreUnavailableError: The store failed for any other reason
    """
    settings = get_settings()
    max_retries = settings.conflict_max_retries if retries is None else retries
    delay = settings.conflict_retry_backoff if backoff is None else backoff

    attempt = 0
    while True:
        attempt += 1
        try:
            result = work(db)
            db.commit()
            return result
        except IntegrityError as e:
            db.rollback()
            logger.info(f"Integrity violation rolled back: {e.orig}")
            if is_unique_violation(e):
                raise DuplicateError(
                    "The change conflicts with an existing record"
                ) from e
            raise InvalidInputError(
                "The change violates a data constraint"
            ) from e
        except (DBAPIError, StaleDataError) as e:
            db.rollback()
            if not is_conflict(e):
                logger.error(f"Store failure, transaction rolled back: {e}")
                raise StoreUnavailableError("The data store is unavailable") from e
            if attempt > max_retries:
                logger.warning(f"Giving up after {attempt} conflicting attempts: {e}")
                raise ConflictError(
                    "The resource is being modified concurrently, please retry"
                ) from e
            logger.info(f"Transaction conflict on attempt {attempt}, retrying")
            if delay:
                time.sleep(delay * attempt)
        except Exception:
            db.rollback()
            raise
