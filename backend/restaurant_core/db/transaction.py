"""Transaction helpers shared by the stores.

Every invariant-bearing mutation runs through ``run_atomic``: the whole
read-check-write sequence executes inside one database transaction, which is
committed on success and rolled back on any exception. Nested calls (for
example ``LocationStore.delete`` promoting a successor through
``set_primary``) join the caller's transaction through a SAVEPOINT, so a
failure at any depth leaves the store exactly as it was before the outermost
call.

Mutual exclusion between concurrent callers is delegated to the database:
``lock_rows`` takes row locks on the sibling set before it is modified, and
transient failures (deadlocks, serialization failures, SQLite's
"database is locked") are retried from the top with exponential backoff.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Query, Session

from restaurant_core.core.config import settings
from restaurant_core.core.exceptions import ConflictError, NotFoundError, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEPTH_KEY = "restaurant_core.atomic_depth"

# serialization_failure, deadlock_detected
TRANSIENT_SQLSTATES = {"40001", "40P01"}
TRANSIENT_MESSAGES = ("database is locked", "deadlock", "lock wait timeout", "could not serialize")

CONCURRENT_CONFLICT = "Concurrent update in progress, please retry"


def in_atomic(db: Session) -> bool:
    """True when ``db`` is already inside an ``atomic`` block."""
    return db.info.get(_DEPTH_KEY, 0) > 0


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run the enclosed block as a single unit of work.

    The outermost block commits or rolls back the session transaction;
    inner blocks use a SAVEPOINT.
    """
    depth = db.info.get(_DEPTH_KEY, 0)
    db.info[_DEPTH_KEY] = depth + 1
    try:
        if depth:
            with db.begin_nested():
                yield db
        else:
            try:
                yield db
                db.commit()
            except BaseException:
                db.rollback()
                raise
    finally:
        db.info[_DEPTH_KEY] = depth


def lock_rows(query: Query) -> Query:
    """Apply ``SELECT ... FOR UPDATE`` to ``query``.

    SQLite does not render the clause; its database-level writer lock
    serializes the competing transactions instead.
    """
    return query.with_for_update()


def is_transient(exc: DBAPIError) -> bool:
    """Whether retrying the whole transaction may succeed."""
    if exc.connection_invalidated:
        return True
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in TRANSIENT_SQLSTATES:
        return True
    if isinstance(exc, OperationalError):
        message = str(orig).lower()
        return any(fragment in message for fragment in TRANSIENT_MESSAGES)
    return False


def translate_integrity_error(exc: IntegrityError, conflict_message: str = "Resource already exists"):
    """Map a constraint violation onto the domain error taxonomy."""
    message = str(exc.orig).lower()
    if "unique" in message or "duplicate" in message:
        return ConflictError(conflict_message)
    if "foreign key" in message:
        return NotFoundError("Referenced record not found")
    return StoreError("Constraint violation", original=exc)


def run_atomic(
    db: Session,
    operation: Callable[[], T],
    *,
    name: str = "operation",
    conflict_message: str = "Resource already exists",
    retry_on: Optional[Callable[[IntegrityError], bool]] = None,
    attempts: Optional[int] = None,
    backoff: Optional[float] = None,
    log: Optional[logging.Logger] = None,
) -> T:
    """Execute ``operation`` atomically, retrying transient store failures.

    ``operation`` must re-read everything it decides on, since it may run
    more than once. Inside an enclosing ``atomic`` block it runs exactly once
    and failures propagate to the outer transaction.

    ``retry_on`` marks constraint violations that mean "a concurrent writer
    got there first" (e.g. a second primary row); those are retried so the
    operation can re-decide against the committed state.

    Raises:
        ConflictError / NotFoundError: a unique or foreign key constraint fired,
            or concurrent writers kept winning a ``retry_on`` race.
        StoreError: any other store failure, or retries exhausted.
        RestaurantCoreError subclasses raised by ``operation`` itself.
    """
    log = log or logger

    if in_atomic(db):
        with atomic(db):
            return operation()

    attempts = attempts or settings.transaction_retry_attempts
    backoff = settings.transaction_retry_backoff if backoff is None else backoff

    attempt = 1
    while True:
        try:
            with atomic(db):
                return operation()
        except DBAPIError as exc:
            lost_race = isinstance(exc, IntegrityError) and retry_on is not None and retry_on(exc)
            if isinstance(exc, IntegrityError) and not lost_race:
                log.warning(f"{name}: constraint violation: {exc.orig}")
                raise translate_integrity_error(exc, conflict_message) from exc
            if lost_race and attempt >= attempts:
                log.warning(f"{name}: lost to concurrent writers after {attempt} attempt(s): {exc.orig}")
                raise ConflictError(CONCURRENT_CONFLICT) from exc
            if attempt >= attempts or not (lost_race or is_transient(exc)):
                log.error(f"{name} failed after {attempt} attempt(s): {exc.orig}")
                raise StoreError(f"{name} failed", original=exc) from exc
            delay = backoff * (2 ** (attempt - 1))
            log.warning(
                f"{name}: transient store error, retry {attempt}/{attempts - 1} in {delay:.3f}s",
                extra={"operation": name, "attempt": attempt, "error": str(exc.orig)},
            )
            time.sleep(delay)
            attempt += 1


def violates_unique(exc: IntegrityError, index_name: str, columns: str) -> bool:
    """Whether ``exc`` was raised by the named unique index.

    PostgreSQL reports the index name; SQLite reports the indexed columns
    (``"table.col, table.col2"``).
    """
    message = str(exc.orig)
    if index_name in message:
        return True
    return message.strip().endswith(f"UNIQUE constraint failed: {columns}")
