# Overview: Transaction boundary and persistence error mapping shared by services.

from __future__ import annotations

from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import (
    ServiceError,
    ConflictError,
    NotFoundError,
    StorageFailureError,
)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def map_persistence_error(exc: Exception) -> ServiceError:
    """
    Translate a low-level persistence failure into the service taxonomy.

    Duplicate keys become ConflictError, vanished rows NotFoundError,
    everything else StorageFailureError.
    """
    if isinstance(exc, IntegrityError):
        return ConflictError("Unique constraint violation", details={"reason": str(exc.orig)})
    if isinstance(exc, (StaleDataError, NoResultFound)):
        return NotFoundError("Record not found")
    return StorageFailureError("Database operation failed")


def _rollback() -> None:
    # Inside a savepoint only the savepoint is undone; the enclosing
    # transaction stays usable.
    nested = db.session().get_nested_transaction()
    if nested is not None:
        nested.rollback()
    else:
        db.session.rollback()


@contextmanager
def atomic(action: str, *, commit: bool = True):
    """
    Run a block as one unit of work.

    Commits on success. On failure the session is rolled back (to the
    innermost savepoint, when one is open); service errors propagate
    unchanged, anything else is logged and re-raised through
    map_persistence_error. Nothing is retried.
    """
    try:
        yield db.session
        if commit:
            db.session.commit()
    except ServiceError:
        _rollback()
        raise
    except Exception as exc:
        _rollback()
        current_app.logger.exception("%s failed", action)
        raise map_persistence_error(exc) from exc


@contextmanager
def savepoint():
    """
    Run an optional step of a larger transaction under a SAVEPOINT.

    A failure undoes only the step's writes and propagates; the caller
    decides whether the enclosing transaction carries on.
    """
    nested = db.session.begin_nested()
    try:
        yield db.session
    except Exception:
        if db.session().get_nested_transaction() is nested:
            nested.rollback()
        raise
    nested.commit()
