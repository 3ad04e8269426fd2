# Overview: Service-layer helpers for locking and atomic units of work.

from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..validation import ServiceError, StorageError


logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write_transaction()
    takes the database write lock there instead.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Start the current transaction as a writer.

    SQLite: BEGIN IMMEDIATE so concurrent writers serialize up front instead of
    reading stale rows. Safe to call repeatedly; no-op once a transaction is open
    and on other dialects (row locks apply there).
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection.driver_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def unit_of_work():
    """
    All-or-nothing block: commit on success, roll back everything on any error.

    ServiceErrors propagate unchanged; database errors are re-raised as
    StorageError after the rollback.
    """
    try:
        begin_write_transaction()
        yield db.session
        db.session.commit()
    except ServiceError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Unit of work rolled back after database error")
        raise StorageError("Database operation failed") from exc
    except Exception:
        db.session.rollback()
        raise
