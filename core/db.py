"""
core/db.py -- Engine construction and driver-error translation for the stores.

Every repository (auth/store.py, audit/store.py, content/store.py) builds its
engine with make_engine() and wraps statements in translate_errors(), so the
SQLAlchemy exception types never leak past the store boundary.

Tests pass named shared-memory SQLite URIs
(sqlite:///file:name?mode=memory&cache=shared&uri=true) so every pooled
connection sees the same schema.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError

from core.errors import ConstraintViolationError, StorageError, StorageUnavailableError

logger = logging.getLogger("wojp.db")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. In-memory databases silently keep "memory".
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url. SQLite connections may cross threads."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    try:
        engine = create_engine(db_url, connect_args=connect_args)
    except (ArgumentError, ValueError) as exc:
        raise StorageUnavailableError("DATABASE_URL is not a valid database URL") from exc
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise driver exceptions as the typed core.errors hierarchy."""
    try:
        yield
    except IntegrityError as exc:
        raise ConstraintViolationError(f"{operation}: constraint violated") from exc
    except (OperationalError, InterfaceError) as exc:
        logger.error("Database unavailable during %s: %s", operation, exc.__class__.__name__)
        raise StorageUnavailableError(f"{operation}: database unavailable") from exc
    except SQLAlchemyError as exc:
        logger.error("Database error during %s: %s", operation, exc.__class__.__name__)
        raise StorageError(f"{operation}: database error") from exc


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
