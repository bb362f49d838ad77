"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns.

Every mutating operation runs through ``atomic()``: all row changes and the
outbox rows written alongside them commit together or not at all.
"""

import os
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from shared.config.logging import get_logger
from shared.config.settings import DATABASE_URL, settings
from shared.utils.exceptions import ConflictError, StoreUnavailableError

logger = get_logger(__name__)

T = TypeVar("T")


def _calculate_pool_size() -> int:
    """
    Calculate pool size based on CPU cores.
    Formula: (2 * CPU cores) + 1, capped at 20.
    """
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def _engine_kwargs(url: str) -> dict[str, Any]:
    """Pool and timeout options; SQLite gets none of the server-side ones."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": _calculate_pool_size(),
        "max_overflow": settings.db_pool_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(DATABASE_URL, echo=False, **_engine_kwargs(DATABASE_URL))

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/orders/{order_id}/groups")
        def groups(order_id: int, db: Session = Depends(get_db)):
            ...

    The session is automatically closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI.

    Usage:
        with get_db_context() as db:
            OutboxProcessor().process_batch(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _is_unique_violation(exc: IntegrityError) -> bool:
    """Another transaction committed the same unique key first."""
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == "23505":  # PostgreSQL unique_violation
        return True
    return getattr(orig, "sqlite_errorname", None) == "SQLITE_CONSTRAINT_UNIQUE"


def atomic(
    db: Session,
    operation: Callable[[], T],
    *,
    name: str = "operation",
    retries: int | None = None,
) -> T:
    """
    Run ``operation`` as one unit of work and commit it.

    A version conflict (``StaleDataError`` from a ``version_id_col`` row) or
    a lost unique-index race (e.g. two clients opening the same table's tab)
    rolls back and re-runs the whole operation, which re-reads and
    re-validates current state. After ``retries`` re-runs (settings
    ``conflict_retries`` by default) the conflict surfaces as ConflictError.

    Connection-level failures become StoreUnavailableError. Any other
    exception rolls back and propagates unchanged.

    Usage:
        def _apply():
            line.discount_percent = 10
            write_outbox_event(db, ...)
            return line.id

        line_id = atomic(db, _apply, name="apply_discount")
    """
    max_retries = settings.conflict_retries if retries is None else retries
    attempt = 0

    while True:
        try:
            result = operation()
            db.commit()
            return result
        except StaleDataError as exc:
            conflict: Exception = exc
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                db.rollback()
                raise
            conflict = exc
        except (OperationalError, InterfaceError) as exc:
            db.rollback()
            raise StoreUnavailableError(name) from exc
        except Exception:
            db.rollback()
            raise

        db.rollback()
        if attempt >= max_retries:
            logger.warning(
                "Conflict persisted after retry",
                operation=name,
                attempts=attempt + 1,
                error_type=type(conflict).__name__,
            )
            raise ConflictError(name) from conflict
        attempt += 1
        logger.info("Conflict, re-applying", operation=name, attempt=attempt)
