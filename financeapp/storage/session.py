"""Database session management with the context manager pattern.

Usage:
    with db_session() as db:
        db.add(record)
        db.commit()
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from financeapp.exceptions import DataSourceError
from financeapp.utils.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def db_session() -> Generator[Session, None, None]:
    """Context manager for database sessions with automatic cleanup.

    The session is rolled back if the block raises and always closed on exit.
    Callers must commit explicitly to persist changes.

    Raises:
        RuntimeError: If database not initialized
    """
    from financeapp.storage.database.base import get_session

    db = get_session()
    try:
        logger.debug("db_session_created", session_id=id(db))
        yield db
    except Exception as e:
        logger.error(
            "db_session_error_rollback",
            error=str(e),
            error_type=type(e).__name__,
            session_id=id(db),
        )
        db.rollback()
        raise
    finally:
        logger.debug("db_session_closed", session_id=id(db))
        db.close()


@contextmanager
def session_scope(session: Session | None = None) -> Generator[Session, None, None]:
    """Use ``session`` when given (caller owns it), otherwise a fresh ``db_session()``.

    Raises:
        DataSourceError: If no session is given and the database is not initialized
    """
    if session is not None:
        yield session
        return

    from financeapp.storage.database import base

    if base.SessionLocal is None:
        raise DataSourceError(
            "Database not initialized. Call init_db() first.", source="database"
        )
    with db_session() as db:
        yield db
