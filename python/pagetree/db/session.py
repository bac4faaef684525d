"""Database session management and transaction helpers.

Provides:
- Request-scoped database sessions via get_db() dependency
- Transaction context manager for mutations
- Translation of driver-level failures into StoreUnavailableError
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from pagetree.db.engine import get_engine
from pagetree.errors import StoreUnavailableError
from pagetree.logging import get_logger

logger = get_logger(__name__)


def create_session_factory(engine: Any = None) -> sessionmaker[Session]:
    """Create a session factory bound to an engine.

    Args:
        engine: SQLAlchemy engine. If None, uses the default engine.

    Returns:
        Configured sessionmaker instance.
    """
    if engine is None:
        engine = get_engine()

    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


# Default session factory - created lazily
_SessionLocal: sessionmaker[Session] | None = None


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the default session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = create_session_factory()
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that provides a database session.

    Yields:
        A database session that is automatically closed after use.
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_unavailable_error(exc: BaseException) -> bool:
    """Whether a SQLAlchemy exception means the store itself is unreachable.

    Operational and interface errors cover dropped connections, timeouts and
    lock waits that ran out; other DBAPI errors count only when the pool
    invalidated the connection.
    """
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


@contextmanager
def store_errors() -> Generator[None, None, None]:
    """Re-raise store outages as StoreUnavailableError.

    Everything else (including IntegrityError) propagates unchanged.
    """
    try:
        yield
    except DBAPIError as exc:
        if not is_unavailable_error(exc):
            raise
        logger.error("store_unavailable", error_type=type(exc).__name__, error=str(exc.orig))
        raise StoreUnavailableError() from exc


@contextmanager
def transaction(db: Session) -> Generator[None, None, None]:
    """Context manager for database transactions.

    Commits on success, rolls back on exception. Store outages during the
    body or the commit surface as StoreUnavailableError.

    Args:
        db: The database session to manage.

    Usage:
        with transaction(db):
            db.add(...)
        # Committed if no exception
    """
    with store_errors():
        try:
            yield
            db.commit()
        except Exception:
            db.rollback()
            raise
