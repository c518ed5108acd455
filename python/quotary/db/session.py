"""Database session management and transaction helpers.

Provides:
- Request-scoped database sessions via get_db() dependency
- transaction(): commit-or-rollback boundary for mutations
- persistence_boundary(): translation of store failures into E_INTERNAL
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from quotary.db.engine import get_engine
from quotary.errors import ApiError, ApiErrorCode
from quotary.logging import get_logger

logger = get_logger(__name__)


def create_session_factory(engine: Any = None) -> sessionmaker[Session]:
    """Create a session factory bound to an engine.

    Args:
        engine: SQLAlchemy engine. If None, uses the default engine.
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

    Usage:
        @router.get("/endpoint")
        def endpoint(db: Annotated[Session, Depends(get_db)]):
            ...
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Generator[None, None, None]:
    """Run the enclosed statements as one unit.

    Commits on success, rolls back on any exception and re-raises it.

    Usage:
        with transaction(db):
            db.execute(...)
            db.execute(...)
    """
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


@contextmanager
def persistence_boundary(operation: str, **context: Any) -> Generator[None, None, None]:
    """Translate unexpected store failures at a service boundary.

    ApiErrors pass through untouched. Any other SQLAlchemyError is logged
    with the operation name and ids, then surfaced as an opaque E_INTERNAL.

    Usage:
        with persistence_boundary("relation_toggle", target_id=str(target_id)):
            ...
    """
    try:
        yield
    except ApiError:
        raise
    except SQLAlchemyError as exc:
        logger.exception(
            "persistence_error",
            operation=operation,
            error_type=type(exc).__name__,
            **context,
        )
        raise ApiError(ApiErrorCode.E_INTERNAL, "Internal server error") from exc
