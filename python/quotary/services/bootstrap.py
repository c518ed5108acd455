"""User bootstrap service.

Creates the users row on first authenticated request and reports the
stored role. Race-safe: concurrent first requests converge on one row.
"""

from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quotary.db.models import User, UserRole, utcnow
from quotary.db.session import transaction
from quotary.logging import get_logger

logger = get_logger(__name__)


def ensure_user(db: Session, user_id: UUID) -> str:
    """Ensure the user exists and return its role.

    Args:
        db: Database session.
        user_id: The user's ID (from JWT sub claim).

    Returns:
        The user's role ("user" or "admin"). New users get "user".
    """
    role = db.execute(select(User.role).where(User.id == user_id)).scalar_one_or_none()
    if role is not None:
        return role

    try:
        with transaction(db):
            db.execute(
                insert(User).values(id=user_id, role=UserRole.user.value, created_at=utcnow())
            )
        logger.info("user_created", user_id=str(user_id))
        return UserRole.user.value
    except IntegrityError:
        # Lost race: another request inserted the row first
        role = db.execute(select(User.role).where(User.id == user_id)).scalar_one_or_none()
        if role is None:
            raise
        return role


def create_bootstrap_callback(db: Session):
    """Bind ensure_user to a session for use as the auth middleware callback."""

    def callback(user_id: UUID) -> str:
        return ensure_user(db, user_id)

    return callback
