"""Database module for Quotary.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from quotary.db.engine import create_db_engine, get_engine
from quotary.db.models import (
    AuthorFollow,
    AuthorProfile,
    Base,
    Category,
    DailySelection,
    Quote,
    QuoteBookmark,
    QuoteLike,
    Tag,
    User,
    UserRole,
)
from quotary.db.session import get_db, persistence_boundary, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "transaction",
    "persistence_boundary",
    # Base
    "Base",
    # Enums
    "UserRole",
    # Content
    "User",
    "AuthorProfile",
    "Category",
    "Tag",
    "Quote",
    # Relations
    "AuthorFollow",
    "QuoteBookmark",
    "QuoteLike",
    # Rotation
    "DailySelection",
]
