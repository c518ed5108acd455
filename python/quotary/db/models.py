"""SQLAlchemy ORM models for Quotary.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Column types are portable (Uuid, UTCDateTime) so the same models run on
PostgreSQL in deployment and SQLite in the default test suite.
"""

from datetime import UTC, datetime
from enum import Enum as PyEnum
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Table,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that always round-trips as UTC.

    PostgreSQL stores TIMESTAMPTZ natively; SQLite drops tzinfo on write,
    so values are normalized to UTC going in and re-tagged coming out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime is not allowed; pass an aware UTC value")
        value = value.astimezone(UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


def utcnow() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Enums
# =============================================================================


class UserRole(str, PyEnum):
    """Roles carried by the users table."""

    user = "user"
    admin = "admin"


# =============================================================================
# Content
# =============================================================================


class User(Base):
    """User account model.

    The user ID matches the identity provider's subject (JWT sub claim).
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    role: Mapped[str] = mapped_column(Text, nullable=False, default=UserRole.user.value)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )


class AuthorProfile(Base):
    """Author of quotes; followers is the denormalized follow count."""

    __tablename__ = "author_profiles"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    followers: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("followers >= 0", name="ck_author_profiles_followers_nonnegative"),
    )

    quotes: Mapped[list["Quote"]] = relationship("Quote", back_populates="author_profile")


class Category(Base):
    """Quote category."""

    __tablename__ = "categories"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class Tag(Base):
    """Free-form quote tag."""

    __tablename__ = "tags"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


quote_tags = Table(
    "quote_tags",
    Base.metadata,
    Column("quote_id", Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Quote(Base):
    """Quote model; likes and bookmarks are denormalized relation counts."""

    __tablename__ = "quotes"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_profile_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("author_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    category_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    likes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    bookmarks: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("likes >= 0", name="ck_quotes_likes_nonnegative"),
        CheckConstraint("bookmarks >= 0", name="ck_quotes_bookmarks_nonnegative"),
        Index("ix_quotes_author_profile_id", "author_profile_id"),
    )

    author_profile: Mapped["AuthorProfile"] = relationship(
        "AuthorProfile", back_populates="quotes"
    )
    category: Mapped["Category | None"] = relationship("Category")
    tags: Mapped[list["Tag"]] = relationship("Tag", secondary=quote_tags, order_by="Tag.name")


# =============================================================================
# Relations (row existence is the active state)
# =============================================================================


class AuthorFollow(Base):
    """User follows author. Counted by author_profiles.followers."""

    __tablename__ = "author_follows"

    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    author_profile_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("author_profiles.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_author_follows_user_created", "user_id", "created_at"),
        Index("ix_author_follows_author_profile_id", "author_profile_id"),
    )


class QuoteBookmark(Base):
    """User bookmarked quote. Counted by quotes.bookmarks."""

    __tablename__ = "quote_bookmarks"

    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    quote_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_quote_bookmarks_user_created", "user_id", "created_at"),
        Index("ix_quote_bookmarks_quote_id", "quote_id"),
    )


class QuoteLike(Base):
    """User liked quote. Counted by quotes.likes."""

    __tablename__ = "quote_likes"

    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    quote_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_quote_likes_user_created", "user_id", "created_at"),
        Index("ix_quote_likes_quote_id", "quote_id"),
    )


# =============================================================================
# Daily selection
# =============================================================================


class DailySelection(Base):
    """One row per rotation. Rows are deactivated, never deleted.

    At most one row may be active; the partial unique index enforces it
    so that racing rotations cannot both commit.
    """

    __tablename__ = "daily_selections"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    quote_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False
    )
    selection_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expiration_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index(
            "uq_daily_selections_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        Index("ix_daily_selections_selection_date", "selection_date"),
        Index("ix_daily_selections_quote_id", "quote_id"),
    )

    quote: Mapped["Quote"] = relationship("Quote")
