"""Test data factories.

Each factory creates a complete row (all NOT NULL columns filled) and
commits, so later rollbacks inside services never undo test setup. With
db_session the commit only releases a savepoint.

When a column is added or a constraint changes, update the factory here,
not in N test files.
"""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from quotary.db.models import (
    AuthorProfile,
    Category,
    DailySelection,
    Quote,
    Tag,
    User,
    UserRole,
)
from quotary.services.daily_selection import next_rotation_boundary


def create_test_user(session: Session, user_id: UUID | None = None, role: str = "user") -> UUID:
    user = User(id=user_id or uuid4(), role=role)
    session.add(user)
    session.commit()
    return user.id


def create_admin_user(session: Session, user_id: UUID | None = None) -> UUID:
    return create_test_user(session, user_id, role=UserRole.admin.value)


def create_test_author(session: Session, name: str = "Epictetus", bio: str | None = None) -> UUID:
    suffix = uuid4().hex[:8]
    author = AuthorProfile(name=name, slug=f"{name.lower().replace(' ', '-')}-{suffix}", bio=bio)
    session.add(author)
    session.commit()
    return author.id


def create_test_category(session: Session, name: str = "Wisdom") -> UUID:
    category = Category(name=name, slug=f"{name.lower()}-{uuid4().hex[:8]}")
    session.add(category)
    session.commit()
    return category.id


def create_test_tag(session: Session, name: str = "stoicism") -> UUID:
    tag = Tag(name=name, slug=f"{name.lower()}-{uuid4().hex[:8]}")
    session.add(tag)
    session.commit()
    return tag.id


def create_test_quote(
    session: Session,
    author_id: UUID | None = None,
    content: str = "First say to yourself what you would be; then do what you have to do.",
    category_id: UUID | None = None,
    tag_ids: list[UUID] | None = None,
    created_at: datetime | None = None,
) -> UUID:
    """Create a quote (and an author when none is given)."""
    if author_id is None:
        author_id = create_test_author(session)

    quote = Quote(
        slug=f"quote-{uuid4().hex[:12]}",
        content=content,
        author_profile_id=author_id,
        category_id=category_id,
    )
    if created_at is not None:
        quote.created_at = created_at
    if tag_ids:
        quote.tags = [session.get(Tag, tag_id) for tag_id in tag_ids]
    session.add(quote)
    session.commit()
    return quote.id


def create_test_quotes(session: Session, count: int, author_id: UUID | None = None) -> list[UUID]:
    if author_id is None:
        author_id = create_test_author(session)
    return [
        create_test_quote(session, author_id=author_id, content=f"Quote number {i}")
        for i in range(count)
    ]


def create_selection_record(
    session: Session,
    quote_id: UUID,
    selection_date: datetime,
    is_active: bool = False,
    expiration_date: datetime | None = None,
) -> UUID:
    """Insert a history row directly, bypassing the selection algorithm."""
    selection = DailySelection(
        quote_id=quote_id,
        selection_date=selection_date,
        expiration_date=expiration_date or next_rotation_boundary(selection_date),
        is_active=is_active,
    )
    session.add(selection)
    session.commit()
    return selection.id


def create_history(
    session: Session, quote_ids: list[UUID], now: datetime, days_between: int = 1
) -> None:
    """One inactive history row per quote, most recent first, ending a day before now."""
    for i, quote_id in enumerate(quote_ids):
        create_selection_record(
            session, quote_id, now - timedelta(days=days_between * (i + 1))
        )


def count_rows(session: Session, model, **filters) -> int:
    query = select(func.count()).select_from(model)
    for column, value in filters.items():
        query = query.where(getattr(model, column) == value)
    return session.execute(query).scalar_one()
