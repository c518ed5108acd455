"""Quote display resolution.

Hydrates a quote with its author, category and tags for the featured-quote
view. Read-only; callers own any surrounding transaction.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload, selectinload

from quotary.db.models import Quote
from quotary.errors import ApiErrorCode, NotFoundError
from quotary.schemas.quote import (
    AuthorSummaryOut,
    CategoryOut,
    QuoteDisplayOut,
    TagOut,
)


def quote_to_display(quote: Quote) -> QuoteDisplayOut:
    """Convert a loaded Quote (with relationships) to its display schema."""
    return QuoteDisplayOut(
        id=quote.id,
        slug=quote.slug,
        content=quote.content,
        likes=quote.likes,
        bookmarks=quote.bookmarks,
        created_at=quote.created_at,
        author=AuthorSummaryOut.model_validate(quote.author_profile),
        category=CategoryOut.model_validate(quote.category) if quote.category else None,
        tags=[TagOut.model_validate(tag) for tag in quote.tags],
    )


def get_quote_display(db: Session, quote_id: UUID) -> QuoteDisplayOut:
    """Load a quote for display.

    Raises:
        NotFoundError(E_QUOTE_NOT_FOUND): Quote does not exist.
    """
    quote = db.execute(
        select(Quote)
        .where(Quote.id == quote_id)
        .options(
            joinedload(Quote.author_profile),
            joinedload(Quote.category),
            selectinload(Quote.tags),
        )
    ).scalar_one_or_none()

    if quote is None:
        raise NotFoundError(ApiErrorCode.E_QUOTE_NOT_FOUND, "Quote not found")

    return quote_to_display(quote)
