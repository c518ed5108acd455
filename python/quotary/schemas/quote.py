"""Quote and author response schemas.

The display shape (QuoteDisplayOut) is the fully hydrated quote; the
summary shapes are used inside listings and history rows.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthorSummaryOut(BaseModel):
    """Author as shown next to a quote or in a follow listing."""

    id: UUID
    name: str
    slug: str
    bio: str | None = None
    followers: int

    model_config = ConfigDict(from_attributes=True)


class CategoryOut(BaseModel):
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class TagOut(BaseModel):
    id: UUID
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class QuoteSummaryOut(BaseModel):
    """Quote without joins; used in bookmark/like listings and history."""

    id: UUID
    slug: str
    content: str
    author_profile_id: UUID
    likes: int
    bookmarks: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuoteDisplayOut(BaseModel):
    """Quote resolved for display: author, category and tags joined in."""

    id: UUID
    slug: str
    content: str
    likes: int
    bookmarks: int
    created_at: datetime
    author: AuthorSummaryOut
    category: CategoryOut | None = None
    tags: list[TagOut] = []
