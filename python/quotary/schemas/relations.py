"""Relation counter schemas.

Contains the response models for toggle, status, count and listing
endpoints shared by every relation kind.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from quotary.schemas.quote import AuthorSummaryOut, QuoteSummaryOut

__all__ = [
    "RelationToggleOut",
    "RelationStatusOut",
    "RelationCountOut",
    "RelationOut",
    "RelatedItemOut",
    "RelationPageOut",
]


class RelationToggleOut(BaseModel):
    """Outcome of a toggle: new state and the target's counter after it."""

    active: bool
    count: int = Field(..., ge=0)


class RelationStatusOut(BaseModel):
    active: bool
    count: int = Field(..., ge=0)


class RelationCountOut(BaseModel):
    count: int = Field(..., ge=0)


class RelationOut(BaseModel):
    """A single relation row, returned by create-only writes."""

    kind: str
    user_id: UUID
    target_id: UUID
    created_at: datetime
    count: int = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)


class RelatedItemOut(BaseModel):
    """One listing entry: the target plus when the viewer related to it."""

    target_id: UUID
    related_at: datetime
    target: AuthorSummaryOut | QuoteSummaryOut


class RelationPageOut(BaseModel):
    """Paginated listing.

    has_more = total > (page - 1) * limit + len(items)
    """

    items: list[RelatedItemOut]
    total: int
    has_more: bool
    page: int
    limit: int
