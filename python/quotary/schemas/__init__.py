"""Pydantic schemas for request/response models."""

from quotary.schemas.daily_selection import (
    DailySelectionOut,
    DailySelectionRecordOut,
    RotationResultOut,
)
from quotary.schemas.quote import (
    AuthorSummaryOut,
    CategoryOut,
    QuoteDisplayOut,
    QuoteSummaryOut,
    TagOut,
)
from quotary.schemas.relations import (
    RelatedItemOut,
    RelationCountOut,
    RelationOut,
    RelationPageOut,
    RelationStatusOut,
    RelationToggleOut,
)

__all__ = [
    # Quotes
    "AuthorSummaryOut",
    "CategoryOut",
    "TagOut",
    "QuoteSummaryOut",
    "QuoteDisplayOut",
    # Relations
    "RelationToggleOut",
    "RelationStatusOut",
    "RelationCountOut",
    "RelationOut",
    "RelatedItemOut",
    "RelationPageOut",
    # Daily selection
    "DailySelectionOut",
    "DailySelectionRecordOut",
    "RotationResultOut",
]
