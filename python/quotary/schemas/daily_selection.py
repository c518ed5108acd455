"""Daily selection schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from quotary.schemas.quote import QuoteDisplayOut, QuoteSummaryOut


class DailySelectionOut(BaseModel):
    """The featured quote and the window it is featured for."""

    selection_id: UUID
    quote: QuoteDisplayOut
    selection_date: datetime
    expiration_date: datetime


class DailySelectionRecordOut(BaseModel):
    """History row, newest first."""

    id: UUID
    quote_id: UUID
    selection_date: datetime
    expiration_date: datetime
    is_active: bool
    quote: QuoteSummaryOut

    model_config = ConfigDict(from_attributes=True)


class RotationResultOut(BaseModel):
    """Result of the scheduled rotation check."""

    rotated: bool
    selection: DailySelectionOut | None = None
