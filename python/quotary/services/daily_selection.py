"""Daily featured-quote rotation.

One quote is featured per calendar day of a fixed UTC+4 reference zone.
Rotation is lazy: the first read after the active row expires selects the
next quote. The Celery beat task calls rotate_if_expired() as an eager
trigger at the same boundary.

Selection rules:
- quotes selected in the last DAILY_SELECTION_EXCLUSION_DAYS days are excluded
- the pick among the remaining quotes is uniform
- when every quote is excluded, the least recently selected one wins
  (never-selected first, ties by id)

At most one row is active. Deactivation and creation share one
transaction, and the partial unique index uq_daily_selections_single_active
rejects a second active row from a racing rotation.
"""

import random
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from quotary.config import get_settings
from quotary.db.models import DailySelection, Quote, utcnow
from quotary.db.session import persistence_boundary, transaction
from quotary.errors import ApiErrorCode, NotFoundError
from quotary.logging import get_logger
from quotary.schemas.daily_selection import (
    DailySelectionOut,
    DailySelectionRecordOut,
    RotationResultOut,
)
from quotary.services.quote_display import get_quote_display

logger = get_logger(__name__)

DEFAULT_UTC_OFFSET_MINUTES = 240
DEFAULT_HISTORY_LIMIT = 30


def next_rotation_boundary(
    now: datetime, offset_minutes: int = DEFAULT_UTC_OFFSET_MINUTES
) -> datetime:
    """Return the expiration instant for a selection made at `now`.

    Takes tomorrow's midnight in the UTC calendar and shifts it back by a
    fixed offset, which is the next midnight of a UTC+offset zone only when
    `now` falls before (24h - offset) UTC. Fixed offset, no DST handling.

    Example:
        >>> next_rotation_boundary(datetime(2024, 3, 10, 20, 0, tzinfo=UTC))
        datetime.datetime(2024, 3, 10, 20, 0, tzinfo=datetime.timezone.utc)
    """
    tomorrow = now.astimezone(UTC) + timedelta(days=1)
    midnight = tomorrow.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(minutes=offset_minutes)


# =============================================================================
# Internal helpers
# =============================================================================


def _find_active(db: Session) -> DailySelection | None:
    return db.execute(
        select(DailySelection).where(DailySelection.is_active.is_(True))
    ).scalar_one_or_none()


def _deactivate_active(db: Session) -> int:
    """Lock every active row and clear its flag. Idempotent."""
    active_ids = (
        db.execute(
            select(DailySelection.id)
            .where(DailySelection.is_active.is_(True))
            .with_for_update()
        )
        .scalars()
        .all()
    )
    if not active_ids:
        return 0

    db.execute(
        update(DailySelection)
        .where(DailySelection.id.in_(active_ids))
        .values(is_active=False)
    )
    return len(active_ids)


def _choose_quote_id(db: Session, now: datetime, rng: random.Random, exclusion_days: int):
    cutoff = now - timedelta(days=exclusion_days)
    recently_selected = select(DailySelection.quote_id).where(
        DailySelection.selection_date >= cutoff
    )

    pool = (
        db.execute(select(Quote.id).where(Quote.id.not_in(recently_selected)).order_by(Quote.id))
        .scalars()
        .all()
    )
    if pool:
        return rng.choice(pool)

    last_selected = func.max(DailySelection.selection_date)
    fallback = db.execute(
        select(Quote.id)
        .outerjoin(DailySelection, DailySelection.quote_id == Quote.id)
        .group_by(Quote.id)
        .order_by(last_selected.asc().nulls_first(), Quote.id)
        .limit(1)
    ).scalar_one_or_none()

    if fallback is None:
        raise NotFoundError(
            ApiErrorCode.E_NO_SELECTION_CANDIDATES, "No quotes available for selection"
        )

    logger.info("daily_selection_pool_exhausted", quote_id=str(fallback))
    return fallback


def _to_out(db: Session, selection: DailySelection) -> DailySelectionOut:
    return DailySelectionOut(
        selection_id=selection.id,
        quote=get_quote_display(db, selection.quote_id),
        selection_date=selection.selection_date,
        expiration_date=selection.expiration_date,
    )


# =============================================================================
# Public API
# =============================================================================


def select_new(
    db: Session, now: datetime | None = None, rng: random.Random | None = None
) -> DailySelectionOut:
    """Deactivate the current selection and feature a new quote.

    Raises:
        NotFoundError(E_NO_SELECTION_CANDIDATES): There are no quotes.
    """
    now = now or utcnow()
    rng = rng or random.Random()
    settings = get_settings()

    with persistence_boundary("daily_selection_select", selection_date=now.isoformat()):
        try:
            with transaction(db):
                deactivated = _deactivate_active(db)
                quote_id = _choose_quote_id(
                    db, now, rng, settings.daily_selection_exclusion_days
                )
                selection = DailySelection(
                    quote_id=quote_id,
                    selection_date=now,
                    expiration_date=next_rotation_boundary(
                        now, settings.daily_selection_utc_offset_minutes
                    ),
                    is_active=True,
                )
                db.add(selection)
                db.flush()
        except IntegrityError:
            # Another rotation committed its active row first.
            winner = _find_active(db)
            if winner is None:
                raise
            logger.warning("daily_selection_conflict", selection_id=str(winner.id))
            return _to_out(db, winner)

        logger.info(
            "daily_selection_created",
            selection_id=str(selection.id),
            quote_id=str(quote_id),
            expiration_date=selection.expiration_date.isoformat(),
            deactivated=deactivated,
        )
        return _to_out(db, selection)


def get_current(db: Session, now: datetime | None = None) -> DailySelectionOut:
    """Return the featured quote, rotating first if the active one expired.

    Between 20:00 and 24:00 UTC the boundary computed for a new row is
    already in the past, so every read in that window rotates again and
    uses up one more quote from the exclusion pool.
    """
    now = now or utcnow()

    with persistence_boundary("daily_selection_current"):
        current = db.execute(
            select(DailySelection).where(
                DailySelection.is_active.is_(True),
                DailySelection.expiration_date > now,
            )
        ).scalar_one_or_none()
        if current is not None:
            return _to_out(db, current)

    return select_new(db, now=now)


def get_history(db: Session, limit: int = DEFAULT_HISTORY_LIMIT) -> list[DailySelectionRecordOut]:
    """Selection rows, newest first. Limit is clamped to the configured max."""
    max_limit = get_settings().daily_selection_history_max_limit
    limit = min(max(limit, 1), max_limit)

    with persistence_boundary("daily_selection_history"):
        rows = (
            db.execute(
                select(DailySelection)
                .options(joinedload(DailySelection.quote))
                .order_by(DailySelection.selection_date.desc(), DailySelection.created_at.desc())
                .limit(limit)
            )
            .scalars()
            .all()
        )

    return [DailySelectionRecordOut.model_validate(row) for row in rows]


def get_active_record(db: Session) -> DailySelectionRecordOut | None:
    """The active row regardless of expiry, or None."""
    with persistence_boundary("daily_selection_active"):
        active = _find_active(db)
        if active is None:
            return None
        return DailySelectionRecordOut.model_validate(active)


def rotate_if_expired(db: Session, now: datetime | None = None) -> RotationResultOut:
    """Rotate when there is no active selection or it has expired."""
    now = now or utcnow()

    with persistence_boundary("daily_selection_rotate_check"):
        active = _find_active(db)
        if active is not None and active.expiration_date > now:
            return RotationResultOut(rotated=False, selection=_to_out(db, active))

    return RotationResultOut(rotated=True, selection=select_new(db, now=now))
