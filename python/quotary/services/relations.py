"""Relation counter service.

One implementation serves every user-to-target relation that carries a
denormalized counter on its target:

    author_follow   author_follows   -> author_profiles.followers
    quote_bookmark  quote_bookmarks  -> quotes.bookmarks
    quote_like      quote_likes      -> quotes.likes

Invariant: for every target, counter == number of relation rows that
reference it, as seen by any reader. It holds because:
- every mutation locks the target row, changes the relation row and
  applies the counter delta inside one transaction
- _apply_counter_delta is the only code that writes a counter column
- the (user_id, target_id) primary key rejects duplicate rows; a racing
  duplicate insert is translated, never surfaced raw

All functions:
- Accept an explicit SQLAlchemy Session
- Return Pydantic schemas, booleans or mappings
- Raise ApiError subclasses; store failures become E_INTERNAL
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quotary.config import get_settings
from quotary.db.models import (
    AuthorFollow,
    AuthorProfile,
    Base,
    Quote,
    QuoteBookmark,
    QuoteLike,
    utcnow,
)
from quotary.db.session import persistence_boundary, transaction
from quotary.errors import (
    ApiErrorCode,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from quotary.logging import get_logger
from quotary.schemas.quote import AuthorSummaryOut, QuoteSummaryOut
from quotary.schemas.relations import (
    RelatedItemOut,
    RelationOut,
    RelationPageOut,
    RelationStatusOut,
    RelationToggleOut,
)

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 10


class RelationKind(str, Enum):
    """Relation kinds backed by a counter on the target."""

    author_follow = "author_follow"
    quote_bookmark = "quote_bookmark"
    quote_like = "quote_like"


@dataclass(frozen=True)
class RelationSpec:
    """Where a relation kind keeps its rows and its counter.

    Attributes:
        kind: The relation kind.
        relation_model: Join table model keyed by (user_id, <target_key>).
        target_model: Model holding the counter column.
        target_key: Column on relation_model referencing target_model.id.
        counter_field: Counter column on target_model.
        not_found_code: Error code raised when the target is missing.
        target_label: Human-readable target name for error messages.
        summary_schema: Schema used for listing entries.
    """

    kind: RelationKind
    relation_model: type[Base]
    target_model: type[Base]
    target_key: str
    counter_field: str
    not_found_code: ApiErrorCode
    target_label: str
    summary_schema: type[BaseModel]

    @property
    def target_column(self):
        return getattr(self.relation_model, self.target_key)

    @property
    def user_column(self):
        return self.relation_model.user_id

    @property
    def counter_column(self):
        return getattr(self.target_model, self.counter_field)


RELATION_SPECS: dict[RelationKind, RelationSpec] = {
    RelationKind.author_follow: RelationSpec(
        kind=RelationKind.author_follow,
        relation_model=AuthorFollow,
        target_model=AuthorProfile,
        target_key="author_profile_id",
        counter_field="followers",
        not_found_code=ApiErrorCode.E_AUTHOR_NOT_FOUND,
        target_label="Author",
        summary_schema=AuthorSummaryOut,
    ),
    RelationKind.quote_bookmark: RelationSpec(
        kind=RelationKind.quote_bookmark,
        relation_model=QuoteBookmark,
        target_model=Quote,
        target_key="quote_id",
        counter_field="bookmarks",
        not_found_code=ApiErrorCode.E_QUOTE_NOT_FOUND,
        target_label="Quote",
        summary_schema=QuoteSummaryOut,
    ),
    RelationKind.quote_like: RelationSpec(
        kind=RelationKind.quote_like,
        relation_model=QuoteLike,
        target_model=Quote,
        target_key="quote_id",
        counter_field="likes",
        not_found_code=ApiErrorCode.E_QUOTE_NOT_FOUND,
        target_label="Quote",
        summary_schema=QuoteSummaryOut,
    ),
}


def get_relation_spec(kind: RelationKind | str) -> RelationSpec:
    """Resolve a kind (enum or raw string) to its spec.

    Raises:
        InvalidRequestError(E_INVALID_KIND): Unknown kind.
    """
    try:
        return RELATION_SPECS[RelationKind(kind)]
    except ValueError:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_KIND, f"Unknown relation kind: {kind}"
        ) from None


# =============================================================================
# Internal helpers (statement level; callers own the transaction)
# =============================================================================


def _lock_target_counter(db: Session, spec: RelationSpec, target_id: UUID) -> int:
    """Lock the target row FOR UPDATE and return its counter.

    Serializes every mutation of this target's relations until commit.
    """
    row = db.execute(
        select(spec.counter_column)
        .where(spec.target_model.id == target_id)
        .with_for_update()
    ).first()
    if row is None:
        raise NotFoundError(spec.not_found_code, f"{spec.target_label} not found")
    return row[0]


def _read_counter(db: Session, spec: RelationSpec, target_id: UUID) -> int | None:
    return db.execute(
        select(spec.counter_column).where(spec.target_model.id == target_id)
    ).scalar_one_or_none()


def _find_relation(db: Session, spec: RelationSpec, user_id: UUID, target_id: UUID):
    """Return the relation's created_at, or None when there is no row."""
    return db.execute(
        select(spec.relation_model.created_at).where(
            spec.user_column == user_id,
            spec.target_column == target_id,
        )
    ).scalar_one_or_none()


def _insert_relation(
    db: Session, spec: RelationSpec, user_id: UUID, target_id: UUID
) -> datetime:
    created_at = utcnow()
    db.execute(
        insert(spec.relation_model).values(
            {"user_id": user_id, spec.target_key: target_id, "created_at": created_at}
        )
    )
    return created_at


def _delete_relation(db: Session, spec: RelationSpec, user_id: UUID, target_id: UUID) -> int:
    result = db.execute(
        delete(spec.relation_model)
        .where(spec.user_column == user_id, spec.target_column == target_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def _apply_counter_delta(db: Session, spec: RelationSpec, target_id: UUID, delta: int) -> int:
    """Shift the target's counter by delta and return the new value.

    The only writer of counter columns. Must run in the same transaction
    as the relation row change it accounts for.
    """
    result = db.execute(
        update(spec.target_model)
        .where(spec.target_model.id == target_id)
        .values({spec.counter_field: spec.counter_column + delta})
        .returning(spec.counter_column)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one()


# =============================================================================
# Mutations
# =============================================================================


def toggle_relation(
    db: Session, kind: RelationKind | str, viewer_user_id: UUID, target_id: UUID
) -> RelationToggleOut:
    """Flip the viewer's relation to a target and keep the counter in sync.

    Existing row: delete it and decrement. No row: insert it and increment.
    The lookup and both writes commit together.

    A duplicate-key error from a racing insert means the relation is
    already active; it is answered as {active: true} with the committed
    counter instead of an error.

    Raises:
        NotFoundError: Target does not exist.
        ApiError(E_INTERNAL): Any other persistence failure.
    """
    spec = get_relation_spec(kind)
    log_ctx = {
        "kind": spec.kind.value,
        "target_id": str(target_id),
        "user_id": str(viewer_user_id),
    }

    with persistence_boundary("relation_toggle", **log_ctx):
        try:
            with transaction(db):
                _lock_target_counter(db, spec, target_id)
                if _find_relation(db, spec, viewer_user_id, target_id) is not None:
                    _delete_relation(db, spec, viewer_user_id, target_id)
                    active = False
                    count = _apply_counter_delta(db, spec, target_id, -1)
                else:
                    _insert_relation(db, spec, viewer_user_id, target_id)
                    active = True
                    count = _apply_counter_delta(db, spec, target_id, 1)
        except IntegrityError:
            if _find_relation(db, spec, viewer_user_id, target_id) is None:
                raise
            count = _read_counter(db, spec, target_id) or 0
            logger.warning("relation_toggle_conflict", count=count, **log_ctx)
            return RelationToggleOut(active=True, count=count)

    logger.info("relation_toggled", active=active, count=count, **log_ctx)
    return RelationToggleOut(active=active, count=count)


def create_relation(
    db: Session, kind: RelationKind | str, viewer_user_id: UUID, target_id: UUID
) -> RelationOut:
    """Create the relation and increment the counter.

    Unlike toggle, an existing relation is an error here.

    Raises:
        NotFoundError: Target does not exist.
        ConflictError(E_RELATION_EXISTS): Relation already exists (including
            when a concurrent request created it first).
    """
    spec = get_relation_spec(kind)
    log_ctx = {
        "kind": spec.kind.value,
        "target_id": str(target_id),
        "user_id": str(viewer_user_id),
    }
    exists_message = f"{spec.target_label} relation already exists"

    with persistence_boundary("relation_create", **log_ctx):
        try:
            with transaction(db):
                _lock_target_counter(db, spec, target_id)
                if _find_relation(db, spec, viewer_user_id, target_id) is not None:
                    raise ConflictError(ApiErrorCode.E_RELATION_EXISTS, exists_message)
                created_at = _insert_relation(db, spec, viewer_user_id, target_id)
                count = _apply_counter_delta(db, spec, target_id, 1)
        except IntegrityError:
            if _find_relation(db, spec, viewer_user_id, target_id) is None:
                raise
            logger.warning("relation_create_conflict", **log_ctx)
            raise ConflictError(ApiErrorCode.E_RELATION_EXISTS, exists_message) from None

    logger.info("relation_created", count=count, **log_ctx)
    return RelationOut(
        kind=spec.kind.value,
        user_id=viewer_user_id,
        target_id=target_id,
        created_at=created_at,
        count=count,
    )


def delete_relation(
    db: Session, kind: RelationKind | str, viewer_user_id: UUID, target_id: UUID
) -> int:
    """Delete the relation and decrement the counter.

    Returns:
        The target's counter after the delete.

    Raises:
        NotFoundError: Target does not exist, or the relation does not.
    """
    spec = get_relation_spec(kind)
    log_ctx = {
        "kind": spec.kind.value,
        "target_id": str(target_id),
        "user_id": str(viewer_user_id),
    }

    with persistence_boundary("relation_delete", **log_ctx):
        with transaction(db):
            _lock_target_counter(db, spec, target_id)
            if _delete_relation(db, spec, viewer_user_id, target_id) == 0:
                raise NotFoundError(ApiErrorCode.E_RELATION_NOT_FOUND, "Relation not found")
            count = _apply_counter_delta(db, spec, target_id, -1)

    logger.info("relation_deleted", count=count, **log_ctx)
    return count


# =============================================================================
# Reads
# =============================================================================


def get_relation_status(
    db: Session, kind: RelationKind | str, viewer_user_id: UUID, target_id: UUID
) -> bool:
    """Whether the viewer currently has this relation to the target."""
    spec = get_relation_spec(kind)
    with persistence_boundary("relation_status", kind=spec.kind.value, target_id=str(target_id)):
        return _find_relation(db, spec, viewer_user_id, target_id) is not None


def get_relation_state(
    db: Session, kind: RelationKind | str, viewer_user_id: UUID, target_id: UUID
) -> RelationStatusOut:
    """Viewer's status plus the target's counter, for button rendering.

    Raises:
        NotFoundError: Target does not exist.
    """
    spec = get_relation_spec(kind)
    with persistence_boundary("relation_state", kind=spec.kind.value, target_id=str(target_id)):
        count = _read_counter(db, spec, target_id)
        if count is None:
            raise NotFoundError(spec.not_found_code, f"{spec.target_label} not found")
        active = _find_relation(db, spec, viewer_user_id, target_id) is not None
    return RelationStatusOut(active=active, count=count)


def get_batch_relation_status(
    db: Session,
    kind: RelationKind | str,
    viewer_user_id: UUID,
    target_ids: Sequence[UUID],
) -> dict[UUID, bool]:
    """Status for many targets in one query.

    Every requested id is present in the result, defaulting to False;
    ids with a relation row are True. Duplicate ids collapse to one key.
    There is no size limit here; request size is bounded at the HTTP layer.
    """
    spec = get_relation_spec(kind)
    unique_ids = list(dict.fromkeys(target_ids))

    status = {target_id: False for target_id in unique_ids}
    if not unique_ids:
        return status

    with persistence_boundary("relation_batch_status", kind=spec.kind.value, ids=len(unique_ids)):
        related = db.execute(
            select(spec.target_column).where(
                spec.user_column == viewer_user_id,
                spec.target_column.in_(unique_ids),
            )
        ).scalars()
        for target_id in related:
            status[target_id] = True

    return status


def get_relation_count(db: Session, kind: RelationKind | str, target_id: UUID) -> int:
    """Read the denormalized counter (no COUNT(*) over relation rows).

    Raises:
        NotFoundError: Target does not exist.
    """
    spec = get_relation_spec(kind)
    with persistence_boundary("relation_count", kind=spec.kind.value, target_id=str(target_id)):
        count = _read_counter(db, spec, target_id)
    if count is None:
        raise NotFoundError(spec.not_found_code, f"{spec.target_label} not found")
    return count


def clamp_page(page: int, limit: int) -> tuple[int, int]:
    """Normalize paging input: page >= 1, 1 <= limit <= RELATION_LIST_MAX_LIMIT."""
    max_limit = get_settings().relation_list_max_limit
    return max(page, 1), min(max(limit, 1), max_limit)


def list_related_targets(
    db: Session,
    kind: RelationKind | str,
    user_id: UUID,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> RelationPageOut:
    """Page through the targets a user is related to, newest relation first.

    Ordered by relation created_at DESC, then target id DESC.
    """
    spec = get_relation_spec(kind)
    page, limit = clamp_page(page, limit)
    offset = (page - 1) * limit

    with persistence_boundary("relation_list", kind=spec.kind.value, user_id=str(user_id)):
        total = db.execute(
            select(func.count()).select_from(spec.relation_model).where(spec.user_column == user_id)
        ).scalar_one()

        rows = db.execute(
            select(spec.target_model, spec.relation_model.created_at)
            .join(spec.relation_model, spec.target_column == spec.target_model.id)
            .where(spec.user_column == user_id)
            .order_by(spec.relation_model.created_at.desc(), spec.target_model.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()

    items = [
        RelatedItemOut(
            target_id=target.id,
            related_at=related_at,
            target=spec.summary_schema.model_validate(target),
        )
        for target, related_at in rows
    ]

    return RelationPageOut(
        items=items,
        total=total,
        has_more=total > offset + len(items),
        page=page,
        limit=limit,
    )
