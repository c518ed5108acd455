"""Tests for the relation counter service.

Covers every relation kind through the same generic implementation:
- toggle keeps counter == number of relation rows
- duplicate-key races are answered as "already active"
- batch status returns a key for every requested id
- listing pagination math and ordering
- create-only / delete-only writes
"""

from datetime import timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy import insert
from sqlalchemy.orm import Session

from quotary.db.models import AuthorFollow, QuoteBookmark, QuoteLike, utcnow
from quotary.errors import (
    ApiError,
    ApiErrorCode,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from quotary.schemas.quote import AuthorSummaryOut, QuoteSummaryOut
from quotary.services import relations as relations_service
from quotary.services.relations import (
    RELATION_SPECS,
    RelationKind,
    create_relation,
    delete_relation,
    get_batch_relation_status,
    get_relation_count,
    get_relation_spec,
    get_relation_state,
    get_relation_status,
    list_related_targets,
    toggle_relation,
)
from tests.factories import (
    count_rows,
    create_test_author,
    create_test_quote,
    create_test_quotes,
    create_test_user,
)

ALL_KINDS = list(RelationKind)


def create_target(db: Session, kind: RelationKind) -> UUID:
    if kind == RelationKind.author_follow:
        return create_test_author(db)
    return create_test_quote(db)


def relation_rows(db: Session, kind: RelationKind, target_id: UUID) -> int:
    spec = RELATION_SPECS[kind]
    return count_rows(db, spec.relation_model, **{spec.target_key: target_id})


def stale_lookup_once(monkeypatch):
    """Make the first in-transaction existence check miss an existing row."""
    real_find = relations_service._find_relation
    calls = {"count": 0}

    def find(*args):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return real_find(*args)

    monkeypatch.setattr(relations_service, "_find_relation", find)


class TestRelationSpecs:
    def test_every_kind_has_a_spec(self):
        assert set(RELATION_SPECS) == set(RelationKind)

    def test_resolves_raw_string(self):
        assert get_relation_spec("quote_like").relation_model is QuoteLike

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            get_relation_spec("comment_like")
        assert exc_info.value.code == ApiErrorCode.E_INVALID_KIND


@pytest.mark.parametrize("kind", ALL_KINDS)
class TestToggle:
    """Toggle semantics shared by follows, bookmarks and likes."""

    def test_toggle_on_then_off(self, db_session: Session, kind: RelationKind):
        """First toggle returns count+1 and active; second restores the count."""
        user_id = create_test_user(db_session)
        target_id = create_target(db_session, kind)

        first = toggle_relation(db_session, kind, user_id, target_id)
        assert first.active is True
        assert first.count == 1
        assert relation_rows(db_session, kind, target_id) == 1

        second = toggle_relation(db_session, kind, user_id, target_id)
        assert second.active is False
        assert second.count == 0
        assert relation_rows(db_session, kind, target_id) == 0

    def test_counter_matches_rows_after_many_toggles(self, db_session: Session, kind):
        target_id = create_target(db_session, kind)
        users = [create_test_user(db_session) for _ in range(4)]

        # user i toggles i+1 times: users 0 and 2 end active
        for i, user_id in enumerate(users):
            for _ in range(i + 1):
                result = toggle_relation(db_session, kind, user_id, target_id)

        assert result.active is False
        assert get_relation_count(db_session, kind, target_id) == 2
        assert relation_rows(db_session, kind, target_id) == 2

    def test_missing_target_raises_kind_specific_not_found(self, db_session: Session, kind):
        user_id = create_test_user(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            toggle_relation(db_session, kind, user_id, uuid4())

        assert exc_info.value.code == RELATION_SPECS[kind].not_found_code

    def test_duplicate_insert_race_answers_active(
        self, db_session: Session, kind, monkeypatch
    ):
        """A racing duplicate insert is reported as active with the stored count."""
        user_id = create_test_user(db_session)
        target_id = create_target(db_session, kind)
        toggle_relation(db_session, kind, user_id, target_id)

        stale_lookup_once(monkeypatch)
        result = toggle_relation(db_session, kind, user_id, target_id)

        assert result.active is True
        assert result.count == 1
        assert relation_rows(db_session, kind, target_id) == 1

    def test_store_failure_becomes_internal_error(self, db_session: Session, kind):
        """A non-duplicate integrity failure (unknown user) is not masked."""
        target_id = create_target(db_session, kind)

        with pytest.raises(ApiError) as exc_info:
            toggle_relation(db_session, kind, uuid4(), target_id)

        assert exc_info.value.code == ApiErrorCode.E_INTERNAL
        assert get_relation_count(db_session, kind, target_id) == 0


class TestToggleIndependence:
    def test_like_and_bookmark_counters_are_separate(self, db_session: Session):
        user_id = create_test_user(db_session)
        quote_id = create_test_quote(db_session)

        toggle_relation(db_session, RelationKind.quote_like, user_id, quote_id)

        assert get_relation_count(db_session, RelationKind.quote_like, quote_id) == 1
        assert get_relation_count(db_session, RelationKind.quote_bookmark, quote_id) == 0
        assert count_rows(db_session, QuoteBookmark, quote_id=quote_id) == 0

    def test_users_do_not_share_state(self, db_session: Session):
        alice = create_test_user(db_session)
        bob = create_test_user(db_session)
        author_id = create_test_author(db_session)

        toggle_relation(db_session, "author_follow", alice, author_id)
        result = toggle_relation(db_session, "author_follow", bob, author_id)

        assert result.active is True
        assert result.count == 2
        assert count_rows(db_session, AuthorFollow, author_profile_id=author_id) == 2


class TestStatus:
    def test_status_follows_toggle(self, db_session: Session):
        user_id = create_test_user(db_session)
        quote_id = create_test_quote(db_session)

        assert get_relation_status(db_session, "quote_bookmark", user_id, quote_id) is False
        toggle_relation(db_session, "quote_bookmark", user_id, quote_id)
        assert get_relation_status(db_session, "quote_bookmark", user_id, quote_id) is True

    def test_state_includes_counter(self, db_session: Session):
        viewer = create_test_user(db_session)
        other = create_test_user(db_session)
        quote_id = create_test_quote(db_session)
        toggle_relation(db_session, "quote_like", other, quote_id)

        state = get_relation_state(db_session, "quote_like", viewer, quote_id)

        assert state.active is False
        assert state.count == 1

    def test_state_for_missing_target(self, db_session: Session):
        user_id = create_test_user(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            get_relation_state(db_session, "author_follow", user_id, uuid4())

        assert exc_info.value.code == ApiErrorCode.E_AUTHOR_NOT_FOUND


class TestBatchStatus:
    def test_every_requested_id_is_a_key(self, db_session: Session):
        user_id = create_test_user(db_session)
        liked, not_liked = create_test_quotes(db_session, 2)
        unknown = uuid4()
        toggle_relation(db_session, "quote_like", user_id, liked)

        status = get_batch_relation_status(
            db_session, "quote_like", user_id, [liked, not_liked, unknown]
        )

        assert status == {liked: True, not_liked: False, unknown: False}

    def test_duplicate_ids_collapse(self, db_session: Session):
        user_id = create_test_user(db_session)
        quote_id = create_test_quote(db_session)

        status = get_batch_relation_status(
            db_session, "quote_bookmark", user_id, [quote_id, quote_id]
        )

        assert status == {quote_id: False}

    def test_empty_request(self, db_session: Session):
        user_id = create_test_user(db_session)
        assert get_batch_relation_status(db_session, "quote_like", user_id, []) == {}

    def test_large_request_returns_full_map(self, db_session: Session):
        user_id = create_test_user(db_session)
        liked = create_test_quote(db_session)
        toggle_relation(db_session, "quote_like", user_id, liked)
        requested = [liked] + [uuid4() for _ in range(149)]

        status = get_batch_relation_status(db_session, "quote_like", user_id, requested)

        assert set(status) == set(requested)
        assert status[liked] is True
        assert sum(status.values()) == 1


class TestCount:
    def test_missing_target(self, db_session: Session):
        with pytest.raises(NotFoundError) as exc_info:
            get_relation_count(db_session, "quote_like", uuid4())
        assert exc_info.value.code == ApiErrorCode.E_QUOTE_NOT_FOUND


class TestListing:
    def test_pagination_math(self, db_session: Session):
        """23 relations, limit 10: page 2 has more, page 3 holds the last 3."""
        user_id = create_test_user(db_session)
        for quote_id in create_test_quotes(db_session, 23):
            toggle_relation(db_session, "quote_bookmark", user_id, quote_id)

        page2 = list_related_targets(db_session, "quote_bookmark", user_id, page=2, limit=10)
        assert page2.total == 23
        assert len(page2.items) == 10
        assert page2.has_more is True

        page3 = list_related_targets(db_session, "quote_bookmark", user_id, page=3, limit=10)
        assert len(page3.items) == 3
        assert page3.has_more is False

    def test_newest_relation_first(self, db_session: Session):
        user_id = create_test_user(db_session)
        older, newer = create_test_quotes(db_session, 2)
        now = utcnow()
        db_session.execute(
            insert(QuoteLike),
            [
                {"user_id": user_id, "quote_id": older, "created_at": now - timedelta(days=2)},
                {"user_id": user_id, "quote_id": newer, "created_at": now - timedelta(days=1)},
            ],
        )
        db_session.commit()

        page = list_related_targets(db_session, "quote_like", user_id)

        assert [item.target_id for item in page.items] == [newer, older]
        assert isinstance(page.items[0].target, QuoteSummaryOut)
        assert page.items[0].related_at > page.items[1].related_at

    def test_paging_input_is_clamped(self, db_session: Session):
        user_id = create_test_user(db_session)

        page = list_related_targets(db_session, "quote_like", user_id, page=0, limit=500)
        assert page.page == 1
        assert page.limit == 50

        page = list_related_targets(db_session, "quote_like", user_id, page=-3, limit=0)
        assert page.page == 1
        assert page.limit == 1
        assert page.items == []
        assert page.has_more is False

    def test_follow_listing_returns_authors(self, db_session: Session):
        user_id = create_test_user(db_session)
        author_id = create_test_author(db_session, name="Seneca")
        toggle_relation(db_session, "author_follow", user_id, author_id)

        page = list_related_targets(db_session, "author_follow", user_id)

        assert page.total == 1
        target = page.items[0].target
        assert isinstance(target, AuthorSummaryOut)
        assert target.name == "Seneca"
        assert target.followers == 1

    def test_only_the_users_relations(self, db_session: Session):
        alice = create_test_user(db_session)
        bob = create_test_user(db_session)
        quote_id = create_test_quote(db_session)
        toggle_relation(db_session, "quote_like", alice, quote_id)

        assert list_related_targets(db_session, "quote_like", bob).total == 0


class TestCreateDelete:
    def test_create_increments(self, db_session: Session):
        user_id = create_test_user(db_session)
        quote_id = create_test_quote(db_session)

        relation = create_relation(db_session, "quote_bookmark", user_id, quote_id)

        assert relation.kind == "quote_bookmark"
        assert relation.target_id == quote_id
        assert relation.count == 1
        assert get_relation_status(db_session, "quote_bookmark", user_id, quote_id) is True

    def test_create_existing_conflicts(self, db_session: Session):
        user_id = create_test_user(db_session)
        quote_id = create_test_quote(db_session)
        create_relation(db_session, "quote_bookmark", user_id, quote_id)

        with pytest.raises(ConflictError) as exc_info:
            create_relation(db_session, "quote_bookmark", user_id, quote_id)

        assert exc_info.value.code == ApiErrorCode.E_RELATION_EXISTS
        assert get_relation_count(db_session, "quote_bookmark", quote_id) == 1

    def test_create_race_conflicts(self, db_session: Session, monkeypatch):
        user_id = create_test_user(db_session)
        quote_id = create_test_quote(db_session)
        create_relation(db_session, "quote_bookmark", user_id, quote_id)

        stale_lookup_once(monkeypatch)
        with pytest.raises(ConflictError):
            create_relation(db_session, "quote_bookmark", user_id, quote_id)

        assert get_relation_count(db_session, "quote_bookmark", quote_id) == 1

    def test_delete_decrements(self, db_session: Session):
        user_id = create_test_user(db_session)
        quote_id = create_test_quote(db_session)
        create_relation(db_session, "quote_bookmark", user_id, quote_id)

        assert delete_relation(db_session, "quote_bookmark", user_id, quote_id) == 0
        assert get_relation_status(db_session, "quote_bookmark", user_id, quote_id) is False

    def test_delete_missing_relation(self, db_session: Session):
        user_id = create_test_user(db_session)
        quote_id = create_test_quote(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            delete_relation(db_session, "quote_bookmark", user_id, quote_id)

        assert exc_info.value.code == ApiErrorCode.E_RELATION_NOT_FOUND
        assert get_relation_count(db_session, "quote_bookmark", quote_id) == 0
