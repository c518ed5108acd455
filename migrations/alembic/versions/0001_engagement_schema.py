"""Engagement schema - users, authors, quotes, relations, daily selections

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Relation tables key on (user_id, target_id) so duplicate relations are
rejected by the store. daily_selections carries a partial unique index
that allows at most one active row.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        sa.UUID(),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _create_relation_table(name: str, target_column: str, target_table: str) -> None:
    op.create_table(
        name,
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column(target_column, sa.UUID(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("user_id", target_column),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint([target_column], [f"{target_table}.id"], ondelete="CASCADE"),
    )
    # Listing: WHERE user_id = ? ORDER BY created_at DESC
    op.create_index(f"ix_{name}_user_created", name, ["user_id", "created_at"])
    op.create_index(f"ix_{name}_{target_column}", name, [target_column])


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    # ==========================================================================
    # users
    # ==========================================================================
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("role", sa.Text(), server_default="user", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    # ==========================================================================
    # content
    # ==========================================================================
    op.create_table(
        "author_profiles",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("followers", sa.Integer(), server_default="0", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug", name="uq_author_profiles_slug"),
        sa.CheckConstraint("followers >= 0", name="ck_author_profiles_followers_nonnegative"),
    )

    op.create_table(
        "categories",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug", name="uq_categories_slug"),
    )

    op.create_table(
        "tags",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug", name="uq_tags_slug"),
    )

    op.create_table(
        "quotes",
        _uuid_pk(),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_profile_id", sa.UUID(), nullable=False),
        sa.Column("category_id", sa.UUID(), nullable=True),
        sa.Column("likes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("bookmarks", sa.Integer(), server_default="0", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug", name="uq_quotes_slug"),
        sa.ForeignKeyConstraint(
            ["author_profile_id"], ["author_profiles.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.CheckConstraint("likes >= 0", name="ck_quotes_likes_nonnegative"),
        sa.CheckConstraint("bookmarks >= 0", name="ck_quotes_bookmarks_nonnegative"),
    )
    op.create_index("ix_quotes_author_profile_id", "quotes", ["author_profile_id"])

    op.create_table(
        "quote_tags",
        sa.Column("quote_id", sa.UUID(), nullable=False),
        sa.Column("tag_id", sa.UUID(), nullable=False),
        sa.PrimaryKeyConstraint("quote_id", "tag_id"),
        sa.ForeignKeyConstraint(["quote_id"], ["quotes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
    )

    # ==========================================================================
    # relations (row existence is the active state)
    # ==========================================================================
    _create_relation_table("author_follows", "author_profile_id", "author_profiles")
    _create_relation_table("quote_bookmarks", "quote_id", "quotes")
    _create_relation_table("quote_likes", "quote_id", "quotes")

    # ==========================================================================
    # daily_selections
    # ==========================================================================
    op.create_table(
        "daily_selections",
        _uuid_pk(),
        sa.Column("quote_id", sa.UUID(), nullable=False),
        sa.Column("selection_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("expiration_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["quote_id"], ["quotes.id"], ondelete="CASCADE"),
    )

    # Partial unique index: at most one active selection
    op.create_index(
        "uq_daily_selections_single_active",
        "daily_selections",
        ["is_active"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )
    op.create_index(
        "ix_daily_selections_selection_date", "daily_selections", ["selection_date"]
    )
    op.create_index("ix_daily_selections_quote_id", "daily_selections", ["quote_id"])


def downgrade() -> None:
    op.drop_table("daily_selections")
    op.drop_table("quote_likes")
    op.drop_table("quote_bookmarks")
    op.drop_table("author_follows")
    op.drop_table("quote_tags")
    op.drop_table("quotes")
    op.drop_table("tags")
    op.drop_table("categories")
    op.drop_table("author_profiles")
    op.drop_table("users")
