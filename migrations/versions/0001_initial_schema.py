"""initial schema: accounts, posts, comments, reactions, flags

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

FLAG_CATEGORIES = (
    "ai_generated_content",
    "obscene_language",
    "sexually_explicit",
    "graphic_violence",
    "political_content",
    "unauthorized_marketing",
    "plagiarism",
    "spam",
    "copyright_violation",
    "harassment",
    "ai_generated_images",
    "sexually_graphic_media",
    "violence_gore_imagery",
    "commercial_branding",
    "privacy_violation",
)


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=max(len(v) for v in values))


def upgrade() -> None:
    """Create the consistency-core tables."""
    op.create_table(
        "account",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("role", _enum("userrole", "user", "creator", "admin"), nullable=False),
        sa.Column("blocked", sa.Boolean(), nullable=False),
        sa.Column("followers_count", sa.Integer(), nullable=False),
        sa.Column("following_count", sa.Integer(), nullable=False),
        sa.Column("bookmarks_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("followers_count >= 0", name="ck_account_followers_count"),
        sa.CheckConstraint("following_count >= 0", name="ck_account_following_count"),
        sa.CheckConstraint("bookmarks_count >= 0", name="ck_account_bookmarks_count"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("public_id", sa.Text(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("comments_enabled", sa.Boolean(), nullable=False),
        sa.Column("comments_count", sa.Integer(), nullable=False),
        sa.Column("likes_count", sa.Integer(), nullable=False),
        sa.Column("bookmarks_count", sa.Integer(), nullable=False),
        sa.Column("flags_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("comments_count >= 0", name="ck_post_comments_count"),
        sa.CheckConstraint("likes_count >= 0", name="ck_post_likes_count"),
        sa.CheckConstraint("bookmarks_count >= 0", name="ck_post_bookmarks_count"),
        sa.CheckConstraint("flags_count >= 0", name="ck_post_flags_count"),
        sa.ForeignKeyConstraint(["author_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("public_id"),
    )
    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("public_id", sa.Text(), nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("flags_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("flags_count >= 0", name="ck_comment_flags_count"),
        sa.ForeignKeyConstraint(["author_id"], ["account.id"]),
        sa.ForeignKeyConstraint(["parent_id"], ["comment.id"]),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("public_id"),
    )
    op.create_index("ix_comment_post_id", "comment", ["post_id"])
    op.create_index("ix_comment_parent_id", "comment", ["parent_id"])

    for table in ("post_like", "post_bookmark"):
        op.create_table(
            table,
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("account_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["account_id"], ["account.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("post_id", "account_id"),
        )

    op.create_table(
        "account_follow",
        sa.Column("follower_id", sa.Integer(), nullable=False),
        sa.Column("followee_id", sa.Integer(), nullable=False),
        sa.CheckConstraint("follower_id <> followee_id", name="ck_account_follow_not_self"),
        sa.ForeignKeyConstraint(["followee_id"], ["account.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["follower_id"], ["account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("follower_id", "followee_id"),
    )
    op.create_index("ix_account_follow_followee_id", "account_follow", ["followee_id"])

    op.create_table(
        "flag",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("public_id", sa.Text(), nullable=False),
        sa.Column("category", _enum("flagcategory", *FLAG_CATEGORIES), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            _enum("flagstatus", "pending", "dismissed", "action_taken"),
            nullable=False,
        ),
        sa.Column("reporter_id", sa.Integer(), nullable=False),
        sa.Column("flagged_post_id", sa.Integer(), nullable=True),
        sa.Column("flagged_comment_id", sa.Integer(), nullable=True),
        sa.Column(
            "action_taken",
            _enum("flagactiontype", "content_deleted", "user_blocked"),
            nullable=True,
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_by_id", sa.Integer(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(flagged_post_id IS NULL) <> (flagged_comment_id IS NULL)",
            name="ck_flag_exactly_one_target",
        ),
        sa.ForeignKeyConstraint(["flagged_comment_id"], ["comment.id"]),
        sa.ForeignKeyConstraint(["flagged_post_id"], ["post.id"]),
        sa.ForeignKeyConstraint(["reporter_id"], ["account.id"]),
        sa.ForeignKeyConstraint(["reviewed_by_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("public_id"),
        sa.UniqueConstraint("reporter_id", "flagged_post_id", name="uq_flag_reporter_post"),
        sa.UniqueConstraint("reporter_id", "flagged_comment_id", name="uq_flag_reporter_comment"),
    )
    op.create_index("ix_flag_reporter_created_at", "flag", ["reporter_id", "created_at"])
    op.create_index("ix_flag_status", "flag", ["status"])


def downgrade() -> None:
    """Drop the consistency-core tables."""
    op.drop_index("ix_flag_status", table_name="flag")
    op.drop_index("ix_flag_reporter_created_at", table_name="flag")
    op.drop_table("flag")
    op.drop_index("ix_account_follow_followee_id", table_name="account_follow")
    op.drop_table("account_follow")
    op.drop_table("post_bookmark")
    op.drop_table("post_like")
    op.drop_index("ix_comment_parent_id", table_name="comment")
    op.drop_index("ix_comment_post_id", table_name="comment")
    op.drop_table("comment")
    op.drop_table("post")
    op.drop_table("account")
