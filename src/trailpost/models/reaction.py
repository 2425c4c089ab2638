# src/trailpost/models/reaction.py
"""Membership edges backing toggle-style reactions.

Each edge has no lifecycle beyond its existence; the composite primary key is
the uniqueness constraint that rejects a concurrent duplicate insert.
"""

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from trailpost.db.session import Base


class PostLike(Base):
    """An account liking a post."""

    __tablename__ = "post_like"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("account.id", ondelete="CASCADE"),
        primary_key=True,
    )


class PostBookmark(Base):
    """An account bookmarking a post."""

    __tablename__ = "post_bookmark"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("account.id", ondelete="CASCADE"),
        primary_key=True,
    )


class AccountFollow(Base):
    """A follower -> followee relation between two accounts."""

    __tablename__ = "account_follow"
    __table_args__ = (
        CheckConstraint("follower_id <> followee_id", name="ck_account_follow_not_self"),
        Index("ix_account_follow_followee_id", "followee_id"),
    )

    follower_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    followee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("account.id", ondelete="CASCADE"),
        primary_key=True,
    )
