# src/trailpost/models/comment.py
"""SQLAlchemy models for threaded comments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trailpost.db.session import Base
from trailpost.db.time import utcnow


class Comment(Base):
    """A comment on a post, optionally replying to a top-level comment.

    Threads are one level deep: a reply's ``parent_id`` always points at a
    comment whose own ``parent_id`` is NULL.
    """

    __tablename__ = "comment"
    __table_args__ = (
        CheckConstraint("flags_count >= 0", name="ck_comment_flags_count"),
        Index("ix_comment_post_id", "post_id"),
        Index("ix_comment_parent_id", "parent_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    public_id: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("account.id"), nullable=False)
    # Top-level comments have parent_id = NULL.
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comment.id"),
        nullable=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)
    flags_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    author = relationship("Account", lazy="joined", innerjoin=True)
