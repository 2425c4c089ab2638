# src/trailpost/models/post.py
"""SQLAlchemy models for posts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trailpost.db.session import Base
from trailpost.db.time import utcnow


class Post(Base):
    """Primary content entity produced by accounts.

    Posts are soft-deleted: ``deleted_at`` set means the post is excluded from
    every read and mutation path.
    """

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint("comments_count >= 0", name="ck_post_comments_count"),
        CheckConstraint("likes_count >= 0", name="ck_post_likes_count"),
        CheckConstraint("bookmarks_count >= 0", name="ck_post_bookmarks_count"),
        CheckConstraint("flags_count >= 0", name="ck_post_flags_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    public_id: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("account.id"), nullable=False)

    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    comments_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Denormalized aggregates; see services.counter_guard.
    comments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bookmarks_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
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
