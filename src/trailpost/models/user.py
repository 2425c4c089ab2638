# src/trailpost/models/user.py
"""SQLAlchemy models for accounts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from trailpost.core.roles import UserRole
from trailpost.db.session import Base
from trailpost.db.time import utcnow


class Account(Base):
    """A registered member of the network.

    The follow and bookmark counters are denormalized aggregates of the
    reaction edge tables and are only ever changed through the counter guard.
    """

    __tablename__ = "account"
    __table_args__ = (
        CheckConstraint("followers_count >= 0", name="ck_account_followers_count"),
        CheckConstraint("following_count >= 0", name="ck_account_following_count"),
        CheckConstraint("bookmarks_count >= 0", name="ck_account_bookmarks_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
    )
    blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    followers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bookmarks_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
