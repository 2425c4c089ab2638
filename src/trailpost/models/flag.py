# src/trailpost/models/flag.py
"""Models tracking content reports and their admin review."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trailpost.db.session import Base
from trailpost.db.time import utcnow


class FlagCategory(str, enum.Enum):
    """Reasons a reporter can give for flagging content."""

    AI_GENERATED_CONTENT = "ai_generated_content"
    OBSCENE_LANGUAGE = "obscene_language"
    SEXUALLY_EXPLICIT = "sexually_explicit"
    GRAPHIC_VIOLENCE = "graphic_violence"
    POLITICAL_CONTENT = "political_content"
    UNAUTHORIZED_MARKETING = "unauthorized_marketing"
    PLAGIARISM = "plagiarism"
    SPAM = "spam"
    COPYRIGHT_VIOLATION = "copyright_violation"
    HARASSMENT = "harassment"
    AI_GENERATED_IMAGES = "ai_generated_images"
    SEXUALLY_GRAPHIC_MEDIA = "sexually_graphic_media"
    VIOLENCE_GORE_IMAGERY = "violence_gore_imagery"
    COMMERCIAL_BRANDING = "commercial_branding"
    PRIVACY_VIOLATION = "privacy_violation"


class FlagStatus(str, enum.Enum):
    """Review state. PENDING is the only non-terminal state."""

    PENDING = "pending"
    DISMISSED = "dismissed"
    ACTION_TAKEN = "action_taken"


class FlagActionType(str, enum.Enum):
    """Enforcement an admin applied while reviewing a flag."""

    CONTENT_DELETED = "content_deleted"
    USER_BLOCKED = "user_blocked"


def _enum_column(enum_cls: type[enum.Enum]) -> Enum:
    return Enum(enum_cls, native_enum=False, values_callable=lambda e: [m.value for m in e])


class Flag(Base):
    """A report filed by an account against exactly one post or comment.

    Flags are never hard-deleted. A reporter can flag a given item at most
    once, which the two unique constraints enforce at the storage layer.
    """

    __tablename__ = "flag"
    __table_args__ = (
        CheckConstraint(
            "(flagged_post_id IS NULL) <> (flagged_comment_id IS NULL)",
            name="ck_flag_exactly_one_target",
        ),
        UniqueConstraint("reporter_id", "flagged_post_id", name="uq_flag_reporter_post"),
        UniqueConstraint("reporter_id", "flagged_comment_id", name="uq_flag_reporter_comment"),
        Index("ix_flag_reporter_created_at", "reporter_id", "created_at"),
        Index("ix_flag_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    public_id: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    category: Mapped[FlagCategory] = mapped_column(_enum_column(FlagCategory), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[FlagStatus] = mapped_column(
        _enum_column(FlagStatus),
        nullable=False,
        default=FlagStatus.PENDING,
    )

    reporter_id: Mapped[int] = mapped_column(Integer, ForeignKey("account.id"), nullable=False)
    flagged_post_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("post.id"),
        nullable=True,
    )
    flagged_comment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comment.id"),
        nullable=True,
    )

    action_taken: Mapped[FlagActionType | None] = mapped_column(
        _enum_column(FlagActionType),
        nullable=True,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("account.id"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    reporter = relationship("Account", foreign_keys=[reporter_id])
    reviewed_by = relationship("Account", foreign_keys=[reviewed_by_id])
    flagged_post = relationship("Post", foreign_keys=[flagged_post_id])
    flagged_comment = relationship("Comment", foreign_keys=[flagged_comment_id])
