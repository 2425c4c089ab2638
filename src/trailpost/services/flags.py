"""Content reports and their admin review.

Creating a flag inserts a PENDING row and bumps the target's ``flags_count``
in one transaction. Reviewing a flag resolves it and, in the same
transaction, rolls the counter back (only when leaving PENDING) and applies
any enforcement: soft-deleting the flagged content or blocking its author.
Either every effect of a review commits or none does.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from trailpost.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from trailpost.core.security import Actor, require_admin
from trailpost.core.settings import settings
from trailpost.db.session import Base
from trailpost.db.time import utcnow
from trailpost.db.transaction import unit_of_work
from trailpost.models import Account, Comment, Flag, FlagActionType, FlagCategory, FlagStatus, Post
from trailpost.schemas.flag import (
    FlagAccountSummary,
    FlagContentSummary,
    FlagCreateResponse,
    FlagDetail,
    FlagListResponse,
)
from trailpost.services.content import ContentLookup
from trailpost.services.counter_guard import CounterGuard
from trailpost.services.events import (
    AuditRecord,
    AuditSink,
    LoggingAuditSink,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    NotificationEvent,
    NotificationKind,
    emit_audit,
    emit_notifications,
)
from trailpost.services.public_id import PublicIdGenerator, generate_public_id

logger = logging.getLogger(__name__)

RESOLVED_STATUSES = frozenset({FlagStatus.DISMISSED, FlagStatus.ACTION_TAKEN})


def _coerce(enum_cls, value, label: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as err:
        raise BadRequestError(f"Invalid {label}: {value}") from err


def _clean_text(value: str | None, max_length: int, label: str) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise BadRequestError(f"{label} must be less than {max_length} characters")
    return value


class FlagLedger:
    """Service handling flag creation, listing and admin review."""

    def __init__(
        self,
        db: Session,
        notifications: NotificationDispatcher | None = None,
        audit: AuditSink | None = None,
        public_ids: PublicIdGenerator = generate_public_id,
    ) -> None:
        self._db = db
        self._lookup = ContentLookup(db)
        self._guard = CounterGuard(db)
        self._notifications = notifications or LoggingNotificationDispatcher()
        self._audit = audit or LoggingAuditSink()
        self._public_ids = public_ids

    def create_flag(
        self,
        actor: Actor,
        category: FlagCategory | str,
        description: str | None = None,
        flagged_post_id: str | None = None,
        flagged_comment_id: str | None = None,
    ) -> FlagCreateResponse:
        """Report a post or a comment.

        Args:
            actor: The reporting actor.
            category: Reason for the report.
            description: Optional free text.
            flagged_post_id: Public id of a post; exclusive with ``flagged_comment_id``.
            flagged_comment_id: Public id of a comment; exclusive with ``flagged_post_id``.

        Returns:
            The new flag's public id.

        Raises:
            UnauthorizedError: The actor is anonymous.
            ForbiddenError: The reporter is blocked.
            BadRequestError: Both or neither target given, rate limit hit,
                duplicate report or invalid input.
            NotFoundError: The target is missing or soft-deleted.
        """
        if not actor.authenticated:
            raise UnauthorizedError("You must be logged in to report content")
        reporter = self._db.get(Account, actor.actor_id)
        if reporter is None:
            raise UnauthorizedError("You must be logged in to report content")
        if reporter.blocked:
            raise ForbiddenError("Your account has been blocked")

        if bool(flagged_post_id) == bool(flagged_comment_id):
            raise BadRequestError("You must flag either a post or a comment, not both")

        category = _coerce(FlagCategory, category, "category")
        if category is None:
            raise BadRequestError("A flag category is required")
        description = _clean_text(
            description,
            settings.flag_description_max_length,
            "Description",
        )

        window_start = utcnow() - timedelta(minutes=settings.flag_rate_window_minutes)
        recent = self._db.execute(
            select(func.count())
            .select_from(Flag)
            .where(Flag.reporter_id == reporter.id, Flag.created_at >= window_start)
        ).scalar_one()
        if recent >= settings.flag_rate_limit:
            raise BadRequestError("Too many reports submitted. Please try again later.")

        kind = "post" if flagged_post_id else "comment"
        try:
            with unit_of_work(self._db):
                if flagged_post_id:
                    target: Post | Comment = self._lookup.post_or_404(flagged_post_id)
                    target_filter = Flag.flagged_post_id == target.id
                else:
                    target = self._lookup.comment_or_404(flagged_comment_id)
                    target_filter = Flag.flagged_comment_id == target.id

                existing = self._db.execute(
                    select(Flag.id).where(Flag.reporter_id == reporter.id, target_filter)
                ).first()
                if existing is not None:
                    raise BadRequestError(f"You have already reported this {kind}")

                flag = Flag(
                    public_id=self._public_ids(None),
                    category=category,
                    description=description,
                    status=FlagStatus.PENDING,
                    reporter_id=reporter.id,
                    flagged_post_id=target.id if kind == "post" else None,
                    flagged_comment_id=target.id if kind == "comment" else None,
                )
                self._db.add(flag)
                self._db.flush()
                self._guard.increment(type(target), target.id, "flags_count")
                flag_public_id = flag.public_id
        except ConflictError as err:
            # Another request from the same reporter won the unique constraint.
            raise BadRequestError(f"You have already reported this {kind}") from err

        logger.info("Flag %s created by account %s against %s", flag_public_id, reporter.id, kind)
        return FlagCreateResponse(id=flag_public_id)

    def review_flag(
        self,
        flag_id: str,
        actor: Actor,
        status: FlagStatus | str,
        action_taken: FlagActionType | str | None = None,
        admin_notes: str | None = None,
    ) -> None:
        """Resolve a flag and apply any enforcement atomically.

        Args:
            flag_id: Public id of the flag.
            actor: The reviewing actor; must hold the admin role.
            status: DISMISSED or ACTION_TAKEN.
            action_taken: Optional CONTENT_DELETED or USER_BLOCKED.
            admin_notes: Optional reviewer notes.

        Raises:
            UnauthorizedError: The actor is anonymous.
            ForbiddenError: The actor is not an admin.
            BadRequestError: Invalid status, action or notes.
            NotFoundError: The flag, the flagged content or its author is missing.
            StorageError: The transaction failed and was rolled back.
        """
        reviewer_id = require_admin(actor, "Only admins can update flags")
        status = _coerce(FlagStatus, status, "status")
        if status not in RESOLVED_STATUSES:
            raise BadRequestError("A flag can only be dismissed or marked as actioned")
        action_taken = _coerce(FlagActionType, action_taken, "action")
        admin_notes = _clean_text(admin_notes, settings.admin_notes_max_length, "Admin notes")

        with unit_of_work(self._db):
            flag = self._db.execute(
                select(Flag).where(Flag.public_id == flag_id).with_for_update()
            ).scalar_one_or_none()
            if flag is None:
                raise NotFoundError("Flag not found")

            now = utcnow()
            review = {
                "status": status,
                "action_taken": action_taken,
                "admin_notes": admin_notes,
                "reviewed_by_id": reviewer_id,
                "reviewed_at": now,
            }

            # Only the review that moves the row out of PENDING owns the decrement.
            left_pending = self._db.execute(
                update(Flag)
                .where(Flag.id == flag.id, Flag.status == FlagStatus.PENDING)
                .values(**review)
                .execution_options(synchronize_session=False)
            ).rowcount == 1
            if not left_pending:
                self._db.execute(
                    update(Flag)
                    .where(Flag.id == flag.id)
                    .values(**review)
                    .execution_options(synchronize_session=False)
                )

            target_model, target_id, kind = self._target_of(flag)
            if left_pending:
                self._guard.decrement(target_model, target_id, "flags_count")

            audit: list[AuditRecord] = []
            if action_taken == FlagActionType.CONTENT_DELETED:
                self._soft_delete_target(target_model, target_id, now)
                audit.append(
                    AuditRecord(
                        actor_id=reviewer_id,
                        action=f"deleted {kind}",
                        target_id=target_id,
                        flag_id=flag.public_id,
                        timestamp=now,
                    )
                )
            if action_taken == FlagActionType.USER_BLOCKED:
                author_id = self._block_author(target_model, target_id)
                audit.append(
                    AuditRecord(
                        actor_id=reviewer_id,
                        action="blocked user",
                        target_id=author_id,
                        flag_id=flag.public_id,
                        timestamp=now,
                    )
                )

            reporter_id = flag.reporter_id
            flag_public_id = flag.public_id

        logger.info(
            "Flag %s reviewed by admin %s: %s -> %s (action=%s)",
            flag_public_id,
            reviewer_id,
            FlagStatus.PENDING.value if left_pending else "resolved",
            status.value,
            action_taken.value if action_taken else None,
        )
        emit_audit(self._audit, audit)
        emit_notifications(
            self._notifications,
            [
                NotificationEvent(
                    kind=NotificationKind.FLAG_REVIEWED,
                    target_user_id=reporter_id,
                    context={"flag_id": flag_public_id, "status": status.value},
                )
            ],
        )

    def list_flags(
        self,
        actor: Actor,
        status: FlagStatus | str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> FlagListResponse:
        """List flags newest first, optionally filtered by status (admin only)."""
        require_admin(actor, "Only admins can view flags")
        status = _coerce(FlagStatus, status, "status")
        page_size = min(limit or settings.flags_default_page_size, settings.flags_max_page_size)
        if page_size < 1 or offset < 0:
            raise BadRequestError("Invalid pagination parameters")

        filters = [Flag.status == status] if status is not None else []
        total = self._db.execute(
            select(func.count()).select_from(Flag).where(*filters)
        ).scalar_one()
        flags = (
            self._db.execute(
                select(Flag)
                .where(*filters)
                .order_by(Flag.created_at.desc(), Flag.id.desc())
                .limit(page_size)
                .offset(offset)
            )
            .scalars()
            .all()
        )
        return FlagListResponse(
            flags=[self._to_detail(flag, settings.flag_preview_length) for flag in flags],
            total=total,
        )

    def get_flag(self, actor: Actor, flag_id: str) -> FlagDetail:
        """Return one flag with a longer content preview (admin only)."""
        require_admin(actor, "Only admins can view flag details")
        flag = self._db.execute(
            select(Flag).where(Flag.public_id == flag_id)
        ).scalar_one_or_none()
        if flag is None:
            raise NotFoundError("Flag not found")
        return self._to_detail(flag, settings.flag_detail_preview_length)

    @staticmethod
    def _target_of(flag: Flag) -> tuple[type[Base], int, str]:
        if flag.flagged_post_id is not None:
            return Post, flag.flagged_post_id, "post"
        return Comment, flag.flagged_comment_id, "comment"

    def _soft_delete_target(self, model: type[Base], target_id: int, now: datetime) -> None:
        """Soft-delete exactly the flagged row.

        Replies of a flagged comment are left untouched and the post's
        comment counter is not adjusted; only the user-initiated delete path
        cascades.
        """
        removed = self._db.execute(
            update(model)
            .where(model.id == target_id, model.deleted_at.is_(None))
            .values(deleted_at=now)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not removed:
            logger.info("%s %s was already deleted", model.__name__, target_id)

    def _block_author(self, model: type[Base], target_id: int) -> int:
        """Block the author of the flagged row and return the author's id."""
        author_id = self._db.execute(
            select(model.author_id).where(model.id == target_id)
        ).scalar_one_or_none()
        if author_id is None:
            raise NotFoundError("Flagged content not found")

        blocked = self._db.execute(
            update(Account)
            .where(Account.id == author_id)
            .values(blocked=True)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not blocked:
            raise NotFoundError("Content author not found")
        return author_id

    @staticmethod
    def _to_detail(flag: Flag, preview_length: int) -> FlagDetail:
        if flag.flagged_post is not None:
            post = flag.flagged_post
            preview = post.title or post.content[:preview_length]
            content = FlagContentSummary(
                type="post",
                id=post.public_id,
                preview=preview,
                author=FlagAccountSummary(username=post.author.username),
                deleted=post.deleted_at is not None,
            )
        else:
            comment = flag.flagged_comment
            content = FlagContentSummary(
                type="comment",
                id=comment.public_id,
                preview=comment.content[:preview_length],
                author=FlagAccountSummary(username=comment.author.username),
                deleted=comment.deleted_at is not None,
            )

        return FlagDetail(
            id=flag.public_id,
            category=flag.category,
            description=flag.description,
            status=flag.status,
            action_taken=flag.action_taken,
            admin_notes=flag.admin_notes,
            created_at=flag.created_at,
            reviewed_at=flag.reviewed_at,
            reporter=FlagAccountSummary(username=flag.reporter.username),
            reviewed_by=(
                FlagAccountSummary(username=flag.reviewed_by.username)
                if flag.reviewed_by is not None
                else None
            ),
            flagged_content=content,
        )
