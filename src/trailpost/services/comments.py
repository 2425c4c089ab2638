"""Threaded comments with one level of replies and cascade soft-delete.

The post's ``comments_count`` tracks every live comment, replies included.
Creating a comment increments it in the same transaction as the insert;
deleting a top-level comment soft-deletes its live replies and decrements
the counter by exactly the number of rows whose ``deleted_at`` moved from
NULL to a timestamp, as reported by the UPDATE statements themselves.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from trailpost.core.errors import BadRequestError, ForbiddenError, NotFoundError
from trailpost.core.roles import UserRole
from trailpost.core.security import Actor
from trailpost.core.settings import settings
from trailpost.db.time import utcnow
from trailpost.db.transaction import unit_of_work
from trailpost.models import Account, Comment, Post
from trailpost.schemas.comment import (
    CommentAuthor,
    CommentDetail,
    CommentListResponse,
    CommentsToggleResponse,
)
from trailpost.services.content import ContentLookup
from trailpost.services.counter_guard import CounterGuard
from trailpost.services.events import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    NotificationEvent,
    NotificationKind,
    emit_notifications,
)
from trailpost.services.public_id import PublicIdGenerator, generate_public_id

logger = logging.getLogger(__name__)

COMMENT_ID_PREFIX = "cm"
REPLY_TO_REPLY_MESSAGE = "Cannot reply to a reply. Please reply to the parent comment instead."


def _author_summary(account: Account) -> CommentAuthor:
    return CommentAuthor(username=account.username, creator=account.role == UserRole.CREATOR)


def _to_detail(
    comment: Comment,
    author: Account,
    viewer_id: int | None,
    parent_public_id: str | None = None,
) -> CommentDetail:
    return CommentDetail(
        id=comment.public_id,
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        author=_author_summary(author),
        created_by_me=viewer_id is not None and viewer_id == comment.author_id,
        parent_id=parent_public_id,
    )


class CommentThread:
    """Service handling comment creation, editing, listing and deletion."""

    def __init__(
        self,
        db: Session,
        notifications: NotificationDispatcher | None = None,
        public_ids: PublicIdGenerator = generate_public_id,
    ) -> None:
        self._db = db
        self._lookup = ContentLookup(db)
        self._guard = CounterGuard(db)
        self._notifications = notifications or LoggingNotificationDispatcher()
        self._public_ids = public_ids

    def list_comments(
        self,
        post_id: str,
        actor: Actor,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> CommentListResponse:
        """Return a page of live top-level comments, newest first, with replies.

        Args:
            post_id: Public id of the post.
            actor: The requesting actor (may be anonymous).
            cursor: ``next_cursor`` from a previous page.
            limit: Page size, capped at ``settings.comments_max_page_size``.
        """
        post = self._lookup.post_or_404(post_id)
        page_size = min(limit or settings.comments_default_page_size, settings.comments_max_page_size)

        filters = [
            Comment.post_id == post.id,
            Comment.deleted_at.is_(None),
            Comment.parent_id.is_(None),
        ]
        count = self._db.execute(
            select(func.count()).select_from(Comment).where(*filters)
        ).scalar_one()

        if cursor is not None:
            try:
                filters.append(Comment.id < int(cursor))
            except ValueError as err:
                raise BadRequestError("Invalid cursor") from err

        rows = (
            self._db.execute(
                select(Comment).where(*filters).order_by(Comment.id.desc()).limit(page_size + 1)
            )
            .unique()
            .scalars()
            .all()
        )
        has_more = len(rows) > page_size
        rows = rows[:page_size]

        replies_by_parent: dict[int, list[Comment]] = {row.id: [] for row in rows}
        if rows:
            replies = (
                self._db.execute(
                    select(Comment)
                    .where(
                        Comment.parent_id.in_(list(replies_by_parent)),
                        Comment.deleted_at.is_(None),
                    )
                    .order_by(Comment.created_at.asc(), Comment.id.asc())
                )
                .unique()
                .scalars()
                .all()
            )
            for reply in replies:
                replies_by_parent[reply.parent_id].append(reply)

        data: list[CommentDetail] = []
        for row in rows:
            detail = _to_detail(row, row.author, actor.actor_id)
            children = replies_by_parent[row.id]
            detail.replies = [
                _to_detail(reply, reply.author, actor.actor_id, row.public_id)
                for reply in children
            ]
            detail.replies_count = len(children)
            data.append(detail)

        return CommentListResponse(
            data=data,
            count=count,
            has_more=has_more,
            next_cursor=str(rows[-1].id) if has_more and rows else None,
        )

    def create(
        self,
        post_id: str,
        actor: Actor,
        content: str,
        parent_id: str | None = None,
    ) -> CommentDetail:
        """Create a comment, or a reply when ``parent_id`` is given.

        Raises:
            ForbiddenError: Anonymous or blocked actor, or comments disabled.
            NotFoundError: Post or parent comment missing or deleted.
            BadRequestError: Empty/oversized content or a reply to a reply.
        """
        author = self._lookup.active_account(actor, "You must be logged in to comment")
        body = self._clean_content(content)

        with unit_of_work(self._db):
            post = self._lookup.post_or_404(post_id, for_update=True)
            if not post.comments_enabled:
                raise ForbiddenError("Comments are disabled for this post")

            parent: Comment | None = None
            if parent_id:
                parent = self._db.execute(
                    select(Comment).where(
                        Comment.public_id == parent_id,
                        Comment.post_id == post.id,
                        Comment.deleted_at.is_(None),
                    )
                ).unique().scalar_one_or_none()
                if parent is None:
                    raise NotFoundError("Parent comment not found")
                if parent.parent_id is not None:
                    raise BadRequestError(REPLY_TO_REPLY_MESSAGE)

            comment = Comment(
                public_id=self._public_ids(COMMENT_ID_PREFIX),
                post_id=post.id,
                author_id=author.id,
                parent_id=parent.id if parent else None,
                content=body,
            )
            self._db.add(comment)
            self._db.flush()
            self._guard.increment(Post, post.id, "comments_count")

            detail = _to_detail(comment, author, author.id, parent.public_id if parent else None)
            events = self._comment_events(post, parent, author.id)

        emit_notifications(self._notifications, events)
        return detail

    def update(self, comment_id: str, actor: Actor, content: str) -> CommentDetail:
        """Edit a comment's text. Only the original author may do this."""
        author = self._lookup.active_account(actor, "You must be logged in to update a comment")
        body = self._clean_content(content)

        with unit_of_work(self._db):
            comment = self._lookup.comment_or_404(comment_id, for_update=True)
            if comment.author_id != author.id:
                raise ForbiddenError("You can only edit your own comments")

            comment.content = body
            comment.updated_at = utcnow()
            self._db.flush()

            parent_public_id = None
            if comment.parent_id is not None:
                parent_public_id = self._db.execute(
                    select(Comment.public_id).where(Comment.id == comment.parent_id)
                ).scalar_one_or_none()
            detail = _to_detail(comment, author, author.id, parent_public_id)

        return detail

    def delete(self, comment_id: str, actor: Actor) -> bool:
        """Soft-delete a comment, cascading to its replies if it is top-level.

        Permitted for the comment's author or an admin.

        Returns:
            True once the deletion has committed.
        """
        if not actor.authenticated:
            raise ForbiddenError("You must be logged in to delete a comment")

        with unit_of_work(self._db):
            comment = self._lookup.comment_or_404(comment_id, for_update=True)
            if comment.author_id != actor.actor_id and not actor.is_admin:
                raise ForbiddenError("You can only delete your own comments")

            now = utcnow()
            replies_deleted = 0
            if comment.parent_id is None:
                replies_deleted = self._db.execute(
                    update(Comment)
                    .where(Comment.parent_id == comment.id, Comment.deleted_at.is_(None))
                    .values(deleted_at=now)
                    .execution_options(synchronize_session=False)
                ).rowcount

            marked = self._db.execute(
                update(Comment)
                .where(Comment.id == comment.id, Comment.deleted_at.is_(None))
                .values(deleted_at=now)
                .execution_options(synchronize_session=False)
            ).rowcount
            if not marked:
                # Lost a race with another delete; undo the reply cascade too.
                raise NotFoundError("Comment not found")

            total = marked + replies_deleted
            self._guard.decrement(Post, comment.post_id, "comments_count", total)
            post_id = comment.post_id

        logger.info(
            "Comment %s deleted by account %s; post %s comments_count -%d (%d replies cascaded)",
            comment_id,
            actor.actor_id,
            post_id,
            total,
            replies_deleted,
        )
        return True

    def toggle_comments(self, post_id: str, actor: Actor) -> CommentsToggleResponse:
        """Enable or disable comments on a post owned by the actor."""
        account = self._lookup.active_account(actor, "You must be logged in")

        with unit_of_work(self._db):
            post = self._lookup.post_or_404(post_id, for_update=True)
            if post.author_id != account.id:
                raise ForbiddenError("You can only toggle comments on your own posts")
            post.comments_enabled = not post.comments_enabled
            enabled = post.comments_enabled

        return CommentsToggleResponse(comments_enabled=enabled)

    @staticmethod
    def _clean_content(content: str) -> str:
        body = (content or "").strip()
        if not body:
            raise BadRequestError("Comment cannot be empty")
        if len(body) > settings.comment_max_length:
            raise BadRequestError(
                f"Comment must be at most {settings.comment_max_length} characters"
            )
        return body

    @staticmethod
    def _comment_events(
        post: Post,
        parent: Comment | None,
        actor_id: int,
    ) -> list[NotificationEvent]:
        context = {"post_id": post.public_id, "actor_id": actor_id, "body": post.title}
        if parent is not None:
            if parent.author_id != actor_id:
                return [
                    NotificationEvent(
                        kind=NotificationKind.COMMENT_REPLY,
                        target_user_id=parent.author_id,
                        context=context,
                    )
                ]
            return []
        if post.author_id != actor_id:
            return [
                NotificationEvent(
                    kind=NotificationKind.COMMENT,
                    target_user_id=post.author_id,
                    context=context,
                )
            ]
        return []
