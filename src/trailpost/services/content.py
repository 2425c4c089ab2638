"""Active-content lookups.

Every read path that resolves a post, comment or account by its external
identifier goes through :class:`ContentLookup`, so the soft-delete filter is
applied in one place instead of being repeated per query.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from trailpost.core.errors import ForbiddenError, NotFoundError
from trailpost.core.security import Actor
from trailpost.models import Account, Comment, Post


class ContentLookup:
    """Resolve live (not soft-deleted) content for the current unit of work."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_post(self, public_id: str, *, for_update: bool = False) -> Post | None:
        stmt = select(Post).where(Post.public_id == public_id, Post.deleted_at.is_(None))
        if for_update:
            stmt = stmt.with_for_update()
        return self._db.execute(stmt).unique().scalar_one_or_none()

    def find_comment(self, public_id: str, *, for_update: bool = False) -> Comment | None:
        stmt = select(Comment).where(
            Comment.public_id == public_id,
            Comment.deleted_at.is_(None),
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self._db.execute(stmt).unique().scalar_one_or_none()

    def post_or_404(self, public_id: str, *, for_update: bool = False) -> Post:
        post = self.find_post(public_id, for_update=for_update)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def comment_or_404(self, public_id: str, *, for_update: bool = False) -> Comment:
        comment = self.find_comment(public_id, for_update=for_update)
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def account_by_username(self, username: str) -> Account | None:
        return self._db.execute(
            select(Account).where(Account.username == username)
        ).scalar_one_or_none()

    def active_account(self, actor: Actor, message: str) -> Account:
        """Return the acting account, rejecting anonymous or blocked actors.

        Raises:
            ForbiddenError: If the actor is anonymous, unknown or blocked.
        """
        if actor.actor_id is None:
            raise ForbiddenError(message)
        account = self._db.get(Account, actor.actor_id)
        if account is None:
            raise ForbiddenError(message)
        if account.blocked:
            raise ForbiddenError("Your account has been blocked")
        return account
