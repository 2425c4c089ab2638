"""Toggle-style reactions: likes, bookmarks and follows.

A reaction is a membership edge plus one or more denormalized counters. The
edge lookup, the edge mutation and every counter delta happen in one unit of
work, and the deltas are driven by the number of edge rows actually inserted
or deleted, so a counter can never drift from its edge table:

* the target row is locked first, serializing toggles on the same target on
  engines that support ``SELECT ... FOR UPDATE``;
* a delete that finds nothing to remove (a concurrent toggle got there
  first) applies no decrement;
* an insert rejected by the edge's primary key is resolved as an idempotent
  success by re-reading the committed state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from trailpost.core.errors import BadRequestError, ConflictError, NotFoundError
from trailpost.core.security import Actor
from trailpost.db.session import Base
from trailpost.db.transaction import unit_of_work
from trailpost.models import Account, AccountFollow, Post, PostBookmark, PostLike
from trailpost.schemas.reaction import ToggleResponse
from trailpost.services.content import ContentLookup
from trailpost.services.counter_guard import CounterGuard
from trailpost.services.events import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    NotificationEvent,
    NotificationKind,
    emit_notifications,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterRef:
    """A counter column on one row."""

    model: type[Base]
    target_id: int
    field: str


@dataclass(frozen=True)
class EdgeRef:
    """A membership edge identified by its full primary key."""

    model: type[Base]
    keys: dict[str, int]

    def criteria(self) -> list:
        return [getattr(self.model, name) == value for name, value in self.keys.items()]


class ReactionCounter:
    """Service handling like, bookmark and follow toggles."""

    def __init__(
        self,
        db: Session,
        notifications: NotificationDispatcher | None = None,
    ) -> None:
        self._db = db
        self._lookup = ContentLookup(db)
        self._guard = CounterGuard(db)
        self._notifications = notifications or LoggingNotificationDispatcher()

    def toggle_like(self, actor: Actor, post_id: str) -> ToggleResponse:
        """Like or unlike a post.

        Args:
            actor: The requesting actor.
            post_id: Public id of the post.

        Returns:
            Edge state and the post's ``likes_count`` after the toggle.
        """
        account = self._lookup.active_account(actor, "You must be logged in to like posts")
        post = self._lookup.post_or_404(post_id)
        edge = EdgeRef(PostLike, {"post_id": post.id, "account_id": account.id})
        counters = [CounterRef(Post, post.id, "likes_count")]

        active, count, created = self._apply(edge, counters)

        if created and post.author_id != account.id:
            emit_notifications(
                self._notifications,
                [
                    NotificationEvent(
                        kind=NotificationKind.LIKE,
                        target_user_id=post.author_id,
                        context={"post_id": post.public_id, "actor_id": account.id},
                    )
                ],
            )
        return ToggleResponse(active=active, count=count)

    def toggle_bookmark(self, actor: Actor, post_id: str) -> ToggleResponse:
        """Bookmark or un-bookmark a post.

        Both the post's ``bookmarks_count`` and the actor's own
        ``bookmarks_count`` move together in the same transaction.
        """
        account = self._lookup.active_account(actor, "You must be logged in to bookmark posts")
        post = self._lookup.post_or_404(post_id)
        edge = EdgeRef(PostBookmark, {"post_id": post.id, "account_id": account.id})
        counters = [
            CounterRef(Post, post.id, "bookmarks_count"),
            CounterRef(Account, account.id, "bookmarks_count"),
        ]

        active, count, _ = self._apply(edge, counters)
        return ToggleResponse(active=active, count=count)

    def toggle_follow(self, actor: Actor, username: str) -> ToggleResponse:
        """Follow or unfollow another account; ``count`` is its follower count."""
        return self._follow(actor, username, desired=None)

    def follow(self, actor: Actor, username: str) -> ToggleResponse:
        """Follow an account, rejecting an already-present edge."""
        return self._follow(actor, username, desired=True)

    def unfollow(self, actor: Actor, username: str) -> ToggleResponse:
        """Unfollow an account, rejecting a missing edge."""
        return self._follow(actor, username, desired=False)

    def _follow(self, actor: Actor, username: str, *, desired: bool | None) -> ToggleResponse:
        follower = self._lookup.active_account(actor, "You must be logged in to follow accounts")
        followee = self._lookup.account_by_username(username)
        if followee is None:
            raise NotFoundError("Account not found")
        if followee.id == follower.id:
            raise BadRequestError("You cannot follow yourself")

        edge = EdgeRef(
            AccountFollow,
            {"follower_id": follower.id, "followee_id": followee.id},
        )
        counters = [
            CounterRef(Account, followee.id, "followers_count"),
            CounterRef(Account, follower.id, "following_count"),
        ]

        active, count, created = self._apply(edge, counters, desired=desired)

        if created:
            emit_notifications(
                self._notifications,
                [
                    NotificationEvent(
                        kind=NotificationKind.FOLLOW,
                        target_user_id=followee.id,
                        context={"actor_id": follower.id},
                    )
                ],
            )
        return ToggleResponse(active=active, count=count)

    def _apply(
        self,
        edge: EdgeRef,
        counters: list[CounterRef],
        *,
        desired: bool | None = None,
    ) -> tuple[bool, int, bool]:
        """Flip (or force) the edge and move its counters in one transaction.

        Args:
            edge: The membership edge.
            counters: Counters paired with the edge; the first one is reported.
            desired: ``None`` toggles; ``True``/``False`` require the edge to be
                absent/present beforehand and raise ``BadRequestError`` otherwise.

        Returns:
            Tuple of (edge present afterwards, first counter's value, whether
            this call inserted the edge).
        """
        primary = counters[0]
        created = False
        try:
            with unit_of_work(self._db):
                self._lock_target(primary)
                present = self._edge_exists(edge)

                if desired is True and present:
                    raise BadRequestError("Already following this account")
                if desired is False and not present:
                    raise BadRequestError("You are not following this account")

                if present:
                    removed = self._db.execute(
                        delete(edge.model).where(*edge.criteria())
                    ).rowcount
                    if removed:
                        for ref in counters:
                            self._guard.decrement(ref.model, ref.target_id, ref.field)
                    active = False
                else:
                    self._db.execute(insert(edge.model).values(**edge.keys))
                    for ref in counters:
                        self._guard.increment(ref.model, ref.target_id, ref.field)
                    active = created = True

                count = self._guard.current(primary.model, primary.target_id, primary.field)
        except ConflictError:
            if desired is True:
                raise BadRequestError("Already following this account") from None
            # A concurrent toggle inserted the same edge first; report its result.
            logger.warning(
                "Duplicate %s edge %s resolved as no-op",
                edge.model.__tablename__,
                edge.keys,
            )
            created = False
            active = self._edge_exists(edge)
            count = self._guard.current(primary.model, primary.target_id, primary.field)

        return active, count, created

    def _edge_exists(self, edge: EdgeRef) -> bool:
        found = self._db.execute(select(edge.model).where(*edge.criteria()).limit(1)).first()
        return found is not None

    def _lock_target(self, ref: CounterRef) -> None:
        self._db.execute(
            select(ref.model.id).where(ref.model.id == ref.target_id).with_for_update()
        )
