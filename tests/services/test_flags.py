"""Tests for flag creation and admin review."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from trailpost.core.errors import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
)
from trailpost.core.security import Actor
from trailpost.db.time import utcnow
from trailpost.models import Comment, Flag, FlagActionType, FlagCategory, FlagStatus, Post
from trailpost.services import flags as flags_module
from trailpost.services.events import NotificationKind
from trailpost.services.flags import FlagLedger


@pytest.fixture()
def ledger(db_session, notifications, audit_sink) -> FlagLedger:
    ids = iter(f"fl_{i}" for i in range(1000))
    return FlagLedger(db_session, notifications, audit_sink, public_ids=lambda prefix: next(ids))


def _flag(db_session, public_id: str) -> Flag:
    db_session.expire_all()
    return db_session.execute(select(Flag).where(Flag.public_id == public_id)).scalar_one()


def test_create_flag_on_post(db_session, ledger, actor, test_post) -> None:
    created = ledger.create_flag(actor, FlagCategory.SPAM, "Selling boots", flagged_post_id=test_post.public_id)

    flag = _flag(db_session, created.id)
    assert flag.status == FlagStatus.PENDING
    assert flag.flagged_post_id == test_post.id
    assert flag.flagged_comment_id is None
    db_session.refresh(test_post)
    assert test_post.flags_count == 1


def test_create_flag_on_comment(db_session, ledger, actor, test_post, other_user, make_comment) -> None:
    comment = make_comment(test_post, other_user)

    created = ledger.create_flag(actor, "harassment", flagged_comment_id=comment.public_id)

    assert _flag(db_session, created.id).category == FlagCategory.HARASSMENT
    db_session.refresh(comment)
    assert comment.flags_count == 1


def test_flag_target_must_be_exclusive(ledger, actor, test_post, other_user, make_comment) -> None:
    comment = make_comment(test_post, other_user)
    with pytest.raises(BadRequestError):
        ledger.create_flag(
            actor,
            FlagCategory.SPAM,
            flagged_post_id=test_post.public_id,
            flagged_comment_id=comment.public_id,
        )
    with pytest.raises(BadRequestError):
        ledger.create_flag(actor, FlagCategory.SPAM)


def test_flag_requires_login(ledger, test_post) -> None:
    with pytest.raises(UnauthorizedError):
        ledger.create_flag(Actor.anonymous(), FlagCategory.SPAM, flagged_post_id=test_post.public_id)


def test_flag_invalid_category(ledger, actor, test_post) -> None:
    with pytest.raises(BadRequestError):
        ledger.create_flag(actor, "boring", flagged_post_id=test_post.public_id)


def test_flag_description_too_long(ledger, actor, test_post, test_settings) -> None:
    with pytest.raises(BadRequestError):
        ledger.create_flag(
            actor,
            FlagCategory.SPAM,
            "x" * (test_settings.flag_description_max_length + 1),
            flagged_post_id=test_post.public_id,
        )


def test_flag_missing_or_deleted_target(ledger, actor, make_post, other_user) -> None:
    with pytest.raises(NotFoundError):
        ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id="po_missing")

    deleted = make_post(other_user, deleted_at=utcnow())
    with pytest.raises(NotFoundError):
        ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=deleted.public_id)


def test_duplicate_flag_rejected(db_session, ledger, actor, test_post) -> None:
    ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)

    with pytest.raises(BadRequestError) as exc_info:
        ledger.create_flag(actor, FlagCategory.PLAGIARISM, flagged_post_id=test_post.public_id)

    assert exc_info.value.message == "You have already reported this post"
    db_session.refresh(test_post)
    assert test_post.flags_count == 1


def test_rate_limit(db_session, ledger, actor, make_post, other_user, test_settings) -> None:
    posts = [make_post(other_user) for _ in range(test_settings.flag_rate_limit + 1)]
    for post in posts[:-1]:
        ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=post.public_id)

    with pytest.raises(BadRequestError) as exc_info:
        ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=posts[-1].public_id)

    assert "Too many reports" in exc_info.value.message
    db_session.refresh(posts[-1])
    assert posts[-1].flags_count == 0


def test_rate_limit_ignores_old_flags(
    db_session, ledger, actor, test_user, make_post, other_user, test_settings
) -> None:
    old = utcnow() - timedelta(minutes=test_settings.flag_rate_window_minutes + 5)
    for n in range(test_settings.flag_rate_limit):
        post = make_post(other_user)
        db_session.add(
            Flag(
                public_id=f"fl_old{n}",
                category=FlagCategory.SPAM,
                reporter_id=test_user.id,
                flagged_post_id=post.id,
                created_at=old,
            )
        )
    db_session.commit()

    target = make_post(other_user)
    assert ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=target.public_id).id


def test_dismiss_decrements_once(
    db_session, ledger, actor, admin_actor, test_post, make_account, notifications
) -> None:
    first = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)
    third_actor = Actor(actor_id=make_account().id)
    ledger.create_flag(third_actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)
    db_session.refresh(test_post)
    assert test_post.flags_count == 2

    ledger.review_flag(first.id, admin_actor, FlagStatus.DISMISSED, admin_notes="Not spam")
    db_session.refresh(test_post)
    assert test_post.flags_count == 1

    # Re-reviewing a resolved flag updates it without touching the counter again.
    ledger.review_flag(first.id, admin_actor, FlagStatus.DISMISSED)
    db_session.refresh(test_post)
    assert test_post.flags_count == 1

    flag = _flag(db_session, first.id)
    assert flag.status == FlagStatus.DISMISSED
    assert flag.reviewed_by_id == admin_actor.actor_id
    assert flag.reviewed_at is not None

    reviewed = [e for e in notifications.events if e.kind == NotificationKind.FLAG_REVIEWED]
    assert len(reviewed) == 2
    assert all(e.target_user_id == actor.actor_id for e in reviewed)


def test_review_requires_admin(ledger, actor, other_actor, test_post) -> None:
    created = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)

    with pytest.raises(ForbiddenError):
        ledger.review_flag(created.id, other_actor, FlagStatus.DISMISSED)
    with pytest.raises(UnauthorizedError):
        ledger.review_flag(created.id, Actor.anonymous(), FlagStatus.DISMISSED)


def test_review_rejects_pending_and_unknown(ledger, admin_actor, actor, test_post) -> None:
    created = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)

    with pytest.raises(BadRequestError):
        ledger.review_flag(created.id, admin_actor, FlagStatus.PENDING)
    with pytest.raises(BadRequestError):
        ledger.review_flag(created.id, admin_actor, "archived")
    with pytest.raises(NotFoundError):
        ledger.review_flag("fl_missing", admin_actor, FlagStatus.DISMISSED)


def test_content_deleted_on_comment_does_not_cascade(
    db_session, ledger, actor, admin_actor, test_post, other_user, make_post, make_comment, audit_sink
) -> None:
    post = make_post(other_user, comments_count=3)
    top = make_comment(post, other_user)
    make_comment(post, other_user, parent=top)
    make_comment(post, other_user, parent=top)
    created = ledger.create_flag(actor, FlagCategory.HARASSMENT, flagged_comment_id=top.public_id)

    ledger.review_flag(
        created.id,
        admin_actor,
        FlagStatus.ACTION_TAKEN,
        action_taken=FlagActionType.CONTENT_DELETED,
    )

    db_session.expire_all()
    assert db_session.get(Comment, top.id).deleted_at is not None
    assert db_session.get(Comment, top.id).flags_count == 0
    live_replies = db_session.execute(
        select(func.count())
        .select_from(Comment)
        .where(Comment.parent_id == top.id, Comment.deleted_at.is_(None))
    ).scalar_one()
    assert live_replies == 2
    db_session.refresh(post)
    assert post.comments_count == 3

    assert len(audit_sink.records) == 1
    record = audit_sink.records[0]
    assert record.action == "deleted comment"
    assert record.actor_id == admin_actor.actor_id
    assert record.target_id == top.id
    assert record.flag_id == created.id


def test_content_deleted_on_post(db_session, ledger, actor, admin_actor, test_post) -> None:
    created = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)

    ledger.review_flag(
        created.id,
        admin_actor,
        FlagStatus.ACTION_TAKEN,
        action_taken=FlagActionType.CONTENT_DELETED,
    )

    db_session.refresh(test_post)
    assert test_post.deleted_at is not None
    assert test_post.flags_count == 0


def test_user_blocked(db_session, ledger, actor, admin_actor, test_post, other_user, audit_sink) -> None:
    created = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)

    ledger.review_flag(
        created.id,
        admin_actor,
        FlagStatus.ACTION_TAKEN,
        action_taken=FlagActionType.USER_BLOCKED,
    )

    db_session.refresh(other_user)
    assert other_user.blocked is True
    assert [(r.action, r.target_id) for r in audit_sink.records] == [("blocked user", other_user.id)]


def test_failed_block_rolls_back_review(
    db_session, ledger, test_user, admin_actor, make_post, other_user, audit_sink, notifications
) -> None:
    """If the author cannot be blocked, the status and counter changes are undone too."""
    post = make_post(other_user, flags_count=1)
    post_id = post.id
    # Point the post at an account that does not exist; SQLite does not enforce the FK.
    post.author_id = 999_999
    db_session.add(
        Flag(
            public_id="fl_orphan",
            category=FlagCategory.SPAM,
            reporter_id=test_user.id,
            flagged_post_id=post_id,
        )
    )
    db_session.commit()

    with pytest.raises(NotFoundError):
        ledger.review_flag(
            "fl_orphan",
            admin_actor,
            FlagStatus.ACTION_TAKEN,
            action_taken=FlagActionType.USER_BLOCKED,
        )

    flag = _flag(db_session, "fl_orphan")
    assert flag.status == FlagStatus.PENDING
    assert flag.reviewed_at is None
    flags_count = db_session.execute(
        select(Post.flags_count).where(Post.id == post_id)
    ).scalar_one()
    assert flags_count == 1
    assert audit_sink.records == []
    assert notifications.events == []


def test_storage_failure_rolls_back_review(
    db_session, ledger, actor, admin_actor, test_post, monkeypatch
) -> None:
    created = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)

    def _fail(*args, **kwargs):
        raise StorageError()

    monkeypatch.setattr(ledger, "_soft_delete_target", _fail)

    with pytest.raises(StorageError):
        ledger.review_flag(
            created.id,
            admin_actor,
            FlagStatus.ACTION_TAKEN,
            action_taken=FlagActionType.CONTENT_DELETED,
        )

    assert _flag(db_session, created.id).status == FlagStatus.PENDING
    db_session.refresh(test_post)
    assert test_post.flags_count == 1
    assert test_post.deleted_at is None


def test_failing_audit_sink_does_not_undo_review(
    db_session, actor, admin_actor, test_post, other_user
) -> None:
    class BrokenSink:
        def record(self, entry) -> None:
            raise RuntimeError("audit store offline")

    ledger = FlagLedger(db_session, audit=BrokenSink())
    created = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)

    ledger.review_flag(
        created.id,
        admin_actor,
        FlagStatus.ACTION_TAKEN,
        action_taken=FlagActionType.USER_BLOCKED,
    )

    db_session.refresh(other_user)
    assert other_user.blocked is True


def test_list_and_get_flags(db_session, ledger, actor, admin_actor, test_post, make_post, other_user) -> None:
    first = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)
    second_post = make_post(other_user, title=None, content="y" * 600)
    second = ledger.create_flag(actor, FlagCategory.PLAGIARISM, flagged_post_id=second_post.public_id)
    ledger.review_flag(first.id, admin_actor, FlagStatus.DISMISSED)

    pending = ledger.list_flags(admin_actor, status=FlagStatus.PENDING)
    assert pending.total == 1
    assert [f.id for f in pending.flags] == [second.id]
    assert len(pending.flags[0].flagged_content.preview) == 150

    everything = ledger.list_flags(admin_actor)
    assert everything.total == 2

    detail = ledger.get_flag(admin_actor, second.id)
    assert detail.reporter.username == "hiker"
    assert detail.flagged_content.type == "post"
    assert len(detail.flagged_content.preview) == 500

    with pytest.raises(ForbiddenError):
        ledger.list_flags(actor)
    with pytest.raises(ForbiddenError):
        ledger.get_flag(actor, second.id)
    with pytest.raises(NotFoundError):
        ledger.get_flag(admin_actor, "fl_missing")


def test_dismiss_flag_on_comment(db_session, ledger, actor, admin_actor, test_post, other_user, make_comment) -> None:
    comment = make_comment(test_post, other_user)
    created = ledger.create_flag(actor, FlagCategory.SPAM, flagged_comment_id=comment.public_id)
    db_session.refresh(comment)
    assert comment.flags_count == 1

    ledger.review_flag(created.id, admin_actor, "dismissed")

    flag = _flag(db_session, created.id)
    assert flag.status == FlagStatus.DISMISSED
    assert flag.reviewed_at is not None
    assert db_session.get(Comment, comment.id).flags_count == 0


def test_interleaved_reviews_decrement_once(
    db_session, engine, ledger, actor, admin_actor, test_post, make_account, monkeypatch
) -> None:
    """A second review committing between the read and the write must not decrement again."""
    first = ledger.create_flag(actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id)
    second_reporter = Actor(actor_id=make_account().id)
    ledger.create_flag(second_reporter, FlagCategory.SPAM, flagged_post_id=test_post.public_id)

    other_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    real_utcnow = flags_module.utcnow
    interleaved = []

    def _utcnow():
        if not interleaved:
            interleaved.append(True)
            FlagLedger(other_session).review_flag(first.id, admin_actor, FlagStatus.DISMISSED)
        return real_utcnow()

    monkeypatch.setattr(flags_module, "utcnow", _utcnow)
    try:
        ledger.review_flag(first.id, admin_actor, FlagStatus.DISMISSED, admin_notes="Second look")
    finally:
        other_session.close()

    assert interleaved == [True]
    db_session.refresh(test_post)
    assert test_post.flags_count == 1
    flag = _flag(db_session, first.id)
    assert flag.status == FlagStatus.DISMISSED
    assert flag.admin_notes == "Second look"


def test_concurrent_duplicate_flag_becomes_bad_request(
    db_session, engine, notifications, audit_sink, actor, test_post
) -> None:
    """The unique constraint catches a duplicate that slipped past the existence check."""
    other_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    ids = iter(f"fl_race{i}" for i in range(10))

    def _public_ids(prefix):
        # Runs after the duplicate check; the other request commits first.
        FlagLedger(other_session).create_flag(
            actor, FlagCategory.SPAM, flagged_post_id=test_post.public_id
        )
        return next(ids)

    ledger = FlagLedger(db_session, notifications, audit_sink, public_ids=_public_ids)
    try:
        with pytest.raises(BadRequestError) as exc_info:
            ledger.create_flag(actor, FlagCategory.PLAGIARISM, flagged_post_id=test_post.public_id)
    finally:
        other_session.close()

    assert exc_info.value.message == "You have already reported this post"
    flags = db_session.execute(
        select(func.count()).select_from(Flag).where(Flag.reporter_id == actor.actor_id)
    ).scalar_one()
    assert flags == 1
    db_session.refresh(test_post)
    assert test_post.flags_count == 1
