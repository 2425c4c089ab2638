# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from trailpost.core.roles import UserRole
from trailpost.core.security import Actor, create_access_token
from trailpost.core.settings import Settings
from trailpost.db.session import Base
from trailpost.db.session import get_db as app_get_session
from trailpost.main import app as fastapi_app
from trailpost.models import Account, Comment, Post
from trailpost.services.events import AuditRecord, NotificationEvent

TEST_DB_URL = "sqlite://"

_ACCOUNT_COUNTER = count(1)
_POST_COUNTER = count(1)
_COMMENT_COUNTER = count(1)
_TEST_SETTINGS_INSTANCE = Settings()


class RecordingDispatcher:
    """Notification dispatcher that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def dispatch(self, event: NotificationEvent) -> None:
        self.events.append(event)


class RecordingAuditSink:
    """Audit sink that keeps every record it receives."""

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    def record(self, entry: AuditRecord) -> None:
        self.records.append(entry)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services own their commits and rollbacks, so tests run against a plain
    # session and wipe the tables afterwards instead of wrapping a savepoint.
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


@pytest.fixture()
def notifications() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture()
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture()
def make_account(db_session: Session) -> Callable[..., Account]:
    """Return a factory persisting accounts with unique usernames."""

    def _make(username: str | None = None, role: UserRole = UserRole.USER, **fields: Any) -> Account:
        account = Account(
            username=username or f"member{next(_ACCOUNT_COUNTER)}",
            role=role,
            **fields,
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _make


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Return a factory persisting posts for a given author."""

    def _make(author: Account, **fields: Any) -> Post:
        n = next(_POST_COUNTER)
        fields.setdefault("title", f"Trail report {n}")
        fields.setdefault("content", f"Conditions on the ridge, day {n}")
        post = Post(public_id=f"po_test{n}", author_id=author.id, **fields)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    """Return a factory persisting comments directly, bypassing the counters."""

    def _make(post: Post, author: Account, parent: Comment | None = None, **fields: Any) -> Comment:
        n = next(_COMMENT_COUNTER)
        fields.setdefault("content", f"Comment number {n}")
        comment = Comment(
            public_id=f"cm_test{n}",
            post_id=post.id,
            author_id=author.id,
            parent_id=parent.id if parent else None,
            **fields,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make


@pytest.fixture()
def test_user(make_account: Callable[..., Account]) -> Account:
    """Create and return the primary test account."""
    return make_account("hiker")


@pytest.fixture()
def other_user(make_account: Callable[..., Account]) -> Account:
    """Create and return a second test account."""
    return make_account("ranger")


@pytest.fixture()
def admin_user(make_account: Callable[..., Account]) -> Account:
    """Create and return an account holding the admin role."""
    return make_account("warden", role=UserRole.ADMIN)


@pytest.fixture()
def test_post(make_post: Callable[..., Post], other_user: Account) -> Post:
    """Create a baseline post authored by ``other_user``."""
    return make_post(other_user)


@pytest.fixture()
def actor(test_user: Account) -> Actor:
    return Actor(actor_id=test_user.id, role=test_user.role)


@pytest.fixture()
def other_actor(other_user: Account) -> Actor:
    return Actor(actor_id=other_user.id, role=other_user.role)


@pytest.fixture()
def admin_actor(admin_user: Account) -> Actor:
    return Actor(actor_id=admin_user.id, role=admin_user.role)


@pytest.fixture()
def auth_token(test_user: Account) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: Account) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_auth_token(admin_user: Account) -> dict[str, str]:
    """Return authorization headers for the admin account."""
    token = create_access_token(admin_user.id)
    return {"Authorization": f"Bearer {token}"}
