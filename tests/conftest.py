# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from parlor.core.security import create_access_token
from parlor.db.session import Base
from parlor.db.session import get_db as app_get_session
from parlor.db.session import get_session_scope
from parlor.main import app as fastapi_app
from parlor.models import BlockedUser, User
from parlor.services import (
    AuthenticatedUser,
    ConversationStore,
    DirectMessageRouter,
    get_presence_registry,
    get_room_hub,
)

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


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
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
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

    @contextmanager
    def _shared_scope() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_scope] = lambda: _shared_scope
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_session_scope, None)


@pytest.fixture(autouse=True)
def reset_live_state() -> Iterator[None]:
    """Start every test with no registered connections and no room members."""
    get_presence_registry().clear()
    get_room_hub().clear()
    yield
    get_presence_registry().clear()
    get_room_hub().clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with unique names."""

    def _make_user(username: str | None = None, avatar_url: str | None = None) -> User:
        n = next(_USER_COUNTER)
        name = username or f"user{n}"
        user = User(username=f"{name}-{n}", email=f"{name}-{n}@example.com", avatar_url=avatar_url)
        db_session.add(user)
        db_session.flush()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("alice", avatar_url="https://cdn.example.com/alice.png")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("bob")


@pytest.fixture()
def carol(make_user: Callable[..., User]) -> User:
    return make_user("carol")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def alice_headers(alice: User) -> dict[str, str]:
    """Return authorization headers for Alice."""
    return auth_headers(alice)


@pytest.fixture()
def bob_headers(bob: User) -> dict[str, str]:
    """Return authorization headers for Bob."""
    return auth_headers(bob)


def identity(user: User) -> AuthenticatedUser:
    return AuthenticatedUser(id=user.id, username=user.username, email=user.email)


@pytest.fixture()
def store(db_session: Session) -> ConversationStore:
    return ConversationStore(db_session)


@pytest.fixture()
def dm_router(store: ConversationStore) -> DirectMessageRouter:
    return DirectMessageRouter(store, get_presence_registry(), get_room_hub())


@pytest.fixture()
def block(db_session: Session) -> Callable[[User, User], None]:
    """Record that the first user blocked the second."""

    def _block(user: User, blocked: User) -> None:
        db_session.add(BlockedUser(user_id=user.id, blocked_user_id=blocked.id))
        db_session.flush()

    return _block


class FakeSocket:
    """Collects frames sent to a connection."""

    def __init__(self, *, closed: bool = False) -> None:
        self.frames: list[dict[str, Any]] = []
        self.closed = closed

    async def send_json(self, data: Any, mode: str = "text") -> None:
        if self.closed:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        self.frames.append(data)

    def events(self, name: str) -> list[Any]:
        return [frame["data"] for frame in self.frames if frame["event"] == name]
