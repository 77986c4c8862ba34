"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import os
from typing import Any, Callable, Iterator

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import WebSocketTestSession

from bytelearn.realtime import get_room_manager

from app import database
from app.core.security import create_access_token
from app.database import get_db
from app.main import app
from app.models import Base, Course, FeedbackRoom, User, user_friends


@pytest.fixture()
def test_engine() -> Iterator[Engine]:
    """Provide an in-memory SQLite engine for isolated tests."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(test_engine, monkeypatch) -> sessionmaker[Session]:
    """Return a session factory bound to the test engine.

    Realtime handlers open their own sessions, so the module level factory is
    swapped as well.
    """

    factory = sessionmaker(bind=test_engine, autocommit=False, autoflush=False, future=True)
    monkeypatch.setattr(database, "SessionLocal", factory)
    return factory


@pytest.fixture()
def db_session(session_factory) -> Iterator[Session]:
    """Yield a SQLAlchemy session for unit tests."""

    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_room_manager() -> Iterator[None]:
    manager = get_room_manager()
    manager._connections.clear()
    manager._contexts.clear()
    yield
    manager._connections.clear()
    manager._contexts.clear()
    manager._pending.clear()


@pytest.fixture()
def client(session_factory) -> Iterator[TestClient]:
    """Yield a FastAPI TestClient with the database dependency overridden."""

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(session_factory) -> Callable[..., int]:
    """Create an account and return its id."""

    counter = {"value": 0}

    def factory(full_name: str, **fields: Any) -> int:
        counter["value"] += 1
        email = fields.pop("email", f"user{counter['value']}@bytelearn.test")
        with session_factory() as session:
            user = User(full_name=full_name, email=email, **fields)
            session.add(user)
            session.commit()
            return user.id

    return factory


@pytest.fixture()
def befriend(session_factory) -> Callable[[int, int], None]:
    def factory(user_id: int, friend_id: int) -> None:
        with session_factory() as session:
            session.execute(
                insert(user_friends),
                [
                    {"user_id": user_id, "friend_id": friend_id},
                    {"user_id": friend_id, "friend_id": user_id},
                ],
            )
            session.commit()

    return factory


@pytest.fixture()
def make_course(session_factory) -> Callable[..., int]:
    """Create a course together with its feedback room and return the course id."""

    def factory(title: str = "Intro to Python", *, with_room: bool = True) -> int:
        with session_factory() as session:
            course = Course(title=title)
            session.add(course)
            session.flush()
            if with_room:
                session.add(FeedbackRoom(course_id=course.id))
            session.commit()
            return course.id

    return factory


def token_for(user_id: int) -> str:
    return create_access_token({"sub": str(user_id)})


def connect(client: TestClient, user_id: int) -> WebSocketTestSession:
    return client.websocket_connect(f"/ws/events?token={token_for(user_id)}")


def receive_event(connection: WebSocketTestSession, event: str, *, limit: int = 20) -> dict[str, Any]:
    """Read frames until one named ``event`` arrives, skipping unrelated ones."""

    for _ in range(limit):
        frame = connection.receive_json()
        if frame.get("type") == event:
            return frame
    raise AssertionError(f"{event!r} was not received")


def send_event(connection: WebSocketTestSession, event: str, data: dict[str, Any] | None = None) -> None:
    connection.send_json({"type": event, "data": data or {}})
