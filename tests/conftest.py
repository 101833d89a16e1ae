from __future__ import annotations

from typing import Callable

import pytest
from fastapi.testclient import TestClient

from taskboard.auth import COOKIE_NAME
from taskboard.config import Settings
from taskboard.main import create_app
from taskboard.models import Task, User

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture()
def settings() -> Settings:
    """In-memory database, throwaway key, non-production cookies."""
    return Settings(
        secret_key=TEST_SECRET,
        production=False,
        database_url="sqlite://",
        log_level="WARNING",
    )


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(name: str | None = None, email: str | None = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            # Not a real hash; these users never log in with a password.
            password_hash="!",
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def make_task(db) -> Callable[..., Task]:
    def _make(owner: User, title: str = "Task", **fields) -> Task:
        fields.setdefault("priority", "MEDIUM")
        fields.setdefault("category", "General")
        task = Task(user_id=owner.id, title=title, **fields)
        db.add(task)
        db.commit()
        return task

    return _make


@pytest.fixture()
def login(app, client) -> Callable[[User], str]:
    """Put a freshly issued session cookie for `user` into the client's jar."""

    def _login(user: User) -> str:
        token = app.state.sessions.issue(user.id)
        client.cookies.set(COOKIE_NAME, token)
        return token

    return _login

