from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.database import Base, get_db
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models.user import Role
from app.services.user_store import SqlUserStore


@pytest.fixture()
def session_factory():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db) -> SqlUserStore:
    return SqlUserStore(db)


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # no context manager: skip lifespan so the real database is never touched
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def settings_env(monkeypatch):
    """Set env vars and rebuild the cached Settings."""

    def apply(**values: str):
        for key, value in values.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield apply
    get_settings.cache_clear()


def auth_header(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture()
def make_user(store):
    counter = {"n": 0}

    def make(role: Role = Role.USER, username: str | None = None, name: str = "Someone"):
        counter["n"] += 1
        return store.create(
            username=username or f"user{counter['n']}",
            name=name,
            password_hash=hash_password("secret123"),
            role=role,
        )

    return make


@pytest.fixture()
def admin(make_user):
    return make_user(Role.ADMIN, username="admin", name="Admin")


@pytest.fixture()
def alice(make_user):
    return make_user(Role.USER, username="alice", name="Alice")


@pytest.fixture()
def admin_headers(admin):
    return auth_header(admin.id)


@pytest.fixture()
def alice_headers(alice):
    return auth_header(alice.id)
