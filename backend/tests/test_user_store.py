from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import StoreError, UsernameTaken
from app.models.user import Role


def test_create_assigns_id_and_defaults_to_user(store):
    u = store.create(username="bob", name="Bob", password_hash="h")
    assert u.id and len(u.id) == 36
    assert u.role is Role.USER
    assert u.archived_at is None
    assert u.created_at is not None


def test_ids_are_unique(store):
    a = store.create(username="a", name="A", password_hash="h")
    b = store.create(username="b", name="B", password_hash="h")
    assert a.id != b.id


def test_duplicate_username_raises_username_taken(store):
    store.create(username="bob", name="Bob", password_hash="h")
    with pytest.raises(UsernameTaken):
        store.create(username="bob", name="Other", password_hash="h")
    # the session is still usable after the rollback
    assert len(store.list_all()) == 1


def test_username_taken_is_a_store_error():
    assert issubclass(UsernameTaken, StoreError)


def test_get_by_id(store):
    u = store.create(username="bob", name="Bob", password_hash="h")
    assert store.get_by_id(u.id).username == "bob"
    assert store.get_by_id("missing") is None


def test_update_applies_only_given_fields(store):
    u = store.create(username="bob", name="Bob", password_hash="h")
    updated = store.update(u.id, {"name": "Robert"})
    assert updated.name == "Robert"
    assert updated.password_hash == "h"
    assert updated.role is Role.USER


def test_update_can_archive(store):
    u = store.create(username="bob", name="Bob", password_hash="h")
    when = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert store.update(u.id, {"archived_at": when}).archived_at is not None


def test_update_refuses_identity_fields(store):
    u = store.create(username="bob", name="Bob", password_hash="h")
    with pytest.raises(ValueError):
        store.update(u.id, {"username": "robert"})
    with pytest.raises(ValueError):
        store.update(u.id, {"id": "other"})


def test_update_missing_returns_none(store):
    assert store.update("missing", {"name": "x"}) is None


def test_delete_reports_rows_affected(store):
    u = store.create(username="bob", name="Bob", password_hash="h")
    assert store.delete(u.id) == 1
    assert store.delete(u.id) == 0
    assert store.get_by_id(u.id) is None


def test_list_all(store):
    store.create(username="a", name="A", password_hash="h")
    store.create(username="b", name="B", password_hash="h", role=Role.ADMIN)
    assert sorted(u.username for u in store.list_all()) == ["a", "b"]


def test_driver_errors_are_wrapped(store, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("db down"))

    monkeypatch.setattr(store.db, "execute", boom)
    with pytest.raises(StoreError):
        store.list_all()
