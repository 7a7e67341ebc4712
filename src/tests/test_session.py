"""
Tests for local accounts and the session context.
"""

import json

import pytest

from voicemint.errors import AuthError, ValidationError
from voicemint.models import User
from voicemint.session import SessionContext, UserStore


def test_register_and_authenticate(tmp_path):
    store = UserStore(tmp_path / "users.json")

    assert store.register("ana@example.com", "s3cret!") == User("ana@example.com")
    assert store.authenticate("ana@example.com", "s3cret!") == User("ana@example.com")


def test_password_is_not_stored_in_plaintext(tmp_path):
    path = tmp_path / "users.json"
    UserStore(path).register("ana@example.com", "s3cret!")

    raw = path.read_text(encoding="utf-8")
    assert "s3cret!" not in raw
    record = json.loads(raw)[0]
    assert set(record) == {"email", "salt", "iterations", "password_hash"}


def test_same_password_gets_different_hashes(tmp_path):
    store = UserStore(tmp_path / "users.json")
    store.register("a@example.com", "password")
    store.register("b@example.com", "password")
    a, b = json.loads((tmp_path / "users.json").read_text())
    assert a["password_hash"] != b["password_hash"]


def test_duplicate_signup_rejected(tmp_path):
    store = UserStore(tmp_path / "users.json")
    store.register("ana@example.com", "one")
    with pytest.raises(AuthError, match="already exists"):
        store.register("ana@example.com", "two")


def test_wrong_password_and_unknown_user(tmp_path):
    store = UserStore(tmp_path / "users.json")
    store.register("ana@example.com", "right")
    with pytest.raises(AuthError, match="Invalid email or password"):
        store.authenticate("ana@example.com", "wrong")
    with pytest.raises(AuthError, match="Invalid email or password"):
        store.authenticate("bob@example.com", "right")


def test_empty_credentials_rejected(tmp_path):
    store = UserStore(tmp_path / "users.json")
    with pytest.raises(ValidationError, match="cannot be empty"):
        store.register("  ", "pw")
    with pytest.raises(ValidationError):
        store.authenticate("ana@example.com", "   ")


def test_session_lifecycle(tmp_path):
    path = tmp_path / "session.json"
    session = SessionContext(path)
    assert session.load() is None

    session.login(User("ana@example.com"))
    assert SessionContext(path).load() == User("ana@example.com")

    session.clear()
    assert session.user is None
    assert SessionContext(path).load() is None


def test_corrupt_session_is_discarded(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")

    session = SessionContext(path)

    assert session.load() is None
    assert not path.exists()


def test_require_user(tmp_path):
    session = SessionContext(tmp_path / "session.json")
    with pytest.raises(AuthError):
        session.require_user()
    session.login(User("ana@example.com"))
    assert session.require_user().email == "ana@example.com"
