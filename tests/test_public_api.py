"""Tests for anonymous access to shared notes and share link helpers."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from notely.core.share_links import (
    hash_share_password,
    is_expired,
    new_share_token,
    share_expiry,
    share_url,
    verify_share_password,
)
from notely.main import app

client = TestClient(app)

PASSWORD_HASH = hash_share_password("open sesame")


def _shared_row(**overrides):
    row = {
        "id": "n1",
        "title": "Shared Docker notes",
        "content": "Secret overview",
        "language": "english",
        "source": "youtube",
        "is_public": True,
        "share_token": "tok",
        "share_password": None,
        "share_expires_at": None,
        "note_sections": [{"id": "s1", "title": "Intro", "bullets": ["a"], "position": 0}],
        "note_tags": [{"tags": {"name": "docker"}}],
        "users": {"name": "Author", "avatar": None},
    }
    row.update(overrides)
    return row


def _get(row):
    with patch("notely.db.notes.get_note_by_share_token", return_value=row):
        return client.get("/api/public/notes/tok")


def _verify(row, password):
    with patch("notely.db.notes.get_note_by_share_token", return_value=row):
        return client.post("/api/public/notes/tok/verify", json={"password": password})


def test_public_note():
    response = _get(_shared_row())

    assert response.status_code == 200
    data = response.json()
    assert data["content"] == "Secret overview"
    assert data["sections"][0]["title"] == "Intro"
    assert data["tags"] == ["docker"]
    assert data["author"] == {"name": "Author", "avatar": None}
    assert data["locked"] is False
    assert data["isPasswordProtected"] is False


def test_unknown_token():
    response = _get(None)

    assert response.status_code == 404
    assert response.json() == {"error": "Note not found or not shared"}


def test_unshared_note_is_not_found():
    assert _get(_shared_row(is_public=False)).status_code == 404


def test_expired_share():
    expired = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()

    response = _get(_shared_row(share_expires_at=expired))

    assert response.status_code == 410
    assert response.json() == {"error": "This shared note has expired"}


def test_password_protected_note_is_locked():
    response = _get(_shared_row(share_password=PASSWORD_HASH))

    assert response.status_code == 200
    data = response.json()
    assert data["locked"] is True
    assert data["isPasswordProtected"] is True
    assert data["title"] == "Shared Docker notes"
    assert data["content"] == ""
    assert data["sections"] == []


def test_verify_correct_password_unlocks():
    response = _verify(_shared_row(share_password=PASSWORD_HASH), "open sesame")

    assert response.status_code == 200
    data = response.json()
    assert data["locked"] is False
    assert data["content"] == "Secret overview"


def test_verify_wrong_password():
    response = _verify(_shared_row(share_password=PASSWORD_HASH), "wrong")

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid password"}


def test_verify_unprotected_note():
    response = _verify(_shared_row(), "anything")

    assert response.status_code == 400
    assert response.json() == {"error": "Note is not password protected"}


# ──────────────────────────────────────────────────────────────────────
# Share link helpers
# ──────────────────────────────────────────────────────────────────────


def test_share_tokens_are_unique_hex():
    tokens = {new_share_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all(len(t) == 32 and int(t, 16) >= 0 for t in tokens)


def test_verify_share_password_with_malformed_hash():
    assert verify_share_password("x", "not-a-bcrypt-hash") is False


@pytest.mark.parametrize("days", [None, 0])
def test_share_expiry_none(days):
    assert share_expiry(days) is None


def test_share_expiry_and_is_expired():
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    expires = share_expiry(30, now=now)

    assert expires == datetime(2026, 3, 31, tzinfo=timezone.utc)
    assert not is_expired(expires, now=now)
    assert is_expired(expires, now=now + timedelta(days=31))
    assert is_expired("2026-02-01T00:00:00", now=now)
    assert not is_expired(None, now=now)


def test_share_url_trims_trailing_slash():
    assert share_url("https://notely.app/", "abc") == "https://notely.app/share/abc"
