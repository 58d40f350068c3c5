"""Tests for notes and tags endpoints with mocked Supabase."""

from unittest.mock import MagicMock, call, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from notely.core.auth_middleware import AuthContext, require_auth
from notely.core.schemas_auth import User
from notely.core.schemas_notes import NoteSectionIn
from notely.db.notes import note_from_row, sync_note, update_note
from notely.db.tags import find_or_create_tags, list_tags
from notely.main import app

client = TestClient(app)

USER = User(id=uuid4(), email="learner@example.com")


def _mock_supabase(execute_results=None):
    """Supabase mock with chained query builder."""
    sb = MagicMock()
    chain = MagicMock()
    if execute_results is not None:
        chain.execute.side_effect = execute_results
    else:
        chain.execute.return_value = MagicMock(data=[], count=0)
    for method in ("eq", "gt", "order", "select", "insert", "update", "delete"):
        getattr(chain, method).return_value = chain
    sb.table.return_value = chain
    return sb


def _row(**overrides):
    row = {
        "id": "n1",
        "user_id": str(USER.id),
        "title": "Docker",
        "content": "Overview",
        "language": "english",
        "source": "manual",
        "version": 2,
        "note_sections": [],
        "note_tags": [],
    }
    row.update(overrides)
    return row


@pytest.fixture(autouse=True)
def signed_in():
    app.dependency_overrides[require_auth] = lambda: AuthContext(user=USER, token="token")
    yield USER
    app.dependency_overrides.clear()


# ──────────────────────────────────────────────────────────────────────
# Notes
# ──────────────────────────────────────────────────────────────────────


def test_list_notes_camel_case():
    note = note_from_row(_row(is_favorite=True, youtube_url="https://youtu.be/x"))
    with patch("notely.db.notes.list_notes", return_value=[note]):
        response = client.get("/api/notes")

    assert response.status_code == 200
    data = response.json()
    assert data[0]["id"] == "n1"
    assert data[0]["isFavorite"] is True
    assert data[0]["youtubeUrl"] == "https://youtu.be/x"


def test_get_missing_note():
    with patch("notely.db.notes.get_note", return_value=None):
        response = client.get("/api/notes/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "Note not found"}


def test_create_youtube_note_with_sections_is_ai_generated():
    with patch("notely.db.notes.insert_note", return_value={"id": "n9"}) as mock_insert, patch(
        "notely.db.notes.replace_sections"
    ) as mock_sections, patch("notely.db.tags.set_note_tags") as mock_tags:
        response = client.post(
            "/api/notes",
            json={
                "title": "Video notes",
                "source": "youtube",
                "youtubeUrl": "https://youtu.be/dQw4w9WgXcQ",
                "sections": [{"title": "Intro", "bullets": ["a"], "startTime": 0}],
                "tags": ["docker"],
            },
        )

    assert response.status_code == 201
    assert response.json() == {"id": "n9", "message": "Note created"}
    fields = mock_insert.call_args[0][1]
    assert fields["is_ai_generated"] is True
    assert fields["youtube_url"] == "https://youtu.be/dQw4w9WgXcQ"
    assert mock_sections.call_args[0][1][0].start_time == 0
    mock_tags.assert_called_once_with(USER.id, "n9", ["docker"])


def test_create_manual_note_defaults():
    with patch("notely.db.notes.insert_note", return_value={"id": "n1"}) as mock_insert, patch(
        "notely.db.notes.replace_sections"
    ) as mock_sections, patch("notely.db.tags.set_note_tags") as mock_tags:
        response = client.post("/api/notes", json={})

    assert response.status_code == 201
    fields = mock_insert.call_args[0][1]
    assert fields["title"] == "Untitled"
    assert fields["is_ai_generated"] is False
    mock_sections.assert_not_called()
    mock_tags.assert_not_called()


def test_create_note_db_failure():
    with patch("notely.db.notes.insert_note", side_effect=Exception("db down")):
        response = client.post("/api/notes", json={"title": "x"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create note"}


def test_update_note_bumps_version():
    with patch("notely.db.notes.get_note_row", return_value={"id": "n1", "version": 3}), patch(
        "notely.db.notes.update_note", return_value={"id": "n1", "version": 4}
    ) as mock_update, patch("notely.db.notes.replace_sections") as mock_sections, patch(
        "notely.db.tags.set_note_tags"
    ) as mock_tags:
        response = client.put("/api/notes/n1", json={"title": "Renamed", "tags": []})

    assert response.status_code == 200
    assert response.json()["message"] == "Note updated"
    mock_update.assert_called_once_with(
        USER.id, "n1", {"title": "Renamed", "version": 4}, expected_version=3
    )
    mock_sections.assert_not_called()
    mock_tags.assert_called_once_with(USER.id, "n1", [])


def test_update_note_lost_race():
    with patch("notely.db.notes.get_note_row", return_value={"id": "n1", "version": 3}), patch(
        "notely.db.notes.update_note", return_value=None
    ):
        response = client.put("/api/notes/n1", json={"title": "Renamed"})

    assert response.status_code == 409
    assert response.json() == {"error": "Note was modified concurrently"}


def test_update_missing_note():
    with patch("notely.db.notes.get_note_row", return_value=None):
        response = client.put("/api/notes/missing", json={"title": "Renamed"})

    assert response.status_code == 404


def test_delete_note():
    with patch("notely.db.notes.delete_note", return_value=True):
        response = client.delete("/api/notes/n1")
    assert response.json() == {"message": "Note deleted"}

    with patch("notely.db.notes.delete_note", return_value=False):
        response = client.delete("/api/notes/n1")
    assert response.status_code == 404


def test_toggle_favorite():
    rows = [{"id": "n1", "is_favorite": False}, {"id": "n1", "version": 1}]
    with patch("notely.db.notes.get_note_row", side_effect=rows), patch(
        "notely.db.notes.update_note", return_value={"id": "n1"}
    ) as mock_update:
        response = client.post("/api/notes/n1/favorite")

    assert response.status_code == 200
    assert response.json() == {"isFavorite": True}
    assert mock_update.call_args[0][2] == {"is_favorite": True, "version": 2}


def test_share_note_with_password_and_expiry():
    with patch("notely.db.notes.set_share", return_value={"id": "n1"}) as mock_share:
        response = client.post("/api/notes/n1/share", json={"password": "hunter22", "expiresInDays": 7})

    assert response.status_code == 200
    data = response.json()
    token = data["shareToken"]
    assert len(token) == 32
    assert data["shareUrl"] == f"https://notely.test/share/{token}"
    assert data["isPasswordProtected"] is True
    assert data["expiresAt"] is not None

    _user_id, note_id, stored_token, password_hash, expires_at = mock_share.call_args[0]
    assert (note_id, stored_token) == ("n1", token)
    assert password_hash.startswith("$2")
    assert expires_at is not None


def test_share_invalid_expiry():
    response = client.post("/api/notes/n1/share", json={"expiresInDays": 0})
    assert response.status_code == 422


def test_unshare_note():
    with patch("notely.db.notes.set_share", return_value={"id": "n1"}) as mock_share:
        response = client.delete("/api/notes/n1/share")

    assert response.json() == {"message": "Note unshared"}
    mock_share.assert_called_once_with(USER.id, "n1", None)


# ──────────────────────────────────────────────────────────────────────
# Tags
# ──────────────────────────────────────────────────────────────────────


def test_create_tag_conflict():
    with patch("notely.db.tags.get_tag_by_name", return_value={"id": "t1"}):
        response = client.post("/api/tags", json={"name": "docker"})

    assert response.status_code == 409
    assert response.json() == {"error": "Tag already exists"}


def test_create_tag():
    with patch("notely.db.tags.get_tag_by_name", return_value=None), patch(
        "notely.db.tags.create_tag", return_value={"id": "t1", "name": "docker", "color": "#00f"}
    ) as mock_create:
        response = client.post("/api/tags", json={"name": " docker ", "color": "#00f"})

    assert response.status_code == 201
    assert response.json() == {"id": "t1", "name": "docker", "color": "#00f", "noteCount": 0}
    mock_create.assert_called_once_with(USER.id, "docker", "#00f")


def test_update_tag_requires_fields():
    response = client.put("/api/tags/t1", json={})
    assert response.status_code == 422
    assert response.json() == {"error": "Nothing to update"}


def test_update_missing_tag():
    with patch("notely.db.tags.update_tag", return_value=None):
        response = client.put("/api/tags/t1", json={"color": "#fff"})
    assert response.status_code == 404


# ──────────────────────────────────────────────────────────────────────
# Database helpers
# ──────────────────────────────────────────────────────────────────────


def test_note_from_row_orders_sections_and_flattens_tags():
    row = _row(
        note_sections=[
            {"id": "s2", "title": "Second", "position": 1},
            {"id": "s1", "title": "First", "position": 0},
        ],
        note_tags=[{"tags": {"name": "docker"}}, {"tags": None}],
    )

    note = note_from_row(row)

    assert [s.title for s in note.sections] == ["First", "Second"]
    assert note.tags == ["docker"]


def test_update_note_conditions_on_expected_version():
    sb = _mock_supabase(execute_results=[MagicMock(data=[])])
    with patch("notely.db.notes.get_supabase", return_value=sb):
        assert update_note(USER.id, "n1", {"version": 4}, expected_version=3) is None

    chain = sb.table.return_value
    assert call("version", 3) in chain.eq.call_args_list


def test_sync_note_sends_one_rpc_with_children():
    sb = _mock_supabase()
    sb.rpc.return_value.execute.return_value = MagicMock(data="updated")
    with patch("notely.db.notes.get_supabase", return_value=sb):
        outcome = sync_note(
            USER.id,
            "n1",
            {"title": "Docker"},
            expected_version=3,
            sections=[NoteSectionIn(id="s1", title="Intro", bullets=["a"])],
            tags=[" docker", "docker", ""],
        )

    assert outcome == "updated"
    name, params = sb.rpc.call_args.args
    assert name == "sync_note"
    assert params["p_expected_version"] == 3
    assert params["p_tags"] == ["docker"]
    assert params["p_sections"][0]["note_id"] == "n1"
    assert params["p_sections"][0]["position"] == 0
    sb.table.assert_not_called()


def test_sync_note_conflict_and_untouched_children():
    sb = _mock_supabase()
    sb.rpc.return_value.execute.return_value = MagicMock(data="conflict")
    with patch("notely.db.notes.get_supabase", return_value=sb):
        assert sync_note(USER.id, "n1", {}, expected_version=3) is None

    params = sb.rpc.call_args.args[1]
    assert params["p_sections"] is None
    assert params["p_tags"] is None


def test_list_tags_note_counts():
    sb = _mock_supabase(
        execute_results=[
            MagicMock(
                data=[
                    {"id": "t1", "name": "docker", "color": None, "note_tags": [{"count": 3}]},
                    {"id": "t2", "name": "git", "color": "#000", "note_tags": []},
                ]
            )
        ]
    )
    with patch("notely.db.tags.get_supabase", return_value=sb):
        tags = list_tags(USER.id)

    assert [(t.name, t.note_count) for t in tags] == [("docker", 3), ("git", 0)]


def test_find_or_create_tags_dedupes():
    existing = {"docker": {"id": "t1"}}
    with patch("notely.db.tags.get_tag_by_name", side_effect=lambda _u, name: existing.get(name)), patch(
        "notely.db.tags.create_tag", side_effect=lambda _u, name: {"id": f"new-{name}"}
    ) as mock_create:
        ids = find_or_create_tags(USER.id, ["docker", " git ", "git", ""])

    assert ids == ["t1", "new-git"]
    mock_create.assert_called_once_with(USER.id, "git")
