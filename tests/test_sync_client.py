"""Tests for the device-side sync session."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from notely.client.api_client import NotelyClient
from notely.client.sync_client import SyncSession
from notely.core.schemas_sync import SyncNote

SERVER_TIME = "2026-05-01T10:00:00+00:00"


class FakeSyncServer:
    """Answers push and pull with canned bodies and records requests."""

    def __init__(self, push=None, pull=None):
        self.push = push or {"created": [], "updated": [], "conflicts": [], "serverTime": SERVER_TIME}
        self.pull = pull or {"notes": [], "serverTime": SERVER_TIME}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.url.path, body))
        if request.url.path == "/api/sync/push":
            return httpx.Response(200, json=self.push)
        return httpx.Response(200, json=self.pull)


def _session(server, **kwargs) -> SyncSession:
    client = NotelyClient("https://api.notely.test", token="jwt", transport=httpx.MockTransport(server))
    return SyncSession(client, device_id="laptop", **kwargs)


@pytest.mark.asyncio
async def test_push_settles_created_and_updated_keeps_conflicts():
    server = FakeSyncServer(
        push={
            "created": ["n3"],
            "updated": ["n2"],
            "conflicts": [{"noteId": "n1", "reason": "Server version is newer"}],
            "serverTime": SERVER_TIME,
        }
    )
    session = _session(server)
    session.stage(SyncNote(id="n1", version=2, title="Stale"))
    session.stage(SyncNote(id="n2", version=1, title="Fresh", is_favorite=True))
    session.stage(SyncNote(id="n3", title="New"))

    await session.push()

    assert list(session.pending) == ["n1"]
    assert session.conflicts == {"n1": "Server version is newer"}
    assert session.needs_pull
    # Pushing never moves the pull watermark
    assert session.last_synced_at is None

    path, body = server.requests[0]
    assert path == "/api/sync/push"
    assert body["deviceId"] == "laptop"
    assert body["notes"][1] == {**body["notes"][1], "id": "n2", "version": 1, "isFavorite": True}


@pytest.mark.asyncio
async def test_pull_advances_watermark_and_clears_conflicts():
    watermark = datetime(2026, 4, 1, tzinfo=timezone.utc)
    server = FakeSyncServer(
        pull={"notes": [{"id": "n1", "title": "Server copy", "version": 4}], "serverTime": SERVER_TIME}
    )
    session = _session(server, last_synced_at=watermark)
    session.conflicts["n1"] = "Server version is newer"

    notes = await session.pull()

    assert [n.title for n in notes] == ["Server copy"]
    assert notes[0].version == 4
    assert session.conflicts == {}
    assert session.last_synced_at == datetime(2026, 5, 1, 10, tzinfo=timezone.utc)
    assert server.requests[0] == (
        "/api/sync/pull",
        {"lastSyncAt": watermark.isoformat(), "deviceId": "laptop"},
    )


def test_restaging_clears_conflict_flag():
    session = _session(FakeSyncServer())
    session.conflicts["n1"] = "Server version is newer"

    session.stage(SyncNote(id="n1", version=4, title="Rebased edit"))

    assert not session.needs_pull
    assert session.pending["n1"].version == 4


def test_device_id_generated_when_missing():
    client = NotelyClient("https://api.notely.test")
    assert SyncSession(client).device_id
