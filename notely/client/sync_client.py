"""Device-side sync session: pending local edits plus the pull watermark."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from notely.client.api_client import NotelyClient
from notely.core.logging import get_logger
from notely.core.schemas_notes import NoteOut
from notely.core.schemas_sync import SyncNote, SyncPushResponse

logger = get_logger(__name__)


class SyncSession:
    """Tracks what a device still has to push and how far it has pulled.

    Conflicted notes stay pending with their local edits and are flagged in
    ``conflicts`` until a pull fetches the newer server copy. Only ``pull``
    advances the watermark.
    """

    def __init__(
        self,
        client: NotelyClient,
        device_id: str | None = None,
        last_synced_at: datetime | None = None,
    ):
        self.client = client
        self.device_id = device_id or str(uuid4())
        self.last_synced_at = last_synced_at
        self.pending: dict[str, SyncNote] = {}
        self.conflicts: dict[str, str] = {}

    @property
    def needs_pull(self) -> bool:
        return bool(self.conflicts)

    def stage(self, note: SyncNote) -> None:
        """Queue a local edit; restaging a conflicted note clears its flag."""
        self.pending[note.id] = note
        self.conflicts.pop(note.id, None)

    async def push(self) -> SyncPushResponse:
        """Send pending notes and settle them by outcome."""
        response = await self.client.sync_push(list(self.pending.values()), self.device_id)

        for note_id in (*response.created, *response.updated):
            self.pending.pop(note_id, None)
        for conflict in response.conflicts:
            self.conflicts[conflict.note_id] = conflict.reason

        if response.conflicts:
            logger.info(f"Sync push left {len(response.conflicts)} conflicts on device {self.device_id}")
        return response

    async def pull(self) -> list[NoteOut]:
        """Fetch server changes since the watermark and advance it."""
        response = await self.client.sync_pull(self.last_synced_at, self.device_id)
        for note in response.notes:
            self.conflicts.pop(note.id, None)
        self.last_synced_at = response.server_time
        return response.notes
