"""Pydantic schemas for device sync."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from notely.core.schemas_common import CamelModel
from notely.core.schemas_notes import NoteFields, NoteOut, NoteSectionIn


class SyncNote(NoteFields):
    """A locally edited note pushed by a device.

    ``version`` is the server version the device last saw; ``None`` means the
    device never synced this note and its write is unconditional.
    """

    id: str = Field(..., min_length=1)
    version: Optional[int] = Field(default=None, ge=1)
    tags: Optional[list[str]] = None
    sections: Optional[list[NoteSectionIn]] = None


class SyncPushRequest(CamelModel):
    notes: list[SyncNote]
    device_id: Optional[str] = None


class SyncConflict(CamelModel):
    note_id: str
    reason: str


class SyncPushResponse(CamelModel):
    created: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    conflicts: list[SyncConflict] = Field(default_factory=list)
    server_time: datetime


class SyncPullRequest(CamelModel):
    last_sync_at: Optional[datetime] = None
    device_id: Optional[str] = None


class SyncPullResponse(CamelModel):
    notes: list[NoteOut]
    server_time: datetime


class SyncStatusResponse(CamelModel):
    total_notes: int
    notes_since_sync: int
    last_sync_at: Optional[datetime] = None
    server_time: datetime
