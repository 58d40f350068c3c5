"""Version-based reconciliation of notes pushed from devices.

Each pushed note is resolved independently:

- unknown id: created at version 1
- client version >= server version (or no client version): updated with a
  conditional write on the stored version, which becomes version + 1
- client version < server version: conflict, server row untouched

The note row and its sections and tags are written in one transaction, so a
note reported as a conflict never has part of its write stored. Conflicts are
reported per note and never block the rest of the batch.
"""

import logging
from datetime import datetime
from uuid import UUID

from notely.core.logging import get_logger, log_with_context
from notely.core.schemas_notes import NoteFields
from notely.core.schemas_sync import (
    SyncConflict,
    SyncNote,
    SyncPullResponse,
    SyncPushResponse,
    SyncStatusResponse,
)
from notely.db import notes as notes_db

logger = get_logger(__name__)

SERVER_VERSION_NEWER = "Server version is newer"

_WRITABLE_FIELDS = set(NoteFields.model_fields)


def _note_fields(note: SyncNote, device_id: str | None, synced_at: datetime) -> dict:
    fields = note.model_dump(include=_WRITABLE_FIELDS, mode="json")
    fields["device_id"] = device_id
    fields["last_synced_at"] = synced_at.isoformat()
    return fields


def _push_note(user_id: UUID, note: SyncNote, device_id: str | None, synced_at: datetime) -> str | None:
    """Apply one pushed note. Returns "created", "updated", or None on conflict."""
    server_version = notes_db.get_note_version(user_id, note.id)
    if server_version is not None and note.version is not None and note.version < server_version:
        return None

    # None when another device bumped the version between read and write
    return notes_db.sync_note(
        user_id,
        note.id,
        _note_fields(note, device_id, synced_at),
        expected_version=server_version,
        sections=note.sections,
        tags=note.tags,
    )


def apply_push(user_id: UUID, notes: list[SyncNote], device_id: str | None = None) -> SyncPushResponse:
    """Reconcile a batch of pushed notes against the server copy."""
    synced_at = notes_db.utc_now()
    response = SyncPushResponse(server_time=synced_at)

    for note in notes:
        try:
            outcome = _push_note(user_id, note, device_id, synced_at)
        except Exception as e:
            logger.error(f"Error syncing note {note.id}: {e}", exc_info=True)
            response.conflicts.append(SyncConflict(note_id=note.id, reason=str(e) or "Unknown error"))
            continue

        if outcome == "created":
            response.created.append(note.id)
        elif outcome == "updated":
            response.updated.append(note.id)
        else:
            logger.info(f"Sync conflict on note {note.id} (client v{note.version})")
            response.conflicts.append(SyncConflict(note_id=note.id, reason=SERVER_VERSION_NEWER))

    log_with_context(
        logger,
        logging.INFO,
        "Sync push applied",
        user_id=str(user_id),
        device_id=device_id,
        created=len(response.created),
        updated=len(response.updated),
        conflicts=len(response.conflicts),
    )
    return response


def pull(user_id: UUID, last_sync_at: datetime | None = None) -> SyncPullResponse:
    """Notes changed after the watermark, oldest change first."""
    server_time = notes_db.utc_now()
    notes = notes_db.list_notes_since(user_id, last_sync_at)
    return SyncPullResponse(notes=notes, server_time=server_time)


def status(user_id: UUID, last_sync_at: datetime | None = None) -> SyncStatusResponse:
    server_time = notes_db.utc_now()
    total = notes_db.count_notes(user_id)
    since = notes_db.count_notes(user_id, last_sync_at) if last_sync_at else total
    return SyncStatusResponse(
        total_notes=total,
        notes_since_sync=since,
        last_sync_at=last_sync_at,
        server_time=server_time,
    )
