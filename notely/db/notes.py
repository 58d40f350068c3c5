"""Database operations for notes and note_sections tables."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from notely.core.logging import get_logger
from notely.core.schemas_notes import NoteOut, NoteSectionIn
from notely.db.supabase_client import get_supabase
from notely.db.tags import clean_tag_names

logger = get_logger(__name__)

# Notes with ordered sections and tag names embedded
NOTE_SELECT = "*, note_sections(*), note_tags(tags(name))"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def note_from_row(row: dict[str, Any]) -> NoteOut:
    """Convert a notes row with embedded sections/tags into ``NoteOut``."""
    sections = sorted(row.get("note_sections") or [], key=lambda s: s.get("position") or 0)
    tags = [nt["tags"]["name"] for nt in row.get("note_tags") or [] if nt.get("tags")]
    return NoteOut.model_validate({**row, "tags": tags, "sections": sections})


def section_rows(note_id: str, sections: list[NoteSectionIn]) -> list[dict]:
    """Rows for ``note_sections``; list order becomes ``position``."""
    return [
        {
            "id": section.id or str(uuid4()),
            "note_id": note_id,
            "title": section.title,
            "summary": section.summary,
            "bullets": section.bullets,
            "language": section.language.value,
            "position": index,
            "start_time": section.start_time,
            "end_time": section.end_time,
        }
        for index, section in enumerate(sections)
    ]


def list_notes(user_id: UUID) -> list[NoteOut]:
    """List a user's notes, most recently updated first."""
    supabase = get_supabase()
    result = (
        supabase.table("notes")
        .select(NOTE_SELECT)
        .eq("user_id", str(user_id))
        .order("updated_at", desc=True)
        .execute()
    )
    return [note_from_row(row) for row in result.data or []]


def get_note(user_id: UUID, note_id: str) -> NoteOut | None:
    supabase = get_supabase()
    result = (
        supabase.table("notes")
        .select(NOTE_SELECT)
        .eq("id", note_id)
        .eq("user_id", str(user_id))
        .execute()
    )
    if result.data:
        return note_from_row(result.data[0])
    return None


def get_note_row(user_id: UUID, note_id: str, columns: str = "*") -> dict | None:
    """Get the bare notes row (no embeds) owned by ``user_id``."""
    supabase = get_supabase()
    result = (
        supabase.table("notes")
        .select(columns)
        .eq("id", note_id)
        .eq("user_id", str(user_id))
        .execute()
    )
    if result.data:
        return result.data[0]
    return None


def get_note_version(user_id: UUID, note_id: str) -> int | None:
    """Current stored version, or None if the user has no such note."""
    row = get_note_row(user_id, note_id, columns="id, version")
    if row is None:
        return None
    return row.get("version") or 1


def insert_note(user_id: UUID, fields: dict[str, Any]) -> dict:
    """Insert a notes row at version 1."""
    supabase = get_supabase()
    now = utc_now().isoformat()
    row = {
        **fields,
        "id": fields.get("id") or str(uuid4()),
        "user_id": str(user_id),
        "version": 1,
        "created_at": now,
        "updated_at": now,
    }
    result = supabase.table("notes").insert(row).execute()
    if not result.data:
        raise ValueError("No data returned from note insert")
    return result.data[0]


def update_note(
    user_id: UUID,
    note_id: str,
    fields: dict[str, Any],
    expected_version: int | None = None,
) -> dict | None:
    """
    Update a note, optionally only if its stored version still matches.

    Returns:
        The updated row, or None if no row matched (missing note or lost race)
    """
    supabase = get_supabase()
    query = (
        supabase.table("notes")
        .update({**fields, "updated_at": utc_now().isoformat()})
        .eq("id", note_id)
        .eq("user_id", str(user_id))
    )
    if expected_version is not None:
        query = query.eq("version", expected_version)
    result = query.execute()
    if result.data:
        return result.data[0]
    return None


def delete_note(user_id: UUID, note_id: str) -> bool:
    supabase = get_supabase()
    result = supabase.table("notes").delete().eq("id", note_id).eq("user_id", str(user_id)).execute()
    return bool(result.data)


def replace_sections(note_id: str, sections: list[NoteSectionIn]) -> None:
    """Replace all sections of a note with ``sections`` in order."""
    supabase = get_supabase()
    supabase.table("note_sections").delete().eq("note_id", note_id).execute()
    rows = section_rows(note_id, sections)
    if rows:
        supabase.table("note_sections").insert(rows).execute()


def sync_note(
    user_id: UUID,
    note_id: str,
    fields: dict[str, Any],
    expected_version: int | None,
    sections: list[NoteSectionIn] | None = None,
    tags: list[str] | None = None,
) -> str | None:
    """
    Write a pushed note with its sections and tags in one transaction.

    Runs the ``sync_note`` Postgres function. With ``expected_version`` None
    the note is inserted at version 1; otherwise the row is updated only while
    its stored version still matches and becomes ``expected_version + 1``.
    ``sections`` / ``tags`` of None leave the stored children untouched.
    Any failure rolls back the whole write.

    Returns:
        "created", "updated", or None if the conditional update matched no row
    """
    supabase = get_supabase()
    result = supabase.rpc(
        "sync_note",
        {
            "p_user_id": str(user_id),
            "p_note_id": note_id,
            "p_fields": fields,
            "p_expected_version": expected_version,
            "p_sections": section_rows(note_id, sections) if sections is not None else None,
            "p_tags": clean_tag_names(tags) if tags is not None else None,
        },
    ).execute()
    if result.data in ("created", "updated"):
        return result.data
    return None


def list_notes_since(user_id: UUID, since: datetime | None = None) -> list[NoteOut]:
    """Notes updated strictly after ``since`` (all if None), oldest change first."""
    supabase = get_supabase()
    query = supabase.table("notes").select(NOTE_SELECT).eq("user_id", str(user_id))
    if since is not None:
        query = query.gt("updated_at", since.isoformat())
    result = query.order("updated_at").execute()
    return [note_from_row(row) for row in result.data or []]


def count_notes(user_id: UUID, since: datetime | None = None) -> int:
    supabase = get_supabase()
    query = supabase.table("notes").select("id", count="exact").eq("user_id", str(user_id))
    if since is not None:
        query = query.gt("updated_at", since.isoformat())
    result = query.execute()
    return result.count or 0


# ============================================================================
# Sharing
# ============================================================================


def get_note_by_share_token(share_token: str) -> dict | None:
    """Shared note row with sections, tags and author embedded."""
    supabase = get_supabase()
    result = (
        supabase.table("notes")
        .select(f"{NOTE_SELECT}, users(name, avatar)")
        .eq("share_token", share_token)
        .execute()
    )
    if result.data:
        return result.data[0]
    return None


def set_share(
    user_id: UUID,
    note_id: str,
    share_token: str | None,
    password_hash: str | None = None,
    expires_at: datetime | None = None,
) -> dict | None:
    """Publish (token set) or unpublish (token None) a note."""
    return update_note(
        user_id,
        note_id,
        {
            "is_public": share_token is not None,
            "share_token": share_token,
            "share_password": password_hash,
            "share_expires_at": expires_at.isoformat() if expires_at else None,
        },
    )
