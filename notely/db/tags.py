"""Database operations for tags and note_tags tables."""

from uuid import UUID

from notely.core.logging import get_logger
from notely.core.schemas_notes import TagOut
from notely.db.supabase_client import get_supabase

logger = get_logger(__name__)


def _tag_from_row(row: dict) -> TagOut:
    counts = row.get("note_tags") or []
    note_count = counts[0].get("count", 0) if counts else 0
    return TagOut(id=row["id"], name=row["name"], color=row.get("color"), note_count=note_count)


def list_tags(user_id: UUID) -> list[TagOut]:
    """List a user's tags alphabetically with note counts."""
    supabase = get_supabase()
    result = (
        supabase.table("tags")
        .select("id, name, color, note_tags(count)")
        .eq("user_id", str(user_id))
        .order("name")
        .execute()
    )
    return [_tag_from_row(row) for row in result.data or []]


def get_tag_by_name(user_id: UUID, name: str) -> dict | None:
    supabase = get_supabase()
    result = (
        supabase.table("tags").select("*").eq("user_id", str(user_id)).eq("name", name).execute()
    )
    if result.data:
        return result.data[0]
    return None


def create_tag(user_id: UUID, name: str, color: str | None = None) -> dict:
    supabase = get_supabase()
    result = (
        supabase.table("tags")
        .insert({"user_id": str(user_id), "name": name, "color": color})
        .execute()
    )
    if not result.data:
        raise ValueError("No data returned from tag insert")
    return result.data[0]


def update_tag(user_id: UUID, tag_id: str, fields: dict) -> dict | None:
    supabase = get_supabase()
    result = (
        supabase.table("tags").update(fields).eq("id", tag_id).eq("user_id", str(user_id)).execute()
    )
    if result.data:
        return result.data[0]
    return None


def delete_tag(user_id: UUID, tag_id: str) -> bool:
    supabase = get_supabase()
    result = supabase.table("tags").delete().eq("id", tag_id).eq("user_id", str(user_id)).execute()
    return bool(result.data)


def clean_tag_names(names: list[str]) -> list[str]:
    """Strip names and drop blanks and duplicates. Order and case are kept."""
    return list(dict.fromkeys(name.strip() for name in names if name.strip()))


def find_or_create_tags(user_id: UUID, names: list[str]) -> list[str]:
    """Resolve tag names to ids, creating missing tags."""
    tag_ids: list[str] = []
    for name in clean_tag_names(names):
        tag = get_tag_by_name(user_id, name) or create_tag(user_id, name)
        tag_ids.append(tag["id"])
    return tag_ids


def set_note_tags(user_id: UUID, note_id: str, names: list[str]) -> None:
    """Relink a note to exactly the named tags."""
    tag_ids = find_or_create_tags(user_id, names)
    supabase = get_supabase()
    supabase.table("note_tags").delete().eq("note_id", note_id).execute()
    if tag_ids:
        supabase.table("note_tags").insert(
            [{"note_id": note_id, "tag_id": tag_id} for tag_id in tag_ids]
        ).execute()
