"""Database operations for users."""

from typing import Optional
from uuid import UUID

from notely.core.schemas_auth import User
from notely.db.supabase_client import get_supabase as get_client

USER_COLUMNS = "id, email, name, avatar, created_at"


def get_user_by_id(user_id: UUID) -> Optional[User]:
    """Get a user by ID."""
    client = get_client()
    result = client.table("users").select(USER_COLUMNS).eq("id", str(user_id)).execute()
    if result.data:
        return User(**result.data[0])
    return None


def create_user(user_id: UUID, email: str, name: Optional[str] = None, avatar: Optional[str] = None) -> User:
    """Create the users row for an identity first seen through Supabase Auth."""
    client = get_client()
    result = (
        client.table("users")
        .insert({"id": str(user_id), "email": email.lower(), "name": name, "avatar": avatar})
        .execute()
    )
    return User(**result.data[0])


def get_encrypted_api_key(user_id: UUID) -> Optional[str]:
    """Return the user's encrypted provider key, or None if unset."""
    client = get_client()
    result = client.table("users").select("ai_api_key").eq("id", str(user_id)).execute()
    if result.data:
        return result.data[0].get("ai_api_key") or None
    return None


def set_encrypted_api_key(user_id: UUID, encrypted: Optional[str]) -> None:
    """Store (or clear with None) the user's encrypted provider key."""
    client = get_client()
    client.table("users").update({"ai_api_key": encrypted}).eq("id", str(user_id)).execute()
