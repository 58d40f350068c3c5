"""Notes CRUD, favorites and share links."""

from fastapi import APIRouter, Depends, HTTPException

from notely.core.auth_middleware import AuthContext, require_auth
from notely.core.config import Settings, get_settings
from notely.core.logging import get_logger
from notely.core.schemas_notes import (
    FavoriteResponse,
    NoteCreate,
    NoteMutationResponse,
    NoteOut,
    NoteUpdate,
    ShareRequest,
    ShareResponse,
)
from notely.core.share_links import hash_share_password, new_share_token, share_expiry, share_url
from notely.db import notes as notes_db
from notely.db import tags as tags_db

logger = get_logger(__name__)

router = APIRouter(prefix="/notes")

NOTE_NOT_FOUND = "Note not found"


def _bump_version(auth: AuthContext, note_id: str, fields: dict) -> dict:
    """Apply an update at version + 1, guarded by the version just read."""
    row = notes_db.get_note_row(auth.user_id, note_id, columns="id, version")
    if not row:
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)

    version = row.get("version") or 1
    updated = notes_db.update_note(
        auth.user_id, note_id, {**fields, "version": version + 1}, expected_version=version
    )
    if updated is None:
        raise HTTPException(status_code=409, detail="Note was modified concurrently")
    return updated


@router.get("", response_model=list[NoteOut])
async def list_notes(auth: AuthContext = Depends(require_auth)) -> list[NoteOut]:
    """List the caller's notes, most recently updated first."""
    return notes_db.list_notes(auth.user_id)


@router.get("/{note_id}", response_model=NoteOut)
async def get_note(note_id: str, auth: AuthContext = Depends(require_auth)) -> NoteOut:
    note = notes_db.get_note(auth.user_id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)
    return note


@router.post("", response_model=NoteMutationResponse, status_code=201)
async def create_note(request: NoteCreate, auth: AuthContext = Depends(require_auth)) -> NoteMutationResponse:
    """Create a note with optional sections and tags."""
    fields = request.model_dump(exclude={"tags", "sections"}, mode="json")
    fields["is_ai_generated"] = (
        request.is_ai_generated
        or request.source == "ai"
        or (request.source == "youtube" and bool(request.sections))
    )

    try:
        row = notes_db.insert_note(auth.user_id, fields)
        if request.sections:
            notes_db.replace_sections(row["id"], request.sections)
        if request.tags:
            tags_db.set_note_tags(auth.user_id, row["id"], request.tags)
    except Exception as e:
        logger.error(f"Error creating note: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create note")

    logger.info(f"Note created: {row['id']} (source={request.source})")
    return NoteMutationResponse(id=row["id"], message="Note created")


@router.put("/{note_id}", response_model=NoteMutationResponse)
async def update_note(
    note_id: str,
    request: NoteUpdate,
    auth: AuthContext = Depends(require_auth),
) -> NoteMutationResponse:
    """Partially update a note; sections and tags are replaced when present."""
    fields = request.model_dump(exclude={"tags", "sections"}, exclude_none=True, mode="json")
    _bump_version(auth, note_id, fields)

    if request.sections is not None:
        notes_db.replace_sections(note_id, request.sections)
    if request.tags is not None:
        tags_db.set_note_tags(auth.user_id, note_id, request.tags)

    return NoteMutationResponse(id=note_id, message="Note updated")


@router.delete("/{note_id}")
async def delete_note(note_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    if not notes_db.delete_note(auth.user_id, note_id):
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)
    logger.info(f"Note deleted: {note_id}")
    return {"message": "Note deleted"}


@router.post("/{note_id}/favorite", response_model=FavoriteResponse)
async def toggle_favorite(note_id: str, auth: AuthContext = Depends(require_auth)) -> FavoriteResponse:
    row = notes_db.get_note_row(auth.user_id, note_id, columns="id, is_favorite")
    if not row:
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)

    is_favorite = not row.get("is_favorite", False)
    _bump_version(auth, note_id, {"is_favorite": is_favorite})
    return FavoriteResponse(is_favorite=is_favorite)


@router.post("/{note_id}/share", response_model=ShareResponse)
async def share_note(
    note_id: str,
    request: ShareRequest,
    auth: AuthContext = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> ShareResponse:
    """Publish a note under a fresh token, optionally password protected and expiring."""
    token = new_share_token()
    password_hash = hash_share_password(request.password) if request.password else None
    expires_at = share_expiry(request.expires_in_days)

    if not notes_db.set_share(auth.user_id, note_id, token, password_hash, expires_at):
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)

    logger.info(f"Note shared: {note_id} (protected={password_hash is not None})")
    return ShareResponse(
        share_token=token,
        share_url=share_url(settings.FRONTEND_URL, token),
        is_password_protected=password_hash is not None,
        expires_at=expires_at,
    )


@router.delete("/{note_id}/share")
async def unshare_note(note_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    if not notes_db.set_share(auth.user_id, note_id, None):
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)
    return {"message": "Note unshared"}
