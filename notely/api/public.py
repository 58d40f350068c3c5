"""Anonymous access to shared notes."""

from fastapi import APIRouter, HTTPException

from notely.core.logging import get_logger
from notely.core.schemas_notes import PublicAuthor, PublicNote, VerifyShareRequest
from notely.core.share_links import is_expired, verify_share_password
from notely.db import notes as notes_db

logger = get_logger(__name__)

router = APIRouter(prefix="/public")


def _load_shared(token: str) -> dict:
    row = notes_db.get_note_by_share_token(token)
    if not row or not row.get("is_public"):
        raise HTTPException(status_code=404, detail="Note not found or not shared")
    if is_expired(row.get("share_expires_at")):
        raise HTTPException(status_code=410, detail="This shared note has expired")
    return row


def _public_note(row: dict, locked: bool) -> PublicNote:
    note = notes_db.note_from_row(row)
    author = PublicAuthor(**(row.get("users") or {}))
    protected = bool(row.get("share_password"))

    if locked:
        return PublicNote(
            id=note.id,
            title=note.title,
            created_at=note.created_at,
            updated_at=note.updated_at,
            is_password_protected=protected,
            locked=True,
            author=author,
        )

    return PublicNote(
        **note.model_dump(
            include={
                "id", "title", "content", "language", "source", "youtube_url",
                "color", "created_at", "updated_at", "tags", "sections",
            }
        ),
        is_password_protected=protected,
        author=author,
    )


@router.get("/notes/{token}", response_model=PublicNote)
async def get_shared_note(token: str) -> PublicNote:
    """Shared note; password-protected notes return metadata only."""
    row = _load_shared(token)
    return _public_note(row, locked=bool(row.get("share_password")))


@router.post("/notes/{token}/verify", response_model=PublicNote)
async def verify_shared_note(token: str, request: VerifyShareRequest) -> PublicNote:
    """Unlock a password-protected share."""
    row = _load_shared(token)
    if not row.get("share_password"):
        raise HTTPException(status_code=400, detail="Note is not password protected")
    if not verify_share_password(request.password, row["share_password"]):
        logger.info(f"Invalid share password for note {row['id']}")
        raise HTTPException(status_code=401, detail="Invalid password")
    return _public_note(row, locked=False)
