"""Pydantic schemas for notes, tags and public shares."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from notely.core.schemas_common import CamelModel
from notely.core.schemas_sections import Language


class NoteSectionIn(CamelModel):
    """Section as sent by clients; ``id`` is optional for new sections."""

    id: Optional[str] = None
    title: str = ""
    summary: str = ""
    bullets: list[str] = Field(default_factory=list)
    language: Language = Language.ENGLISH
    start_time: Optional[float] = None
    end_time: Optional[float] = None


class NoteSectionOut(NoteSectionIn):
    id: str


class NoteFields(CamelModel):
    """Note columns clients may write."""

    title: str = "Untitled"
    content: str = ""
    language: Language = Language.ENGLISH
    source: str = "manual"
    is_ai_generated: bool = False
    youtube_url: Optional[str] = None
    video_id: Optional[str] = None
    is_favorite: bool = False
    color: Optional[str] = None


class NoteCreate(NoteFields):
    tags: list[str] = Field(default_factory=list)
    sections: Optional[list[NoteSectionIn]] = None


class NoteUpdate(CamelModel):
    """Partial update; omitted fields are left untouched."""

    title: Optional[str] = None
    content: Optional[str] = None
    language: Optional[Language] = None
    is_favorite: Optional[bool] = None
    color: Optional[str] = None
    tags: Optional[list[str]] = None
    sections: Optional[list[NoteSectionIn]] = None


class NoteOut(NoteFields):
    id: str
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)
    sections: list[NoteSectionOut] = Field(default_factory=list)
    is_public: bool = False
    share_token: Optional[str] = None
    share_expires_at: Optional[datetime] = None


class NoteMutationResponse(BaseModel):
    id: str
    message: str


class FavoriteResponse(CamelModel):
    is_favorite: bool


# ============================================================================
# Sharing
# ============================================================================


class ShareRequest(CamelModel):
    password: Optional[str] = Field(default=None, min_length=1)
    expires_in_days: Optional[int] = Field(default=None, ge=1, le=365)


class ShareResponse(CamelModel):
    share_token: str
    share_url: str
    is_password_protected: bool
    expires_at: Optional[datetime] = None


class PublicAuthor(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None


class PublicNote(CamelModel):
    """Shared note as seen by anonymous readers.

    Password-protected notes are returned ``locked`` with body fields empty
    until the password is verified.
    """

    id: str
    title: str
    content: str = ""
    language: Language = Language.ENGLISH
    source: str = "manual"
    youtube_url: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)
    sections: list[NoteSectionOut] = Field(default_factory=list)
    is_password_protected: bool = False
    locked: bool = False
    author: PublicAuthor = Field(default_factory=PublicAuthor)


class VerifyShareRequest(BaseModel):
    password: str = Field(..., min_length=1)


# ============================================================================
# Tags
# ============================================================================


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = None


class TagUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    color: Optional[str] = None


class TagOut(CamelModel):
    id: str
    name: str
    color: Optional[str] = None
    note_count: int = 0
