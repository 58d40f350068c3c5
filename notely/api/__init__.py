"""API router for Notely endpoints."""

from fastapi import APIRouter

from notely.api import ai, auth, notes, public, sync, tags, youtube

router = APIRouter()

# AI transforms, inline actions, chat and note generation
router.include_router(ai.router, tags=["ai"])

# YouTube transcripts, sectioning, summary and export
router.include_router(youtube.router, tags=["youtube"])

# Device sync
router.include_router(sync.router, tags=["sync"])

# Notes, tags and sharing
router.include_router(notes.router, tags=["notes"])
router.include_router(tags.router, tags=["tags"])
router.include_router(public.router, tags=["public"])

# Current user and provider credential
router.include_router(auth.router, tags=["auth"])
