"""Device sync endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from notely.core import sync_engine
from notely.core.auth_middleware import AuthContext, require_auth
from notely.core.logging import get_logger
from notely.core.schemas_sync import (
    SyncPullRequest,
    SyncPullResponse,
    SyncPushRequest,
    SyncPushResponse,
    SyncStatusResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/sync")


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    last_sync_at: Optional[datetime] = Query(None, alias="lastSyncAt"),
    auth: AuthContext = Depends(require_auth),
) -> SyncStatusResponse:
    """Note counts overall and since the caller's watermark."""
    try:
        return sync_engine.status(auth.user_id, last_sync_at)
    except Exception as e:
        logger.error(f"Error getting sync status: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get sync status")


@router.post("/pull", response_model=SyncPullResponse)
async def sync_pull(
    request: SyncPullRequest,
    auth: AuthContext = Depends(require_auth),
) -> SyncPullResponse:
    """Notes changed since ``lastSyncAt`` (all notes when omitted)."""
    try:
        return sync_engine.pull(auth.user_id, request.last_sync_at)
    except Exception as e:
        logger.error(f"Error pulling sync: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to pull sync")


@router.post("/push", response_model=SyncPushResponse)
async def sync_push(
    request: SyncPushRequest,
    auth: AuthContext = Depends(require_auth),
) -> SyncPushResponse:
    """
    Push local changes.

    Each note is resolved independently into ``created``, ``updated`` or
    ``conflicts``; stale versions never overwrite the server copy.
    """
    return sync_engine.apply_push(auth.user_id, request.notes, request.device_id)
