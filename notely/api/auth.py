"""Current user and per-user provider credential management."""

from fastapi import APIRouter, Depends, HTTPException

from notely.core.ai_client import ModelsExhaustedError, build_ai_client
from notely.core.auth_middleware import AuthContext, require_auth
from notely.core.config import Settings, get_settings
from notely.core.credential_crypto import encrypt_api_key
from notely.core.logging import get_logger
from notely.core.schemas_auth import ApiKeyUpdate, MeResponse
from notely.db.users import get_encrypted_api_key, set_encrypted_api_key

logger = get_logger(__name__)

router = APIRouter(prefix="/auth")


@router.get("/me", response_model=MeResponse)
async def me(auth: AuthContext = Depends(require_auth)) -> MeResponse:
    user = auth.user
    return MeResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        avatar=user.avatar,
        has_api_key=bool(get_encrypted_api_key(user.id)),
    )


@router.put("/api-key")
async def set_api_key(
    request: ApiKeyUpdate,
    auth: AuthContext = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Validate and store the caller's provider key.

    Keys rejected by the provider as unauthorized are refused; other probe
    failures (rate limits, outages) still save the key.
    """
    api_key = request.api_key.strip()
    try:
        await build_ai_client(api_key, settings).select_model()
    except ModelsExhaustedError as e:
        if e.is_auth_error:
            raise HTTPException(status_code=400, detail="Invalid API key. Please check and try again.")
        logger.warning(f"API key probe failed for user {auth.user_id} with non-auth error, saving anyway")

    set_encrypted_api_key(auth.user_id, encrypt_api_key(api_key, settings))
    logger.info(f"API key updated for user {auth.user_id}")
    return {"success": True, "hasApiKey": True}


@router.delete("/api-key")
async def delete_api_key(auth: AuthContext = Depends(require_auth)) -> dict:
    set_encrypted_api_key(auth.user_id, None)
    logger.info(f"API key removed for user {auth.user_id}")
    return {"success": True, "hasApiKey": False}
