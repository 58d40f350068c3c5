"""Authentication middleware for FastAPI."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notely.core.schemas_auth import User
from notely.db.users import create_user, get_user_by_id

logger = logging.getLogger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


class AuthContext:
    """Context object containing authenticated user info."""

    def __init__(self, user: User, token: str):
        self.user = user
        self.token = token
        self.user_id = user.id


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthContext]:
    """
    Extract and validate the current user from the Bearer token.

    Returns None if no valid auth is present (for optional auth endpoints).
    """
    if not credentials:
        return None

    token = credentials.credentials

    try:
        from notely.db.supabase_client import get_supabase

        client = get_supabase()

        # Validates the JWT signature and expiration
        auth_response = client.auth.get_user(token)

        if not auth_response or not auth_response.user:
            return None

        supabase_user_id = UUID(auth_response.user.id)
        user = get_user_by_id(supabase_user_id)

        if not user:
            metadata = auth_response.user.user_metadata or {}
            user = create_user(
                supabase_user_id,
                auth_response.user.email,
                name=metadata.get("name") or metadata.get("full_name"),
                avatar=metadata.get("avatar_url"),
            )
            logger.info(f"Auto-created user {user.email} with ID {supabase_user_id}")

        return AuthContext(user=user, token=token)

    except Exception as e:
        logger.warning(f"Auth error: {e}")
        return None


async def require_auth(
    auth: Optional[AuthContext] = Depends(get_current_user),
) -> AuthContext:
    """Require authentication. Raises 401 if not authenticated."""
    if not auth:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth
