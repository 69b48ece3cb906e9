"""Authentication middleware for FastAPI."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


class AuthContext:
    """Context object containing authenticated user info."""

    def __init__(self, user_id: str, token: str, email: Optional[str] = None):
        self.user_id = user_id
        self.token = token
        self.email = email

    def __repr__(self) -> str:
        return f"AuthContext(user_id={self.user_id!r})"


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthContext]:
    """
    Extract and validate the current user from the request.

    The bearer token is a Supabase JWT; Supabase verifies the signature
    and expiration and returns the auth user it belongs to.

    Returns None if no valid auth is present (for optional auth endpoints).
    """
    if not credentials:
        return None

    token = credentials.credentials

    try:
        from momentum.db.supabase_client import get_supabase

        client = get_supabase()
        auth_response = client.auth.get_user(token)

        if not auth_response or not auth_response.user:
            return None

        return AuthContext(
            user_id=str(auth_response.user.id),
            token=token,
            email=auth_response.user.email,
        )

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
