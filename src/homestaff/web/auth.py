"""
Request authentication.

Onboarding routes run as the signed-in HomeStaff user: the Supabase access
token from the Authorization header is checked with the service client, and
the same token is later used to build the per-user client so RLS applies.
"""

import logging

from fastapi import HTTPException, Header
from pydantic import BaseModel

from homestaff.db.client import get_service_client

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthenticatedUser(BaseModel):
    """Signed-in user, as resolved from the Supabase access token."""
    id: str
    email: str | None
    access_token: str


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization header")
    if not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Invalid authorization format")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Invalid authorization format")
    return token


async def get_current_user(authorization: str | None = Header(None)) -> AuthenticatedUser:
    """FastAPI dependency: the user owning the request's access token, or 401."""
    access_token = _bearer_token(authorization)

    try:
        user_response = get_service_client().auth.get_user(access_token)
    except Exception as e:
        logger.warning(f"Auth validation failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = getattr(user_response, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return AuthenticatedUser(id=user.id, email=user.email, access_token=access_token)
