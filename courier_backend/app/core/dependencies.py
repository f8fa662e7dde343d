"""
Authentication dependencies for FastAPI.

Resolves the bearer token into a verified caller identity. The settlement
endpoints trust the returned user_id and do not re-authenticate.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from courier_backend.app.core.exceptions import (
    AuthenticationError, InsufficientPermissionsError, TokenRevokedError
)
from courier_backend.app.core.jwt import decode_access_token
from courier_backend.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from courier_backend.app.db.session import get_db
from courier_backend.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Checks:
    1. Token signature and expiry
    2. Token not individually revoked
    3. User not blocked (all tokens revoked)
    4. User still exists and is active

    Returns:
        Decoded token payload (sub, user_id, role)
    """
    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    if await is_token_revoked(token):
        raise TokenRevokedError()

    if await are_user_tokens_revoked(user_id):
        raise AuthenticationError("User access has been revoked")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise InsufficientPermissionsError("User account is inactive")

    return payload
