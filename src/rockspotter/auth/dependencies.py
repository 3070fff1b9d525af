"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.auth.jwt import verify_token
from rockspotter.database import get_session
from rockspotter.db.models import User
from rockspotter.users.service import get_or_create_user, is_staff

_bearer = HTTPBearer()
_optional_bearer = HTTPBearer(auto_error=False)


async def _resolve(db: AsyncSession, token: str) -> User:
    try:
        claims = verify_token(token, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user, _ = await get_or_create_user(db, claims.username, claims.email, role=claims.role)
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Verify the bearer JWT and return the caller's User.

    The profile is created on the first authenticated request.
    Raises 401 on failure.
    """
    return await _resolve(db, credentials.credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_optional_bearer),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """Like get_current_user, but anonymous requests get None."""
    if credentials is None:
        return None
    return await _resolve(db, credentials.credentials)


async def get_staff_user(user: User = Depends(get_current_user)) -> User:
    """Moderators and admins only."""
    if not is_staff(user):
        raise HTTPException(status_code=403, detail="Moderator or admin role required")
    return user
