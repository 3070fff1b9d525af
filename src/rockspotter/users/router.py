"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.auth.dependencies import get_current_user
from rockspotter.database import get_session
from rockspotter.db.models import User
from rockspotter.store import get_user
from rockspotter.users.schemas import ProfileUpdateRequest, PublicUserResponse, UserResponse
from rockspotter.users.service import update_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    """Get own full profile."""
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    user = await update_profile(
        db,
        user,
        bio=body.bio,
        avatar_url=body.avatar_url,
        phone_number=body.phone_number,
    )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=PublicUserResponse)
async def get_public_profile(user_id: int, db: AsyncSession = Depends(get_session)) -> PublicUserResponse:
    """Public profile. Contact details are never exposed here."""
    return PublicUserResponse.model_validate(await get_user(db, user_id))
