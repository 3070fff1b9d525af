"""User management business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from rockspotter.db.models import User
from rockspotter.errors import ConflictError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

STAFF_ROLES = frozenset({"moderator", "admin"})


def is_staff(user: User) -> bool:
    return user.role in STAFF_ROLES


def can_manage(user: User, owner_id: int) -> bool:
    """Owners manage their own content; moderators and admins manage everything."""
    return user.id == owner_id or is_staff(user)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_or_create_user(
    db: AsyncSession,
    username: str,
    email: str,
    role: str | None = None,
) -> tuple[User, bool]:
    """
    Get the user behind a verified token, provisioning the profile on first sight.

    Returns:
        Tuple of (user, created) where created is True if a new user was made.

    Raises:
        ConflictError: If the email already belongs to another username.
    """
    user = await get_user_by_username(db, username)
    if user is not None:
        return user, False

    result = await db.execute(select(User).where(User.email == email.lower()))
    if result.scalar_one_or_none() is not None:
        msg = "Email already registered to another user"
        raise ConflictError(msg)

    user = User(username=username, email=email.lower(), role=role or "user")
    db.add(user)
    await db.commit()
    logger.info("user_created", user_id=user.id, username=username)
    return user, True


async def update_profile(
    db: AsyncSession,
    user: User,
    bio: str | None = None,
    avatar_url: str | None = None,
    phone_number: str | None = None,
) -> User:
    """
    Update user profile fields.

    Raises:
        ConflictError: If the phone number is already used by another user.
    """
    if phone_number is not None:
        result = await db.execute(
            select(User)
            .where(User.phone_number == phone_number)
            .where(User.id != user.id)
        )
        if result.scalar_one_or_none() is not None:
            msg = "Phone number already in use"
            raise ConflictError(msg)
        user.phone_number = phone_number

    if bio is not None:
        user.bio = bio
    if avatar_url is not None:
        user.avatar_url = avatar_url

    await db.commit()
    return user
