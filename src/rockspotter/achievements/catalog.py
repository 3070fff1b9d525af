"""Achievement catalog: definitions and per-user awards."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pydantic
import structlog
from sqlalchemy import func, select

from rockspotter.achievements.criteria import validate_criteria
from rockspotter.db.models import Achievement, UserAchievement
from rockspotter.errors import ConflictError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_achievement_by_name(db: AsyncSession, name: str) -> Achievement | None:
    result = await db.execute(select(Achievement).where(Achievement.name == name))
    return result.scalar_one_or_none()


async def create_achievement(
    db: AsyncSession,
    *,
    name: str,
    description: str,
    type: str,  # noqa: A002
    criteria_kind: str,
    criteria_target: int = 1,
    criteria_details: dict[str, Any] | None = None,
    rarity: str = "common",
    icon: str | None = None,
) -> Achievement:
    """
    Add an achievement to the catalog.

    Criteria are checked against the known kinds here so that a bad
    definition is rejected at write time rather than silently skipped.

    Raises:
        ConflictError: If the name is taken.
        ValidationError: If the criteria do not parse.
    """
    try:
        criteria = validate_criteria(criteria_kind, criteria_target, criteria_details)
    except pydantic.ValidationError as e:
        msg = f"Invalid criteria: {e.errors(include_url=False)[0]['msg']}"
        raise ValidationError(msg) from e

    if await get_achievement_by_name(db, name) is not None:
        msg = f"Achievement '{name}' already exists"
        raise ConflictError(msg)

    achievement = Achievement(
        name=name,
        description=description,
        type=type,
        criteria_kind=criteria.kind,
        criteria_target=criteria.target,
        criteria_details=criteria.details.model_dump(exclude_none=True),
        rarity=rarity,
    )
    if icon:
        achievement.icon = icon
    db.add(achievement)
    await db.commit()
    logger.info("achievement_created", achievement_id=achievement.id, name=name)
    return achievement


async def list_achievements(
    db: AsyncSession,
    *,
    type: str | None = None,  # noqa: A002
    rarity: str | None = None,
) -> list[Achievement]:
    query = select(Achievement).order_by(Achievement.id)
    if type is not None:
        query = query.where(Achievement.type == type)
    if rarity is not None:
        query = query.where(Achievement.rarity == rarity)
    result = await db.execute(query)
    return list(result.scalars())


async def list_user_awards(db: AsyncSession, user_id: int) -> list[UserAchievement]:
    """A user's awards, most recent first."""
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.awarded_at.desc(), UserAchievement.id.desc())
    )
    return list(result.scalars())


async def get_achievements_by_ids(db: AsyncSession, achievement_ids: list[int]) -> list[Achievement]:
    if not achievement_ids:
        return []
    result = await db.execute(
        select(Achievement).where(Achievement.id.in_(achievement_ids)).order_by(Achievement.id)
    )
    return list(result.scalars())


async def count_achievements(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Achievement))
    return result.scalar_one()
