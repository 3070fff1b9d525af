"""Achievement API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.achievements.award_service import AwardService
from rockspotter.achievements.catalog import (
    count_achievements,
    create_achievement,
    get_achievements_by_ids,
    list_achievements,
    list_user_awards,
)
from rockspotter.achievements.schemas import (
    AchievementCreateRequest,
    AchievementListResponse,
    AchievementResponse,
    AchievementType,
    AwardRequest,
    AwardResponse,
    AwardSummary,
    CriteriaModel,
    EarnedAchievementResponse,
    Rarity,
    UserAchievementsResponse,
)
from rockspotter.auth.dependencies import get_current_user, get_staff_user
from rockspotter.database import get_session
from rockspotter.db.models import Achievement, User
from rockspotter.redis_client import get_optional_redis
from rockspotter.store import get_achievement, get_user

router = APIRouter(prefix="/api/v1", tags=["Achievements"])


def achievement_response(a: Achievement) -> AchievementResponse:
    return AchievementResponse(
        id=a.id,
        name=a.name,
        description=a.description,
        icon=a.icon,
        type=a.type,
        rarity=a.rarity,
        criteria=CriteriaModel(
            kind=a.criteria_kind,
            target=a.criteria_target,
            details=a.criteria_details or {},
        ),
        created_at=a.created_at,
    )


async def award_summaries(db: AsyncSession, achievement_ids: list[int]) -> list[AwardSummary]:
    """Expand newly awarded ids into name/icon/rarity for action responses."""
    return [
        AwardSummary(id=a.id, name=a.name, icon=a.icon, rarity=a.rarity)
        for a in await get_achievements_by_ids(db, achievement_ids)
    ]


async def _user_achievements(db: AsyncSession, user_id: int) -> UserAchievementsResponse:
    awards = await list_user_awards(db, user_id)
    return UserAchievementsResponse(
        user_id=user_id,
        earned=[
            EarnedAchievementResponse(
                achievement=achievement_response(ua.achievement),
                awarded_at=ua.awarded_at,
            )
            for ua in awards
        ],
        total_earned=len(awards),
        total_available=await count_achievements(db),
    )


# ── Public endpoints ──


@router.get("/achievements", response_model=AchievementListResponse)
async def get_achievements(
    type: AchievementType | None = Query(None),  # noqa: A002
    rarity: Rarity | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    """List the achievement catalog."""
    items = await list_achievements(db, type=type, rarity=rarity)
    return AchievementListResponse(
        achievements=[achievement_response(a) for a in items],
        total=len(items),
    )


@router.get("/achievements/{achievement_id}", response_model=AchievementResponse)
async def get_achievement_detail(achievement_id: int, db: AsyncSession = Depends(get_session)):
    return achievement_response(await get_achievement(db, achievement_id))


# ── Authenticated endpoints ──


@router.get("/users/me/achievements", response_model=UserAchievementsResponse)
async def get_my_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Get current user's earned achievements."""
    return await _user_achievements(db, user.id)


@router.get("/users/{user_id}/achievements", response_model=UserAchievementsResponse)
async def get_user_achievements(user_id: int, db: AsyncSession = Depends(get_session)):
    await get_user(db, user_id)
    return await _user_achievements(db, user_id)


# ── Moderation ──


@router.post("/achievements", response_model=AchievementResponse, status_code=201)
async def post_achievement(
    body: AchievementCreateRequest,
    _staff: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_session),
):
    """Add an achievement to the catalog (moderator/admin)."""
    achievement = await create_achievement(
        db,
        name=body.name,
        description=body.description,
        icon=body.icon,
        type=body.type,
        rarity=body.rarity,
        criteria_kind=body.criteria.kind,
        criteria_target=body.criteria.target,
        criteria_details=body.criteria.details,
    )
    return achievement_response(achievement)


@router.post("/achievements/award", response_model=AwardResponse)
async def post_award(
    body: AwardRequest,
    _staff: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_optional_redis),
):
    """Grant an achievement to a user directly (moderator/admin). Idempotent."""
    service = AwardService(db, redis)
    awarded = await service.award_achievement(body.user_id, body.achievement_id)
    return AwardResponse(user_id=body.user_id, achievement_id=body.achievement_id, awarded=awarded)
