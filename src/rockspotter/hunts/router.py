"""Hunt API endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.achievements.award_service import AwardService
from rockspotter.achievements.router import award_summaries
from rockspotter.auth.dependencies import get_current_user
from rockspotter.config import get_settings
from rockspotter.database import get_session
from rockspotter.db.models import Hunt, User
from rockspotter.hunts.schemas import (
    HuntCreateRequest,
    HuntJoinResponse,
    HuntListResponse,
    HuntProgressEntry,
    HuntProgressResponse,
    HuntResponse,
    HuntRockResponse,
    HuntUpdateRequest,
    ParticipantStateResponse,
    RockFoundResponse,
)
from rockspotter.hunts.service import (
    HuntRockInput,
    create_hunt,
    delete_hunt,
    get_my_progress,
    hunt_status,
    list_hunts,
    participant_counts,
    update_hunt,
)
from rockspotter.redis_client import get_optional_redis
from rockspotter.store import get_hunt

router = APIRouter(prefix="/api/v1/hunts", tags=["Hunts"])


def hunt_response(hunt: Hunt, participant_count: int = 0, now: datetime | None = None) -> HuntResponse:
    now = now or datetime.now(timezone.utc)
    return HuntResponse(
        id=hunt.id,
        creator_id=hunt.creator_id,
        title=hunt.title,
        description=hunt.description,
        difficulty=hunt.difficulty,
        is_active=hunt.is_active,
        status=hunt_status(hunt, now),
        start_date=hunt.start_date,
        end_date=hunt.end_date,
        rocks=[HuntRockResponse(rock_id=e.rock_id, hint=e.hint, order=e.order) for e in hunt.rocks],
        participant_count=participant_count,
        created_at=hunt.created_at,
    )


@router.get("", response_model=HuntListResponse)
async def get_hunts(
    active_only: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    per_page = per_page or get_settings().default_page_size
    hunts, total = await list_hunts(db, active_only=active_only, page=page, per_page=per_page)
    counts = await participant_counts(db, [h.id for h in hunts])
    return HuntListResponse(
        hunts=[hunt_response(h, counts.get(h.id, 0)) for h in hunts],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/me/progress", response_model=HuntProgressResponse)
async def get_progress(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Progress on every hunt the caller has joined."""
    progress = await get_my_progress(db, user.id)
    counts = await participant_counts(db, [p.hunt.id for p in progress])
    return HuntProgressResponse(
        hunts=[
            HuntProgressEntry(
                hunt=hunt_response(p.hunt, counts.get(p.hunt.id, 0)),
                found_rock_ids=p.found_rock_ids,
                found_count=len(p.found_rock_ids),
                total_rocks=len(p.hunt.rocks),
                completed=p.completed,
                joined_at=p.joined_at,
                completed_at=p.completed_at,
            )
            for p in progress
        ]
    )


@router.get("/{hunt_id}", response_model=HuntResponse)
async def get_hunt_detail(hunt_id: int, db: AsyncSession = Depends(get_session)):
    hunt = await get_hunt(db, hunt_id)
    counts = await participant_counts(db, [hunt.id])
    return hunt_response(hunt, counts.get(hunt.id, 0))


@router.post("", response_model=HuntResponse, status_code=201)
async def post_hunt(
    body: HuntCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    hunt = await create_hunt(
        db,
        user,
        title=body.title,
        description=body.description,
        difficulty=body.difficulty,
        is_active=body.is_active,
        start_date=body.start_date,
        end_date=body.end_date,
        rocks=[HuntRockInput(rock_id=e.rock_id, hint=e.hint, order=e.order) for e in body.rocks],
    )
    return hunt_response(hunt)


@router.put("/{hunt_id}", response_model=HuntResponse)
async def put_hunt(
    hunt_id: int,
    body: HuntUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    hunt = await get_hunt(db, hunt_id)
    hunt = await update_hunt(db, hunt, user, **body.model_dump(exclude_unset=True))
    counts = await participant_counts(db, [hunt.id])
    return hunt_response(hunt, counts.get(hunt.id, 0))


@router.delete("/{hunt_id}", status_code=204)
async def remove_hunt(
    hunt_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    hunt = await get_hunt(db, hunt_id)
    await delete_hunt(db, hunt, user)


@router.post("/{hunt_id}/join", response_model=HuntJoinResponse)
async def join_hunt(
    hunt_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_optional_redis),
):
    """Join a hunt. Joining twice succeeds without duplicating membership."""
    result = await AwardService(db, redis).record_hunt_join(user.id, hunt_id)
    return HuntJoinResponse(
        hunt_id=hunt_id,
        joined=result.joined,
        new_awards=await award_summaries(db, result.new_awards),
    )


@router.post("/{hunt_id}/rocks/{rock_id}/found", response_model=RockFoundResponse)
async def mark_rock_found(
    hunt_id: int,
    rock_id: int,
    strict: bool = Query(False, description="Reject repeats with 409 instead of succeeding"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_optional_redis),
):
    """Record that the caller found one of the hunt's rocks."""
    result = await AwardService(db, redis).record_rock_found(user.id, hunt_id, rock_id, strict=strict)
    p = result.participant
    return RockFoundResponse(
        participant=ParticipantStateResponse(
            hunt_id=p.hunt_id,
            user_id=p.user_id,
            found_rock_ids=p.found_rock_ids,
            found_count=len(p.found_rock_ids),
            total_rocks=p.total_rocks,
            completed=p.completed,
        ),
        hunt_completed=result.hunt_completed,
        new_awards=await award_summaries(db, result.new_awards),
    )
