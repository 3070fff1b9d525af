"""Rock API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.achievements.award_service import AwardService
from rockspotter.achievements.router import award_summaries
from rockspotter.auth.dependencies import get_current_user, get_optional_user
from rockspotter.config import get_settings
from rockspotter.database import get_session
from rockspotter.db.models import Rock, RockComment, User
from rockspotter.redis_client import get_optional_redis
from rockspotter.rocks.schemas import (
    CommentCreateRequest,
    CommentCreateResponse,
    CommentResponse,
    LikeResponse,
    NearbyRocksResponse,
    RockCreateRequest,
    RockCreateResponse,
    RockListResponse,
    RockResponse,
    RockType,
    RockUpdateRequest,
)
from rockspotter.rocks.service import (
    add_comment,
    create_rock,
    delete_rock,
    get_visible_rock,
    like_rock,
    list_nearby_rocks,
    list_rocks,
    unlike_rock,
    update_rock,
)

router = APIRouter(prefix="/api/v1/rocks", tags=["Rocks"])


def comment_response(c: RockComment) -> CommentResponse:
    return CommentResponse(
        id=c.id,
        user_id=c.user_id,
        username=c.author.username,
        text=c.text,
        created_at=c.created_at,
    )


def rock_response(rock: Rock, distance_km: float | None = None) -> RockResponse:
    return RockResponse(
        id=rock.id,
        user_id=rock.user_id,
        username=rock.user.username,
        title=rock.title,
        description=rock.description,
        photo_url=rock.photo_url,
        rock_type=rock.rock_type,
        latitude=rock.latitude,
        longitude=rock.longitude,
        tags=list(rock.tags or []),
        is_public=rock.is_public,
        like_count=len(rock.likes),
        liked_by=sorted(like.user_id for like in rock.likes),
        comments=[comment_response(c) for c in rock.comments],
        created_at=rock.created_at,
        updated_at=rock.updated_at,
        distance_km=round(distance_km, 3) if distance_km is not None else None,
    )


@router.get("", response_model=RockListResponse)
async def get_rocks(
    rock_type: RockType | None = Query(None),
    tag: str | None = Query(None, max_length=50),
    user_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Public rock feed, newest first."""
    per_page = per_page or get_settings().default_page_size
    rocks, total = await list_rocks(
        db, rock_type=rock_type, tag=tag, user_id=user_id, page=page, per_page=per_page
    )
    return RockListResponse(
        rocks=[rock_response(r) for r in rocks],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/nearby", response_model=NearbyRocksResponse)
async def get_nearby_rocks(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float | None = Query(None, gt=0, le=500),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_session),
):
    """Public rocks within a radius of a point, nearest first."""
    radius = radius_km or get_settings().nearby_default_radius_km
    hits = await list_nearby_rocks(db, latitude=lat, longitude=lng, radius_km=radius, limit=limit)
    return NearbyRocksResponse(
        rocks=[rock_response(rock, distance) for rock, distance in hits],
        radius_km=radius,
    )


@router.get("/{rock_id}", response_model=RockResponse)
async def get_rock_detail(
    rock_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    rock = await get_visible_rock(db, rock_id, viewer.id if viewer else None)
    return rock_response(rock)


@router.post("", response_model=RockCreateResponse, status_code=201)
async def post_rock(
    body: RockCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_optional_redis),
):
    """Post a rock and evaluate the achievements it unlocks."""
    rock = await create_rock(
        db,
        user,
        title=body.title,
        description=body.description,
        photo_url=body.photo_url,
        rock_type=body.rock_type,
        latitude=body.latitude,
        longitude=body.longitude,
        tags=body.tags,
        is_public=body.is_public,
    )
    result = await AwardService(db, redis).record_rock_posted(user.id, rock.id)
    return RockCreateResponse(
        rock=rock_response(rock),
        new_awards=await award_summaries(db, result.new_awards),
    )


@router.put("/{rock_id}", response_model=RockResponse)
async def put_rock(
    rock_id: int,
    body: RockUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rock = await get_visible_rock(db, rock_id, user.id)
    rock = await update_rock(db, rock, user, **body.model_dump(exclude_unset=True))
    return rock_response(rock)


@router.delete("/{rock_id}", status_code=204)
async def remove_rock(
    rock_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rock = await get_visible_rock(db, rock_id, user.id)
    await delete_rock(db, rock, user)


@router.post("/{rock_id}/like", response_model=LikeResponse)
async def post_like(
    rock_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_optional_redis),
):
    """Like a rock. Liking twice leaves the like count unchanged."""
    rock, added = await like_rock(db, rock_id, user)
    if added:
        await AwardService(db, redis).record_like_received(rock_id)
    return LikeResponse(rock_id=rock_id, liked=True, like_count=len(rock.likes))


@router.delete("/{rock_id}/like", response_model=LikeResponse)
async def delete_like(
    rock_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rock, _ = await unlike_rock(db, rock_id, user)
    return LikeResponse(rock_id=rock_id, liked=False, like_count=len(rock.likes))


@router.post("/{rock_id}/comments", response_model=CommentCreateResponse, status_code=201)
async def post_comment(
    rock_id: int,
    body: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_optional_redis),
):
    comment = await add_comment(db, rock_id, user, body.text)
    awards = await AwardService(db, redis).record_comment_posted(user.id, rock_id)
    return CommentCreateResponse(
        comment=comment_response(comment),
        new_awards=await award_summaries(db, awards),
    )
