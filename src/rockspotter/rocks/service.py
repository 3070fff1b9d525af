"""Rock posts: CRUD, likes, comments and proximity search."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import delete, func, select

from rockspotter.db.models import HuntRock, Rock, RockComment, RockLike, User
from rockspotter.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from rockspotter.store import get_rock, insert_ignore
from rockspotter.users.service import can_manage

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

EARTH_RADIUS_KM = 6371.0088
KM_PER_DEGREE_LAT = 111.32


def _normalize_tags(tags: list[str] | None) -> list[str]:
    """Lowercase, strip and dedupe while keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or []:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def bounding_box(lat: float, lng: float, radius_km: float) -> tuple[float, float, float, float]:
    """(min_lat, max_lat, min_lng, max_lng) enclosing the search circle. Does not wrap the antimeridian."""
    dlat = radius_km / KM_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    dlng = 180.0 if cos_lat < 1e-6 else min(180.0, radius_km / (KM_PER_DEGREE_LAT * cos_lat))
    return (
        max(-90.0, lat - dlat),
        min(90.0, lat + dlat),
        max(-180.0, lng - dlng),
        min(180.0, lng + dlng),
    )


async def create_rock(
    db: AsyncSession,
    owner: User,
    *,
    title: str,
    latitude: float,
    longitude: float,
    description: str = "",
    rock_type: str = "other",
    photo_url: str | None = None,
    tags: list[str] | None = None,
    is_public: bool = True,
) -> Rock:
    """Stage a new rock in the session without committing.

    The rock is committed together with its counter update by
    AwardService.record_rock_posted, so a failed award step leaves no
    uncounted rock behind.
    """
    rock = Rock(
        user_id=owner.id,
        title=title,
        description=description,
        rock_type=rock_type,
        photo_url=photo_url,
        latitude=latitude,
        longitude=longitude,
        tags=_normalize_tags(tags),
        is_public=is_public,
    )
    db.add(rock)
    await db.flush()
    logger.info("rock_created", rock_id=rock.id, user_id=owner.id, rock_type=rock_type)
    return await _reload(db, rock.id)


async def get_visible_rock(db: AsyncSession, rock_id: int, viewer_id: int | None = None) -> Rock:
    """Private rocks are reported as missing to everyone but their owner."""
    rock = await get_rock(db, rock_id)
    if not rock.is_public and rock.user_id != viewer_id:
        msg = f"Rock {rock_id} not found"
        raise NotFoundError(msg)
    return rock


async def list_rocks(
    db: AsyncSession,
    *,
    rock_type: str | None = None,
    tag: str | None = None,
    user_id: int | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Rock], int]:
    """Public rocks, newest first, with the total matching count."""
    query = select(Rock).where(Rock.is_public.is_(True))
    if rock_type is not None:
        query = query.where(Rock.rock_type == rock_type)
    if user_id is not None:
        query = query.where(Rock.user_id == user_id)

    if tag is None:
        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
        result = await db.execute(
            query.order_by(Rock.created_at.desc(), Rock.id.desc()).offset((page - 1) * per_page).limit(per_page)
        )
        return list(result.unique().scalars()), total

    # Tags are a JSON array; filter in Python to stay portable across backends.
    wanted = tag.strip().lower()
    result = await db.execute(query.order_by(Rock.created_at.desc(), Rock.id.desc()))
    matching = [r for r in result.unique().scalars() if wanted in (r.tags or [])]
    start = (page - 1) * per_page
    return matching[start:start + per_page], len(matching)


async def list_nearby_rocks(
    db: AsyncSession,
    *,
    latitude: float,
    longitude: float,
    radius_km: float,
    limit: int = 50,
) -> list[tuple[Rock, float]]:
    """Public rocks within radius_km, nearest first, as (rock, distance_km) pairs."""
    min_lat, max_lat, min_lng, max_lng = bounding_box(latitude, longitude, radius_km)
    result = await db.execute(
        select(Rock).where(
            Rock.is_public.is_(True),
            Rock.latitude.between(min_lat, max_lat),
            Rock.longitude.between(min_lng, max_lng),
        )
    )
    hits = []
    for rock in result.unique().scalars():
        distance = haversine_km(latitude, longitude, rock.latitude, rock.longitude)
        if distance <= radius_km:
            hits.append((rock, distance))
    hits.sort(key=lambda pair: (pair[1], pair[0].id))
    return hits[:limit]


async def update_rock(db: AsyncSession, rock: Rock, user: User, **changes: Any) -> Rock:  # noqa: ANN401
    """Owner-only field update. None values are ignored."""
    if not can_manage(user, rock.user_id):
        msg = "Only the owner can edit this rock"
        raise PermissionDeniedError(msg)

    for key in ("title", "description", "rock_type", "photo_url", "latitude", "longitude", "is_public"):
        if changes.get(key) is not None:
            setattr(rock, key, changes[key])
    if changes.get("tags") is not None:
        rock.tags = _normalize_tags(changes["tags"])

    await db.commit()
    return await _reload(db, rock.id)


async def delete_rock(db: AsyncSession, rock: Rock, user: User) -> None:
    """Owner-only delete. Rocks on a hunt's list stay until the hunt is deleted."""
    if not can_manage(user, rock.user_id):
        msg = "Only the owner can delete this rock"
        raise PermissionDeniedError(msg)
    in_hunt = await db.scalar(select(HuntRock.id).where(HuntRock.rock_id == rock.id).limit(1))
    if in_hunt is not None:
        msg = f"Rock {rock.id} is on a hunt's list and cannot be deleted"
        raise ConflictError(msg)
    rock_id = rock.id
    await db.delete(rock)
    await db.commit()
    logger.info("rock_deleted", rock_id=rock_id, user_id=user.id)


async def like_rock(db: AsyncSession, rock_id: int, user: User) -> tuple[Rock, bool]:
    """Idempotent like. Returns the refreshed rock and whether a like was added."""
    await get_visible_rock(db, rock_id, user.id)
    added = await insert_ignore(db, RockLike, {"rock_id": rock_id, "user_id": user.id}, ["rock_id", "user_id"])
    await db.commit()
    return await _reload(db, rock_id), added


async def unlike_rock(db: AsyncSession, rock_id: int, user: User) -> tuple[Rock, bool]:
    """Idempotent unlike. Returns the refreshed rock and whether a like was removed."""
    await get_visible_rock(db, rock_id, user.id)
    result = await db.execute(
        delete(RockLike).where(RockLike.rock_id == rock_id, RockLike.user_id == user.id)
    )
    await db.commit()
    return await _reload(db, rock_id), result.rowcount > 0


async def add_comment(db: AsyncSession, rock_id: int, user: User, text: str) -> RockComment:
    await get_visible_rock(db, rock_id, user.id)
    if not text.strip():
        msg = "Comment text must not be blank"
        raise ValidationError(msg)
    comment = RockComment(rock_id=rock_id, user_id=user.id, text=text.strip())
    db.add(comment)
    await db.commit()
    await db.refresh(comment, attribute_names=["author"])
    logger.info("comment_added", rock_id=rock_id, user_id=user.id, comment_id=comment.id)
    return comment


async def _reload(db: AsyncSession, rock_id: int) -> Rock:
    rock = await db.get(Rock, rock_id, populate_existing=True)
    if rock is None:
        msg = f"Rock {rock_id} not found"
        raise NotFoundError(msg)
    return rock
