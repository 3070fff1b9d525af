"""Hunt management business logic."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select

from rockspotter.db.models import Hunt, HuntFoundRock, HuntParticipant, HuntRock, Rock, User
from rockspotter.errors import NotFoundError, PermissionDeniedError, ValidationError
from rockspotter.users.service import can_manage

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes (SQLite round-trips, naive client input) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def hunt_status(hunt: Hunt, now: datetime) -> str:
    """One of inactive, upcoming, active, ended."""
    if not hunt.is_active:
        return "inactive"
    if as_utc(now) < as_utc(hunt.start_date):
        return "upcoming"
    if as_utc(now) > as_utc(hunt.end_date):
        return "ended"
    return "active"


@dataclass
class HuntRockInput:
    rock_id: int
    hint: str = ""
    order: int | None = None


@dataclass
class HuntProgress:
    hunt: Hunt
    found_rock_ids: list[int]
    joined_at: datetime
    completed_at: datetime | None

    @property
    def completed(self) -> bool:
        return self.completed_at is not None


def _assign_orders(entries: list[HuntRockInput]) -> list[HuntRockInput]:
    """Fill in 1..N when no order is given; otherwise require unique explicit orders."""
    given = [e.order for e in entries if e.order is not None]
    if not given:
        return [HuntRockInput(e.rock_id, e.hint, i) for i, e in enumerate(entries, start=1)]
    if len(given) != len(entries):
        msg = "Either every hunt rock has an order or none does"
        raise ValidationError(msg)
    if len(set(given)) != len(given):
        msg = "Hunt rock orders must be unique"
        raise ValidationError(msg)
    return entries


async def create_hunt(
    db: AsyncSession,
    creator: User,
    *,
    title: str,
    start_date: datetime,
    end_date: datetime,
    rocks: list[HuntRockInput],
    description: str = "",
    difficulty: str = "medium",
    is_active: bool = True,
) -> Hunt:
    """
    Create a hunt over existing rocks.

    Raises:
        ValidationError: dates out of order, duplicate rocks or orders.
        NotFoundError: a referenced rock does not exist.
    """
    start_date, end_date = as_utc(start_date), as_utc(end_date)
    if start_date > end_date:
        msg = "start_date must not be after end_date"
        raise ValidationError(msg)

    rock_ids = [e.rock_id for e in rocks]
    if len(set(rock_ids)) != len(rock_ids):
        msg = "A rock can appear only once in a hunt"
        raise ValidationError(msg)
    entries = _assign_orders(rocks)

    if rock_ids:
        result = await db.execute(select(Rock.id).where(Rock.id.in_(rock_ids)))
        missing = set(rock_ids) - set(result.scalars())
        if missing:
            msg = f"Rocks not found: {sorted(missing)}"
            raise NotFoundError(msg)

    hunt = Hunt(
        creator_id=creator.id,
        title=title,
        description=description,
        difficulty=difficulty,
        is_active=is_active,
        start_date=start_date,
        end_date=end_date,
        rocks=[HuntRock(rock_id=e.rock_id, hint=e.hint, order=e.order) for e in entries],
    )
    db.add(hunt)
    await db.commit()
    await db.refresh(hunt, attribute_names=["rocks"])
    logger.info("hunt_created", hunt_id=hunt.id, creator_id=creator.id, rocks=len(entries))
    return hunt


async def update_hunt(db: AsyncSession, hunt: Hunt, user: User, **changes: Any) -> Hunt:  # noqa: ANN401
    """Apply field changes (rock list is fixed after creation). Creator or staff only."""
    if not can_manage(user, hunt.creator_id):
        msg = "Only the hunt creator can modify this hunt"
        raise PermissionDeniedError(msg)

    start = as_utc(changes.get("start_date") or hunt.start_date)
    end = as_utc(changes.get("end_date") or hunt.end_date)
    if start > end:
        msg = "start_date must not be after end_date"
        raise ValidationError(msg)

    for key in ("title", "description", "difficulty", "is_active"):
        if changes.get(key) is not None:
            setattr(hunt, key, changes[key])
    hunt.start_date, hunt.end_date = start, end

    await db.commit()
    return hunt


async def delete_hunt(db: AsyncSession, hunt: Hunt, user: User) -> None:
    if not can_manage(user, hunt.creator_id):
        msg = "Only the hunt creator can delete this hunt"
        raise PermissionDeniedError(msg)
    await db.delete(hunt)
    await db.commit()
    logger.info("hunt_deleted", hunt_id=hunt.id, user_id=user.id)


async def list_hunts(
    db: AsyncSession,
    *,
    active_only: bool = False,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Hunt], int]:
    """Hunts ordered by start date (soonest first) with the total count."""
    query = select(Hunt)
    if active_only:
        query = query.where(Hunt.is_active.is_(True))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(Hunt.start_date, Hunt.id).offset((page - 1) * per_page).limit(per_page)
    )
    return list(result.scalars()), total


async def participant_counts(db: AsyncSession, hunt_ids: list[int]) -> dict[int, int]:
    if not hunt_ids:
        return {}
    result = await db.execute(
        select(HuntParticipant.hunt_id, func.count(HuntParticipant.id))
        .where(HuntParticipant.hunt_id.in_(hunt_ids))
        .group_by(HuntParticipant.hunt_id)
    )
    return {hunt_id: count for hunt_id, count in result.all()}


async def get_my_progress(db: AsyncSession, user_id: int) -> list[HuntProgress]:
    """Progress on every hunt the user has joined, most recently joined first."""
    result = await db.execute(
        select(HuntParticipant, Hunt)
        .join(Hunt, HuntParticipant.hunt_id == Hunt.id)
        .where(HuntParticipant.user_id == user_id)
        .order_by(HuntParticipant.joined_at.desc(), HuntParticipant.id.desc())
    )
    rows = result.all()

    found_result = await db.execute(
        select(HuntFoundRock.hunt_id, HuntFoundRock.rock_id).where(HuntFoundRock.user_id == user_id)
    )
    found: dict[int, list[int]] = {}
    for hunt_id, rock_id in found_result.all():
        found.setdefault(hunt_id, []).append(rock_id)

    return [
        HuntProgress(
            hunt=row.Hunt,
            found_rock_ids=sorted(found.get(row.Hunt.id, [])),
            joined_at=row.HuntParticipant.joined_at,
            completed_at=row.HuntParticipant.completed_at,
        )
        for row in rows
    ]
