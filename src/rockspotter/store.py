"""Entity store operations used by the award service.

Every write here is idempotent: set membership is an INSERT ... ON CONFLICT
DO NOTHING against a UNIQUE constraint, and one-shot transitions are
conditional UPDATEs. Concurrent duplicate submissions therefore converge on
the same rows without explicit locking.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.db.models import (
    Achievement,
    Hunt,
    HuntFoundRock,
    HuntParticipant,
    Rock,
    User,
    UserAchievement,
)
from rockspotter.errors import NotFoundError


async def insert_ignore(
    db: AsyncSession,
    model: type[Any],
    values: dict[str, Any],
    index_elements: list[str],
) -> bool:
    """Insert a row unless it conflicts on ``index_elements``. Returns True if a row was inserted."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model)
    elif dialect == "sqlite":
        stmt = sqlite_insert(model)
    else:
        msg = f"Unsupported database dialect: {dialect}"
        raise RuntimeError(msg)

    stmt = stmt.values(**values).on_conflict_do_nothing(index_elements=index_elements)
    result = await db.execute(stmt.returning(model.id))
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


async def get_user(db: AsyncSession, user_id: int) -> User:
    """Fetch a user or raise NotFoundError."""
    user = await db.get(User, user_id)
    if user is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)
    return user


async def update_user_counters(
    db: AsyncSession,
    user_id: int,
    *,
    rock_count: int = 0,
    hunt_count: int = 0,
) -> None:
    """Apply counter deltas in a single UPDATE (no read-modify-write)."""
    if not rock_count and not hunt_count:
        return
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(
            rock_count=User.rock_count + rock_count,
            hunt_count=User.hunt_count + hunt_count,
        )
        .execution_options(synchronize_session=False)
    )


async def get_streak_state(db: AsyncSession, user_id: int) -> tuple[date | None, int]:
    """(last_active_date, current_streak) as currently stored."""
    result = await db.execute(
        select(User.last_active_date, User.current_streak).where(User.id == user_id)
    )
    last_active, current = result.one()
    return last_active, current


async def set_streak_if_unchanged(
    db: AsyncSession,
    user_id: int,
    *,
    seen: tuple[date | None, int],
    streak: int,
    today: date,
) -> bool:
    """Compare-and-set the streak. False if another writer moved it since ``seen`` was read."""
    seen_date, seen_streak = seen
    result = await db.execute(
        update(User)
        .where(
            User.id == user_id,
            User.last_active_date.is_not_distinct_from(seen_date),
            User.current_streak == seen_streak,
        )
        .values(
            current_streak=streak,
            longest_streak=case((User.longest_streak < streak, streak), else_=User.longest_streak),
            last_active_date=today,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


# ---------------------------------------------------------------------------
# Awards
# ---------------------------------------------------------------------------


async def add_award(db: AsyncSession, user_id: int, achievement_id: int, awarded_at: datetime) -> bool:
    """Attach an achievement to a user. Returns False if the user already holds it."""
    return await insert_ignore(
        db,
        UserAchievement,
        {"user_id": user_id, "achievement_id": achievement_id, "awarded_at": awarded_at},
        ["user_id", "achievement_id"],
    )


async def get_awarded_ids(db: AsyncSession, user_id: int) -> frozenset[int]:
    result = await db.execute(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    )
    return frozenset(result.scalars())


async def list_unawarded_achievements(db: AsyncSession, user_id: int) -> list[Achievement]:
    """All catalog entries the user does not hold yet, by id."""
    held = select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    result = await db.execute(
        select(Achievement).where(Achievement.id.not_in(held)).order_by(Achievement.id)
    )
    return list(result.scalars())


async def get_achievement(db: AsyncSession, achievement_id: int) -> Achievement:
    achievement = await db.get(Achievement, achievement_id)
    if achievement is None:
        msg = f"Achievement {achievement_id} not found"
        raise NotFoundError(msg)
    return achievement


# ---------------------------------------------------------------------------
# Rocks
# ---------------------------------------------------------------------------


async def get_rock(db: AsyncSession, rock_id: int) -> Rock:
    """Fetch a rock (with likes and comments) or raise NotFoundError."""
    rock = await db.get(Rock, rock_id)
    if rock is None:
        msg = f"Rock {rock_id} not found"
        raise NotFoundError(msg)
    return rock


async def claim_rock_for_counting(db: AsyncSession, rock_id: int) -> bool:
    """Flip award_processed false -> true. Only the first caller sees True."""
    result = await db.execute(
        update(Rock)
        .where(Rock.id == rock_id, Rock.award_processed.is_(False))
        .values(award_processed=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def get_posted_rock_types(db: AsyncSession, user_id: int) -> frozenset[str]:
    result = await db.execute(
        select(Rock.rock_type).where(Rock.user_id == user_id).distinct()
    )
    return frozenset(result.scalars())


# ---------------------------------------------------------------------------
# Hunts
# ---------------------------------------------------------------------------


async def get_hunt(db: AsyncSession, hunt_id: int) -> Hunt:
    """Fetch a hunt (with its ordered rock list) or raise NotFoundError."""
    hunt = await db.get(Hunt, hunt_id)
    if hunt is None:
        msg = f"Hunt {hunt_id} not found"
        raise NotFoundError(msg)
    return hunt


async def get_participant(db: AsyncSession, hunt_id: int, user_id: int) -> HuntParticipant | None:
    result = await db.execute(
        select(HuntParticipant).where(
            HuntParticipant.hunt_id == hunt_id,
            HuntParticipant.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def add_participant(db: AsyncSession, hunt_id: int, user_id: int, joined_at: datetime) -> bool:
    """Idempotent set-add into the hunt's participants. True if newly joined."""
    return await insert_ignore(
        db,
        HuntParticipant,
        {"hunt_id": hunt_id, "user_id": user_id, "joined_at": joined_at},
        ["hunt_id", "user_id"],
    )


async def update_participant_found_rocks(
    db: AsyncSession,
    hunt_id: int,
    user_id: int,
    rock_id: int,
    found_at: datetime,
) -> bool:
    """Idempotent set-add into a participant's found rocks. True if the rock was new."""
    return await insert_ignore(
        db,
        HuntFoundRock,
        {"hunt_id": hunt_id, "user_id": user_id, "rock_id": rock_id, "found_at": found_at},
        ["hunt_id", "user_id", "rock_id"],
    )


async def get_found_rock_ids(db: AsyncSession, hunt_id: int, user_id: int) -> frozenset[int]:
    result = await db.execute(
        select(HuntFoundRock.rock_id).where(
            HuntFoundRock.hunt_id == hunt_id,
            HuntFoundRock.user_id == user_id,
        )
    )
    return frozenset(result.scalars())


async def mark_participant_completed(db: AsyncSession, hunt_id: int, user_id: int, now: datetime) -> bool:
    """Set completed_at once. Only the first caller sees True."""
    result = await db.execute(
        update(HuntParticipant)
        .where(
            HuntParticipant.hunt_id == hunt_id,
            HuntParticipant.user_id == user_id,
            HuntParticipant.completed_at.is_(None),
        )
        .values(completed_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def count_rows(db: AsyncSession, column: Any, *criteria: Any) -> int:  # noqa: ANN401
    """SELECT count(column) WHERE criteria."""
    result = await db.execute(select(func.count(column)).where(*criteria))
    return int(result.scalar_one())
