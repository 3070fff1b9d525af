"""Award service: applies user actions and persists the achievements they unlock.

Each public method handles one action as a single unit of work: the primary
effect (found rock, joined hunt, counted rock) is written with an idempotent
store operation, the progress evaluator decides which achievements newly
qualify, the awards are inserted, and the session is committed once. A
repeated action writes nothing and reports no new awards.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.achievements.evaluator import (
    AchievementRule,
    CommentPosted,
    Event,
    HuntCompleted,
    HuntJoined,
    LikeReceived,
    RockFound,
    RockPosted,
    UserStats,
    advance_streak,
    evaluate,
    is_hunt_complete,
)
from rockspotter.db.models import HuntFoundRock, HuntParticipant, Rock, RockComment, RockLike, User
from rockspotter.errors import ConflictError, ValidationError
from rockspotter.hunts.service import hunt_status
from rockspotter.redis_client import publish_json
from rockspotter.store import (
    add_award,
    add_participant,
    claim_rock_for_counting,
    count_rows,
    get_achievement,
    get_awarded_ids,
    get_found_rock_ids,
    get_hunt,
    get_participant,
    get_posted_rock_types,
    get_rock,
    get_streak_state,
    get_user,
    list_unawarded_achievements,
    mark_participant_completed,
    set_streak_if_unchanged,
    update_participant_found_rocks,
    update_user_counters,
)

logger = structlog.get_logger()

ACHIEVEMENT_CHANNEL = "pubsub:achievement_earned"

# Compare-and-set attempts before a streak update gives up
STREAK_RETRIES = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ParticipantState:
    hunt_id: int
    user_id: int
    found_rock_ids: list[int]
    total_rocks: int
    completed: bool


@dataclass
class RockPostedResult:
    user: User
    new_awards: list[int] = field(default_factory=list)


@dataclass
class RockFoundResult:
    participant: ParticipantState
    hunt_completed: bool
    new_awards: list[int] = field(default_factory=list)


@dataclass
class HuntJoinResult:
    joined: bool
    new_awards: list[int] = field(default_factory=list)


class AwardService:
    """Records user actions and awards the achievements they unlock."""

    def __init__(
        self,
        db: AsyncSession,
        redis: object | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.db = db
        self.redis = redis
        self.clock = clock

    # --- Actions ---

    async def record_rock_posted(self, user_id: int, rock_id: int) -> RockPostedResult:
        """Count a newly posted rock and evaluate rock achievements.

        Raises NotFoundError for an unknown user or rock, ValidationError if
        the rock belongs to someone else. Counting happens once per rock.
        """
        user = await get_user(self.db, user_id)
        rock = await get_rock(self.db, rock_id)
        if rock.user_id != user_id:
            msg = f"Rock {rock_id} was not posted by user {user_id}"
            raise ValidationError(msg)

        now = self.clock()
        awards: list[int] = []
        if await claim_rock_for_counting(self.db, rock_id):
            await update_user_counters(self.db, user_id, rock_count=1)
            await self._touch_streak(user, now.date())
            awards = await self._evaluate_and_award(user, RockPosted(rock.id, rock.rock_type), now)
        else:
            logger.info("rock_already_counted", user_id=user_id, rock_id=rock_id)

        await self.db.commit()
        await self._publish(user_id, awards, "rock_posted")
        return RockPostedResult(user=user, new_awards=awards)

    async def record_rock_found(
        self,
        user_id: int,
        hunt_id: int,
        rock_id: int,
        *,
        strict: bool = False,
    ) -> RockFoundResult:
        """Mark a hunt rock as found by a participant.

        A repeat find is a no-op that returns the current participant state
        with no new awards, unless ``strict`` is set, in which case it raises
        ConflictError.
        """
        user = await get_user(self.db, user_id)
        hunt = await get_hunt(self.db, hunt_id)
        hunt_rock_ids = hunt.rock_ids
        if rock_id not in hunt_rock_ids:
            msg = f"Rock {rock_id} is not part of hunt {hunt_id}"
            raise ValidationError(msg)

        participant = await get_participant(self.db, hunt_id, user_id)
        if participant is None:
            msg = f"User {user_id} has not joined hunt {hunt_id}"
            raise ValidationError(msg)

        found = await get_found_rock_ids(self.db, hunt_id, user_id)
        if rock_id in found:
            return self._repeat_find(user_id, hunt_id, rock_id, hunt_rock_ids, found, strict=strict)

        now = self.clock()
        status = hunt_status(hunt, now)
        if status != "active":
            msg = f"Hunt {hunt_id} is {status}"
            raise ValidationError(msg)

        if not await update_participant_found_rocks(self.db, hunt_id, user_id, rock_id, now):
            # Lost a race against an identical request
            found = await get_found_rock_ids(self.db, hunt_id, user_id)
            return self._repeat_find(user_id, hunt_id, rock_id, hunt_rock_ids, found, strict=strict)

        found = found | {rock_id}
        await self._touch_streak(user, now.date())
        awards = await self._evaluate_and_award(user, RockFound(hunt_id, rock_id), now)

        completed = is_hunt_complete(hunt_rock_ids, found)
        if completed and await mark_participant_completed(self.db, hunt_id, user_id, now):
            await update_user_counters(self.db, user_id, hunt_count=1)
            awards += await self._evaluate_and_award(user, HuntCompleted(hunt_id), now)
            logger.info("hunt_completed", user_id=user_id, hunt_id=hunt_id)

        await self.db.commit()
        awards = sorted(set(awards))
        await self._publish(user_id, awards, "rock_found")
        return RockFoundResult(
            participant=ParticipantState(
                hunt_id=hunt_id,
                user_id=user_id,
                found_rock_ids=sorted(found),
                total_rocks=len(hunt_rock_ids),
                completed=completed,
            ),
            hunt_completed=completed,
            new_awards=awards,
        )

    async def record_hunt_join(self, user_id: int, hunt_id: int) -> HuntJoinResult:
        """Add the user to a hunt's participants. Joining twice is a no-op success."""
        user = await get_user(self.db, user_id)
        hunt = await get_hunt(self.db, hunt_id)

        if await get_participant(self.db, hunt_id, user_id) is not None:
            return HuntJoinResult(joined=True)

        now = self.clock()
        status = hunt_status(hunt, now)
        if status in ("inactive", "ended"):
            msg = f"Hunt {hunt_id} is {status}"
            raise ValidationError(msg)

        awards: list[int] = []
        if await add_participant(self.db, hunt_id, user_id, now):
            await self._touch_streak(user, now.date())
            awards = await self._evaluate_and_award(user, HuntJoined(hunt_id), now)
            logger.info("hunt_joined", user_id=user_id, hunt_id=hunt_id)

        await self.db.commit()
        await self._publish(user_id, awards, "hunt_joined")
        return HuntJoinResult(joined=True, new_awards=awards)

    async def record_comment_posted(self, user_id: int, rock_id: int) -> list[int]:
        """Evaluate social achievements for the commenter. Comments count towards the streak."""
        user = await get_user(self.db, user_id)
        now = self.clock()
        await self._touch_streak(user, now.date())
        awards = await self._evaluate_and_award(user, CommentPosted(rock_id), now)
        await self.db.commit()
        await self._publish(user_id, awards, "comment_posted")
        return awards

    async def record_like_received(self, rock_id: int) -> list[int]:
        """Evaluate social achievements for the owner of a rock that just gained a like."""
        rock = await get_rock(self.db, rock_id)
        owner = await get_user(self.db, rock.user_id)
        awards = await self._evaluate_and_award(owner, LikeReceived(rock_id), self.clock())
        await self.db.commit()
        await self._publish(owner.id, awards, "like_received")
        return awards

    async def award_achievement(self, user_id: int, achievement_id: int) -> bool:
        """Grant an achievement directly (moderation). Returns False if already held."""
        await get_user(self.db, user_id)
        await get_achievement(self.db, achievement_id)
        awarded = await add_award(self.db, user_id, achievement_id, self.clock())
        await self.db.commit()
        if awarded:
            await self._publish(user_id, [achievement_id], "manual")
        return awarded

    # --- Internals ---

    def _repeat_find(
        self,
        user_id: int,
        hunt_id: int,
        rock_id: int,
        hunt_rock_ids: list[int],
        found: frozenset[int],
        *,
        strict: bool,
    ) -> RockFoundResult:
        if strict:
            msg = f"Rock {rock_id} already found in hunt {hunt_id}"
            raise ConflictError(msg)
        completed = is_hunt_complete(hunt_rock_ids, found)
        return RockFoundResult(
            participant=ParticipantState(
                hunt_id=hunt_id,
                user_id=user_id,
                found_rock_ids=sorted(found),
                total_rocks=len(hunt_rock_ids),
                completed=completed,
            ),
            hunt_completed=completed,
        )

    async def _touch_streak(self, user: User, today: date) -> None:
        """Advance the daily streak for an action taken on ``today``.

        The write is a compare-and-set on the stored date and streak, retried
        against fresh values when a concurrent action got there first.
        """
        await self.db.flush()
        for _ in range(STREAK_RETRIES):
            seen = await get_streak_state(self.db, user.id)
            streak = advance_streak(seen[0], seen[1], today)
            if seen == (today, streak):
                break
            if await set_streak_if_unchanged(self.db, user.id, seen=seen, streak=streak, today=today):
                break
        else:
            msg = f"Streak for user {user.id} kept changing, retry the request"
            raise ConflictError(msg)
        await self.db.refresh(user)

    async def _snapshot(self, user: User) -> UserStats:
        """Collect the statistics the evaluator reads, from the current transaction."""
        await self.db.flush()
        await self.db.refresh(user)
        uid = user.id
        return UserStats(
            rock_count=user.rock_count,
            hunt_count=user.hunt_count,
            found_count=await count_rows(self.db, HuntFoundRock.id, HuntFoundRock.user_id == uid),
            hunts_joined=await count_rows(self.db, HuntParticipant.id, HuntParticipant.user_id == uid),
            comment_count=await count_rows(self.db, RockComment.id, RockComment.user_id == uid),
            likes_received=await count_rows(
                self.db, RockLike.id, RockLike.rock_id == Rock.id, Rock.user_id == uid
            ),
            current_streak=user.current_streak,
            rock_types=await get_posted_rock_types(self.db, uid),
            awarded=await get_awarded_ids(self.db, uid),
        )

    async def _evaluate_and_award(self, user: User, event: Event, now: datetime) -> list[int]:
        stats = await self._snapshot(user)
        catalog = [AchievementRule.from_model(a) for a in await list_unawarded_achievements(self.db, user.id)]
        awarded: list[int] = []
        for achievement_id in evaluate(stats, event, catalog):
            if await add_award(self.db, user.id, achievement_id, now):
                awarded.append(achievement_id)
        if awarded:
            logger.info("achievements_awarded", user_id=user.id, trigger=event.kind, achievement_ids=awarded)
        return awarded

    async def _publish(self, user_id: int, achievement_ids: list[int], source: str) -> None:
        """Push award notifications via Redis pub/sub. Best effort, after commit."""
        if self.redis is None or not achievement_ids:
            return
        for achievement_id in achievement_ids:
            try:
                await publish_json(
                    self.redis,
                    ACHIEVEMENT_CHANNEL,
                    {"user_id": user_id, "achievement_id": achievement_id, "source": source},
                )
            except Exception:
                logger.warning(
                    "achievement_publish_failed",
                    user_id=user_id,
                    achievement_id=achievement_id,
                    exc_info=True,
                )
