"""Progress evaluator: decides which achievements a user action newly satisfies.

Everything in this module is pure: callers supply a statistics snapshot, the
triggering event and the achievement catalog, and get back achievement ids.
Persistence and streak bookkeeping belong to the award service.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Union

from rockspotter.achievements.criteria import (
    CountCriteria,
    Criteria,
    SpecificCriteria,
    StreakCriteria,
    VarietyCriteria,
    parse_criteria,
    resolve_counter,
)


# --- Events ---


@dataclass(frozen=True)
class RockPosted:
    rock_id: int
    rock_type: str

    kind = "rock_posted"


@dataclass(frozen=True)
class RockFound:
    hunt_id: int
    rock_id: int

    kind = "rock_found"


@dataclass(frozen=True)
class HuntJoined:
    hunt_id: int

    kind = "hunt_joined"


@dataclass(frozen=True)
class HuntCompleted:
    hunt_id: int

    kind = "hunt_completed"


@dataclass(frozen=True)
class CommentPosted:
    rock_id: int

    kind = "comment_posted"


@dataclass(frozen=True)
class LikeReceived:
    rock_id: int

    kind = "like_received"


Event = Union[RockPosted, RockFound, HuntJoined, HuntCompleted, CommentPosted, LikeReceived]


# --- Inputs ---


@dataclass(frozen=True)
class UserStats:
    """Snapshot of everything the criteria can look at."""

    rock_count: int = 0
    hunt_count: int = 0
    found_count: int = 0
    hunts_joined: int = 0
    comment_count: int = 0
    likes_received: int = 0
    current_streak: int = 0
    rock_types: frozenset[str] = field(default_factory=frozenset)
    awarded: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class AchievementRule:
    """The slice of an achievement definition the evaluator needs."""

    id: int
    type: str
    kind: str
    target: int
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, achievement: Any) -> AchievementRule:  # noqa: ANN401
        return cls(
            id=achievement.id,
            type=achievement.type,
            kind=achievement.criteria_kind,
            target=achievement.criteria_target,
            details=dict(achievement.criteria_details or {}),
        )


# --- Criteria checks ---


def _count_satisfied(criteria: CountCriteria, achievement_type: str, stats: UserStats) -> bool:
    counter = resolve_counter(criteria, achievement_type)
    if counter is None:
        return False
    return getattr(stats, counter) >= criteria.target


def _specific_satisfied(criteria: SpecificCriteria, event: Event) -> bool:
    details = criteria.details
    if details.event != event.kind:
        return False
    if details.rock_type is not None and getattr(event, "rock_type", None) != details.rock_type:
        return False
    if details.rock_id is not None and getattr(event, "rock_id", None) != details.rock_id:
        return False
    if details.hunt_id is not None and getattr(event, "hunt_id", None) != details.hunt_id:
        return False
    return True


def is_satisfied(criteria: Criteria, achievement_type: str, stats: UserStats, event: Event) -> bool:
    """Check one parsed criteria against the snapshot and event."""
    if isinstance(criteria, CountCriteria):
        return _count_satisfied(criteria, achievement_type, stats)
    if isinstance(criteria, SpecificCriteria):
        return _specific_satisfied(criteria, event)
    if isinstance(criteria, StreakCriteria):
        return stats.current_streak >= criteria.target
    if isinstance(criteria, VarietyCriteria):
        # rock_type is the only variety category so far
        return len(stats.rock_types) >= criteria.target
    return False


def evaluate(stats: UserStats, event: Event, catalog: Iterable[AchievementRule]) -> list[int]:
    """Return the sorted ids of achievements newly satisfied by this event.

    Achievements already in ``stats.awarded`` are never returned, and
    achievements whose criteria cannot be parsed are skipped.
    """
    satisfied: set[int] = set()
    for rule in catalog:
        if rule.id in stats.awarded:
            continue
        criteria = parse_criteria(rule.kind, rule.target, rule.details)
        if criteria is None:
            continue
        if is_satisfied(criteria, rule.type, stats, event):
            satisfied.add(rule.id)
    return sorted(satisfied)


# --- Hunt and streak helpers ---


def is_hunt_complete(hunt_rock_ids: Iterable[int], found_rock_ids: Iterable[int]) -> bool:
    """A hunt is complete when the found set covers every rock in it. Empty hunts never complete."""
    required = set(hunt_rock_ids)
    if not required:
        return False
    return required.issubset(found_rock_ids)


def advance_streak(last_active: date | None, current_streak: int, today: date) -> int:
    """Daily streak after an action on ``today``.

    Same day keeps the streak, the following day extends it, anything else
    (including a first action or a clock that went backwards) starts over at 1.
    """
    if last_active == today and current_streak > 0:
        return current_streak
    if last_active is not None and last_active + timedelta(days=1) == today:
        return current_streak + 1
    return 1
