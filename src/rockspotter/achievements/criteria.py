"""Typed achievement criteria.

Stored criteria are a (kind, target, details) triple; details is free JSON in
the database. Here each kind gets its own model, and parsing either yields a
typed criteria object or None. None means the achievement is skipped by the
evaluator, so new kinds can be added to the catalog before the code learns
about them.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

Counter = Literal[
    "rock_count",
    "hunt_count",
    "found_count",
    "hunts_joined",
    "comment_count",
    "likes_received",
]

EventKind = Literal[
    "rock_posted",
    "rock_found",
    "hunt_joined",
    "hunt_completed",
    "comment_posted",
    "like_received",
]

# Counter used by a `count` achievement when its details do not name one.
DEFAULT_COUNTERS: dict[str, Counter] = {
    "rocks": "rock_count",
    "hunts": "hunt_count",
    "social": "comment_count",
    "geology": "rock_count",
}


class _Details(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class CountDetails(_Details):
    counter: Counter | None = None


class SpecificDetails(_Details):
    event: EventKind
    rock_type: str | None = None
    rock_id: int | None = None
    hunt_id: int | None = None


class StreakDetails(_Details):
    unit: Literal["day"] = "day"


class VarietyDetails(_Details):
    category: Literal["rock_type"] = "rock_type"


class _Criteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: int = Field(1, ge=1)


class CountCriteria(_Criteria):
    kind: Literal["count"] = "count"
    details: CountDetails = CountDetails()


class SpecificCriteria(_Criteria):
    kind: Literal["specific"] = "specific"
    details: SpecificDetails


class StreakCriteria(_Criteria):
    kind: Literal["streak"] = "streak"
    details: StreakDetails = StreakDetails()


class VarietyCriteria(_Criteria):
    kind: Literal["variety"] = "variety"
    details: VarietyDetails = VarietyDetails()


Criteria = Annotated[
    Union[CountCriteria, SpecificCriteria, StreakCriteria, VarietyCriteria],
    Field(discriminator="kind"),
]

_adapter: TypeAdapter[Criteria] = TypeAdapter(Criteria)

KNOWN_KINDS = frozenset({"count", "specific", "streak", "variety"})


def parse_criteria(kind: str, target: int, details: dict[str, Any] | None) -> Criteria | None:
    """Build typed criteria from stored fields, or None if they are not understood."""
    if kind not in KNOWN_KINDS:
        return None
    try:
        return _adapter.validate_python({"kind": kind, "target": target, "details": details or {}})
    except pydantic.ValidationError:
        return None


def validate_criteria(kind: str, target: int, details: dict[str, Any] | None) -> Criteria:
    """Strict variant of parse_criteria for catalog writes. Raises pydantic.ValidationError."""
    return _adapter.validate_python({"kind": kind, "target": target, "details": details or {}})


def resolve_counter(criteria: CountCriteria, achievement_type: str) -> Counter | None:
    """Pick the statistic a count achievement compares against its target."""
    if criteria.details.counter is not None:
        return criteria.details.counter
    return DEFAULT_COUNTERS.get(achievement_type)
