"""Criteria parsing and validation."""

import pydantic
import pytest

from rockspotter.achievements.criteria import (
    CountCriteria,
    SpecificCriteria,
    StreakCriteria,
    VarietyCriteria,
    parse_criteria,
    resolve_counter,
    validate_criteria,
)
from rockspotter.achievements.seed import ACHIEVEMENT_SEED_DATA


class TestParseCriteria:
    def test_count_defaults(self):
        criteria = parse_criteria("count", 5, None)
        assert isinstance(criteria, CountCriteria)
        assert criteria.target == 5
        assert criteria.details.counter is None

    def test_specific(self):
        criteria = parse_criteria("specific", 1, {"event": "rock_posted", "rock_type": "fossil"})
        assert isinstance(criteria, SpecificCriteria)
        assert criteria.details.event == "rock_posted"
        assert criteria.details.rock_type == "fossil"

    def test_streak(self):
        assert isinstance(parse_criteria("streak", 7, {"unit": "day"}), StreakCriteria)

    def test_variety(self):
        assert isinstance(parse_criteria("variety", 3, {}), VarietyCriteria)

    def test_unknown_kind(self):
        assert parse_criteria("telepathy", 1, {}) is None

    def test_unknown_detail_key(self):
        assert parse_criteria("count", 1, {"counter": "rock_count", "bonus": 2}) is None

    def test_unsupported_streak_unit(self):
        assert parse_criteria("streak", 4, {"unit": "week"}) is None


class TestValidateCriteria:
    def test_raises_on_bad_target(self):
        with pytest.raises(pydantic.ValidationError):
            validate_criteria("count", 0, {})

    def test_raises_on_missing_event(self):
        with pytest.raises(pydantic.ValidationError):
            validate_criteria("specific", 1, {"rock_type": "fossil"})

    @pytest.mark.parametrize("data", ACHIEVEMENT_SEED_DATA, ids=lambda d: d["name"])
    def test_seed_catalog_is_valid(self, data):
        validate_criteria(data["criteria_kind"], data["criteria_target"], data["criteria_details"])


class TestResolveCounter:
    def test_explicit_counter_wins(self):
        criteria = CountCriteria(target=1, details={"counter": "found_count"})
        assert resolve_counter(criteria, "rocks") == "found_count"

    @pytest.mark.parametrize(
        ("achievement_type", "counter"),
        [("rocks", "rock_count"), ("hunts", "hunt_count"), ("social", "comment_count"), ("special", None)],
    )
    def test_default_by_type(self, achievement_type, counter):
        assert resolve_counter(CountCriteria(target=1), achievement_type) == counter
