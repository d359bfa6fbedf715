"""Tests for data_builders and the challenge/badge catalog.

Test Categories:
- Habit entry create/update, including explicit score recompute rules
- Challenge and badge definition validation
- Default catalog consistency and lookups
"""

from __future__ import annotations

from typing import Any

from freezegun import freeze_time
import pytest

from habitpulse import const
from habitpulse.catalog import DEFAULT_BADGES, DEFAULT_CHALLENGES, Catalog
from habitpulse.data_builders import (
    build_badge,
    build_challenge,
    build_default_stats,
    build_habit_entry,
    build_user_record,
)
from habitpulse.exceptions import (
    InvalidDateError,
    InvalidDefinitionError,
    InvalidHabitDataError,
    NotFoundError,
)
from tests.helpers import PERFECT_DAY, USER_ID


def _challenge(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": "steady_week",
        "title": "Steady Week",
        "category": const.PROGRESS_CATEGORY_OVERALL,
        "target": 70,
        "duration_days": 5,
    }
    data.update(overrides)
    return data


# =============================================================================
# Test: Habit Entries
# =============================================================================


class TestBuildHabitEntry:
    """Tests for habit entry create and update."""

    def test_create(self) -> None:
        """A new entry gets an id, its day and a computed score."""
        entry = build_habit_entry(
            USER_ID, {**PERFECT_DAY, "date": "2025-06-10T21:00:00+00:00"}
        )
        assert entry["id"]
        assert entry["user_id"] == USER_ID
        assert entry["date"] == "2025-06-10"
        assert entry["score"]["total"] == 100
        assert entry["exercise_done"] is True
        assert entry["created_at"] == entry["updated_at"]

    def test_undated_entry_uses_reference_day(self) -> None:
        """Without a date the entry falls on `now`."""
        entry = build_habit_entry(USER_ID, PERFECT_DAY, now="2025-06-03T08:00:00")
        assert entry["date"] == "2025-06-03"

    @freeze_time("2025-06-04 09:00:00")
    def test_undated_entry_defaults_to_today(self) -> None:
        """Without date or reference, the entry falls on today."""
        entry = build_habit_entry(USER_ID, PERFECT_DAY)
        assert entry["date"] == "2025-06-04"

    def test_ids_are_unique(self) -> None:
        """Every create generates a fresh id."""
        first = build_habit_entry(USER_ID, PERFECT_DAY, now="2025-06-03")
        second = build_habit_entry(USER_ID, PERFECT_DAY, now="2025-06-03")
        assert first["id"] != second["id"]

    def test_update_recomputes_on_score_field(self) -> None:
        """Changing a score-affecting field recomputes the score."""
        existing = build_habit_entry(USER_ID, PERFECT_DAY, now="2025-06-03")
        updated = build_habit_entry(
            USER_ID, {"sleep_hours": 4, "water_intake": 0.5}, existing
        )
        assert updated["id"] == existing["id"]
        assert updated["created_at"] == existing["created_at"]
        assert updated["date"] == "2025-06-03"
        assert updated["score"]["total"] == 90

    def test_exercise_minutes_alone_do_not_stick(self) -> None:
        """The stored flag is the input's, so clearing minutes clears fitness."""
        fields = {**PERFECT_DAY, "exercise_done": False, "exercise_minutes": 30}
        existing = build_habit_entry(USER_ID, fields, now="2025-06-03")
        assert existing["exercise_done"] is False
        assert existing["score"]["fitness"] == 100

        updated = build_habit_entry(USER_ID, {"exercise_minutes": 0}, existing)
        fresh = build_habit_entry(
            USER_ID, {**fields, "exercise_minutes": 0}, now="2025-06-03"
        )
        assert updated["exercise_done"] is False
        assert updated["score"]["fitness"] == 0
        assert updated["score"] == fresh["score"]

    def test_update_keeps_score_on_other_fields(self) -> None:
        """Notes-only edits leave the stored score as it was."""
        existing = build_habit_entry(USER_ID, PERFECT_DAY, now="2025-06-03")
        existing["score"] = {**existing["score"], "total": 42}

        updated = build_habit_entry(USER_ID, {"notes": "felt great"}, existing)
        assert updated["notes"] == "felt great"
        assert updated["score"]["total"] == 42

    def test_invalid_input_raises(self) -> None:
        """Validation errors name the field."""
        with pytest.raises(InvalidHabitDataError) as exc_info:
            build_habit_entry(USER_ID, {**PERFECT_DAY, "mood": "meh"})
        assert exc_info.value.field == "mood"

    def test_invalid_date_raises(self) -> None:
        """An unreadable date is an InvalidDateError."""
        with pytest.raises(InvalidDateError):
            build_habit_entry(USER_ID, {**PERFECT_DAY, "date": "someday"})


# =============================================================================
# Test: Definitions
# =============================================================================


class TestDefinitions:
    """Tests for challenge and badge validation."""

    def test_challenge_defaults(self) -> None:
        """Optional fields are filled in."""
        challenge = build_challenge(_challenge())
        assert challenge["criteria_type"] == const.CRITERIA_TYPE_SCORE
        assert challenge["points_reward"] == 0
        assert challenge["badge_reward"] is None
        assert challenge["description"] == ""

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"target": 150}, "target"),
            ({"target": 0}, "target"),
            ({"duration_days": 0}, "duration_days"),
            ({"category": "gardening"}, "category"),
            ({"criteria_type": "challenge"}, "criteria_type"),
            ({"title": ""}, "title"),
        ],
    )
    def test_invalid_challenge(self, overrides: dict[str, Any], field: str) -> None:
        """Each invalid field is reported by name."""
        with pytest.raises(InvalidDefinitionError) as exc_info:
            build_challenge(_challenge(**overrides))
        assert exc_info.value.field == field
        assert exc_info.value.definition_id == "steady_week"

    def test_streak_challenge_may_exceed_100(self) -> None:
        """Only score targets are capped at 100."""
        challenge = build_challenge(
            _challenge(criteria_type=const.CRITERIA_TYPE_TOTAL, target=150)
        )
        assert challenge["target"] == 150

    def test_invalid_badge(self) -> None:
        """Unknown tiers are rejected."""
        with pytest.raises(InvalidDefinitionError) as exc_info:
            build_badge(
                {
                    "id": "shiny",
                    "name": "Shiny",
                    "tier": "diamond",
                    "criteria_type": const.CRITERIA_TYPE_STREAK,
                    "target": 3,
                }
            )
        assert exc_info.value.field == "tier"

    def test_user_record(self) -> None:
        """A new user starts at version 0 with zeroed stats."""
        record = build_user_record()
        assert record[const.DATA_USER_VERSION] == 0
        assert record[const.DATA_STATS] == build_default_stats()
        assert record[const.DATA_USER_CHALLENGES] == {}


# =============================================================================
# Test: Catalog
# =============================================================================


class TestCatalog:
    """Tests for the default catalog and lookups."""

    def test_defaults_load(self) -> None:
        """Every default definition validates."""
        catalog = Catalog()
        assert len(catalog.challenges) == len(DEFAULT_CHALLENGES)
        assert len(catalog.badges) == len(DEFAULT_BADGES)

    def test_challenge_badges_exist(self) -> None:
        """Every challenge badge reward refers to a catalog badge."""
        catalog = Catalog()
        badge_ids = {badge["id"] for badge in catalog.badges}
        for challenge in catalog.challenges:
            if challenge["badge_reward"] is not None:
                assert challenge["badge_reward"] in badge_ids

    def test_lookup(self) -> None:
        """Known ids resolve to their definitions."""
        catalog = Catalog()
        assert catalog.get_challenge("sleep_master")["category"] == "sleep"
        assert catalog.get_badge("habit_hero")["tier"] == const.BADGE_TIER_PLATINUM

    def test_unknown_ids_raise(self) -> None:
        """Unknown ids are NotFoundError."""
        catalog = Catalog()
        with pytest.raises(NotFoundError):
            catalog.get_challenge("nope")
        with pytest.raises(NotFoundError) as exc_info:
            catalog.get_badge("nope")
        assert exc_info.value.entity_type == "badge"

    def test_duplicate_ids_rejected(self) -> None:
        """Two definitions with one id are a definition error."""
        with pytest.raises(InvalidDefinitionError):
            Catalog(challenges=[_challenge(), _challenge()], badges=[])

    def test_custom_catalog(self) -> None:
        """Explicit lists replace the defaults."""
        catalog = Catalog(challenges=[_challenge()], badges=[])
        assert [challenge["id"] for challenge in catalog.challenges] == ["steady_week"]
        assert catalog.badges == []
