"""Entity building helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Entity field defaults
- Definition validation (voluptuous schemas)
- Complete entity structure building

### Build Functions
Each entity type has a `build_<entity>()` function that:
- Takes input with DATA_* keys
- Generates an ID (UUID) for new habit entries
- Sets timestamps (created_at, updated_at)
- Applies field defaults
- Returns a complete dict ready for storage

Habit entries are validated through ScoreEngine.validate_entry(); their
score is recomputed here, explicitly, only when a score-affecting field
changed.

Consumers:
- managers/habit_manager.py (entry lifecycle)
- catalog.py (challenge and badge definitions)
- store.py (default user record)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
import uuid

import voluptuous as vol

from . import const
from .engines.score_engine import ScoreEngine
from .exceptions import InvalidDefinitionError
from .utils.dt_utils import day_key_iso, dt_now_utc

if TYPE_CHECKING:
    from .type_defs import (
        BadgeDefinition,
        ChallengeDefinition,
        DayLike,
        HabitEntry,
        UserRecord,
        UserStats,
    )

# ==============================================================================
# SCHEMAS
# ==============================================================================

_NON_EMPTY_STR = vol.All(str, vol.Length(min=1))
_POSITIVE = vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))
_NON_NEGATIVE = vol.All(vol.Coerce(float), vol.Range(min=0))

CHALLENGE_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_CHALLENGE_ID): _NON_EMPTY_STR,
        vol.Required(const.DATA_CHALLENGE_TITLE): _NON_EMPTY_STR,
        vol.Optional(const.DATA_CHALLENGE_DESCRIPTION, default=""): str,
        vol.Required(const.DATA_CHALLENGE_CATEGORY): vol.In(
            const.PROGRESS_CATEGORY_OPTIONS
        ),
        vol.Optional(
            const.DATA_CHALLENGE_CRITERIA_TYPE, default=const.CRITERIA_TYPE_SCORE
        ): vol.In(const.CHALLENGE_CRITERIA_TYPES),
        vol.Required(const.DATA_CHALLENGE_TARGET): _POSITIVE,
        vol.Required(const.DATA_CHALLENGE_DURATION_DAYS): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
        vol.Optional(const.DATA_CHALLENGE_POINTS_REWARD, default=0): _NON_NEGATIVE,
        vol.Optional(const.DATA_CHALLENGE_BADGE_REWARD, default=None): vol.Any(
            None, _NON_EMPTY_STR
        ),
    }
)

BADGE_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_BADGE_ID): _NON_EMPTY_STR,
        vol.Required(const.DATA_BADGE_NAME): _NON_EMPTY_STR,
        vol.Optional(const.DATA_BADGE_DESCRIPTION, default=""): str,
        vol.Optional(
            const.DATA_BADGE_CATEGORY, default=const.PROGRESS_CATEGORY_OVERALL
        ): vol.In(const.PROGRESS_CATEGORY_OPTIONS),
        vol.Optional(const.DATA_BADGE_TIER, default=const.BADGE_TIER_BRONZE): vol.In(
            const.BADGE_TIER_OPTIONS
        ),
        vol.Required(const.DATA_BADGE_CRITERIA_TYPE): vol.In(
            const.BADGE_CRITERIA_TYPES
        ),
        vol.Required(const.DATA_BADGE_TARGET): _POSITIVE,
        vol.Optional(const.DATA_BADGE_POINTS_REWARD, default=0): _NON_NEGATIVE,
    }
)


def _validate_definition(
    schema: vol.Schema, user_input: dict[str, Any], id_key: str
) -> dict[str, Any]:
    """Run a definition schema, mapping the first failure to a field error."""
    try:
        return schema(dict(user_input))
    except vol.MultipleInvalid as err:
        first = err.errors[0]
        field = str(first.path[0]) if first.path else "definition"
        raise InvalidDefinitionError(user_input.get(id_key), field, first.msg) from err


# ==============================================================================
# HABIT ENTRIES
# ==============================================================================


def build_habit_entry(
    user_id: str,
    user_input: dict[str, Any],
    existing: HabitEntry | None = None,
    *,
    now: DayLike | None = None,
) -> HabitEntry:
    """Build a habit entry for create or update operations.

    One function handles both create (existing=None) and update
    (existing=entry). Fields absent from user_input keep their existing
    value.

    Args:
        user_id: Owner of the entry
        user_input: Data with DATA_HABIT_* keys (may be partial on update)
        existing: None for create, the stored entry for update
        now: Reference moment; undated new entries fall on its day

    Returns:
        Complete HabitEntry with a score matching its fields

    Raises:
        InvalidHabitDataError: If any field fails validation.
        InvalidDateError: If the date cannot be interpreted.

    Examples:
        # CREATE mode - generates UUID, dates the entry today if undated
        entry = build_habit_entry("user-1", {DATA_HABIT_SLEEP_HOURS: 7, ...})

        # UPDATE mode - only mood changed, score recomputed
        entry = build_habit_entry("user-1", {DATA_HABIT_MOOD: "good"}, old)
    """
    now_iso = dt_now_utc().isoformat()
    merged: dict[str, Any] = dict(existing) if existing is not None else {}
    merged.update(user_input)

    validated = ScoreEngine.validate_entry(merged)

    raw_date = merged.get(const.DATA_HABIT_DATE)
    if raw_date is None:
        raw_date = now if now is not None else dt_now_utc()
    entry_date = day_key_iso(raw_date)

    if existing is not None and not const.SCORE_AFFECTING_FIELDS & user_input.keys():
        score = existing[const.DATA_HABIT_SCORE]
    else:
        score = ScoreEngine.breakdown_from_components(
            ScoreEngine.compute_components(validated)
        )

    entry: HabitEntry = {
        "id": existing["id"] if existing is not None else str(uuid.uuid4()),
        "user_id": user_id,
        "date": entry_date,
        "sleep_hours": validated[const.DATA_HABIT_SLEEP_HOURS],
        "water_intake": validated[const.DATA_HABIT_WATER_INTAKE],
        "exercise_done": validated[const.DATA_HABIT_EXERCISE_DONE],
        "exercise_minutes": validated[const.DATA_HABIT_EXERCISE_MINUTES],
        "healthy_meals": validated[const.DATA_HABIT_HEALTHY_MEALS],
        "mood": validated[const.DATA_HABIT_MOOD],
        "productivity_level": validated[const.DATA_HABIT_PRODUCTIVITY_LEVEL],
        "notes": validated[const.DATA_HABIT_NOTES],
        "category": validated[const.DATA_HABIT_CATEGORY],
        "completed": validated[const.DATA_HABIT_COMPLETED],
        "score": score,
        "created_at": (
            existing["created_at"] if existing is not None else now_iso
        ),
        "updated_at": now_iso,
    }
    return entry


# ==============================================================================
# CHALLENGES & BADGES
# ==============================================================================


def build_challenge(user_input: dict[str, Any]) -> ChallengeDefinition:
    """Validate and normalize a challenge definition.

    Raises:
        InvalidDefinitionError: If a field is missing or out of range, or a
            score challenge targets more than 100.
    """
    data = _validate_definition(CHALLENGE_SCHEMA, user_input, const.DATA_CHALLENGE_ID)
    if (
        data[const.DATA_CHALLENGE_CRITERIA_TYPE] == const.CRITERIA_TYPE_SCORE
        and data[const.DATA_CHALLENGE_TARGET] > const.PROGRESS_MAX
    ):
        raise InvalidDefinitionError(
            data[const.DATA_CHALLENGE_ID],
            const.DATA_CHALLENGE_TARGET,
            f"score target must be at most {const.PROGRESS_MAX}",
        )
    return data  # type: ignore[return-value]


def build_badge(user_input: dict[str, Any]) -> BadgeDefinition:
    """Validate and normalize a badge definition.

    Raises:
        InvalidDefinitionError: If a field is missing or out of range.
    """
    return _validate_definition(  # type: ignore[return-value]
        BADGE_SCHEMA, user_input, const.DATA_BADGE_ID
    )


# ==============================================================================
# USER RECORD
# ==============================================================================


def build_default_stats() -> UserStats:
    """Return zeroed stats for a new user."""
    return {
        "total_points": 0.0,
        "current_streak": 0,
        "longest_streak": 0,
        "completed_habits_count": 0,
        "today_score": 0.0,
        "today_habits": 0,
        "weekly_average": 0.0,
        "category_breakdown": {},
        "progress_trend": {"daily": 0, "weekly": 0.0, "improvement": 0.0},
        "badges_earned": 0,
        "completed_challenges": 0,
        "updated_at": None,
    }


def build_user_record() -> UserRecord:
    """Return the empty per-user record a store starts from."""
    return {
        const.DATA_USER_VERSION: 0,
        const.DATA_STATS: build_default_stats(),
        const.DATA_USER_POINTS: 0.0,
        const.DATA_USER_LEDGER: [],
        const.DATA_USER_EARNED_BADGES: [],
        const.DATA_USER_COMPLETED_CHALLENGES: [],
        const.DATA_USER_CHALLENGES: {},
    }
