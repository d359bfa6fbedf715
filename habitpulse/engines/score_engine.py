"""Score Engine - Pure logic turning a raw daily entry into a score breakdown.

This engine provides stateless, pure Python functions for:
- Validating raw habit input (voluptuous schema, no silent clamping)
- Scoring the six wellness components with fixed weights
- Normalizing components into four 0-100 category scores
- Resolving the 0-100 value of a progress category for one entry

ARCHITECTURE: This is a pure logic engine with NO storage dependencies.
All functions are static methods that operate on passed-in data.
Recomputing a stored entry's score is the caller's explicit job
(HabitManager), never a save side effect.
"""

from __future__ import annotations

from collections.abc import Mapping
import math
from typing import TYPE_CHECKING, Any

import voluptuous as vol

from .. import const
from ..exceptions import ComputationError, InvalidHabitDataError
from ..utils.math_utils import round_half_up

if TYPE_CHECKING:
    from ..type_defs import ScoreBreakdown, ScoreComponents


# ==============================================================================
# Input Validators
# ==============================================================================


def _number(value: Any) -> float:
    """Coerce to a finite float, rejecting booleans."""
    if isinstance(value, bool):
        raise vol.Invalid("expected a number, got a boolean")
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise vol.Invalid(f"expected a number, got {value!r}") from err
    if not math.isfinite(number):
        raise vol.Invalid("expected a finite number")
    return number


def _integer(value: Any) -> int:
    """Coerce to an int, accepting only whole numbers."""
    number = _number(value)
    if not number.is_integer():
        raise vol.Invalid(f"expected a whole number, got {value!r}")
    return int(number)


def _boolean(value: Any) -> bool:
    if not isinstance(value, bool):
        raise vol.Invalid(f"expected a boolean, got {value!r}")
    return value


HABIT_INPUT_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_HABIT_SLEEP_HOURS): vol.All(
            _number,
            vol.Range(min=const.SLEEP_HOURS_MIN, max=const.SLEEP_HOURS_MAX),
        ),
        vol.Required(const.DATA_HABIT_WATER_INTAKE): vol.All(
            _number,
            vol.Range(min=const.WATER_INTAKE_MIN, max=const.WATER_INTAKE_MAX),
        ),
        vol.Optional(const.DATA_HABIT_EXERCISE_DONE, default=False): _boolean,
        vol.Optional(const.DATA_HABIT_EXERCISE_MINUTES, default=None): vol.Any(
            None, vol.All(_number, vol.Range(min=0))
        ),
        vol.Required(const.DATA_HABIT_HEALTHY_MEALS): vol.All(
            _integer,
            vol.Range(min=const.HEALTHY_MEALS_MIN, max=const.HEALTHY_MEALS_MAX),
        ),
        vol.Required(const.DATA_HABIT_MOOD): vol.In(const.MOOD_OPTIONS),
        vol.Required(const.DATA_HABIT_PRODUCTIVITY_LEVEL): vol.In(
            const.PRODUCTIVITY_OPTIONS
        ),
        vol.Optional(const.DATA_HABIT_NOTES, default=""): vol.All(
            str, vol.Length(max=const.NOTES_MAX_LENGTH)
        ),
        vol.Optional(
            const.DATA_HABIT_CATEGORY, default=const.HABIT_CATEGORY_OTHER
        ): vol.In(const.HABIT_CATEGORY_OPTIONS),
        vol.Optional(const.DATA_HABIT_COMPLETED, default=None): vol.Any(
            None, _boolean
        ),
    },
    extra=vol.REMOVE_EXTRA,
)


class ScoreEngine:
    """Pure logic engine for habit entry scoring.

    All methods are static - no instance state.

    Component weights (raw points):
        sleep 20, water 20, exercise 20, meals 30, mood 20, productivity 20.
        The raw sum can exceed 100, so the total is clamped.

    Category normalization (each 0-100):
        health = (sleep + water + meals) / 70
        fitness = exercise / 20
        mindfulness = mood / 20
        productivity = productivity / 20
    """

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def validate_entry(raw: Mapping[str, Any]) -> dict[str, Any]:
        """Validate and normalize raw habit input.

        Unknown keys (date, id, user_id, score) are dropped from the result;
        the caller handles identity and dating.

        Args:
            raw: Raw input mapping with DATA_HABIT_* keys

        Returns:
            Normalized dict of the validated fields (defaults applied)

        Raises:
            InvalidHabitDataError: Naming the first offending field.
        """
        if not isinstance(raw, Mapping):
            raise InvalidHabitDataError("input", "expected a mapping of habit fields")

        try:
            return HABIT_INPUT_SCHEMA(dict(raw))
        except vol.MultipleInvalid as err:
            first = err.errors[0]
            field = str(first.path[0]) if first.path else "input"
            raise InvalidHabitDataError(field, first.msg) from err

    # =========================================================================
    # Component Scoring
    # =========================================================================

    @staticmethod
    def score_sleep(hours: float) -> int:
        """Score sleep hours: 20 in [6, 8], 10 in [5, 6) or (8, 9], else 0."""
        if const.SLEEP_FULL_MIN <= hours <= const.SLEEP_FULL_MAX:
            return const.SLEEP_POINTS_FULL
        if const.SLEEP_PARTIAL_MIN <= hours < const.SLEEP_FULL_MIN:
            return const.SLEEP_POINTS_PARTIAL
        if const.SLEEP_FULL_MAX < hours <= const.SLEEP_PARTIAL_MAX:
            return const.SLEEP_POINTS_PARTIAL
        return 0

    @staticmethod
    def score_water(litres: float) -> int:
        """Score water intake: 20 in [2, 3], 10 in [1.5, 2) or above 3, else 0."""
        if const.WATER_FULL_MIN <= litres <= const.WATER_FULL_MAX:
            return const.WATER_POINTS_FULL
        if const.WATER_PARTIAL_MIN <= litres < const.WATER_FULL_MIN:
            return const.WATER_POINTS_PARTIAL
        if litres > const.WATER_FULL_MAX:
            return const.WATER_POINTS_PARTIAL
        return 0

    @staticmethod
    def is_exercise_done(entry: Mapping[str, Any]) -> bool:
        """Exercise counts when flagged done or when any minutes were logged."""
        if entry.get(const.DATA_HABIT_EXERCISE_DONE):
            return True
        minutes = entry.get(const.DATA_HABIT_EXERCISE_MINUTES)
        return minutes is not None and minutes > 0

    @staticmethod
    def compute_components(entry: Mapping[str, Any]) -> ScoreComponents:
        """Score each component of an already validated entry."""
        meals = entry[const.DATA_HABIT_HEALTHY_MEALS]
        return {
            "sleep": ScoreEngine.score_sleep(entry[const.DATA_HABIT_SLEEP_HOURS]),
            "water": ScoreEngine.score_water(entry[const.DATA_HABIT_WATER_INTAKE]),
            "exercise": (
                const.EXERCISE_POINTS if ScoreEngine.is_exercise_done(entry) else 0
            ),
            "meals": min(meals * const.MEAL_POINTS_EACH, const.MEAL_POINTS_MAX),
            "mood": const.MOOD_POINTS[entry[const.DATA_HABIT_MOOD]],
            "productivity": const.PRODUCTIVITY_POINTS[
                entry[const.DATA_HABIT_PRODUCTIVITY_LEVEL]
            ],
        }

    # =========================================================================
    # Breakdown
    # =========================================================================

    @staticmethod
    def breakdown_from_components(components: ScoreComponents) -> ScoreBreakdown:
        """Combine components into a clamped total and four category scores.

        Raises:
            ComputationError: If any resulting value leaves [0, 100].
        """
        raw_total = sum(components.values())
        total = max(const.SCORE_MIN, min(raw_total, const.SCORE_MAX))

        health_points = (
            components["sleep"] + components["water"] + components["meals"]
        )
        breakdown: ScoreBreakdown = {
            "total": total,
            "health": round_half_up(
                health_points / const.HEALTH_COMPONENT_MAX * 100
            ),
            "fitness": round_half_up(
                components["exercise"] / const.FITNESS_COMPONENT_MAX * 100
            ),
            "mindfulness": round_half_up(
                components["mood"] / const.MINDFULNESS_COMPONENT_MAX * 100
            ),
            "productivity": round_half_up(
                components["productivity"] / const.PRODUCTIVITY_COMPONENT_MAX * 100
            ),
        }

        for key, value in breakdown.items():
            if not const.SCORE_MIN <= value <= const.SCORE_MAX:
                raise ComputationError(
                    f"Score '{key}' out of range: {value} (components={components})"
                )
        return breakdown

    @staticmethod
    def compute_score(raw: Mapping[str, Any]) -> ScoreBreakdown:
        """Validate raw input and return its ScoreBreakdown.

        Deterministic: the same input always yields the same breakdown.

        Raises:
            InvalidHabitDataError: If the input fails validation.
        """
        entry = ScoreEngine.validate_entry(raw)
        return ScoreEngine.breakdown_from_components(
            ScoreEngine.compute_components(entry)
        )

    # =========================================================================
    # Progress Categories
    # =========================================================================

    @staticmethod
    def category_value(entry: Mapping[str, Any], category: str) -> int:
        """Return the 0-100 value an entry contributes to a progress category.

        Score categories read the stored breakdown, "overall" reads the total,
        and component categories (sleep, water, activity, nutrition) scale
        the raw component against its maximum.

        Raises:
            ValueError: If the category is unknown.
        """
        score = entry[const.DATA_HABIT_SCORE]
        if category == const.PROGRESS_CATEGORY_OVERALL:
            return score[const.SCORE_TOTAL]
        if category in const.SCORE_CATEGORIES:
            return score[category]
        if category in const.PROGRESS_COMPONENT_CATEGORIES:
            component, maximum = const.PROGRESS_COMPONENT_CATEGORIES[category]
            points = ScoreEngine.compute_components(entry)[component]
            return round_half_up(points / maximum * 100)
        raise ValueError(f"Unknown progress category: {category}")
