# File: __init__.py
"""HabitPulse: scoring, streak and challenge progress for daily habit tracking.

Pure entry points for callers that bring their own data:
- compute_score(): raw daily entry -> ScoreBreakdown
- compute_weekly_aggregate(): entries + (start, end) window -> one
  DailyAggregate per day
- compute_streak(): completion days -> StreakState
- advance_challenge_progress(): one challenge tick -> updated instance and
  the reward still due

Stateful orchestration (store, managers, signals) lives behind
HabitPulseCoordinator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .coordinator import HabitPulseCoordinator
from .engines import AggregationEngine, GamificationEngine, ScoreEngine, StreakEngine
from .exceptions import (
    ComputationError,
    HabitPulseError,
    InvalidDateError,
    InvalidDefinitionError,
    InvalidHabitDataError,
    InvalidRangeError,
    NotFoundError,
    StaleWriteError,
)
from .store import HabitPulseStore, MemoryStore

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping

    from .type_defs import (
        ActiveChallengeInstance,
        ChallengeAdvanceResult,
        DailyAggregate,
        DayLike,
        ScoreBreakdown,
        StreakState,
    )

__all__ = [
    "ComputationError",
    "HabitPulseCoordinator",
    "HabitPulseError",
    "HabitPulseStore",
    "InvalidDateError",
    "InvalidDefinitionError",
    "InvalidHabitDataError",
    "InvalidRangeError",
    "MemoryStore",
    "NotFoundError",
    "StaleWriteError",
    "advance_challenge_progress",
    "compute_score",
    "compute_streak",
    "compute_weekly_aggregate",
]


def compute_score(raw_entry: Mapping[str, Any]) -> ScoreBreakdown:
    """Validate a raw daily entry and return its score breakdown.

    Raises:
        InvalidHabitDataError: Naming the first offending field.
    """
    return ScoreEngine.compute_score(raw_entry)


def compute_weekly_aggregate(
    entries: Iterable[Mapping[str, Any]],
    window: tuple[DayLike, DayLike],
) -> list[DailyAggregate]:
    """Return one aggregate per day of the inclusive window, ascending.

    Raises:
        InvalidRangeError: If the window ends before it starts.
    """
    start, end = window
    return AggregationEngine.compute_daily_series(entries, start, end)


def compute_streak(
    completion_days: Iterable[DayLike], today: DayLike | None = None
) -> StreakState:
    """Return current and longest streaks for a set of completion days."""
    return StreakEngine.compute_streak(completion_days, today)


def advance_challenge_progress(
    instance: ActiveChallengeInstance,
    challenge: Mapping[str, Any],
    today_category_score: float | None,
    now: DayLike | None = None,
    *,
    earned_badges: Collection[str] = (),
    completed_challenges: Collection[str] = (),
) -> ChallengeAdvanceResult:
    """Run one score-challenge tick and filter the reward against grants.

    The returned reward is None when nothing is due, including when the
    challenge or its badge was already granted.
    """
    result = GamificationEngine.advance_challenge(
        instance,
        dict(challenge),
        today_contribution=today_category_score,
        now=now,
    )
    result["reward"] = GamificationEngine.plan_reward(
        result["reward"], earned_badges, completed_challenges
    )
    return result
