"""Streak Engine - Current and longest runs of consecutive completion days.

A completion day is a local calendar day holding at least one qualifying
completion. Days are deduplicated by dt_utils.day_key before any streak
arithmetic, so several completions on one day never count twice.

Current streak:
    Only alive when the most recent completion day is today or yesterday;
    counts back from it while each step is exactly one calendar day.

Longest streak:
    The longest maximal run anywhere in history, computed in a separate pass
    that includes the current run.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from ..exceptions import ComputationError
from ..utils.dt_utils import day_key, dt_today_local

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import DayLike, StreakState


class StreakEngine:
    """Pure logic engine for streak calculation.

    All methods are static - no instance state.
    """

    @staticmethod
    def normalize_days(days: Iterable[DayLike]) -> list[date]:
        """Deduplicate by day key and sort most recent first."""
        return sorted({day_key(day) for day in days}, reverse=True)

    @staticmethod
    def current_streak(days_desc: list[date], today: date) -> int:
        """Count the run ending today or yesterday.

        Args:
            days_desc: Distinct days, most recent first
            today: Reference day; later days are ignored

        Returns:
            Length of the live run, or 0 if the latest day is older than
            yesterday.
        """
        past_days = [day for day in days_desc if day <= today]
        if not past_days:
            return 0

        if (today - past_days[0]).days > 1:
            return 0

        run = 1
        for later, earlier in zip(past_days, past_days[1:]):
            if (later - earlier).days != 1:
                break
            run += 1
        return run

    @staticmethod
    def longest_streak(days: Iterable[date]) -> int:
        """Length of the longest maximal run of consecutive days."""
        ordered = sorted(set(days))
        if not ordered:
            return 0

        longest = run = 1
        for previous, current in zip(ordered, ordered[1:]):
            if current - previous == timedelta(days=1):
                run += 1
                longest = max(longest, run)
            else:
                run = 1
        return longest

    @staticmethod
    def compute_streak(
        completion_days: Iterable[DayLike],
        today: DayLike | None = None,
    ) -> StreakState:
        """Compute current and longest streaks from completion days.

        Args:
            completion_days: Days (any day-like value) with a qualifying
                completion, in any order, duplicates allowed
            today: Reference day, defaults to today in the local timezone

        Returns:
            StreakState with longest_streak >= current_streak

        Raises:
            InvalidDateError: If any day cannot be interpreted.
            ComputationError: If the longest run comes out shorter than the
                current one.
        """
        days_desc = StreakEngine.normalize_days(completion_days)
        if not days_desc:
            return {"current_streak": 0, "longest_streak": 0}

        reference = day_key(today) if today is not None else dt_today_local()
        current = StreakEngine.current_streak(days_desc, reference)
        longest = StreakEngine.longest_streak(days_desc)

        if longest < current:
            raise ComputationError(
                f"Longest streak {longest} shorter than current streak {current}"
            )

        return {
            "current_streak": current,
            "longest_streak": max(longest, current),
        }
