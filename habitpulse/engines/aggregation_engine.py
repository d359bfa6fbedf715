"""Aggregation Engine - Rolls per-entry scores up into dashboard figures.

This engine centralizes every day-bucketed figure HabitPulse reports:
- Daily aggregates (completion %, per-category means, total score)
- Zero-filled daily series over a window (the weekly chart)
- Weekly average and week-over-week improvement
- Category breakdown of today's entries by their tag
- Completion days and counts feeding the Streak and Progress engines

Design Principles:
    - Stateless: operates on passed-in entries, never loads or persists
    - One day policy: every bucket uses dt_utils.day_key
    - Two totals: entry["score"]["total"] is a clamped sum of components,
      aggregate["total_score"] is the mean of the four category means.
      They are never conflated.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..exceptions import InvalidRangeError
from ..utils.dt_utils import day_key, iter_days, window_ending
from ..utils.math_utils import mean, round_half_up
from .score_engine import ScoreEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from ..type_defs import (
        CategoryBreakdownItem,
        DailyAggregate,
        DayLike,
        ProgressTrend,
    )


class AggregationEngine:
    """Stateless engine for day-bucketed statistics.

    Example:
        series = AggregationEngine.compute_daily_series(entries, start, end)
        average = AggregationEngine.window_average(series)
    """

    # ────────────────────────────────────────────────────────────────
    # Entry Predicates
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def is_entry_completed(
        entry: Mapping[str, Any],
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
    ) -> bool:
        """Return whether an entry meets its own completion criterion.

        An explicit completed flag wins; otherwise the entry counts as
        completed when its score total reaches the threshold.
        """
        flag = entry.get(const.DATA_HABIT_COMPLETED)
        if flag is not None:
            return bool(flag)
        return entry[const.DATA_HABIT_SCORE][const.SCORE_TOTAL] >= threshold

    @staticmethod
    def qualifies(
        entry: Mapping[str, Any],
        category: str | None = None,
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
    ) -> bool:
        """Return whether an entry is a qualifying completion for a category.

        With no category (or "overall") this is is_entry_completed(); for a
        specific progress category the entry's 0-100 value in that category
        must reach the threshold.
        """
        if category is None or category == const.PROGRESS_CATEGORY_OVERALL:
            return AggregationEngine.is_entry_completed(entry, threshold)
        return ScoreEngine.category_value(entry, category) >= threshold

    # ────────────────────────────────────────────────────────────────
    # Bucketing
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def bucket_by_day(
        entries: Iterable[Mapping[str, Any]],
    ) -> dict[date, list[Mapping[str, Any]]]:
        """Group entries by their local calendar day."""
        buckets: dict[date, list[Mapping[str, Any]]] = defaultdict(list)
        for entry in entries:
            buckets[day_key(entry[const.DATA_HABIT_DATE])].append(entry)
        return dict(buckets)

    @staticmethod
    def empty_aggregate(day: date) -> DailyAggregate:
        """Return the zero-valued aggregate for a day with no entries."""
        return {
            "date": day.isoformat(),
            "completion": 0,
            "health": 0.0,
            "fitness": 0.0,
            "mindfulness": 0.0,
            "productivity": 0.0,
            "total_score": 0.0,
            "entry_count": 0,
        }

    @staticmethod
    def aggregate_day(
        day: date,
        entries: list[Mapping[str, Any]],
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
    ) -> DailyAggregate:
        """Compute one day's aggregate from that day's entries.

        Each category mean only covers entries with a non-zero value in that
        category; a category nobody contributed to scores 0. The total score
        is the plain mean of the four category means.
        """
        if not entries:
            return AggregationEngine.empty_aggregate(day)

        completed = sum(
            1
            for entry in entries
            if AggregationEngine.is_entry_completed(entry, threshold)
        )

        category_means: dict[str, float] = {}
        for category in const.SCORE_CATEGORIES:
            contributing = [
                entry[const.DATA_HABIT_SCORE][category]
                for entry in entries
                if entry[const.DATA_HABIT_SCORE][category] > 0
            ]
            category_means[category] = mean(contributing)

        total_score = mean(category_means.values())

        return {
            "date": day.isoformat(),
            "completion": round_half_up(completed / len(entries) * 100),
            "health": round_half_up(
                category_means[const.SCORE_HEALTH], const.DATA_FLOAT_PRECISION
            ),
            "fitness": round_half_up(
                category_means[const.SCORE_FITNESS], const.DATA_FLOAT_PRECISION
            ),
            "mindfulness": round_half_up(
                category_means[const.SCORE_MINDFULNESS], const.DATA_FLOAT_PRECISION
            ),
            "productivity": round_half_up(
                category_means[const.SCORE_PRODUCTIVITY], const.DATA_FLOAT_PRECISION
            ),
            "total_score": round_half_up(total_score, const.DATA_FLOAT_PRECISION),
            "entry_count": len(entries),
        }

    # ────────────────────────────────────────────────────────────────
    # Series and Windows
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def compute_daily_series(
        entries: Iterable[Mapping[str, Any]],
        start: DayLike,
        end: DayLike,
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
    ) -> list[DailyAggregate]:
        """Return one aggregate per day in [start, end], ascending.

        Days without entries are present and zero-valued.

        Raises:
            InvalidRangeError: If end falls before start.
        """
        first = day_key(start)
        last = day_key(end)
        if last < first:
            raise InvalidRangeError(first, last)

        buckets = AggregationEngine.bucket_by_day(entries)
        return [
            AggregationEngine.aggregate_day(day, buckets.get(day, []), threshold)
            for day in iter_days(first, last)
        ]

    @staticmethod
    def window_average(series: list[DailyAggregate]) -> float:
        """Mean total score over a series, dividing by every day in it."""
        if not series:
            return 0.0
        return round_half_up(
            sum(item["total_score"] for item in series) / len(series),
            const.DATA_FLOAT_PRECISION,
        )

    @staticmethod
    def compute_weekly_average(
        entries: Iterable[Mapping[str, Any]],
        today: DayLike,
        window_days: int = const.DEFAULT_TREND_WINDOW_DAYS,
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
    ) -> float:
        """Average total score over the window ending today (empty days count)."""
        start, end = window_ending(today, window_days)
        series = AggregationEngine.compute_daily_series(entries, start, end, threshold)
        return AggregationEngine.window_average(series)

    @staticmethod
    def compute_improvement(
        entries: Iterable[Mapping[str, Any]],
        today: DayLike,
        window_days: int = const.DEFAULT_TREND_WINDOW_DAYS,
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
    ) -> float:
        """This window's average minus the previous same-length window's.

        May be negative.
        """
        entries = list(entries)
        current = AggregationEngine.compute_weekly_average(
            entries, today, window_days, threshold
        )
        previous_end = day_key(today) - timedelta(days=window_days)
        previous = AggregationEngine.compute_weekly_average(
            entries, previous_end, window_days, threshold
        )
        return round_half_up(current - previous, const.DATA_FLOAT_PRECISION)

    @staticmethod
    def compute_progress_trend(
        entries: Iterable[Mapping[str, Any]],
        today: DayLike,
        window_days: int = const.DEFAULT_TREND_WINDOW_DAYS,
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
    ) -> ProgressTrend:
        """Return today's completion %, the weekly average and the improvement."""
        entries = list(entries)
        today_day = day_key(today)
        today_entries = AggregationEngine.bucket_by_day(entries).get(today_day, [])
        return {
            "daily": AggregationEngine.aggregate_day(
                today_day, today_entries, threshold
            )["completion"],
            "weekly": AggregationEngine.compute_weekly_average(
                entries, today_day, window_days, threshold
            ),
            "improvement": AggregationEngine.compute_improvement(
                entries, today_day, window_days, threshold
            ),
        }

    # ────────────────────────────────────────────────────────────────
    # Breakdowns and Counts
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def compute_category_breakdown(
        entries: Iterable[Mapping[str, Any]],
    ) -> dict[str, CategoryBreakdownItem]:
        """Group entries by their category tag: mean entry total and count.

        Only tags that occur are present.
        """
        grouped: dict[str, list[int]] = defaultdict(list)
        for entry in entries:
            tag = entry.get(const.DATA_HABIT_CATEGORY) or const.HABIT_CATEGORY_OTHER
            grouped[tag].append(entry[const.DATA_HABIT_SCORE][const.SCORE_TOTAL])

        return {
            tag: {
                "score": round_half_up(mean(totals), const.DATA_FLOAT_PRECISION),
                "habit_count": len(totals),
            }
            for tag, totals in grouped.items()
        }

    @staticmethod
    def completion_days(
        entries: Iterable[Mapping[str, Any]],
        category: str | None = None,
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
        since: DayLike | None = None,
        until: DayLike | None = None,
    ) -> set[date]:
        """Return the distinct days holding at least one qualifying entry.

        Optional since/until bounds are inclusive.
        """
        floor = day_key(since) if since is not None else None
        ceiling = day_key(until) if until is not None else None
        days: set[date] = set()
        for entry in entries:
            day = day_key(entry[const.DATA_HABIT_DATE])
            if floor is not None and day < floor:
                continue
            if ceiling is not None and day > ceiling:
                continue
            if AggregationEngine.qualifies(entry, category, threshold):
                days.add(day)
        return days

    @staticmethod
    def count_completed(
        entries: Iterable[Mapping[str, Any]],
        category: str | None = None,
        threshold: float = const.DEFAULT_COMPLETION_THRESHOLD,
    ) -> int:
        """Count qualifying entries (not days) for a category."""
        return sum(
            1
            for entry in entries
            if AggregationEngine.qualifies(entry, category, threshold)
        )

    @staticmethod
    def category_average(
        entries: Iterable[Mapping[str, Any]],
        category: str,
        start: DayLike,
        end: DayLike,
    ) -> float:
        """Mean 0-100 category value over entries dated within [start, end].

        Raises:
            InvalidRangeError: If end falls before start.
        """
        first = day_key(start)
        last = day_key(end)
        if last < first:
            raise InvalidRangeError(first, last)

        values = [
            ScoreEngine.category_value(entry, category)
            for entry in entries
            if first <= day_key(entry[const.DATA_HABIT_DATE]) <= last
        ]
        return round_half_up(mean(values), const.DATA_FLOAT_PRECISION)

    @staticmethod
    def day_contribution(
        entries: Iterable[Mapping[str, Any]],
        category: str,
        day: DayLike,
    ) -> int | None:
        """Return the 0-100 contribution of one day's entries to a category.

        Multiple entries on the day are averaged. Returns None when the day
        has no entries, so the caller can skip folding.
        """
        target = day_key(day)
        values = [
            ScoreEngine.category_value(entry, category)
            for entry in entries
            if day_key(entry[const.DATA_HABIT_DATE]) == target
        ]
        if not values:
            return None
        return round_half_up(mean(values))
