"""Statistics Manager - Cached per-user dashboard statistics.

Recomputes the stats block of the user record whenever an entry changes:
streaks, today's score, the weekly average and trend, the category
breakdown and the completed-entry count. Points and the badge/challenge
counts are copied from the record, which the economy reducer keeps current.

ARCHITECTURE:
- StatisticsManager = "The Reporter" (STATEFUL, owns the stats block)
- AggregationEngine / StreakEngine = Pure computation (STATELESS)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.aggregation_engine import AggregationEngine
from ..engines.streak_engine import StreakEngine
from ..utils.dt_utils import day_key, dt_now_utc, dt_today_local, window_ending
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import date

    from ..type_defs import (
        DailyAggregate,
        DayLike,
        HabitEntry,
        UserRecord,
        UserStats,
    )


class StatisticsManager(BaseManager):
    """Manager keeping the cached stats block in step with the entries."""

    async def async_setup(self) -> None:
        """Subscribe to entry changes."""
        self.listen(const.SIGNAL_HABIT_LOGGED, self._on_habit_changed)
        self.listen(const.SIGNAL_HABIT_UPDATED, self._on_habit_changed)
        self.listen(const.SIGNAL_HABIT_DELETED, self._on_habit_changed)
        const.LOGGER.debug("StatisticsManager setup complete")

    async def _on_habit_changed(self, payload: dict[str, Any]) -> None:
        await self.async_refresh_stats(payload["user_id"], now=payload.get("now"))

    # =========================================================================
    # Stats
    # =========================================================================

    async def async_refresh_stats(
        self, user_id: str, *, now: DayLike | None = None
    ) -> UserStats:
        """Recompute and persist the user's stats.

        Args:
            user_id: User to refresh
            now: Reference moment deciding "today"

        Returns:
            The committed UserStats
        """
        today = day_key(now) if now is not None else dt_today_local()

        async with self._get_lock(user_id):
            entries = await self.store.async_load_habit_entries(user_id)
            record = await self._async_commit_locked(
                user_id,
                lambda current: {
                    const.DATA_STATS: self._build_stats(current, entries, today)
                },
            )

        stats: UserStats = record[const.DATA_STATS]
        const.LOGGER.debug(
            "DEBUG: Refreshed stats for user %s: streak %s, today %s",
            user_id,
            stats[const.DATA_STATS_CURRENT_STREAK],
            stats[const.DATA_STATS_TODAY_SCORE],
        )
        await self.async_emit(
            const.SIGNAL_STATS_REFRESHED, user_id=user_id, stats=stats
        )
        return stats

    def _build_stats(
        self, record: UserRecord, entries: list[HabitEntry], today: date
    ) -> UserStats:
        """Assemble the stats block from entries and the current record."""
        threshold = self.options[const.CONF_COMPLETION_THRESHOLD]
        window_days = self.options[const.CONF_TREND_WINDOW_DAYS]

        streak = StreakEngine.compute_streak(
            AggregationEngine.completion_days(entries, threshold=threshold), today
        )
        today_entries = AggregationEngine.bucket_by_day(entries).get(today, [])
        today_aggregate = AggregationEngine.aggregate_day(
            today, today_entries, threshold
        )
        trend = AggregationEngine.compute_progress_trend(
            entries, today, window_days, threshold
        )

        return {
            "total_points": record.get(const.DATA_USER_POINTS, 0.0),
            "current_streak": streak["current_streak"],
            "longest_streak": streak["longest_streak"],
            "completed_habits_count": AggregationEngine.count_completed(
                entries, threshold=threshold
            ),
            "today_score": today_aggregate["total_score"],
            "today_habits": len(today_entries),
            "weekly_average": trend["weekly"],
            "category_breakdown": AggregationEngine.compute_category_breakdown(
                today_entries
            ),
            "progress_trend": trend,
            "badges_earned": len(record.get(const.DATA_USER_EARNED_BADGES, [])),
            "completed_challenges": len(
                record.get(const.DATA_USER_COMPLETED_CHALLENGES, [])
            ),
            "updated_at": dt_now_utc().isoformat(),
        }

    async def async_get_stats(self, user_id: str) -> UserStats:
        """Return the cached stats without recomputing them."""
        record = await self.store.async_load_user_record(user_id)
        return record[const.DATA_STATS]

    async def async_get_weekly_series(
        self, user_id: str, *, end: DayLike | None = None
    ) -> list[DailyAggregate]:
        """Return one aggregate per day for the trend window ending at end.

        Days without entries are zero-filled, so the series length always
        equals the configured window.
        """
        last = day_key(end) if end is not None else dt_today_local()
        start, last = window_ending(last, self.options[const.CONF_TREND_WINDOW_DAYS])
        entries = await self.store.async_load_habit_entries(user_id, (start, last))
        return AggregationEngine.compute_daily_series(
            entries, start, last, self.options[const.CONF_COMPLETION_THRESHOLD]
        )
