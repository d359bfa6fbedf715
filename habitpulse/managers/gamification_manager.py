"""Gamification Manager - Challenge ticks and badge grants.

This manager handles gamification evaluation:
- Starting challenge instances from the catalog
- Advancing every active instance after an entry is logged, updated or
  deleted
- Evaluating catalog badges and auto-granting newly earned ones
- Building the challenge board (catalog definitions with the user's status)

ARCHITECTURE:
- GamificationManager = "The Judge" (STATEFUL orchestration)
- GamificationEngine = Pure evaluation logic (STATELESS)
- Rewards are folded as challenge_completed / badge_earned events inside
  the per-user commit, so a reward is granted at most once even when two
  ticks race
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.aggregation_engine import AggregationEngine
from ..engines.economy_engine import EconomyEngine
from ..engines.gamification_engine import GamificationEngine
from ..engines.streak_engine import StreakEngine
from ..exceptions import NotFoundError
from ..utils.dt_utils import day_key, dt_today_local, window_ending
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import date

    from ..type_defs import (
        ActiveChallengeInstance,
        BadgeContext,
        ChallengeAdvanceResult,
        ChallengeDefinition,
        DayLike,
        HabitEntry,
        PointsEvent,
        ProgressResult,
        UserRecord,
    )


class GamificationManager(BaseManager):
    """Manager for challenge progress and badge awards.

    Responsibilities:
    - Build per-challenge inputs (today's contribution, observed values)
    - Build the badge context from the user's entries
    - Apply results under the user's lock and emit gamification signals

    NOT responsible for:
    - Entry scoring (handled by ScoreEngine through HabitManager)
    - The stats block (handled by StatisticsManager)
    """

    async def async_setup(self) -> None:
        """Subscribe to entry changes."""
        self.listen(const.SIGNAL_HABIT_LOGGED, self._on_habit_changed)
        self.listen(const.SIGNAL_HABIT_UPDATED, self._on_habit_changed)
        self.listen(const.SIGNAL_HABIT_DELETED, self._on_habit_changed)
        const.LOGGER.debug("GamificationManager setup complete")

    async def _on_habit_changed(self, payload: dict[str, Any]) -> None:
        user_id = payload["user_id"]
        now = payload.get("now")
        await self.async_advance_challenges(user_id, now=now)
        await self.async_evaluate_badges(user_id, now=now)

    # =========================================================================
    # Challenges
    # =========================================================================

    async def async_start_challenge(
        self,
        user_id: str,
        challenge_id: str,
        *,
        now: DayLike | None = None,
    ) -> ActiveChallengeInstance:
        """Start a catalog challenge for the user.

        An instance that already exists, in any state, is returned unchanged;
        a finished challenge cannot be restarted.

        Raises:
            NotFoundError: If the challenge is not in the catalog.
        """
        try:
            self.catalog.get_challenge(challenge_id)
        except NotFoundError:
            const.LOGGER.error(
                "ERROR: User %s tried to start unknown challenge %s",
                user_id,
                challenge_id,
            )
            raise

        start = day_key(now) if now is not None else dt_today_local()

        def mutate(record: UserRecord) -> dict[str, Any] | None:
            instances = record[const.DATA_USER_CHALLENGES]
            if challenge_id in instances:
                return None
            updated = dict(instances)
            updated[challenge_id] = GamificationEngine.new_instance(
                challenge_id, start
            )
            return {const.DATA_USER_CHALLENGES: updated}

        record = await self._async_commit(user_id, mutate)
        instance = record[const.DATA_USER_CHALLENGES][challenge_id]
        const.LOGGER.debug(
            "DEBUG: Challenge %s for user %s is %s since %s",
            challenge_id,
            user_id,
            instance["state"],
            instance["start_date"],
        )
        return instance

    async def async_advance_challenges(
        self, user_id: str, *, now: DayLike | None = None
    ) -> list[ChallengeAdvanceResult]:
        """Run one tick for every active challenge of the user.

        Returns:
            Results for the instances that changed
        """
        today = day_key(now) if now is not None else dt_today_local()
        results: list[ChallengeAdvanceResult] = []

        async with self._get_lock(user_id):
            entries = await self.store.async_load_habit_entries(user_id)

            def mutate(record: UserRecord) -> dict[str, Any] | None:
                results.clear()
                instances = record[const.DATA_USER_CHALLENGES]
                earned = set(record[const.DATA_USER_EARNED_BADGES])
                completed = set(record[const.DATA_USER_COMPLETED_CHALLENGES])
                updated = dict(instances)
                events: list[PointsEvent] = []

                for challenge_id, instance in instances.items():
                    if GamificationEngine.is_terminal(instance):
                        continue
                    try:
                        challenge = self.catalog.get_challenge(challenge_id)
                    except NotFoundError:
                        const.LOGGER.warning(
                            "WARNING: Skipping challenge %s for user %s: "
                            "not in the catalog",
                            challenge_id,
                            user_id,
                        )
                        continue
                    result = GamificationEngine.advance_challenge(
                        instance,
                        challenge,
                        now=today,
                        **self._challenge_inputs(entries, instance, challenge, today),
                    )
                    if result["instance"] == instance:
                        continue
                    updated[challenge_id] = result["instance"]
                    results.append(result)

                    reward = GamificationEngine.plan_reward(
                        result["reward"], earned, completed
                    )
                    if reward is None:
                        continue
                    events.append(
                        EconomyEngine.make_event(
                            const.EVENT_CHALLENGE_COMPLETED,
                            reward["points"],
                            challenge_id,
                            item_name=challenge[const.DATA_CHALLENGE_TITLE],
                            badge_id=reward["badge_id"],
                        )
                    )
                    completed.add(challenge_id)
                    if reward["badge_id"]:
                        earned.add(reward["badge_id"])

                if not results:
                    return None
                fields = self._fold_events(record, events) if events else {}
                fields[const.DATA_USER_CHALLENGES] = updated
                return fields

            await self._async_commit_locked(user_id, mutate)

        for result in results:
            if not result["transitioned"]:
                continue
            instance = result["instance"]
            if instance["state"] == const.CHALLENGE_STATE_COMPLETED:
                const.LOGGER.info(
                    "INFO: User %s completed challenge %s",
                    user_id,
                    instance["challenge_id"],
                )
                await self.async_emit(
                    const.SIGNAL_CHALLENGE_COMPLETED,
                    user_id=user_id,
                    challenge_id=instance["challenge_id"],
                    reward=result["reward"],
                )
            else:
                const.LOGGER.info(
                    "INFO: Challenge %s for user %s expired unmet at %s%%",
                    instance["challenge_id"],
                    user_id,
                    instance["progress"],
                )
                await self.async_emit(
                    const.SIGNAL_CHALLENGE_EXPIRED,
                    user_id=user_id,
                    challenge_id=instance["challenge_id"],
                )
        return results

    def _challenge_inputs(
        self,
        entries: list[HabitEntry],
        instance: ActiveChallengeInstance,
        challenge: ChallengeDefinition,
        today: date,
    ) -> dict[str, Any]:
        """Return the advance_challenge() keyword inputs for one instance."""
        category = challenge[const.DATA_CHALLENGE_CATEGORY]
        criteria_type = challenge[const.DATA_CHALLENGE_CRITERIA_TYPE]

        if criteria_type == const.CRITERIA_TYPE_SCORE:
            return {
                "today_contribution": AggregationEngine.day_contribution(
                    entries, category, today
                )
            }

        days = AggregationEngine.completion_days(
            entries,
            category,
            self.options[const.CONF_COMPLETION_THRESHOLD],
            since=instance["start_date"],
            until=today,
        )
        if criteria_type == const.CRITERIA_TYPE_STREAK:
            value = StreakEngine.compute_streak(days, today)["current_streak"]
        else:
            value = len(days)
        return {"observed_value": value}

    async def async_get_challenge_board(self, user_id: str) -> list[dict[str, Any]]:
        """Return every catalog challenge with the user's status merged in.

        Challenges the user never started report state None and progress 0.
        """
        record = await self.store.async_load_user_record(user_id)
        instances = record[const.DATA_USER_CHALLENGES]

        board: list[dict[str, Any]] = []
        for challenge in self.catalog.challenges:
            instance = instances.get(challenge[const.DATA_CHALLENGE_ID])
            item: dict[str, Any] = dict(challenge)
            if instance is None:
                item.update(
                    {
                        "state": None,
                        "progress": 0,
                        "current_value": 0,
                        "completed": False,
                        "start_date": None,
                    }
                )
            else:
                item.update(
                    {
                        "state": instance["state"],
                        "progress": instance["progress"],
                        "current_value": instance["current_value"],
                        "completed": instance["completed"],
                        "start_date": instance["start_date"],
                    }
                )
            board.append(item)
        return board

    # =========================================================================
    # Badges
    # =========================================================================

    async def async_evaluate_badges(
        self, user_id: str, *, now: DayLike | None = None
    ) -> list[ProgressResult]:
        """Evaluate every catalog badge and grant the newly earned ones.

        Returns:
            One ProgressResult per catalog badge
        """
        today = day_key(now) if now is not None else dt_today_local()
        results: list[ProgressResult] = []
        granted: list[str] = []

        async with self._get_lock(user_id):
            entries = await self.store.async_load_habit_entries(user_id)
            averages, streaks, totals = self._entry_context(entries, today)

            def mutate(record: UserRecord) -> dict[str, Any] | None:
                results.clear()
                granted.clear()
                earned = set(record[const.DATA_USER_EARNED_BADGES])
                context: BadgeContext = {
                    "category_averages": averages,
                    "category_streaks": streaks,
                    "category_totals": totals,
                    "completed_challenges": len(
                        record[const.DATA_USER_COMPLETED_CHALLENGES]
                    ),
                    "earned_badges": earned,
                }

                events: list[PointsEvent] = []
                for badge in self.catalog.badges:
                    progress = GamificationEngine.evaluate_badge(badge, context)
                    results.append(progress)
                    if not progress["earned"] or badge[const.DATA_BADGE_ID] in earned:
                        continue
                    reward = GamificationEngine.badge_reward(badge)
                    events.append(
                        EconomyEngine.make_event(
                            const.EVENT_BADGE_EARNED,
                            reward["points"],
                            badge[const.DATA_BADGE_ID],
                            item_name=badge[const.DATA_BADGE_NAME],
                            badge_id=badge[const.DATA_BADGE_ID],
                        )
                    )
                    granted.append(badge[const.DATA_BADGE_ID])

                if not events:
                    return None
                return self._fold_events(record, events)

            await self._async_commit_locked(user_id, mutate)

        for badge_id in granted:
            const.LOGGER.info("INFO: User %s earned badge %s", user_id, badge_id)
            await self.async_emit(
                const.SIGNAL_BADGE_EARNED, user_id=user_id, badge_id=badge_id
            )
        return results

    def _entry_context(
        self, entries: list[HabitEntry], today: date
    ) -> tuple[dict[str, float], dict[str, int], dict[str, int]]:
        """Per-category averages, current streaks and qualifying-day totals."""
        threshold = self.options[const.CONF_COMPLETION_THRESHOLD]
        start, end = window_ending(today, self.options[const.CONF_BADGE_LOOKBACK_DAYS])

        averages: dict[str, float] = {}
        streaks: dict[str, int] = {}
        totals: dict[str, int] = {}
        for category in const.PROGRESS_CATEGORY_OPTIONS:
            averages[category] = AggregationEngine.category_average(
                entries, category, start, end
            )
            days = AggregationEngine.completion_days(
                entries, category, threshold, until=today
            )
            streaks[category] = StreakEngine.compute_streak(days, today)[
                "current_streak"
            ]
            totals[category] = len(days)
        return averages, streaks, totals
