"""Gamification Engine - Pure logic for challenge progress and badge evaluation.

This engine provides stateless, pure Python functions for:
- Challenge instance creation and the ACTIVE -> COMPLETED / EXPIRED_UNMET
  state machine
- Running-mean progress for score challenges
- Threshold progress for streak and total challenges
- Reward planning against the user's already-granted sets
- Badge criterion evaluation (score, streak, total, challenge)

ARCHITECTURE: This is a pure logic engine with NO storage dependencies.
All functions are static methods that operate on passed-in data.

PURITY REQUIREMENT: This engine receives ALL data via parameters.
The GamificationManager is responsible for building contributions, observed
values and badge contexts, and for applying rewards under the per-user lock.

Challenge tick order:
    1. daysSinceStart = days_between(start_date, now)
    2. daysSinceStart >= duration -> terminal. The stored progress decides
       COMPLETED (reward) or EXPIRED_UNMET (no reward); today's contribution
       is NOT folded in first.
    3. Otherwise fold today's contribution:
       progress = round((baseline * daysSinceStart + today) / (daysSinceStart + 1))
       where baseline is the progress as it stood before today's first fold.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .. import const
from ..exceptions import ComputationError, InvalidDefinitionError, InvalidRangeError
from ..utils.dt_utils import day_key, dt_today_iso, dt_today_local
from ..utils.math_utils import calculate_percentage, round_half_up

if TYPE_CHECKING:
    from collections.abc import Collection

    from ..type_defs import (
        ActiveChallengeInstance,
        BadgeContext,
        ChallengeAdvanceResult,
        DayLike,
        ProgressResult,
        RewardGrant,
    )


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Handler function signature: (context, badge_data) -> current value
CriterionHandler = Callable[["BadgeContext", dict[str, Any]], float]


# =============================================================================
# GAMIFICATION ENGINE
# =============================================================================


class GamificationEngine:
    """Pure logic engine for gamification evaluation.

    All methods are static or class methods - no instance state.

    Evaluation Flow:
        1. Manager loads the user record and entries under the user's lock
        2. Manager computes contributions / observed values / badge context
        3. Engine advances instances and evaluates badges
        4. Engine plans rewards against the earned sets
        5. Manager folds reward events and persists with a version check
    """

    # =========================================================================
    # CRITERION HANDLER REGISTRY
    # =========================================================================

    _CRITERION_HANDLERS: dict[str, CriterionHandler] = {}

    @classmethod
    def _register_handlers(cls) -> None:
        """Populate the badge criterion registry on first use."""
        if cls._CRITERION_HANDLERS:
            return

        cls._CRITERION_HANDLERS = {
            const.CRITERIA_TYPE_SCORE: cls._evaluate_score,
            const.CRITERIA_TYPE_STREAK: cls._evaluate_streak,
            const.CRITERIA_TYPE_TOTAL: cls._evaluate_total,
            const.CRITERIA_TYPE_CHALLENGE: cls._evaluate_challenge_count,
        }

    # =========================================================================
    # CHALLENGE INSTANCES
    # =========================================================================

    @staticmethod
    def new_instance(challenge_id: str, start: DayLike) -> ActiveChallengeInstance:
        """Create a fresh ACTIVE instance starting on the given day."""
        return {
            "challenge_id": challenge_id,
            "start_date": day_key(start).isoformat(),
            "progress": 0,
            "baseline_progress": 0,
            "current_value": 0,
            "state": const.CHALLENGE_STATE_ACTIVE,
            "completed": False,
            "last_update_day": None,
            "finished_at": None,
        }

    @staticmethod
    def is_terminal(instance: ActiveChallengeInstance) -> bool:
        """Return whether the instance has left ACTIVE for good."""
        return instance["state"] in const.CHALLENGE_TERMINAL_STATES

    @classmethod
    def advance_challenge(
        cls,
        instance: ActiveChallengeInstance,
        challenge: dict[str, Any],
        *,
        today_contribution: float | None = None,
        observed_value: float | None = None,
        now: DayLike | None = None,
    ) -> ChallengeAdvanceResult:
        """Run one progress tick for a challenge instance.

        The input instance is never mutated; the result carries a copy.

        Args:
            instance: The user's instance of the challenge
            challenge: ChallengeDefinition the instance belongs to
            today_contribution: 0-100 category value for today (score
                challenges). None means no entries today: nothing is folded.
            observed_value: Current streak / qualifying-day count since the
                start (streak and total challenges)
            now: Reference moment, defaults to today in the local timezone

        Returns:
            ChallengeAdvanceResult with the updated instance, whether the
            state changed, and the reward due on completion (None otherwise)

        Raises:
            InvalidRangeError: If now falls before the instance start date.
            ComputationError: If the folded progress leaves [0, 100].
        """
        updated: ActiveChallengeInstance = dict(instance)  # type: ignore[assignment]

        if cls.is_terminal(instance):
            return {"instance": updated, "transitioned": False, "reward": None}

        today = day_key(now) if now is not None else dt_today_local()
        start = day_key(instance["start_date"])
        days_since_start = (today - start).days
        if days_since_start < 0:
            raise InvalidRangeError(start, today)

        criteria_type = challenge[const.DATA_CHALLENGE_CRITERIA_TYPE]
        target = challenge[const.DATA_CHALLENGE_TARGET]

        # Duration elapsing takes priority over today's contribution
        if days_since_start >= challenge[const.DATA_CHALLENGE_DURATION_DAYS]:
            if criteria_type == const.CRITERIA_TYPE_SCORE:
                met = updated["progress"] >= target
            else:
                met = updated["current_value"] >= target
            return cls._finish(
                updated, challenge, met=met, today_iso=today.isoformat()
            )

        if criteria_type == const.CRITERIA_TYPE_SCORE:
            if today_contribution is None:
                return {"instance": updated, "transitioned": False, "reward": None}

            if updated["last_update_day"] != today.isoformat():
                updated["baseline_progress"] = updated["progress"]

            progress = round_half_up(
                (updated["baseline_progress"] * days_since_start + today_contribution)
                / (days_since_start + 1)
            )
            if not const.PROGRESS_MIN <= progress <= const.PROGRESS_MAX:
                raise ComputationError(
                    f"Challenge {instance['challenge_id']} progress out of range: "
                    f"{progress}"
                )
            updated["progress"] = progress
            updated["current_value"] = progress
            updated["last_update_day"] = today.isoformat()
            return {"instance": updated, "transitioned": False, "reward": None}

        # Streak and total challenges complete as soon as the target is met
        if observed_value is None:
            return {"instance": updated, "transitioned": False, "reward": None}

        updated["current_value"] = observed_value
        updated["progress"] = calculate_percentage(observed_value, target)
        updated["last_update_day"] = today.isoformat()
        if observed_value >= target:
            return cls._finish(
                updated, challenge, met=True, today_iso=today.isoformat()
            )
        return {"instance": updated, "transitioned": False, "reward": None}

    @staticmethod
    def _finish(
        instance: ActiveChallengeInstance,
        challenge: dict[str, Any],
        *,
        met: bool,
        today_iso: str,
    ) -> ChallengeAdvanceResult:
        """Move an instance into its terminal state."""
        if met:
            instance["state"] = const.CHALLENGE_STATE_COMPLETED
        else:
            instance["state"] = const.CHALLENGE_STATE_EXPIRED_UNMET
        instance["completed"] = met
        instance["finished_at"] = today_iso

        reward: RewardGrant | None = None
        if met:
            reward = {
                "points": challenge.get(const.DATA_CHALLENGE_POINTS_REWARD) or 0,
                "badge_id": challenge.get(const.DATA_CHALLENGE_BADGE_REWARD),
                "challenge_id": challenge[const.DATA_CHALLENGE_ID],
            }
        return {"instance": instance, "transitioned": True, "reward": reward}

    # =========================================================================
    # REWARDS
    # =========================================================================

    @staticmethod
    def plan_reward(
        reward: RewardGrant | None,
        earned_badges: Collection[str],
        completed_challenges: Collection[str],
    ) -> RewardGrant | None:
        """Filter a reward down to what has not been granted yet.

        A challenge reward is granted once per challenge; a badge once per
        user. Returns None when nothing is left to grant, which is a normal
        outcome rather than an error.
        """
        if reward is None:
            return None

        challenge_id = reward["challenge_id"]
        if challenge_id is not None and challenge_id in completed_challenges:
            return None

        badge_id = reward["badge_id"]
        if badge_id is not None and badge_id in earned_badges:
            badge_id = None

        if challenge_id is None and badge_id is None:
            return None

        return {
            "points": reward["points"],
            "badge_id": badge_id,
            "challenge_id": challenge_id,
        }

    # =========================================================================
    # BADGES
    # =========================================================================

    @classmethod
    def evaluate_badge(
        cls,
        badge_data: dict[str, Any],
        context: BadgeContext,
    ) -> ProgressResult:
        """Evaluate a badge's progress for one user.

        Already-earned badges report 100% and earned=True; badges are never
        revoked.

        Raises:
            InvalidDefinitionError: If the criteria type has no handler.
        """
        cls._register_handlers()

        badge_id = badge_data[const.DATA_BADGE_ID]
        criteria_type = badge_data.get(const.DATA_BADGE_CRITERIA_TYPE)
        handler = cls._CRITERION_HANDLERS.get(criteria_type or "")
        if handler is None:
            raise InvalidDefinitionError(
                badge_id,
                const.DATA_BADGE_CRITERIA_TYPE,
                f"unknown criteria type {criteria_type!r}",
            )

        target = badge_data[const.DATA_BADGE_TARGET]
        current_value = handler(context, badge_data)

        if badge_id in context["earned_badges"]:
            progress = const.PROGRESS_MAX
            earned = True
        else:
            progress = calculate_percentage(current_value, target)
            earned = current_value >= target

        return {
            "badge_id": badge_id,
            "progress": progress,
            "earned": earned,
            "current_value": current_value,
            "target": target,
            "evaluated_at": dt_today_iso(),
        }

    @staticmethod
    def badge_reward(badge_data: dict[str, Any]) -> RewardGrant:
        """Return the reward granted when a badge is earned."""
        return {
            "points": badge_data.get(const.DATA_BADGE_POINTS_REWARD) or 0,
            "badge_id": badge_data[const.DATA_BADGE_ID],
            "challenge_id": None,
        }

    # =========================================================================
    # CRITERION HANDLERS
    # =========================================================================

    @staticmethod
    def _evaluate_score(context: BadgeContext, badge_data: dict[str, Any]) -> float:
        """Average category value over the lookback window."""
        category = badge_data[const.DATA_BADGE_CATEGORY]
        return context["category_averages"].get(category, 0.0)

    @staticmethod
    def _evaluate_streak(context: BadgeContext, badge_data: dict[str, Any]) -> float:
        """Current streak of qualifying days in the category."""
        category = badge_data[const.DATA_BADGE_CATEGORY]
        return context["category_streaks"].get(category, 0)

    @staticmethod
    def _evaluate_total(context: BadgeContext, badge_data: dict[str, Any]) -> float:
        """Lifetime qualifying days in the category."""
        category = badge_data[const.DATA_BADGE_CATEGORY]
        return context["category_totals"].get(category, 0)

    @staticmethod
    def _evaluate_challenge_count(
        context: BadgeContext, badge_data: dict[str, Any]
    ) -> float:
        """Number of challenges the user has completed."""
        return context["completed_challenges"]
