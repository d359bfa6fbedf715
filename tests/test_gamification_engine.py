"""Unit tests for GamificationEngine - challenge ticks and badge evaluation.

These tests verify the stateless gamification logic; no store or manager
is involved.

Test Categories:
- Running-mean progress for score challenges
- Same-day idempotence
- Duration expiry (completed vs expired_unmet) and terminal states
- Streak and total challenges
- Reward planning against granted sets
- Badge criteria (score, streak, total, challenge)
- The advance_challenge_progress entry point
"""

from __future__ import annotations

from typing import Any

import pytest

from habitpulse import advance_challenge_progress, const
from habitpulse.data_builders import build_badge, build_challenge
from habitpulse.engines.gamification_engine import GamificationEngine
from habitpulse.exceptions import (
    ComputationError,
    InvalidDefinitionError,
    InvalidRangeError,
)

SCORE_CHALLENGE = build_challenge(
    {
        "id": "steady_week",
        "title": "Steady Week",
        "category": const.PROGRESS_CATEGORY_OVERALL,
        "target": 70,
        "duration_days": 5,
        "points_reward": 150,
        "badge_reward": "early_bird",
    }
)

STREAK_CHALLENGE = build_challenge(
    {
        "id": "active_three",
        "title": "Active Three",
        "category": const.PROGRESS_CATEGORY_ACTIVITY,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 3,
        "duration_days": 3,
        "points_reward": 100,
    }
)

TOTAL_CHALLENGE = build_challenge(
    {
        "id": "water_ten",
        "title": "Water Ten",
        "category": const.PROGRESS_CATEGORY_WATER,
        "criteria_type": const.CRITERIA_TYPE_TOTAL,
        "target": 10,
        "duration_days": 14,
        "points_reward": 300,
    }
)


def _tick(
    instance: dict[str, Any],
    challenge: dict[str, Any],
    now: str,
    contribution: float | None = None,
    observed: float | None = None,
) -> dict[str, Any]:
    return GamificationEngine.advance_challenge(
        instance,
        challenge,
        today_contribution=contribution,
        observed_value=observed,
        now=now,
    )


def _context(**overrides: Any) -> dict[str, Any]:
    context: dict[str, Any] = {
        "category_averages": {},
        "category_streaks": {},
        "category_totals": {},
        "completed_challenges": 0,
        "earned_badges": set(),
    }
    context.update(overrides)
    return context


# =============================================================================
# Test: Score Challenges
# =============================================================================


class TestScoreChallenge:
    """Tests for running-mean progress."""

    def test_new_instance(self) -> None:
        """A fresh instance is active with zero progress."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01T10:00:00")
        assert instance["start_date"] == "2025-06-01"
        assert instance["state"] == const.CHALLENGE_STATE_ACTIVE
        assert instance["progress"] == 0
        assert instance["completed"] is False
        assert instance["last_update_day"] is None

    def test_running_mean(self) -> None:
        """Day 1 at 80 gives 80; day 2 at 40 gives round((80 + 40) / 2)."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")

        day_one = _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=80)
        assert day_one["instance"]["progress"] == 80
        assert day_one["transitioned"] is False
        assert day_one["reward"] is None

        day_two = _tick(
            day_one["instance"], SCORE_CHALLENGE, "2025-06-02", contribution=40
        )
        assert day_two["instance"]["progress"] == 60
        assert day_two["instance"]["last_update_day"] == "2025-06-02"

    def test_rounding_is_half_up(self) -> None:
        """(81 + 40) / 2 = 60.5 rounds to 61."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        day_one = _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=81)
        day_two = _tick(
            day_one["instance"], SCORE_CHALLENGE, "2025-06-02", contribution=40
        )
        assert day_two["instance"]["progress"] == 61

    def test_input_not_mutated(self) -> None:
        """The engine works on a copy."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=80)
        assert instance["progress"] == 0

    def test_no_contribution_no_fold(self) -> None:
        """A day without entries leaves progress untouched."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        day_one = _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=80)
        skipped = _tick(day_one["instance"], SCORE_CHALLENGE, "2025-06-02")
        assert skipped["instance"] == day_one["instance"]

    def test_out_of_range_contribution_raises(self) -> None:
        """Progress outside 0-100 is a computation error."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        with pytest.raises(ComputationError):
            _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=150)

    def test_now_before_start_raises(self) -> None:
        """A tick dated before the start is an invalid range."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        with pytest.raises(InvalidRangeError):
            _tick(instance, SCORE_CHALLENGE, "2025-05-31", contribution=80)


# =============================================================================
# Test: Idempotence
# =============================================================================


class TestIdempotence:
    """Tests for repeated ticks on the same day."""

    def test_same_day_same_input_is_stable(self) -> None:
        """Re-running a day does not move progress."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        day_one = _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=80)
        day_two = _tick(
            day_one["instance"], SCORE_CHALLENGE, "2025-06-02", contribution=40
        )
        again = _tick(
            day_two["instance"], SCORE_CHALLENGE, "2025-06-02", contribution=40
        )
        assert again["instance"] == day_two["instance"]
        assert again["reward"] is None

    def test_same_day_refolds_from_baseline(self) -> None:
        """A later entry on the same day replaces that day's contribution."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        day_one = _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=80)
        day_two = _tick(
            day_one["instance"], SCORE_CHALLENGE, "2025-06-02", contribution=40
        )
        updated = _tick(
            day_two["instance"], SCORE_CHALLENGE, "2025-06-02", contribution=60
        )
        assert updated["instance"]["progress"] == 70
        assert updated["instance"]["baseline_progress"] == 80

    def test_entry_point_does_not_regrant(self) -> None:
        """A reward already granted is filtered out."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        day_one = advance_challenge_progress(
            instance, SCORE_CHALLENGE, 80, "2025-06-01"
        )
        finished = advance_challenge_progress(
            day_one["instance"],
            SCORE_CHALLENGE,
            None,
            "2025-06-06",
            completed_challenges={"steady_week"},
        )
        assert finished["instance"]["state"] == const.CHALLENGE_STATE_COMPLETED
        assert finished["reward"] is None


# =============================================================================
# Test: Expiry and Terminal States
# =============================================================================


class TestExpiry:
    """Tests for the duration check and terminal states."""

    def test_expires_unmet_below_target(self) -> None:
        """Progress 60 against target 70 expires without reward."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        day_one = _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=80)
        day_two = _tick(
            day_one["instance"], SCORE_CHALLENGE, "2025-06-02", contribution=40
        )

        result = _tick(
            day_two["instance"], SCORE_CHALLENGE, "2025-06-06", contribution=100
        )
        assert result["transitioned"] is True
        assert result["reward"] is None
        assert result["instance"]["state"] == const.CHALLENGE_STATE_EXPIRED_UNMET
        assert result["instance"]["completed"] is False
        assert result["instance"]["finished_at"] == "2025-06-06"
        # Today's contribution is not folded once the duration has elapsed
        assert result["instance"]["progress"] == 60

    def test_completes_at_expiry_when_target_met(self) -> None:
        """Progress 80 against target 70 completes with its reward."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        day_one = _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=80)

        result = _tick(day_one["instance"], SCORE_CHALLENGE, "2025-06-06")
        assert result["instance"]["state"] == const.CHALLENGE_STATE_COMPLETED
        assert result["instance"]["completed"] is True
        assert result["reward"] == {
            "points": 150,
            "badge_id": "early_bird",
            "challenge_id": "steady_week",
        }

    def test_terminal_instance_is_noop(self) -> None:
        """Nothing changes once an instance has finished."""
        instance = GamificationEngine.new_instance("steady_week", "2025-06-01")
        day_one = _tick(instance, SCORE_CHALLENGE, "2025-06-01", contribution=80)
        finished = _tick(day_one["instance"], SCORE_CHALLENGE, "2025-06-06")

        again = _tick(
            finished["instance"], SCORE_CHALLENGE, "2025-06-09", contribution=10
        )
        assert again["instance"] == finished["instance"]
        assert again["transitioned"] is False
        assert again["reward"] is None
        assert GamificationEngine.is_terminal(again["instance"])


# =============================================================================
# Test: Streak and Total Challenges
# =============================================================================


class TestThresholdChallenges:
    """Tests for challenges driven by an observed value."""

    def test_streak_progress(self) -> None:
        """One day of three is 33%."""
        instance = GamificationEngine.new_instance("active_three", "2025-06-01")
        result = _tick(instance, STREAK_CHALLENGE, "2025-06-01", observed=1)
        assert result["instance"]["progress"] == 33
        assert result["instance"]["current_value"] == 1
        assert result["instance"]["state"] == const.CHALLENGE_STATE_ACTIVE

    def test_streak_completes_as_soon_as_met(self) -> None:
        """No need to wait for the duration to elapse."""
        instance = GamificationEngine.new_instance("active_three", "2025-06-01")
        result = _tick(instance, STREAK_CHALLENGE, "2025-06-03", observed=3)
        assert result["transitioned"] is True
        assert result["instance"]["state"] == const.CHALLENGE_STATE_COMPLETED
        assert result["instance"]["progress"] == 100
        assert result["reward"] == {
            "points": 100,
            "badge_id": None,
            "challenge_id": "active_three",
        }

    def test_streak_expires_on_current_value(self) -> None:
        """At expiry the last observed value decides."""
        instance = GamificationEngine.new_instance("active_three", "2025-06-01")
        partial = _tick(instance, STREAK_CHALLENGE, "2025-06-02", observed=2)
        result = _tick(partial["instance"], STREAK_CHALLENGE, "2025-06-04", observed=3)
        assert result["instance"]["state"] == const.CHALLENGE_STATE_EXPIRED_UNMET
        assert result["instance"]["current_value"] == 2

    def test_total_progress(self) -> None:
        """Five qualifying days of ten is 50%."""
        instance = GamificationEngine.new_instance("water_ten", "2025-06-01")
        result = _tick(instance, TOTAL_CHALLENGE, "2025-06-07", observed=5)
        assert result["instance"]["progress"] == 50
        assert result["reward"] is None


# =============================================================================
# Test: Reward Planning
# =============================================================================


class TestPlanReward:
    """Tests for filtering rewards against what was already granted."""

    REWARD = {"points": 150, "badge_id": "early_bird", "challenge_id": "steady_week"}

    def test_nothing_granted_yet(self) -> None:
        """The full reward is due."""
        assert GamificationEngine.plan_reward(self.REWARD, set(), set()) == self.REWARD

    def test_challenge_already_completed(self) -> None:
        """A completed challenge is never rewarded twice."""
        assert (
            GamificationEngine.plan_reward(self.REWARD, set(), {"steady_week"}) is None
        )

    def test_badge_already_earned(self) -> None:
        """Points are still due but the badge is dropped."""
        planned = GamificationEngine.plan_reward(self.REWARD, {"early_bird"}, set())
        assert planned == {
            "points": 150,
            "badge_id": None,
            "challenge_id": "steady_week",
        }

    def test_no_reward(self) -> None:
        """None in, None out."""
        assert GamificationEngine.plan_reward(None, set(), set()) is None


# =============================================================================
# Test: Badges
# =============================================================================


class TestBadges:
    """Tests for badge criteria evaluation."""

    STREAK_BADGE = build_badge(
        {
            "id": "early_bird",
            "name": "Early Bird",
            "category": const.PROGRESS_CATEGORY_SLEEP,
            "criteria_type": const.CRITERIA_TYPE_STREAK,
            "target": 3,
            "points_reward": 100,
        }
    )

    def test_streak_in_progress(self) -> None:
        """Two of three days is 67% and not earned."""
        result = GamificationEngine.evaluate_badge(
            self.STREAK_BADGE, _context(category_streaks={"sleep": 2})
        )
        assert result["progress"] == 67
        assert result["earned"] is False
        assert result["current_value"] == 2
        assert result["target"] == 3

    def test_streak_earned(self) -> None:
        """Meeting the target earns the badge."""
        result = GamificationEngine.evaluate_badge(
            self.STREAK_BADGE, _context(category_streaks={"sleep": 3})
        )
        assert result["progress"] == 100
        assert result["earned"] is True

    def test_earned_badge_is_never_revoked(self) -> None:
        """Already-earned badges report 100% regardless of the value."""
        result = GamificationEngine.evaluate_badge(
            self.STREAK_BADGE, _context(earned_badges={"early_bird"})
        )
        assert result["progress"] == 100
        assert result["earned"] is True

    def test_score_badge(self) -> None:
        """Score badges read the category average."""
        badge = build_badge(
            {
                "id": "exercise_master",
                "name": "Exercise Master",
                "category": const.PROGRESS_CATEGORY_ACTIVITY,
                "criteria_type": const.CRITERIA_TYPE_SCORE,
                "target": 90,
            }
        )
        result = GamificationEngine.evaluate_badge(
            badge, _context(category_averages={"activity": 85.5})
        )
        assert result["progress"] == 95
        assert result["earned"] is False

    def test_total_badge(self) -> None:
        """Total badges read qualifying days in the category."""
        badge = build_badge(
            {
                "id": "water_warrior",
                "name": "Water Warrior",
                "category": const.PROGRESS_CATEGORY_WATER,
                "criteria_type": const.CRITERIA_TYPE_TOTAL,
                "target": 10,
            }
        )
        result = GamificationEngine.evaluate_badge(
            badge, _context(category_totals={"water": 4})
        )
        assert result["progress"] == 40

    def test_challenge_badge(self) -> None:
        """Challenge badges count completed challenges."""
        badge = build_badge(
            {
                "id": "challenge_champion",
                "name": "Challenge Champion",
                "criteria_type": const.CRITERIA_TYPE_CHALLENGE,
                "target": 3,
            }
        )
        result = GamificationEngine.evaluate_badge(
            badge, _context(completed_challenges=3)
        )
        assert result["earned"] is True

    def test_unknown_criteria_raises(self) -> None:
        """A criteria type without a handler is a definition error."""
        badge = {"id": "mystery", "criteria_type": "mystery", "target": 1}
        with pytest.raises(InvalidDefinitionError) as exc_info:
            GamificationEngine.evaluate_badge(badge, _context())
        assert exc_info.value.field == const.DATA_BADGE_CRITERIA_TYPE

    def test_badge_reward(self) -> None:
        """A badge grants its own points and itself."""
        assert GamificationEngine.badge_reward(self.STREAK_BADGE) == {
            "points": 100,
            "badge_id": "early_bird",
            "challenge_id": None,
        }
