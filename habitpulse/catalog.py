"""Challenge and badge catalog.

Definitions are validated once through data_builders and then looked up by
ID. Unknown IDs raise NotFoundError.

DEFAULT_CHALLENGES and DEFAULT_BADGES are the stock catalog. Every badge a
challenge rewards also has criteria of its own, so it can be earned either
way; grants are idempotent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from . import const
from .data_builders import build_badge, build_challenge
from .exceptions import InvalidDefinitionError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .type_defs import BadgeDefinition, ChallengeDefinition


DEFAULT_CHALLENGES: list[dict[str, Any]] = [
    # Score challenges: running mean of the daily category value
    {
        "id": "early_bird_week",
        "title": "Early Bird Week",
        "description": "Keep a healthy sleep score for 7 days",
        "category": const.PROGRESS_CATEGORY_SLEEP,
        "criteria_type": const.CRITERIA_TYPE_SCORE,
        "target": 70,
        "duration_days": 7,
        "points_reward": 150,
        "badge_reward": "early_bird",
    },
    {
        "id": "sleep_master",
        "title": "Sleep Master",
        "description": "Maintain a consistent sleep schedule for 5 days",
        "category": const.PROGRESS_CATEGORY_SLEEP,
        "criteria_type": const.CRITERIA_TYPE_SCORE,
        "target": 50,
        "duration_days": 5,
        "points_reward": 100,
        "badge_reward": "night_owl",
    },
    {
        "id": "healthy_eating_streak",
        "title": "Healthy Eating Streak",
        "description": "Log 3 healthy meals per day for 5 days",
        "category": const.PROGRESS_CATEGORY_NUTRITION,
        "criteria_type": const.CRITERIA_TYPE_SCORE,
        "target": 60,
        "duration_days": 5,
        "points_reward": 100,
        "badge_reward": "healthy_eater",
    },
    {
        "id": "exercise_champion",
        "title": "Exercise Champion",
        "description": "Complete daily exercise for 7 days straight",
        "category": const.PROGRESS_CATEGORY_ACTIVITY,
        "criteria_type": const.CRITERIA_TYPE_SCORE,
        "target": 80,
        "duration_days": 7,
        "points_reward": 200,
        "badge_reward": "exercise_master",
    },
    {
        "id": "hydration_challenge",
        "title": "Hydration Challenge",
        "description": "Drink at least 2L of water daily for 5 days",
        "category": const.PROGRESS_CATEGORY_WATER,
        "criteria_type": const.CRITERIA_TYPE_SCORE,
        "target": 50,
        "duration_days": 5,
        "points_reward": 100,
        "badge_reward": "hydration_hero",
    },
    # Streak and total challenges: complete as soon as the target is met
    {
        "id": "active_achiever",
        "title": "Active Achiever",
        "description": "Complete your activity goals for 3 days straight",
        "category": const.PROGRESS_CATEGORY_ACTIVITY,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 3,
        "duration_days": 3,
        "points_reward": 100,
        "badge_reward": "active_achiever",
    },
    {
        "id": "water_warrior",
        "title": "Water Warrior",
        "description": "Achieve your water goal 10 times in two weeks",
        "category": const.PROGRESS_CATEGORY_WATER,
        "criteria_type": const.CRITERIA_TYPE_TOTAL,
        "target": 10,
        "duration_days": 14,
        "points_reward": 300,
        "badge_reward": None,
    },
    {
        "id": "consistency_king",
        "title": "Consistency King",
        "description": "Maintain a 10-day streak of completed days",
        "category": const.PROGRESS_CATEGORY_OVERALL,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 10,
        "duration_days": 10,
        "points_reward": 400,
        "badge_reward": "consistency_king",
    },
]

DEFAULT_BADGES: list[dict[str, Any]] = [
    {
        "id": "early_bird",
        "name": "Early Bird",
        "description": "Complete sleep goals for 3 consecutive days",
        "category": const.PROGRESS_CATEGORY_SLEEP,
        "tier": const.BADGE_TIER_BRONZE,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 3,
        "points_reward": 100,
    },
    {
        "id": "night_owl",
        "name": "Night Owl",
        "description": "Track your sleep consistently for a week",
        "category": const.PROGRESS_CATEGORY_SLEEP,
        "tier": const.BADGE_TIER_GOLD,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 7,
        "points_reward": 300,
    },
    {
        "id": "healthy_eater",
        "name": "Healthy Eater",
        "description": "Track your meals for 5 consecutive days",
        "category": const.PROGRESS_CATEGORY_NUTRITION,
        "tier": const.BADGE_TIER_BRONZE,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 5,
        "points_reward": 100,
    },
    {
        "id": "exercise_master",
        "name": "Exercise Master",
        "description": "Maintain an average activity score of 90",
        "category": const.PROGRESS_CATEGORY_ACTIVITY,
        "tier": const.BADGE_TIER_PLATINUM,
        "criteria_type": const.CRITERIA_TYPE_SCORE,
        "target": 90,
        "points_reward": 500,
    },
    {
        "id": "hydration_hero",
        "name": "Hydration Hero",
        "description": "Meet your daily water intake goal for 5 days",
        "category": const.PROGRESS_CATEGORY_WATER,
        "tier": const.BADGE_TIER_SILVER,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 5,
        "points_reward": 200,
    },
    {
        "id": "active_achiever",
        "name": "Active Achiever",
        "description": "Complete your activity goals for 3 days straight",
        "category": const.PROGRESS_CATEGORY_ACTIVITY,
        "tier": const.BADGE_TIER_BRONZE,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 3,
        "points_reward": 100,
    },
    {
        "id": "water_warrior",
        "name": "Water Warrior",
        "description": "Achieve your water goal 10 times",
        "category": const.PROGRESS_CATEGORY_WATER,
        "tier": const.BADGE_TIER_GOLD,
        "criteria_type": const.CRITERIA_TYPE_TOTAL,
        "target": 10,
        "points_reward": 300,
    },
    {
        "id": "meal_master",
        "name": "Meal Master",
        "description": "Complete 20 healthy meal goals",
        "category": const.PROGRESS_CATEGORY_NUTRITION,
        "tier": const.BADGE_TIER_GOLD,
        "criteria_type": const.CRITERIA_TYPE_TOTAL,
        "target": 20,
        "points_reward": 300,
    },
    {
        "id": "habit_hero",
        "name": "Habit Hero",
        "description": "Average a perfect overall score",
        "category": const.PROGRESS_CATEGORY_OVERALL,
        "tier": const.BADGE_TIER_PLATINUM,
        "criteria_type": const.CRITERIA_TYPE_SCORE,
        "target": 100,
        "points_reward": 500,
    },
    {
        "id": "consistency_king",
        "name": "Consistency King",
        "description": "Maintain a 10-day streak of completed days",
        "category": const.PROGRESS_CATEGORY_OVERALL,
        "tier": const.BADGE_TIER_GOLD,
        "criteria_type": const.CRITERIA_TYPE_STREAK,
        "target": 10,
        "points_reward": 400,
    },
    {
        "id": "challenge_champion",
        "name": "Challenge Champion",
        "description": "Complete 3 challenges",
        "category": const.PROGRESS_CATEGORY_OVERALL,
        "tier": const.BADGE_TIER_SILVER,
        "criteria_type": const.CRITERIA_TYPE_CHALLENGE,
        "target": 3,
        "points_reward": 250,
    },
]


class Catalog:
    """Validated challenge and badge definitions, looked up by ID."""

    def __init__(
        self,
        challenges: Iterable[dict[str, Any]] | None = None,
        badges: Iterable[dict[str, Any]] | None = None,
    ) -> None:
        """Validate and index definitions.

        Args:
            challenges: Challenge definitions, defaults to DEFAULT_CHALLENGES
            badges: Badge definitions, defaults to DEFAULT_BADGES

        Raises:
            InvalidDefinitionError: On a malformed or duplicate definition.
        """
        self._challenges: dict[str, ChallengeDefinition] = {}
        self._badges: dict[str, BadgeDefinition] = {}

        for raw in DEFAULT_CHALLENGES if challenges is None else challenges:
            challenge = build_challenge(raw)
            if challenge["id"] in self._challenges:
                raise InvalidDefinitionError(
                    challenge["id"], const.DATA_CHALLENGE_ID, "duplicate challenge id"
                )
            self._challenges[challenge["id"]] = challenge

        for raw in DEFAULT_BADGES if badges is None else badges:
            badge = build_badge(raw)
            if badge["id"] in self._badges:
                raise InvalidDefinitionError(
                    badge["id"], const.DATA_BADGE_ID, "duplicate badge id"
                )
            self._badges[badge["id"]] = badge

    @property
    def challenges(self) -> list[ChallengeDefinition]:
        """All challenge definitions in catalog order."""
        return list(self._challenges.values())

    @property
    def badges(self) -> list[BadgeDefinition]:
        """All badge definitions in catalog order."""
        return list(self._badges.values())

    def get_challenge(self, challenge_id: str) -> ChallengeDefinition:
        """Return a challenge definition.

        Raises:
            NotFoundError: If the ID is unknown.
        """
        try:
            return self._challenges[challenge_id]
        except KeyError:
            raise NotFoundError("challenge", challenge_id) from None

    def get_badge(self, badge_id: str) -> BadgeDefinition:
        """Return a badge definition.

        Raises:
            NotFoundError: If the ID is unknown.
        """
        try:
            return self._badges[badge_id]
        except KeyError:
            raise NotFoundError("badge", badge_id) from None
