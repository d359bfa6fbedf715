"""Type definitions for HabitPulse data structures.

ARCHITECTURE DECISION: HYBRID APPROACH (TypedDict + dict[str, Any])
===================================================================

1. **TypedDict for STATIC structures** (fixed keys known at design time):
   habit entries, score breakdowns, daily aggregates, challenge and badge
   definitions, stats.

2. **dict[str, Any] for DYNAMIC structures** (keys determined at runtime):
   the per-user record held by the store, category breakdowns keyed by
   entry tag, challenge instances keyed by challenge ID.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Input validation happens in the
Score Engine (voluptuous schema) and in data_builders.

IMPORTANT: This file must only import from datetime and typing.
"""

from datetime import date, datetime
from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases
# =============================================================================

DayLike = str | date | datetime
UserId = str
HabitId = str
ChallengeId = str
BadgeId = str

Mood = Literal["tired", "sad", "angry", "good", "great"]
ProductivityLevel = Literal["low", "medium", "high"]
ChallengeState = Literal["active", "completed", "expired_unmet"]

# Per-user document: version, stats, points, ledger, grants, instances
UserRecord = dict[str, Any]

# =============================================================================
# Scoring
# =============================================================================


class ScoreBreakdown(TypedDict):
    """Derived score for one entry; every value is in [0, 100]."""

    total: int
    health: int
    fitness: int
    mindfulness: int
    productivity: int


class ScoreComponents(TypedDict):
    """Raw component points behind a ScoreBreakdown."""

    sleep: int
    water: int
    exercise: int
    meals: int
    mood: int
    productivity: int


# =============================================================================
# Habit Entries
# =============================================================================


class RawHabitInput(TypedDict, total=False):
    """Unvalidated habit input as received from a caller."""

    date: Any
    sleep_hours: float
    water_intake: float
    exercise_done: bool
    exercise_minutes: float
    healthy_meals: int
    mood: Mood
    productivity_level: ProductivityLevel
    notes: str
    category: str
    completed: bool


class HabitEntry(TypedDict):
    """A stored daily entry with its derived score."""

    id: HabitId
    user_id: UserId
    date: str  # ISO calendar day
    sleep_hours: float
    water_intake: float
    exercise_done: bool
    exercise_minutes: NotRequired[float | None]
    healthy_meals: int
    mood: Mood
    productivity_level: ProductivityLevel
    notes: str
    category: str
    completed: NotRequired[bool | None]
    score: ScoreBreakdown
    created_at: str
    updated_at: str


# =============================================================================
# Aggregation & Streaks
# =============================================================================


class DailyAggregate(TypedDict):
    """Dashboard figures for one calendar day."""

    date: str
    completion: int
    health: float
    fitness: float
    mindfulness: float
    productivity: float
    total_score: float
    entry_count: int


class CategoryBreakdownItem(TypedDict):
    """Per entry-tag figures over today's entries."""

    score: float
    habit_count: int


class ProgressTrend(TypedDict):
    """Short-horizon trend figures."""

    daily: int
    weekly: float
    improvement: float


class StreakState(TypedDict):
    """Streak figures; longest_streak >= current_streak always."""

    current_streak: int
    longest_streak: int


class UserStats(TypedDict):
    """Cached per-user statistics."""

    total_points: float
    current_streak: int
    longest_streak: int
    completed_habits_count: int
    today_score: float
    today_habits: int
    weekly_average: float
    category_breakdown: dict[str, CategoryBreakdownItem]
    progress_trend: ProgressTrend
    badges_earned: int
    completed_challenges: int
    updated_at: NotRequired[str | None]


# =============================================================================
# Challenges & Badges
# =============================================================================


class ChallengeDefinition(TypedDict):
    """Catalog definition of a time-boxed challenge."""

    id: ChallengeId
    title: str
    description: str
    category: str
    criteria_type: str  # score | streak | total
    target: float
    duration_days: int
    points_reward: float
    badge_reward: BadgeId | None


class ActiveChallengeInstance(TypedDict):
    """A user's enrolment in one challenge."""

    challenge_id: ChallengeId
    start_date: str  # ISO calendar day
    progress: int
    baseline_progress: int
    current_value: float
    state: ChallengeState
    completed: bool
    last_update_day: str | None
    finished_at: str | None


class BadgeDefinition(TypedDict):
    """Catalog definition of a badge."""

    id: BadgeId
    name: str
    description: str
    category: str
    tier: str
    criteria_type: str  # score | streak | total | challenge
    target: float
    points_reward: float


class RewardGrant(TypedDict):
    """Rewards due for a completed challenge or earned badge."""

    points: float
    badge_id: BadgeId | None
    challenge_id: ChallengeId | None


class ChallengeAdvanceResult(TypedDict):
    """Outcome of one challenge tick."""

    instance: ActiveChallengeInstance
    transitioned: bool
    reward: RewardGrant | None


class ProgressResult(TypedDict):
    """Outcome of one badge evaluation."""

    badge_id: BadgeId
    progress: int
    earned: bool
    current_value: float
    target: float
    evaluated_at: str


class BadgeContext(TypedDict):
    """Pre-computed values a badge evaluation reads from.

    Built by GamificationManager; the engine never touches storage.
    """

    category_averages: dict[str, float]
    category_streaks: dict[str, int]
    category_totals: dict[str, int]
    completed_challenges: int
    earned_badges: set[BadgeId]


# =============================================================================
# Economy
# =============================================================================


class LedgerEntry(TypedDict):
    """One immutable point transaction."""

    timestamp: str
    amount: float
    balance_after: float
    source: str
    reference_id: str | None
    item_name: NotRequired[str]


class PointsEvent(TypedDict):
    """An explicit stats mutation folded into the user record."""

    type: str
    points: float
    reference_id: str | None
    item_name: NotRequired[str | None]
    badge_id: NotRequired[BadgeId | None]
    timestamp: NotRequired[str | None]
