# File: const.py
"""Constants for HabitPulse.

This file centralizes data keys, enumerations, scoring weights, defaults,
configuration option names, ledger sources and signal names so every engine
and manager refers to one definition.
"""

import logging
from typing import Final

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# Default float precision for points and averaged scores
DATA_FLOAT_PRECISION = 2

# ------------------------------------------------------------------------------------------------
# Configuration Options
# ------------------------------------------------------------------------------------------------
CONF_TIMEZONE = "timezone"
CONF_COMPLETION_THRESHOLD = "completion_threshold"
CONF_TREND_WINDOW_DAYS = "trend_window_days"
CONF_BADGE_LOOKBACK_DAYS = "badge_lookback_days"
CONF_LEDGER_MAX_ENTRIES = "ledger_max_entries"
CONF_LEDGER_RETENTION_DAYS = "ledger_retention_days"
CONF_COMMIT_RETRIES = "commit_retries"

DEFAULT_TIMEZONE = "UTC"
DEFAULT_COMPLETION_THRESHOLD = 50
DEFAULT_TREND_WINDOW_DAYS = 7
DEFAULT_BADGE_LOOKBACK_DAYS = 30
DEFAULT_LEDGER_MAX_ENTRIES = 200
DEFAULT_LEDGER_RETENTION_DAYS = 365
DEFAULT_COMMIT_RETRIES = 3

# ------------------------------------------------------------------------------------------------
# Habit Entry
# ------------------------------------------------------------------------------------------------
DATA_HABIT_ID = "id"
DATA_HABIT_USER_ID = "user_id"
DATA_HABIT_DATE = "date"
DATA_HABIT_SLEEP_HOURS = "sleep_hours"
DATA_HABIT_WATER_INTAKE = "water_intake"
DATA_HABIT_EXERCISE_DONE = "exercise_done"
DATA_HABIT_EXERCISE_MINUTES = "exercise_minutes"
DATA_HABIT_HEALTHY_MEALS = "healthy_meals"
DATA_HABIT_MOOD = "mood"
DATA_HABIT_PRODUCTIVITY_LEVEL = "productivity_level"
DATA_HABIT_NOTES = "notes"
DATA_HABIT_CATEGORY = "category"
DATA_HABIT_COMPLETED = "completed"
DATA_HABIT_SCORE = "score"
DATA_HABIT_CREATED_AT = "created_at"
DATA_HABIT_UPDATED_AT = "updated_at"

# Fields whose change requires an explicit score recompute
SCORE_AFFECTING_FIELDS: Final[frozenset[str]] = frozenset(
    {
        DATA_HABIT_SLEEP_HOURS,
        DATA_HABIT_WATER_INTAKE,
        DATA_HABIT_EXERCISE_DONE,
        DATA_HABIT_EXERCISE_MINUTES,
        DATA_HABIT_HEALTHY_MEALS,
        DATA_HABIT_MOOD,
        DATA_HABIT_PRODUCTIVITY_LEVEL,
    }
)

# Input bounds
SLEEP_HOURS_MIN = 0
SLEEP_HOURS_MAX = 24
WATER_INTAKE_MIN = 0
WATER_INTAKE_MAX = 10
HEALTHY_MEALS_MIN = 0
HEALTHY_MEALS_MAX = 3
NOTES_MAX_LENGTH = 1000

# Mood
MOOD_TIRED = "tired"
MOOD_SAD = "sad"
MOOD_ANGRY = "angry"
MOOD_GOOD = "good"
MOOD_GREAT = "great"
MOOD_OPTIONS: Final[tuple[str, ...]] = (
    MOOD_TIRED,
    MOOD_SAD,
    MOOD_ANGRY,
    MOOD_GOOD,
    MOOD_GREAT,
)

# Productivity
PRODUCTIVITY_LOW = "low"
PRODUCTIVITY_MEDIUM = "medium"
PRODUCTIVITY_HIGH = "high"
PRODUCTIVITY_OPTIONS: Final[tuple[str, ...]] = (
    PRODUCTIVITY_LOW,
    PRODUCTIVITY_MEDIUM,
    PRODUCTIVITY_HIGH,
)

# Entry category tags
HABIT_CATEGORY_HEALTH = "health"
HABIT_CATEGORY_FITNESS = "fitness"
HABIT_CATEGORY_MINDFULNESS = "mindfulness"
HABIT_CATEGORY_PRODUCTIVITY = "productivity"
HABIT_CATEGORY_OTHER = "other"
HABIT_CATEGORY_OPTIONS: Final[tuple[str, ...]] = (
    HABIT_CATEGORY_HEALTH,
    HABIT_CATEGORY_FITNESS,
    HABIT_CATEGORY_MINDFULNESS,
    HABIT_CATEGORY_PRODUCTIVITY,
    HABIT_CATEGORY_OTHER,
)

# ------------------------------------------------------------------------------------------------
# Scoring
# ------------------------------------------------------------------------------------------------
SCORE_TOTAL = "total"
SCORE_HEALTH = "health"
SCORE_FITNESS = "fitness"
SCORE_MINDFULNESS = "mindfulness"
SCORE_PRODUCTIVITY = "productivity"

# The four score categories, in display order
SCORE_CATEGORIES: Final[tuple[str, ...]] = (
    SCORE_HEALTH,
    SCORE_FITNESS,
    SCORE_MINDFULNESS,
    SCORE_PRODUCTIVITY,
)

COMPONENT_SLEEP = "sleep"
COMPONENT_WATER = "water"
COMPONENT_EXERCISE = "exercise"
COMPONENT_MEALS = "meals"
COMPONENT_MOOD = "mood"
COMPONENT_PRODUCTIVITY = "productivity"

SCORE_MIN = 0
SCORE_MAX = 100

# Sleep: full band [6, 8], partial bands [5, 6) and (8, 9]
SLEEP_POINTS_FULL = 20
SLEEP_POINTS_PARTIAL = 10
SLEEP_FULL_MIN = 6
SLEEP_FULL_MAX = 8
SLEEP_PARTIAL_MIN = 5
SLEEP_PARTIAL_MAX = 9

# Water: full band [2, 3], partial band [1.5, 2) or anything above 3
WATER_POINTS_FULL = 20
WATER_POINTS_PARTIAL = 10
WATER_FULL_MIN = 2
WATER_FULL_MAX = 3
WATER_PARTIAL_MIN = 1.5

EXERCISE_POINTS = 20

MEAL_POINTS_EACH = 10
MEAL_POINTS_MAX = 30

MOOD_POINTS: Final[dict[str, int]] = {
    MOOD_GREAT: 20,
    MOOD_GOOD: 15,
    MOOD_TIRED: 5,
    MOOD_SAD: 0,
    MOOD_ANGRY: 0,
}

PRODUCTIVITY_POINTS: Final[dict[str, int]] = {
    PRODUCTIVITY_HIGH: 20,
    PRODUCTIVITY_MEDIUM: 10,
    PRODUCTIVITY_LOW: 0,
}

# Maximum raw points behind each normalized category
HEALTH_COMPONENT_MAX = SLEEP_POINTS_FULL + WATER_POINTS_FULL + MEAL_POINTS_MAX
FITNESS_COMPONENT_MAX = EXERCISE_POINTS
MINDFULNESS_COMPONENT_MAX = 20
PRODUCTIVITY_COMPONENT_MAX = 20

# ------------------------------------------------------------------------------------------------
# Daily Aggregates / Stats
# ------------------------------------------------------------------------------------------------
DATA_AGG_DATE = "date"
DATA_AGG_COMPLETION = "completion"
DATA_AGG_TOTAL_SCORE = "total_score"
DATA_AGG_ENTRY_COUNT = "entry_count"

DATA_STREAK_CURRENT = "current_streak"
DATA_STREAK_LONGEST = "longest_streak"

DATA_STATS = "stats"
DATA_STATS_TOTAL_POINTS = "total_points"
DATA_STATS_CURRENT_STREAK = "current_streak"
DATA_STATS_LONGEST_STREAK = "longest_streak"
DATA_STATS_COMPLETED_HABITS = "completed_habits_count"
DATA_STATS_TODAY_SCORE = "today_score"
DATA_STATS_TODAY_HABITS = "today_habits"
DATA_STATS_WEEKLY_AVERAGE = "weekly_average"
DATA_STATS_CATEGORY_BREAKDOWN = "category_breakdown"
DATA_STATS_PROGRESS_TREND = "progress_trend"
DATA_STATS_BADGES_EARNED = "badges_earned"
DATA_STATS_COMPLETED_CHALLENGES = "completed_challenges"
DATA_STATS_UPDATED_AT = "updated_at"

DATA_BREAKDOWN_SCORE = "score"
DATA_BREAKDOWN_HABIT_COUNT = "habit_count"

DATA_TREND_DAILY = "daily"
DATA_TREND_WEEKLY = "weekly"
DATA_TREND_IMPROVEMENT = "improvement"

# ------------------------------------------------------------------------------------------------
# User Record
# ------------------------------------------------------------------------------------------------
DATA_USERS = "users"
DATA_HABITS = "habits"
DATA_USER_VERSION = "version"
DATA_USER_POINTS = "points"
DATA_USER_LEDGER = "ledger"
DATA_USER_EARNED_BADGES = "earned_badges"
DATA_USER_COMPLETED_CHALLENGES = "completed_challenges"
DATA_USER_CHALLENGES = "challenges"

# Ledger
DATA_LEDGER_TIMESTAMP = "timestamp"
DATA_LEDGER_AMOUNT = "amount"
DATA_LEDGER_BALANCE_AFTER = "balance_after"
DATA_LEDGER_SOURCE = "source"
DATA_LEDGER_REFERENCE_ID = "reference_id"
DATA_LEDGER_ITEM_NAME = "item_name"

POINTS_SOURCE_HABIT = "habit"
POINTS_SOURCE_HABIT_UPDATE = "habit_update"
POINTS_SOURCE_HABIT_DELETE = "habit_delete"
POINTS_SOURCE_CHALLENGE = "challenge"
POINTS_SOURCE_BADGE = "badge"

# Point events folded into the user record
EVENT_HABIT_LOGGED = "habit_logged"
EVENT_HABIT_UPDATED = "habit_updated"
EVENT_HABIT_DELETED = "habit_deleted"
EVENT_CHALLENGE_COMPLETED = "challenge_completed"
EVENT_BADGE_EARNED = "badge_earned"

DATA_EVENT_TYPE = "type"
DATA_EVENT_POINTS = "points"
DATA_EVENT_REFERENCE_ID = "reference_id"
DATA_EVENT_ITEM_NAME = "item_name"
DATA_EVENT_BADGE_ID = "badge_id"
DATA_EVENT_TIMESTAMP = "timestamp"

# ------------------------------------------------------------------------------------------------
# Challenges
# ------------------------------------------------------------------------------------------------
DATA_CHALLENGE_ID = "id"
DATA_CHALLENGE_TITLE = "title"
DATA_CHALLENGE_DESCRIPTION = "description"
DATA_CHALLENGE_CATEGORY = "category"
DATA_CHALLENGE_CRITERIA_TYPE = "criteria_type"
DATA_CHALLENGE_TARGET = "target"
DATA_CHALLENGE_DURATION_DAYS = "duration_days"
DATA_CHALLENGE_POINTS_REWARD = "points_reward"
DATA_CHALLENGE_BADGE_REWARD = "badge_reward"

DATA_INSTANCE_CHALLENGE_ID = "challenge_id"
DATA_INSTANCE_START_DATE = "start_date"
DATA_INSTANCE_PROGRESS = "progress"
DATA_INSTANCE_BASELINE_PROGRESS = "baseline_progress"
DATA_INSTANCE_CURRENT_VALUE = "current_value"
DATA_INSTANCE_STATE = "state"
DATA_INSTANCE_COMPLETED = "completed"
DATA_INSTANCE_LAST_UPDATE_DAY = "last_update_day"
DATA_INSTANCE_FINISHED_AT = "finished_at"

CHALLENGE_STATE_ACTIVE = "active"
CHALLENGE_STATE_COMPLETED = "completed"
CHALLENGE_STATE_EXPIRED_UNMET = "expired_unmet"
CHALLENGE_TERMINAL_STATES: Final[frozenset[str]] = frozenset(
    {CHALLENGE_STATE_COMPLETED, CHALLENGE_STATE_EXPIRED_UNMET}
)

CRITERIA_TYPE_SCORE = "score"
CRITERIA_TYPE_STREAK = "streak"
CRITERIA_TYPE_TOTAL = "total"
CRITERIA_TYPE_CHALLENGE = "challenge"
CHALLENGE_CRITERIA_TYPES: Final[tuple[str, ...]] = (
    CRITERIA_TYPE_SCORE,
    CRITERIA_TYPE_STREAK,
    CRITERIA_TYPE_TOTAL,
)
BADGE_CRITERIA_TYPES: Final[tuple[str, ...]] = (
    CRITERIA_TYPE_SCORE,
    CRITERIA_TYPE_STREAK,
    CRITERIA_TYPE_TOTAL,
    CRITERIA_TYPE_CHALLENGE,
)

# Progress categories: the score categories, the component categories, and overall
PROGRESS_CATEGORY_OVERALL = "overall"
PROGRESS_CATEGORY_SLEEP = "sleep"
PROGRESS_CATEGORY_WATER = "water"
PROGRESS_CATEGORY_ACTIVITY = "activity"
PROGRESS_CATEGORY_NUTRITION = "nutrition"

# Component categories map to a raw component and its maximum points
PROGRESS_COMPONENT_CATEGORIES: Final[dict[str, tuple[str, int]]] = {
    PROGRESS_CATEGORY_SLEEP: (COMPONENT_SLEEP, SLEEP_POINTS_FULL),
    PROGRESS_CATEGORY_WATER: (COMPONENT_WATER, WATER_POINTS_FULL),
    PROGRESS_CATEGORY_ACTIVITY: (COMPONENT_EXERCISE, EXERCISE_POINTS),
    PROGRESS_CATEGORY_NUTRITION: (COMPONENT_MEALS, MEAL_POINTS_MAX),
}

PROGRESS_CATEGORY_OPTIONS: Final[tuple[str, ...]] = (
    *SCORE_CATEGORIES,
    *PROGRESS_COMPONENT_CATEGORIES,
    PROGRESS_CATEGORY_OVERALL,
)

PROGRESS_MIN = 0
PROGRESS_MAX = 100

# ------------------------------------------------------------------------------------------------
# Badges
# ------------------------------------------------------------------------------------------------
DATA_BADGE_ID = "id"
DATA_BADGE_NAME = "name"
DATA_BADGE_DESCRIPTION = "description"
DATA_BADGE_CATEGORY = "category"
DATA_BADGE_TIER = "tier"
DATA_BADGE_CRITERIA_TYPE = "criteria_type"
DATA_BADGE_TARGET = "target"
DATA_BADGE_POINTS_REWARD = "points_reward"

BADGE_TIER_BRONZE = "bronze"
BADGE_TIER_SILVER = "silver"
BADGE_TIER_GOLD = "gold"
BADGE_TIER_PLATINUM = "platinum"
BADGE_TIER_OPTIONS: Final[tuple[str, ...]] = (
    BADGE_TIER_BRONZE,
    BADGE_TIER_SILVER,
    BADGE_TIER_GOLD,
    BADGE_TIER_PLATINUM,
)

# Reward grant keys
DATA_REWARD_POINTS = "points"
DATA_REWARD_BADGE_ID = "badge_id"
DATA_REWARD_CHALLENGE_ID = "challenge_id"

# ------------------------------------------------------------------------------------------------
# Signals (emitted by managers after a committed change)
# ------------------------------------------------------------------------------------------------
SIGNAL_HABIT_LOGGED = "habit_logged"
SIGNAL_HABIT_UPDATED = "habit_updated"
SIGNAL_HABIT_DELETED = "habit_deleted"
SIGNAL_STATS_REFRESHED = "stats_refreshed"
SIGNAL_CHALLENGE_COMPLETED = "challenge_completed"
SIGNAL_CHALLENGE_EXPIRED = "challenge_expired"
SIGNAL_BADGE_EARNED = "badge_earned"
