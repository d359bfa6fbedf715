"""Shared test data for HabitPulse tests.

    from tests.helpers import EMPTY_DAY, PERFECT_DAY, USER_ID
"""

from __future__ import annotations

from typing import Any

from habitpulse import const

USER_ID = "user-1"

# Every component at its maximum: raw sum 130, clamped total 100
PERFECT_DAY: dict[str, Any] = {
    const.DATA_HABIT_SLEEP_HOURS: 7,
    const.DATA_HABIT_WATER_INTAKE: 2.5,
    const.DATA_HABIT_EXERCISE_DONE: True,
    const.DATA_HABIT_HEALTHY_MEALS: 3,
    const.DATA_HABIT_MOOD: const.MOOD_GREAT,
    const.DATA_HABIT_PRODUCTIVITY_LEVEL: const.PRODUCTIVITY_HIGH,
}

# Every component at zero
EMPTY_DAY: dict[str, Any] = {
    const.DATA_HABIT_SLEEP_HOURS: 4,
    const.DATA_HABIT_WATER_INTAKE: 0.5,
    const.DATA_HABIT_EXERCISE_DONE: False,
    const.DATA_HABIT_HEALTHY_MEALS: 0,
    const.DATA_HABIT_MOOD: const.MOOD_SAD,
    const.DATA_HABIT_PRODUCTIVITY_LEVEL: const.PRODUCTIVITY_LOW,
}

# total 80: sleep 20, water 20, meals 20, mood 20
EIGHTY_DAY: dict[str, Any] = {
    const.DATA_HABIT_SLEEP_HOURS: 7,
    const.DATA_HABIT_WATER_INTAKE: 2.5,
    const.DATA_HABIT_EXERCISE_DONE: False,
    const.DATA_HABIT_HEALTHY_MEALS: 2,
    const.DATA_HABIT_MOOD: const.MOOD_GREAT,
    const.DATA_HABIT_PRODUCTIVITY_LEVEL: const.PRODUCTIVITY_LOW,
}

# total 40: exercise 20, mood 20
FORTY_DAY: dict[str, Any] = {
    const.DATA_HABIT_SLEEP_HOURS: 4,
    const.DATA_HABIT_WATER_INTAKE: 0.5,
    const.DATA_HABIT_EXERCISE_DONE: True,
    const.DATA_HABIT_HEALTHY_MEALS: 0,
    const.DATA_HABIT_MOOD: const.MOOD_GREAT,
    const.DATA_HABIT_PRODUCTIVITY_LEVEL: const.PRODUCTIVITY_LOW,
}
