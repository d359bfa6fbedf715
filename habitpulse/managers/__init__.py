"""Manager modules for HabitPulse.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and own every write to a user record.
"""

from .base_manager import BaseManager
from .gamification_manager import GamificationManager
from .habit_manager import HabitManager
from .statistics_manager import StatisticsManager

__all__ = [
    "BaseManager",
    "GamificationManager",
    "HabitManager",
    "StatisticsManager",
]
