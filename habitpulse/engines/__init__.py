"""Engine modules for HabitPulse.

Contains specialized computation engines:
- score_engine: Entry validation and score breakdowns
- aggregation_engine: Daily aggregates, weekly series, trends, breakdowns
- streak_engine: Current and longest completion streaks
- gamification_engine: Challenge state machine, badge progress, rewards
- economy_engine: Points ledger and the per-user event reducer
"""

from .aggregation_engine import AggregationEngine
from .economy_engine import EconomyEngine
from .gamification_engine import GamificationEngine
from .score_engine import ScoreEngine
from .streak_engine import StreakEngine

__all__ = [
    "AggregationEngine",
    "EconomyEngine",
    "GamificationEngine",
    "ScoreEngine",
    "StreakEngine",
]
