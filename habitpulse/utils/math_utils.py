# File: utils/math_utils.py
"""Math and calculation utilities for HabitPulse.

Pure Python math functions shared by the engines.

Functions:
    - round_half_up: Commercial rounding (0.5 always rounds away from zero)
    - round_points: Consistent rounding of point values to configured precision
    - calculate_percentage: Progress percentage capped at 100
    - clamp: Bound a value to a range
    - mean: Arithmetic mean that returns 0.0 for no values
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import TYPE_CHECKING, overload

if TYPE_CHECKING:
    from collections.abc import Iterable

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# Default float precision for point rounding
DATA_FLOAT_PRECISION = 2

# Upper bound for percentages
PERCENT_MAX = 100


# ==============================================================================
# Rounding
# ==============================================================================


@overload
def round_half_up(value: float) -> int: ...


@overload
def round_half_up(value: float, precision: int) -> float: ...


def round_half_up(value: float, precision: int = 0) -> int | float:
    """Round half away from zero, unlike Python's banker's rounding.

    Goes through Decimal(str(value)) so that values such as 2.675 round the
    way they read rather than the way they are stored.

    Args:
        value: Value to round
        precision: Decimal places. 0 returns an int.

    Examples:
        round_half_up(62.5) → 63
        round_half_up(2.5) → 3   # round() gives 2
        round_half_up(10.125, 2) → 10.13
    """
    quantum = Decimal(1).scaleb(-precision)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if precision == 0:
        return int(rounded)
    return float(rounded)


def round_points(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a point value to the configured precision.

    Examples:
        round_points(10.456) → 10.46
        round_points(10.0) → 10.0
    """
    return round(value, precision)


# ==============================================================================
# Ranges and Percentages
# ==============================================================================


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
    """
    return max(min_val, min(value, max_val))


def calculate_percentage(current: float, target: float) -> int:
    """Calculate an integer progress percentage, capped at 100.

    Args:
        current: Current progress value
        target: Target value

    Returns:
        min(100, round_half_up(current / target * 100)), or 0 if target <= 0

    Examples:
        calculate_percentage(3, 7) → 43
        calculate_percentage(12, 10) → 100
        calculate_percentage(5, 0) → 0  # Division by zero protection
    """
    if target <= 0:
        _LOGGER.debug("Percentage requested against non-positive target %s", target)
        return 0
    return min(PERCENT_MAX, round_half_up((current / target) * 100))


def mean(values: Iterable[float]) -> float:
    """Return the arithmetic mean of values, or 0.0 when there are none."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)
