# File: utils/__init__.py
"""Pure Python utilities for HabitPulse.

Submodules:
    - dt_utils: Day keys, day arithmetic, timezone configuration
    - math_utils: Half-up rounding, percentages, means

Usage:
    from . import dt_utils
    from .math_utils import round_half_up
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
