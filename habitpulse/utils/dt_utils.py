# File: utils/dt_utils.py
"""Date and time utilities for HabitPulse.

Pure Python date/time functions used by every engine that buckets entries by
calendar day. All functions can be unit tested without any storage or
manager setup.

DAY KEY POLICY: a "day" is the calendar date at local midnight in the
configured default timezone (UTC unless set_default_timezone() is called).
Aware datetimes are converted into that zone before truncation. Naive
datetimes are taken as local wall time and truncated as-is.

Functions:
    - set_default_timezone: Configure the local zone
    - dt_today_local / dt_today_iso: Today's date in the local zone
    - dt_now_local / dt_now_utc: Current datetime helpers
    - as_local: Convert an aware datetime into the local zone
    - dt_parse_date: Parse plain date strings
    - day_key / day_key_iso: Truncate any date-like value to its calendar day
    - is_same_day / is_consecutive_day / days_between: Day arithmetic
    - is_today / is_yesterday: Relative day checks
    - iter_days / window_ending: Inclusive day ranges
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
import logging
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

# Third-party date utilities
from dateutil.parser import isoparse

from ..exceptions import InvalidDateError, InvalidRangeError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..type_defs import DayLike

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Accepted non-ISO day formats; day-first and month-first are both rejected
_DAY_FORMATS = ("%Y/%m/%d",)


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in the local timezone (timezone-aware).

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.
    """
    return datetime.now(tz or DEFAULT_TIME_ZONE)


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in the local timezone.

    Example:
        datetime.date(2025, 4, 7)
    """
    return dt_now_local(tz).date()


def dt_today_iso(tz: ZoneInfo | None = None) -> str:
    """Return today's date in the local timezone as ISO string (YYYY-MM-DD)."""
    return dt_today_local(tz).isoformat()


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to the local timezone.

    Naive datetimes are assumed to already be local wall time.

    Args:
        dt_obj: Datetime object
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in the local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=tz_info)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a plain date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025/04/07"

    Slash dates that lead with the day or month ("04/07/2025") are
    ambiguous and are not accepted.

    Returns:
        datetime.date or None if the string is not a plain date.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    for fmt in _DAY_FORMATS:
        try:
            parsed = datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
        _LOGGER.debug("Parsed non-ISO date %s using format %s", date_str, fmt)
        return parsed

    return None


# ==============================================================================
# Day Keys
# ==============================================================================


def day_key(value: DayLike, tz: ZoneInfo | None = None) -> date:
    """Truncate a date-like value to its local calendar day.

    Args:
        value: date, datetime, or date/datetime string
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        The calendar day the value falls on in the local timezone.

    Raises:
        InvalidDateError: If the value is missing, of an unsupported type,
            or cannot be parsed.

    Examples:
        day_key("2025-01-15") → date(2025, 1, 15)
        day_key("2025-01-15T23:30:00-05:00") → date(2025, 1, 16)  # UTC zone
    """
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return as_local(value, tz).date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidDateError(value, "empty string")

        parsed_day = dt_parse_date(text)
        if parsed_day is not None:
            return parsed_day

        try:
            parsed = isoparse(text)
        except (ValueError, OverflowError) as err:
            raise InvalidDateError(value, str(err)) from err
        return as_local(parsed, tz).date()

    raise InvalidDateError(value, f"unsupported type {type(value).__name__}")


def day_key_iso(value: DayLike, tz: ZoneInfo | None = None) -> str:
    """Return day_key() as an ISO string (YYYY-MM-DD)."""
    return day_key(value, tz).isoformat()


def days_between(start: DayLike, end: DayLike, tz: ZoneInfo | None = None) -> int:
    """Return the signed number of calendar days from start to end.

    The result is >= 0 whenever start falls on or before end.

    Examples:
        days_between("2025-01-01", "2025-01-08") → 7
        days_between("2025-01-01T23:59:00", "2025-01-02T00:01:00") → 1
    """
    return (day_key(end, tz) - day_key(start, tz)).days


def is_same_day(first: DayLike, second: DayLike, tz: ZoneInfo | None = None) -> bool:
    """Return True when both values fall on the same local calendar day."""
    return day_key(first, tz) == day_key(second, tz)


def is_consecutive_day(
    earlier: DayLike, later: DayLike, tz: ZoneInfo | None = None
) -> bool:
    """Return True when later falls exactly one calendar day after earlier."""
    return days_between(earlier, later, tz) == 1


def is_today(
    value: DayLike, now: DayLike | None = None, tz: ZoneInfo | None = None
) -> bool:
    """Return True when value falls on the same local day as now."""
    reference = day_key(now, tz) if now is not None else dt_today_local(tz)
    return day_key(value, tz) == reference


def is_yesterday(
    value: DayLike, now: DayLike | None = None, tz: ZoneInfo | None = None
) -> bool:
    """Return True when value falls on the local day before now."""
    reference = day_key(now, tz) if now is not None else dt_today_local(tz)
    return (reference - day_key(value, tz)).days == 1


def iter_days(
    start: DayLike, end: DayLike, tz: ZoneInfo | None = None
) -> Iterator[date]:
    """Yield every calendar day from start to end inclusive.

    Raises:
        InvalidRangeError: If end falls before start.
    """
    first = day_key(start, tz)
    last = day_key(end, tz)
    if last < first:
        raise InvalidRangeError(first, last)

    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def window_ending(
    end: DayLike, length: int, tz: ZoneInfo | None = None
) -> tuple[date, date]:
    """Return the (start, end) days of a window of `length` days ending on end.

    Examples:
        window_ending("2025-01-15", 7) → (date(2025, 1, 9), date(2025, 1, 15))
    """
    if length < 1:
        raise ValueError(f"Window length must be at least 1, got {length}")
    last = day_key(end, tz)
    return last - timedelta(days=length - 1), last
