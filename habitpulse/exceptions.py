"""Exception types raised by HabitPulse engines, store, and managers.

Engines raise these and never log; managers log before re-raising. A grant
that has already been applied is not an error and never raises.
"""

from __future__ import annotations

from typing import Any


class HabitPulseError(Exception):
    """Base class for all HabitPulse errors."""


class InvalidDateError(HabitPulseError):
    """Raised when a value cannot be interpreted as a calendar day.

    Attributes:
        value: The rejected input
    """

    def __init__(self, value: Any, reason: str = "") -> None:
        """Initialize InvalidDateError.

        Args:
            value: The rejected input
            reason: Optional explanation appended to the message
        """
        self.value = value
        message = f"Invalid date value: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidHabitDataError(HabitPulseError):
    """Raised when a raw habit entry fails validation.

    The field attribute names the first input key that failed, so callers
    can map the error back to the form field or request parameter.

    Attributes:
        field: The offending DATA_HABIT_* key
        reason: Human-readable explanation
    """

    def __init__(self, field: str, reason: str) -> None:
        """Initialize InvalidHabitDataError.

        Args:
            field: The offending DATA_HABIT_* key
            reason: Human-readable explanation
        """
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid habit data for '{field}': {reason}")


class InvalidDefinitionError(HabitPulseError):
    """Raised when a challenge or badge definition is malformed.

    Attributes:
        definition_id: ID of the definition, if known
        field: The offending key
    """

    def __init__(self, definition_id: str | None, field: str, reason: str) -> None:
        """Initialize InvalidDefinitionError."""
        self.definition_id = definition_id
        self.field = field
        self.reason = reason
        super().__init__(
            f"Invalid definition {definition_id!r} field '{field}': {reason}"
        )


class InvalidRangeError(HabitPulseError):
    """Raised when a date range ends before it starts."""

    def __init__(self, start: Any, end: Any) -> None:
        """Initialize InvalidRangeError.

        Args:
            start: Range start as given
            end: Range end as given
        """
        self.start = start
        self.end = end
        super().__init__(f"Invalid range: end {end} is before start {start}")


class NotFoundError(HabitPulseError):
    """Raised when a referenced habit, challenge, or badge does not exist.

    Attributes:
        entity_type: "habit", "challenge" or "badge"
        entity_id: The unknown ID
    """

    def __init__(self, entity_type: str, entity_id: str) -> None:
        """Initialize NotFoundError."""
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"Unknown {entity_type}: {entity_id}")


class ComputationError(HabitPulseError):
    """Raised when an engine detects a violated internal invariant.

    This always indicates a logic bug, never bad user input.
    """


class StaleWriteError(HabitPulseError):
    """Raised by a store when a conditional write loses a version race.

    Attributes:
        user_id: The user whose record was written
        expected_version: Version the writer read
        actual_version: Version found in the store
    """

    def __init__(
        self, user_id: str, expected_version: int, actual_version: int
    ) -> None:
        """Initialize StaleWriteError."""
        self.user_id = user_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Stale write for user {user_id}: "
            f"expected version {expected_version}, found {actual_version}"
        )
