# File: store.py
"""Storage seam for HabitPulse.

HabitPulseStore is the interface the managers persist through; MemoryStore
is an in-process implementation holding snapshot copies. A concrete database
adapter implements the same abstract methods.

Two kinds of data:
- Habit entries, keyed by user then entry ID
- One user record per user (stats, points, ledger, earned badges, completed
  challenges, challenge instances), versioned for compare-and-swap writes
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import copy
from typing import TYPE_CHECKING, Any

from . import const
from .data_builders import build_user_record
from .exceptions import StaleWriteError
from .utils.dt_utils import day_key

if TYPE_CHECKING:
    from .type_defs import ActiveChallengeInstance, DayLike, HabitEntry, UserRecord


class HabitPulseStore(ABC):
    """Abstract async storage used by the managers.

    Every read returns a snapshot the caller may mutate freely. The only
    write to a user record is async_persist_score_and_stats(), which must
    fail with StaleWriteError when the stored version differs from the one
    the caller read.
    """

    @abstractmethod
    async def async_load_habit_entries(
        self,
        user_id: str,
        date_range: tuple[DayLike, DayLike] | None = None,
    ) -> list[HabitEntry]:
        """Return the user's entries ordered by day, optionally within a range."""

    @abstractmethod
    async def async_get_habit_entry(
        self, user_id: str, entry_id: str
    ) -> HabitEntry | None:
        """Return one entry, or None if it does not exist."""

    @abstractmethod
    async def async_save_habit_entry(self, user_id: str, entry: HabitEntry) -> None:
        """Insert or replace an entry."""

    @abstractmethod
    async def async_delete_habit_entry(
        self, user_id: str, entry_id: str
    ) -> HabitEntry | None:
        """Remove an entry and return it, or None if it did not exist."""

    @abstractmethod
    async def async_load_user_record(self, user_id: str) -> UserRecord:
        """Return the user's record, creating an empty one on first access."""

    @abstractmethod
    async def async_persist_score_and_stats(
        self,
        user_id: str,
        updated_fields: dict[str, Any],
        expected_version: int,
    ) -> int:
        """Write top-level record fields if the version still matches.

        Returns:
            The new record version.

        Raises:
            StaleWriteError: If another writer committed first.
        """

    async def async_load_active_challenges(
        self, user_id: str
    ) -> list[ActiveChallengeInstance]:
        """Return the user's non-terminal challenge instances."""
        record = await self.async_load_user_record(user_id)
        return [
            instance
            for instance in record[const.DATA_USER_CHALLENGES].values()
            if instance["state"] == const.CHALLENGE_STATE_ACTIVE
        ]

    async def async_load_earned_badges(self, user_id: str) -> set[str]:
        """Return the IDs of badges the user holds."""
        record = await self.async_load_user_record(user_id)
        return set(record[const.DATA_USER_EARNED_BADGES])


class MemoryStore(HabitPulseStore):
    """In-memory HabitPulseStore.

    Reads and writes copy data in and out so callers never share mutable
    state with the store. Each method completes without awaiting, so a
    version check and its write cannot interleave with another coroutine.
    """

    def __init__(self, initial_data: dict[str, Any] | None = None) -> None:
        """Initialize the store.

        Args:
            initial_data: Optional existing structure (see get_default_structure)
        """
        self._data: dict[str, Any] = (
            copy.deepcopy(initial_data)
            if initial_data is not None
            else MemoryStore.get_default_structure()
        )

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure.

        Returns:
            dict: Default structure with all buckets initialized.
        """
        return {
            const.DATA_USERS: {},
            const.DATA_HABITS: {},
        }

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data."""
        return self._data

    # =========================================================================
    # Habit Entries
    # =========================================================================

    async def async_load_habit_entries(
        self,
        user_id: str,
        date_range: tuple[DayLike, DayLike] | None = None,
    ) -> list[HabitEntry]:
        """Return the user's entries ordered by day then creation time."""
        entries = list(self._data[const.DATA_HABITS].get(user_id, {}).values())

        if date_range is not None:
            start, end = (day_key(value) for value in date_range)
            entries = [
                entry
                for entry in entries
                if start <= day_key(entry[const.DATA_HABIT_DATE]) <= end
            ]

        entries.sort(
            key=lambda entry: (
                entry[const.DATA_HABIT_DATE],
                entry.get(const.DATA_HABIT_CREATED_AT) or "",
            )
        )
        return copy.deepcopy(entries)

    async def async_get_habit_entry(
        self, user_id: str, entry_id: str
    ) -> HabitEntry | None:
        """Return a copy of one entry, or None."""
        entry = self._data[const.DATA_HABITS].get(user_id, {}).get(entry_id)
        return copy.deepcopy(entry) if entry is not None else None

    async def async_save_habit_entry(self, user_id: str, entry: HabitEntry) -> None:
        """Insert or replace an entry."""
        self._data[const.DATA_HABITS].setdefault(user_id, {})[entry["id"]] = (
            copy.deepcopy(entry)
        )
        const.LOGGER.debug(
            "DEBUG: Saved habit entry %s for user %s", entry["id"], user_id
        )

    async def async_delete_habit_entry(
        self, user_id: str, entry_id: str
    ) -> HabitEntry | None:
        """Remove an entry and return it, or None."""
        return self._data[const.DATA_HABITS].get(user_id, {}).pop(entry_id, None)

    # =========================================================================
    # User Records
    # =========================================================================

    async def async_load_user_record(self, user_id: str) -> UserRecord:
        """Return a copy of the user's record, creating it if needed."""
        users = self._data[const.DATA_USERS]
        if user_id not in users:
            const.LOGGER.debug("DEBUG: Creating empty record for user %s", user_id)
            users[user_id] = build_user_record()
        return copy.deepcopy(users[user_id])

    async def async_persist_score_and_stats(
        self,
        user_id: str,
        updated_fields: dict[str, Any],
        expected_version: int,
    ) -> int:
        """Compare-and-swap write of top-level record fields."""
        users = self._data[const.DATA_USERS]
        record = users.setdefault(user_id, build_user_record())

        actual_version = record[const.DATA_USER_VERSION]
        if actual_version != expected_version:
            raise StaleWriteError(user_id, expected_version, actual_version)

        for key, value in updated_fields.items():
            if key == const.DATA_USER_VERSION:
                continue
            record[key] = copy.deepcopy(value)

        record[const.DATA_USER_VERSION] = actual_version + 1
        const.LOGGER.debug(
            "DEBUG: Persisted fields %s for user %s (version %s)",
            sorted(updated_fields),
            user_id,
            record[const.DATA_USER_VERSION],
        )
        return record[const.DATA_USER_VERSION]
