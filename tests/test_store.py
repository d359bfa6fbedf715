"""Tests for MemoryStore.

Test Categories:
- Habit entry persistence, range queries and ordering
- Snapshot isolation between the store and its callers
- Versioned compare-and-swap writes to the user record
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from habitpulse import MemoryStore, const
from habitpulse.exceptions import StaleWriteError
from tests.helpers import USER_ID

EntryFactory = Callable[..., dict[str, Any]]


# =============================================================================
# Test: Habit Entries
# =============================================================================


class TestHabitEntries:
    """Tests for entry storage."""

    async def test_save_and_get(self, make_entry: EntryFactory) -> None:
        """A saved entry can be read back by ID."""
        store = MemoryStore()
        entry = make_entry("2025-06-01")
        await store.async_save_habit_entry(USER_ID, entry)

        assert await store.async_get_habit_entry(USER_ID, entry["id"]) == entry
        assert await store.async_get_habit_entry(USER_ID, "missing") is None
        assert await store.async_get_habit_entry("someone-else", entry["id"]) is None

    async def test_entries_ordered_by_day(self, make_entry: EntryFactory) -> None:
        """Entries come back oldest day first whatever the insert order."""
        store = MemoryStore()
        for day in ("2025-06-03", "2025-06-01", "2025-06-02"):
            await store.async_save_habit_entry(USER_ID, make_entry(day))

        entries = await store.async_load_habit_entries(USER_ID)
        assert [entry["date"] for entry in entries] == [
            "2025-06-01",
            "2025-06-02",
            "2025-06-03",
        ]

    async def test_range_is_inclusive(self, make_entry: EntryFactory) -> None:
        """Both range bounds include their own day."""
        store = MemoryStore()
        for day in ("2025-06-01", "2025-06-02", "2025-06-03", "2025-06-04"):
            await store.async_save_habit_entry(USER_ID, make_entry(day))

        entries = await store.async_load_habit_entries(
            USER_ID, ("2025-06-02", "2025-06-03")
        )
        assert [entry["date"] for entry in entries] == ["2025-06-02", "2025-06-03"]

    async def test_delete_returns_entry(self, make_entry: EntryFactory) -> None:
        """Deleting returns the removed entry, then None."""
        store = MemoryStore()
        entry = make_entry("2025-06-01")
        await store.async_save_habit_entry(USER_ID, entry)

        assert await store.async_delete_habit_entry(USER_ID, entry["id"]) == entry
        assert await store.async_delete_habit_entry(USER_ID, entry["id"]) is None
        assert await store.async_load_habit_entries(USER_ID) == []

    async def test_unknown_user_has_no_entries(self) -> None:
        """No entries is an empty list, not an error."""
        assert await MemoryStore().async_load_habit_entries("nobody") == []


# =============================================================================
# Test: Snapshot Isolation
# =============================================================================


class TestSnapshots:
    """Tests that callers never share state with the store."""

    async def test_mutating_saved_entry_does_not_leak(
        self, make_entry: EntryFactory
    ) -> None:
        """The store keeps its own copy on save."""
        store = MemoryStore()
        entry = make_entry("2025-06-01")
        await store.async_save_habit_entry(USER_ID, entry)
        entry["notes"] = "changed afterwards"

        stored = await store.async_get_habit_entry(USER_ID, entry["id"])
        assert stored is not None
        assert stored["notes"] == ""

    async def test_mutating_loaded_record_does_not_leak(self) -> None:
        """Record reads are copies."""
        store = MemoryStore()
        record = await store.async_load_user_record(USER_ID)
        record[const.DATA_USER_POINTS] = 999.0
        record[const.DATA_USER_EARNED_BADGES].append("stolen")

        fresh = await store.async_load_user_record(USER_ID)
        assert fresh[const.DATA_USER_POINTS] == 0.0
        assert fresh[const.DATA_USER_EARNED_BADGES] == []

    def test_initial_data_is_copied(self) -> None:
        """Seed data is deep-copied on construction."""
        seed = MemoryStore.get_default_structure()
        store = MemoryStore(seed)
        seed[const.DATA_USERS]["intruder"] = {}
        assert store.data[const.DATA_USERS] == {}


# =============================================================================
# Test: Versioned Writes
# =============================================================================


class TestVersionedWrites:
    """Tests for compare-and-swap persistence."""

    async def test_new_record_starts_at_version_zero(self) -> None:
        """First access creates an empty record."""
        record = await MemoryStore().async_load_user_record(USER_ID)
        assert record[const.DATA_USER_VERSION] == 0
        assert record[const.DATA_USER_POINTS] == 0.0

    async def test_persist_bumps_version(self) -> None:
        """A matching version writes and increments."""
        store = MemoryStore()
        version = await store.async_persist_score_and_stats(
            USER_ID, {const.DATA_USER_POINTS: 42.0}, expected_version=0
        )
        assert version == 1

        record = await store.async_load_user_record(USER_ID)
        assert record[const.DATA_USER_POINTS] == 42.0
        assert record[const.DATA_USER_VERSION] == 1

    async def test_stale_version_rejected(self) -> None:
        """A writer holding an old version loses."""
        store = MemoryStore()
        await store.async_persist_score_and_stats(
            USER_ID, {const.DATA_USER_POINTS: 10.0}, expected_version=0
        )

        with pytest.raises(StaleWriteError) as exc_info:
            await store.async_persist_score_and_stats(
                USER_ID, {const.DATA_USER_POINTS: 20.0}, expected_version=0
            )
        assert exc_info.value.expected_version == 0
        assert exc_info.value.actual_version == 1

        record = await store.async_load_user_record(USER_ID)
        assert record[const.DATA_USER_POINTS] == 10.0

    async def test_version_field_cannot_be_overwritten(self) -> None:
        """The version only moves through the store."""
        store = MemoryStore()
        version = await store.async_persist_score_and_stats(
            USER_ID, {const.DATA_USER_VERSION: 50}, expected_version=0
        )
        assert version == 1

    async def test_active_challenges_and_badges(self) -> None:
        """Convenience readers filter the record."""
        store = MemoryStore()
        active_state = const.CHALLENGE_STATE_ACTIVE
        expired_state = const.CHALLENGE_STATE_EXPIRED_UNMET
        await store.async_persist_score_and_stats(
            USER_ID,
            {
                const.DATA_USER_EARNED_BADGES: ["early_bird"],
                const.DATA_USER_CHALLENGES: {
                    "a": {"challenge_id": "a", "state": active_state},
                    "b": {"challenge_id": "b", "state": expired_state},
                },
            },
            expected_version=0,
        )

        active = await store.async_load_active_challenges(USER_ID)
        assert [instance["challenge_id"] for instance in active] == ["a"]
        assert await store.async_load_earned_badges(USER_ID) == {"early_bird"}
