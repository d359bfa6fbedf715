"""Habit Manager - Habit entry lifecycle and its point events.

Handles:
- Logging, updating and deleting habit entries
- Explicit score recomputation through data_builders.build_habit_entry()
- Point events: a logged entry adds its score, an edit adds the score
  difference, a deletion reverses the entry's score
- Entry writes are reverted when their points commit fails

ARCHITECTURE:
- HabitManager = "The Job" (STATEFUL, owns entry writes)
- ScoreEngine = Pure scoring logic (STATELESS)
- StatisticsManager / GamificationManager react to the HABIT_* signals
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import build_habit_entry
from ..engines.economy_engine import EconomyEngine
from ..exceptions import NotFoundError, StaleWriteError
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import DayLike, HabitEntry


class HabitManager(BaseManager):
    """Manager for habit entry create/update/delete."""

    async def async_setup(self) -> None:
        """Nothing to subscribe to; other managers listen to this one."""
        const.LOGGER.debug("HabitManager setup complete")

    async def async_log_habit(
        self,
        user_id: str,
        raw_entry: dict[str, Any],
        *,
        now: DayLike | None = None,
    ) -> HabitEntry:
        """Validate, score and store a new entry, then credit its points.

        Args:
            user_id: Owner of the entry
            raw_entry: Raw input with DATA_HABIT_* keys
            now: Reference moment for dating and downstream evaluation

        Returns:
            The stored HabitEntry

        Raises:
            InvalidHabitDataError: If the input fails validation.
            InvalidDateError: If the entry date cannot be interpreted.
            StaleWriteError: If the points commit keeps losing the version
                race. The entry is removed again before this propagates.
        """
        entry = build_habit_entry(user_id, raw_entry, now=now)
        event = EconomyEngine.make_event(
            const.EVENT_HABIT_LOGGED,
            entry["score"]["total"],
            entry["id"],
            item_name=entry["date"],
        )

        async with self._get_lock(user_id):
            await self.store.async_save_habit_entry(user_id, entry)
            try:
                await self._async_commit_locked(
                    user_id, lambda record: self._fold_events(record, [event])
                )
            except StaleWriteError:
                await self.store.async_delete_habit_entry(user_id, entry["id"])
                self._log_rollback("log", entry["id"], user_id)
                raise

        const.LOGGER.info(
            "INFO: Logged habit %s for user %s on %s (score %s)",
            entry["id"],
            user_id,
            entry["date"],
            entry["score"]["total"],
        )
        await self.async_emit(
            const.SIGNAL_HABIT_LOGGED,
            user_id=user_id,
            entry_id=entry["id"],
            date=entry["date"],
            now=now,
        )
        return entry

    async def async_update_habit(
        self,
        user_id: str,
        entry_id: str,
        changes: dict[str, Any],
        *,
        now: DayLike | None = None,
    ) -> HabitEntry:
        """Apply changes to an entry and credit or debit the score difference.

        Raises:
            NotFoundError: If the entry does not exist.
            InvalidHabitDataError: If the merged entry fails validation.
        """
        async with self._get_lock(user_id):
            existing = await self.store.async_get_habit_entry(user_id, entry_id)
            if existing is None:
                const.LOGGER.error(
                    "ERROR: Update of unknown habit %s for user %s", entry_id, user_id
                )
                raise NotFoundError("habit", entry_id)

            entry = build_habit_entry(user_id, changes, existing)
            await self.store.async_save_habit_entry(user_id, entry)

            delta = entry["score"]["total"] - existing["score"]["total"]
            if delta:
                event = EconomyEngine.make_event(
                    const.EVENT_HABIT_UPDATED, delta, entry_id, item_name=entry["date"]
                )
                try:
                    await self._async_commit_locked(
                        user_id, lambda record: self._fold_events(record, [event])
                    )
                except StaleWriteError:
                    await self.store.async_save_habit_entry(user_id, existing)
                    self._log_rollback("update", entry_id, user_id)
                    raise

        const.LOGGER.debug(
            "DEBUG: Updated habit %s for user %s (score delta %s)",
            entry_id,
            user_id,
            delta,
        )
        await self.async_emit(
            const.SIGNAL_HABIT_UPDATED,
            user_id=user_id,
            entry_id=entry_id,
            date=entry["date"],
            now=now,
        )
        return entry

    async def async_delete_habit(
        self,
        user_id: str,
        entry_id: str,
        *,
        now: DayLike | None = None,
    ) -> HabitEntry:
        """Delete an entry and reverse its points.

        Raises:
            NotFoundError: If the entry does not exist.
        """
        async with self._get_lock(user_id):
            removed = await self.store.async_delete_habit_entry(user_id, entry_id)
            if removed is None:
                const.LOGGER.error(
                    "ERROR: Delete of unknown habit %s for user %s", entry_id, user_id
                )
                raise NotFoundError("habit", entry_id)

            event = EconomyEngine.make_event(
                const.EVENT_HABIT_DELETED,
                removed["score"]["total"],
                entry_id,
                item_name=removed["date"],
            )
            try:
                await self._async_commit_locked(
                    user_id, lambda record: self._fold_events(record, [event])
                )
            except StaleWriteError:
                await self.store.async_save_habit_entry(user_id, removed)
                self._log_rollback("delete", entry_id, user_id)
                raise

        const.LOGGER.info("INFO: Deleted habit %s for user %s", entry_id, user_id)
        await self.async_emit(
            const.SIGNAL_HABIT_DELETED,
            user_id=user_id,
            entry_id=entry_id,
            date=removed["date"],
            now=now,
        )
        return removed

    async def async_get_habits(
        self,
        user_id: str,
        start: DayLike | None = None,
        end: DayLike | None = None,
    ) -> list[HabitEntry]:
        """Return the user's entries, optionally limited to [start, end]."""
        date_range = (start, end) if start is not None and end is not None else None
        return await self.store.async_load_habit_entries(user_id, date_range)

    @staticmethod
    def _log_rollback(action: str, entry_id: str, user_id: str) -> None:
        const.LOGGER.error(
            "ERROR: Reverted %s of habit %s for user %s after a failed points commit",
            action,
            entry_id,
            user_id,
        )
