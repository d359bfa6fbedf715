"""Base manager class for HabitPulse managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.economy_engine import EconomyEngine
from ..exceptions import StaleWriteError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ..coordinator import HabitPulseCoordinator
    from ..type_defs import PointsEvent, UserRecord

    # Returns the top-level fields to write, or None when nothing changed.
    RecordMutator = Callable[[UserRecord], dict[str, Any] | None]


class BaseManager(ABC):
    """Base class for all HabitPulse managers with scoped event support.

    Provides:
    - Event emitting (async_emit) and listening (listen) through the
      coordinator's dispatcher
    - The per-user lock shared by every manager
    - _async_commit(): read-modify-write of the user record under the lock,
      with a version check and bounded retry on StaleWriteError

    Data Persistence:
    - Every user record change goes through _async_commit() (or
      _async_commit_locked() when the caller already holds the lock)
    - Mutators must be free of side effects; they are re-run on retry
    - Emit signals only after the lock is released

    Subclasses must implement:
    - async_setup(): Subscribe to events, initialize state
    """

    def __init__(self, coordinator: HabitPulseCoordinator) -> None:
        """Initialize manager.

        Args:
            coordinator: Parent coordinator owning the store, catalog and options
        """
        self.coordinator = coordinator
        self.store = coordinator.store
        self.catalog = coordinator.catalog
        self.options = coordinator.options

    async def async_emit(self, signal: str, **payload: Any) -> None:
        """Emit an event to other managers and await their handlers.

        Example:
            await self.async_emit(
                const.SIGNAL_HABIT_LOGGED,
                user_id=user_id,
                entry_id=entry["id"],
            )
        """
        const.LOGGER.debug(
            "Emitting event '%s' with payload keys: %s", signal, list(payload.keys())
        )
        await self.coordinator.async_dispatch(signal, payload)

    def listen(self, signal: str, callback: Callable[..., Any]) -> None:
        """Subscribe to an event.

        Supports both sync and async callbacks; the callback receives the
        payload dict as its only argument.
        """
        self.coordinator.async_connect(signal, callback)
        const.LOGGER.debug(
            "Manager %s listening to event '%s'", self.__class__.__name__, signal
        )

    def _get_lock(self, user_id: str) -> asyncio.Lock:
        """Return the lock serializing writes to one user's record."""
        return self.coordinator.get_user_lock(user_id)

    # =========================================================================
    # Commits
    # =========================================================================

    async def _async_commit(
        self, user_id: str, mutate: RecordMutator
    ) -> UserRecord:
        """Apply a mutation to the user record under the user's lock.

        Returns:
            The record as committed (or as read, if nothing changed).
        """
        async with self._get_lock(user_id):
            return await self._async_commit_locked(user_id, mutate)

    async def _async_commit_locked(
        self, user_id: str, mutate: RecordMutator
    ) -> UserRecord:
        """Commit loop; the caller must hold the user's lock.

        Raises:
            StaleWriteError: If every attempt lost the version race.
        """
        retries = self.options[const.CONF_COMMIT_RETRIES]
        attempt = 0
        while True:
            record = await self.store.async_load_user_record(user_id)
            version = record[const.DATA_USER_VERSION]
            updated_fields = mutate(record)
            if not updated_fields:
                return record

            try:
                new_version = await self.store.async_persist_score_and_stats(
                    user_id, updated_fields, version
                )
            except StaleWriteError as err:
                attempt += 1
                if attempt > retries:
                    const.LOGGER.error(
                        "ERROR: Giving up on commit for user %s after %s attempts: %s",
                        user_id,
                        attempt,
                        err,
                    )
                    raise
                const.LOGGER.warning(
                    "WARNING: Stale write for user %s (attempt %s), retrying",
                    user_id,
                    attempt,
                )
                continue

            record.update(updated_fields)
            record[const.DATA_USER_VERSION] = new_version
            return record

    def _fold_events(
        self, record: UserRecord, events: Iterable[PointsEvent]
    ) -> dict[str, Any]:
        """Fold point events into the record and return the fields to write."""
        folded = record
        for event in events:
            folded = EconomyEngine.fold_event(
                folded,
                event,
                max_entries=self.options[const.CONF_LEDGER_MAX_ENTRIES],
                max_age_days=self.options[const.CONF_LEDGER_RETENTION_DAYS],
            )
        return {
            const.DATA_USER_POINTS: folded.get(const.DATA_USER_POINTS, 0.0),
            const.DATA_USER_LEDGER: folded.get(const.DATA_USER_LEDGER, []),
            const.DATA_USER_EARNED_BADGES: folded.get(
                const.DATA_USER_EARNED_BADGES, []
            ),
            const.DATA_USER_COMPLETED_CHALLENGES: folded.get(
                const.DATA_USER_COMPLETED_CHALLENGES, []
            ),
            const.DATA_STATS: folded.get(const.DATA_STATS, {}),
        }

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager (subscribe to events, initialize state).

        Called once during coordinator setup.
        """
