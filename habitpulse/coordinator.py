# File: coordinator.py
"""Coordinator for HabitPulse.

Owns the store, the catalog and the validated options, wires the managers
together through a small signal dispatcher, and hands out the per-user
locks every manager commits under.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
import inspect
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import voluptuous as vol

from . import const
from .catalog import Catalog
from .exceptions import InvalidDefinitionError
from .managers import GamificationManager, HabitManager, StatisticsManager
from .store import HabitPulseStore, MemoryStore
from .utils.dt_utils import set_default_timezone

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


def _timezone_name(value: Any) -> str:
    """Validate an IANA timezone name."""
    if not isinstance(value, str) or not value:
        raise vol.Invalid("timezone must be a non-empty string")
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as err:
        raise vol.Invalid(f"unknown timezone {value!r}") from err
    return value


_POSITIVE_INT = vol.All(vol.Coerce(int), vol.Range(min=1))

OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.CONF_TIMEZONE, default=const.DEFAULT_TIMEZONE): (
            _timezone_name
        ),
        vol.Optional(
            const.CONF_COMPLETION_THRESHOLD,
            default=const.DEFAULT_COMPLETION_THRESHOLD,
        ): vol.All(vol.Coerce(float), vol.Range(min=0, max=100)),
        vol.Optional(
            const.CONF_TREND_WINDOW_DAYS, default=const.DEFAULT_TREND_WINDOW_DAYS
        ): _POSITIVE_INT,
        vol.Optional(
            const.CONF_BADGE_LOOKBACK_DAYS, default=const.DEFAULT_BADGE_LOOKBACK_DAYS
        ): _POSITIVE_INT,
        vol.Optional(
            const.CONF_LEDGER_MAX_ENTRIES, default=const.DEFAULT_LEDGER_MAX_ENTRIES
        ): _POSITIVE_INT,
        vol.Optional(
            const.CONF_LEDGER_RETENTION_DAYS,
            default=const.DEFAULT_LEDGER_RETENTION_DAYS,
        ): _POSITIVE_INT,
        vol.Optional(
            const.CONF_COMMIT_RETRIES, default=const.DEFAULT_COMMIT_RETRIES
        ): vol.All(vol.Coerce(int), vol.Range(min=0)),
    }
)


def validate_options(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Validate options and fill in defaults.

    Raises:
        InvalidDefinitionError: If an option is unknown or out of range.
    """
    try:
        return OPTIONS_SCHEMA(dict(options or {}))
    except vol.MultipleInvalid as err:
        first = err.errors[0]
        field = str(first.path[0]) if first.path else "options"
        raise InvalidDefinitionError("options", field, first.msg) from err


class HabitPulseCoordinator:
    """Wires the store, catalog and managers for one HabitPulse instance.

    Example:
        coordinator = HabitPulseCoordinator(options={"timezone": "Europe/Paris"})
        await coordinator.async_setup()
        entry = await coordinator.habit_manager.async_log_habit("user-1", raw)
    """

    def __init__(
        self,
        store: HabitPulseStore | None = None,
        catalog: Catalog | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Raises:
            InvalidDefinitionError: On invalid options or catalog definitions.
        """
        self.options = validate_options(options)
        self.store = store if store is not None else MemoryStore()
        self.catalog = catalog if catalog is not None else Catalog()

        self._listeners: defaultdict[str, list[Callable[..., Any]]] = defaultdict(
            list
        )
        self._user_locks: dict[str, asyncio.Lock] = {}

        self.habit_manager = HabitManager(self)
        self.statistics_manager = StatisticsManager(self)
        self.gamification_manager = GamificationManager(self)

    async def async_setup(self) -> None:
        """Apply the timezone and set up every manager.

        The statistics manager subscribes before the gamification manager,
        so stats refresh first after each entry change.
        """
        set_default_timezone(ZoneInfo(self.options[const.CONF_TIMEZONE]))
        await self.habit_manager.async_setup()
        await self.statistics_manager.async_setup()
        await self.gamification_manager.async_setup()
        const.LOGGER.info(
            "INFO: HabitPulse coordinator ready (timezone %s, %s challenges, "
            "%s badges)",
            self.options[const.CONF_TIMEZONE],
            len(self.catalog.challenges),
            len(self.catalog.badges),
        )

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    def async_connect(
        self, signal: str, callback: Callable[..., Any]
    ) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners[signal].append(callback)

        def _remove() -> None:
            if callback in self._listeners[signal]:
                self._listeners[signal].remove(callback)

        return _remove

    async def async_dispatch(self, signal: str, payload: dict[str, Any]) -> None:
        """Call every listener of a signal in registration order.

        Each listener gets its own copy of the payload. Coroutine results are
        awaited before the next listener runs.
        """
        for callback in list(self._listeners.get(signal, [])):
            result = callback(dict(payload))
            if inspect.isawaitable(result):
                await result

    # -------------------------------------------------------------------------
    # Locks
    # -------------------------------------------------------------------------

    def get_user_lock(self, user_id: str) -> asyncio.Lock:
        """Return the lock serializing writes to one user's record."""
        if user_id not in self._user_locks:
            self._user_locks[user_id] = asyncio.Lock()
        return self._user_locks[user_id]
