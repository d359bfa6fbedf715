"""Shared fixtures for HabitPulse tests.

Fixtures:
- reset_timezone (autouse): every test starts and ends on UTC day keys
- make_raw: factory for raw habit input (a perfect day unless overridden)
- make_entry: factory for stored HabitEntry dicts dated on a given day
- make_coordinator: factory for a set-up coordinator over a fresh MemoryStore
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from habitpulse import HabitPulseCoordinator, MemoryStore, const
from habitpulse.catalog import Catalog
from habitpulse.data_builders import build_habit_entry
from habitpulse.utils import dt_utils
from tests.helpers import PERFECT_DAY, USER_ID


@pytest.fixture(autouse=True)
def reset_timezone() -> Iterator[None]:
    """Pin the day-key timezone to UTC around each test."""
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(ZoneInfo("UTC"))


@pytest.fixture
def make_raw() -> Callable[..., dict[str, Any]]:
    """Return a factory for raw habit input."""

    def _make(**overrides: Any) -> dict[str, Any]:
        raw = dict(PERFECT_DAY)
        raw.update(overrides)
        return raw

    return _make


@pytest.fixture
def make_entry() -> Callable[..., dict[str, Any]]:
    """Return a factory for scored HabitEntry dicts on a given day."""

    def _make(day: str, **overrides: Any) -> dict[str, Any]:
        raw = dict(PERFECT_DAY)
        raw.update(overrides)
        raw[const.DATA_HABIT_DATE] = day
        return build_habit_entry(USER_ID, raw)

    return _make


@pytest.fixture
def make_coordinator() -> Callable[..., Awaitable[HabitPulseCoordinator]]:
    """Return a factory for a set-up coordinator.

    The catalog is empty unless challenges/badges are passed, so tests only
    see the rewards they define.
    """

    async def _make(
        challenges: list[dict[str, Any]] | None = None,
        badges: list[dict[str, Any]] | None = None,
        store: MemoryStore | None = None,
        **options: Any,
    ) -> HabitPulseCoordinator:
        coordinator = HabitPulseCoordinator(
            store=store if store is not None else MemoryStore(),
            catalog=Catalog(challenges=challenges or [], badges=badges or []),
            options=options,
        )
        await coordinator.async_setup()
        return coordinator

    return _make
