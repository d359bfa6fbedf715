"""Economy Engine - Pure logic for points, the ledger and the stats reducer.

Covers:
- Balance arithmetic rounded to two decimals
- The per-user points ledger (append, trim by count and age)
- Folding explicit point events into a user record

Every change to a user's points, earned badges or completed challenges is
an explicit event (habit logged/updated/deleted, challenge completed, badge
earned) folded by fold_event(). Managers call it inside the per-user commit,
so there is exactly one serialized writer per user.

ARCHITECTURE: No storage access. Records come in and new records go out.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_now_utc
from ..utils.math_utils import round_points

if TYPE_CHECKING:
    from ..type_defs import LedgerEntry, PointsEvent, UserRecord


_EVENT_SOURCES: dict[str, str] = {
    const.EVENT_HABIT_LOGGED: const.POINTS_SOURCE_HABIT,
    const.EVENT_HABIT_UPDATED: const.POINTS_SOURCE_HABIT_UPDATE,
    const.EVENT_HABIT_DELETED: const.POINTS_SOURCE_HABIT_DELETE,
    const.EVENT_CHALLENGE_COMPLETED: const.POINTS_SOURCE_CHALLENGE,
    const.EVENT_BADGE_EARNED: const.POINTS_SOURCE_BADGE,
}


class EconomyEngine:
    """Points balance, ledger and event folding.

    Ledger sources:
        - POINTS_SOURCE_HABIT: Score of a newly logged entry
        - POINTS_SOURCE_HABIT_UPDATE: Score difference after an edit
        - POINTS_SOURCE_HABIT_DELETE: Reversal of a deleted entry's score
        - POINTS_SOURCE_CHALLENGE: Challenge completion reward
        - POINTS_SOURCE_BADGE: Badge reward
    """

    @staticmethod
    def create_ledger_entry(
        current_balance: float,
        delta: float,
        source: str,
        reference_id: str | None = None,
        item_name: str | None = None,
        timestamp: str | None = None,
    ) -> LedgerEntry:
        """Build one ledger line.

        Args:
            current_balance: Points held before this change
            delta: Signed change in points
            source: Transaction source (POINTS_SOURCE_*)
            reference_id: Optional ID of related entity (habit, challenge, badge)
            item_name: Optional human-readable name of related item
            timestamp: Optional ISO timestamp, defaults to now (UTC)

        Returns:
            LedgerEntry with the rounded amount and resulting balance
        """
        entry: LedgerEntry = {
            "timestamp": timestamp or dt_now_utc().isoformat(),
            "amount": round_points(delta),
            "balance_after": EconomyEngine.calculate_new_balance(
                current_balance, delta
            ),
            "source": source,
            "reference_id": reference_id,
        }
        if item_name:
            entry["item_name"] = item_name
        return entry

    @staticmethod
    def calculate_new_balance(current_balance: float, delta: float) -> float:
        """Calculate new balance after applying delta, rounded."""
        return round_points(current_balance + delta)

    @staticmethod
    def prune_ledger(
        ledger: list[LedgerEntry],
        max_entries: int = const.DEFAULT_LEDGER_MAX_ENTRIES,
        max_age_days: int | None = None,
        now_utc: datetime | None = None,
    ) -> list[LedgerEntry]:
        """Drop expired lines, then the oldest lines beyond max_entries.

        The ledger is in append order and is trimmed in place. Lines whose
        timestamp cannot be parsed are never dropped for age.

        Args:
            ledger: Ledger to trim
            max_entries: Lines to keep at most
            max_age_days: Retention window in days, None to skip
            now_utc: Reference time for the retention window

        Returns:
            The same list
        """
        if max_age_days:
            cutoff = (now_utc or dt_now_utc()) - timedelta(days=max_age_days)

            kept: list[LedgerEntry] = []
            for line in ledger:
                try:
                    stamp = datetime.fromisoformat(line["timestamp"])
                except (KeyError, TypeError, ValueError):
                    kept.append(line)
                    continue
                if stamp.tzinfo is None:
                    stamp = stamp.replace(tzinfo=cutoff.tzinfo)
                if stamp >= cutoff:
                    kept.append(line)
            ledger[:] = kept

        overflow = len(ledger) - max_entries
        if overflow > 0:
            del ledger[:overflow]
        return ledger

    # =========================================================================
    # Event Reducer
    # =========================================================================

    @staticmethod
    def make_event(
        event_type: str,
        points: float,
        reference_id: str | None = None,
        *,
        item_name: str | None = None,
        badge_id: str | None = None,
        timestamp: str | None = None,
    ) -> PointsEvent:
        """Build a PointsEvent."""
        return {
            "type": event_type,
            "points": points,
            "reference_id": reference_id,
            "item_name": item_name,
            "badge_id": badge_id,
            "timestamp": timestamp,
        }

    @staticmethod
    def fold_event(
        record: UserRecord,
        event: PointsEvent,
        *,
        max_entries: int = const.DEFAULT_LEDGER_MAX_ENTRIES,
        max_age_days: int | None = None,
        now_utc: datetime | None = None,
    ) -> UserRecord:
        """Apply one event to a user record and return the new record.

        The input record is not mutated. Challenge and badge events that were
        already applied leave the record unchanged, which makes replays and
        concurrent duplicate grants harmless.

        Event effects:
            habit_logged: +points
            habit_updated: +points (the signed score difference)
            habit_deleted: -points (the deleted entry's score)
            challenge_completed: +points, challenge marked completed, optional
                badge added to the earned set
            badge_earned: +points, badge added to the earned set

        Raises:
            ValueError: If the event type is unknown.
        """
        event_type = event["type"]
        source = _EVENT_SOURCES.get(event_type)
        if source is None:
            raise ValueError(f"Unknown points event type: {event_type}")

        updated = copy.deepcopy(record)
        earned: list[str] = updated.setdefault(const.DATA_USER_EARNED_BADGES, [])
        completed: list[str] = updated.setdefault(
            const.DATA_USER_COMPLETED_CHALLENGES, []
        )
        reference_id = event.get("reference_id")
        badge_id = event.get("badge_id")
        delta = event["points"]

        if event_type == const.EVENT_HABIT_DELETED:
            delta = -abs(delta)

        elif event_type == const.EVENT_CHALLENGE_COMPLETED:
            if reference_id in completed:
                return updated
            completed.append(reference_id)
            if badge_id and badge_id not in earned:
                earned.append(badge_id)

        elif event_type == const.EVENT_BADGE_EARNED:
            badge_id = badge_id or reference_id
            if badge_id in earned:
                return updated
            earned.append(badge_id)

        if delta:
            balance = updated.get(const.DATA_USER_POINTS, 0.0)
            ledger: list[LedgerEntry] = updated.setdefault(const.DATA_USER_LEDGER, [])
            ledger.append(
                EconomyEngine.create_ledger_entry(
                    balance,
                    delta,
                    source,
                    reference_id=reference_id,
                    item_name=event.get("item_name"),
                    timestamp=event.get("timestamp"),
                )
            )
            updated[const.DATA_USER_POINTS] = EconomyEngine.calculate_new_balance(
                balance, delta
            )
            EconomyEngine.prune_ledger(
                ledger, max_entries, max_age_days=max_age_days, now_utc=now_utc
            )

        stats = updated.setdefault(const.DATA_STATS, {})
        stats[const.DATA_STATS_TOTAL_POINTS] = updated.get(const.DATA_USER_POINTS, 0.0)
        stats[const.DATA_STATS_BADGES_EARNED] = len(earned)
        stats[const.DATA_STATS_COMPLETED_CHALLENGES] = len(completed)
        return updated
