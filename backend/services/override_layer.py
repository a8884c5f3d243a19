"""
Override Layer
Merges approved custody overrides on top of the materialized cycle.
"""

import logging
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from schemas.custody import CustodyCycle, CustodyOverride, CycleDay, OverrideStatus
from services.schedule_materializer import cycle_entry_for, default_window, materialize_schedule
from utils.local_time import daterange

logger = logging.getLogger(__name__)

def _as_naive_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.min
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def _order_key(override: CustodyOverride) -> Tuple[datetime, datetime, int]:
    # Most recently approved is applied last and therefore wins on overlap
    decided = _as_naive_utc(override.responded_at or override.created_at)
    created = _as_naive_utc(override.created_at)
    return (decided, created, override.id or 0)

def approved_overrides(overrides: Iterable[CustodyOverride]) -> List[CustodyOverride]:
    """Approved overrides in application order."""
    return sorted(
        (o for o in overrides if o.status == OverrideStatus.approved),
        key=_order_key,
    )

def pending_overrides(overrides: Iterable[CustodyOverride]) -> List[CustodyOverride]:
    return sorted(
        (o for o in overrides if o.status == OverrideStatus.pending),
        key=_order_key,
    )

def _override_entry(override: CustodyOverride) -> CycleDay:
    return CycleDay(parent_label=override.override_parent, source="override")

def apply_overrides(
    schedule: Dict[date, CycleDay],
    overrides: Iterable[CustodyOverride],
) -> Dict[date, CycleDay]:
    """
    Return a new mapping with every approved override range written over the cycle.

    Pending and rejected overrides never change the result. The input mapping is
    left untouched.
    """
    merged = dict(schedule)
    for override in approved_overrides(overrides):
        if override.from_date > override.to_date:
            logger.warning(f"Skipping override {override.id} with inverted range")
            continue
        entry = _override_entry(override)
        for day in daterange(override.from_date, override.to_date):
            merged[day] = entry
    return merged

def pending_override_for_date(overrides: Iterable[CustodyOverride], day: date) -> Optional[CustodyOverride]:
    """The first pending override covering a date, if any."""
    for override in pending_overrides(overrides):
        if override.covers(day):
            return override
    return None

class CustodySchedule:
    """
    Date -> assignment lookup for one family: cycle plus approved overrides.

    A window around the anchor day is materialized up front; lookups outside it
    are computed on demand, so any date can be asked for.
    """

    def __init__(
        self,
        cycle: Optional[CustodyCycle],
        overrides: Iterable[CustodyOverride] = (),
        anchor: Optional[date] = None,
    ):
        self.cycle = cycle
        self.overrides = list(overrides)
        self._approved = approved_overrides(self.overrides)
        self._window = default_window(anchor or date.today())
        self._days = apply_overrides(
            materialize_schedule(cycle, *self._window),
            self._approved,
        )

    def entry(self, day: date) -> Optional[CycleDay]:
        start, end = self._window
        if start <= day <= end:
            return self._days.get(day)

        winner = None
        for override in self._approved:
            if override.covers(day):
                winner = override
        if winner is not None:
            return _override_entry(winner)
        entry = cycle_entry_for(self.cycle, day)
        return None if entry.is_empty else entry

    def assignment(self, day: date, child_id: Optional[str] = None) -> Optional[str]:
        """Raw assignment value (label, guardian id or 'split') for a date and optional child."""
        entry = self.entry(day)
        if entry is None:
            return None
        return entry.label_for(child_id)

    def pending_override(self, day: date) -> Optional[CustodyOverride]:
        return pending_override_for_date(self.overrides, day)

    def materialize(self, start: date, end: date) -> Dict[date, CycleDay]:
        return apply_overrides(materialize_schedule(self.cycle, start, end), self._approved)
