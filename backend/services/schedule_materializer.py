"""
Schedule Materializer
Turns a repeating custody cycle into concrete per-date assignments.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Optional

from core.config import settings
from schemas.custody import CustodyCycle, CycleDay, normalize_cycle_day
from utils.local_time import daterange

logger = logging.getLogger(__name__)

__all__ = [
    "cycle_epoch",
    "cycle_day_index",
    "cycle_entry_for",
    "materialize_schedule",
    "default_window",
    "normalize_cycle_day",
]

def cycle_epoch(valid_from: date) -> date:
    """
    The Sunday on or before valid_from.

    cycle_data is indexed so that index % 7 is the day of week (0 = Sunday),
    so all arithmetic is done relative to that Sunday.
    """
    # date.weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (valid_from.weekday() + 1) % 7
    return valid_from - timedelta(days=days_since_sunday)

def cycle_day_index(cycle: CustodyCycle, day: date) -> int:
    """Index into cycle_data for a date; always in [0, cycle_length), also before the epoch."""
    cycle_length = cycle.cycle_length
    days_since_epoch = (day - cycle_epoch(cycle.valid_from)).days
    return ((days_since_epoch % cycle_length) + cycle_length) % cycle_length

def cycle_entry_for(cycle: Optional[CustodyCycle], day: date) -> CycleDay:
    """The normalized cycle slot for a single date; empty when there is nothing to say."""
    if cycle is None or not cycle.cycle_data or cycle.cycle_length <= 0:
        return CycleDay()
    index = cycle_day_index(cycle, day)
    if index >= len(cycle.cycle_data):
        return CycleDay()
    return cycle.cycle_data[index]

def materialize_schedule(cycle: Optional[CustodyCycle], start: date, end: date) -> Dict[date, CycleDay]:
    """
    Materialize the cycle over the inclusive window [start, end].

    Args:
        cycle: The active custody cycle, or None when the family has not set one up
        start: First date of the window
        end: Last date of the window

    Returns:
        Mapping of date -> CycleDay. Dates without an assignment are left out,
        and a missing cycle yields an empty mapping.
    """
    schedule: Dict[date, CycleDay] = {}
    if cycle is None:
        return schedule

    if len(cycle.cycle_data) < cycle.cycle_length:
        logger.warning(
            f"Cycle {cycle.id} has {len(cycle.cycle_data)} slots for cycle_length {cycle.cycle_length}"
        )

    for day in daterange(start, end):
        entry = cycle_entry_for(cycle, day)
        if not entry.is_empty:
            schedule[day] = entry
    return schedule

def default_window(anchor: date):
    """The window kept materialized around an anchor day."""
    return (
        anchor - timedelta(days=settings.SCHEDULE_LOOKBACK_DAYS),
        anchor + timedelta(days=settings.SCHEDULE_LOOKAHEAD_DAYS),
    )
