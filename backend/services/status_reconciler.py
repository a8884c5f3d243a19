"""
Status Reconciler
Derives a child's effective custody status from the recorded status and the schedule.
"""

import logging
from datetime import date, timedelta

from schemas.child import Child, STATUS_UNKNOWN, with_status
from schemas.custody import SPLIT
from schemas.status import EffectiveStatus, StatusSource
from services.label_resolver import LabelResolver
from services.override_layer import CustodySchedule

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = EffectiveStatus(status=STATUS_UNKNOWN, source=StatusSource.none)

def effective_status(
    child: Child,
    today: date,
    schedule: CustodySchedule,
    resolver: LabelResolver,
) -> EffectiveStatus:
    """
    Best current answer to "who has this child".

    A recorded status always wins. Without one, the schedule is projected, except
    on a transition day: the calendar is a plan, not proof that a handoff happened,
    so yesterday's holder is assumed to still have the child until a pickup or
    dropoff is confirmed.
    """
    if child.current_status and child.current_status != STATUS_UNKNOWN:
        return EffectiveStatus(status=child.current_status, source=StatusSource.explicit)

    expected_today = resolver.to_label(schedule.assignment(today, child.id))
    expected_yesterday = resolver.to_label(schedule.assignment(today - timedelta(days=1), child.id))

    if expected_today is None:
        return UNKNOWN_STATUS

    if (
        expected_yesterday is not None
        and expected_yesterday != SPLIT
        and expected_yesterday != expected_today
    ):
        logger.debug(
            f"Holding {child.name} with {expected_yesterday} on transition day {today} "
            f"(scheduled: {expected_today})"
        )
        return EffectiveStatus(
            status=with_status(expected_yesterday),
            source=StatusSource.custody_cycle_pending,
            expected_label=expected_today,
        )

    if expected_today == SPLIT:
        return EffectiveStatus(status=with_status(resolver.my_label), source=StatusSource.custody_cycle)

    return EffectiveStatus(status=with_status(expected_today), source=StatusSource.custody_cycle)
