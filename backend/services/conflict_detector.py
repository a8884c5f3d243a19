"""
Conflict Detector
Cross-references a child's effective status with the event stream.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from core.config import settings
from schemas.child import Child, STATUS_AT_ACTIVITY, STATUS_AT_SCHOOL, holder_from_status
from schemas.event import Event, VENUE_EVENT_TYPES
from schemas.status import (
    DropoffNeededConflict,
    DropoffOverdueConflict,
    EffectiveStatus,
    HandoffPendingConflict,
    PickupNeededConflict,
    StatusSource,
)
from services.label_resolver import LabelResolver
from utils.local_time import to_local

logger = logging.getLogger(__name__)

# (event, local start, local end)
_LocalEvent = Tuple[Event, datetime, Optional[datetime]]

def _venue_events(events: Iterable[Event], child_id: str, tz_name: Optional[str]) -> List[_LocalEvent]:
    """Non-cancelled school/activity events linked to the child, in local time, by start."""
    venue = [
        (event, to_local(event.start_time, tz_name), to_local(event.end_time, tz_name))
        for event in events
        if not event.is_cancelled and event.type in VENUE_EVENT_TYPES and event.involves(child_id)
    ]
    venue.sort(key=lambda item: item[1])
    return venue

def _minutes_between(earlier: datetime, later: datetime) -> int:
    return int((later - earlier).total_seconds() // 60)

def detect_conflict(
    child: Child,
    status: EffectiveStatus,
    events: Iterable[Event],
    now: datetime,
    resolver: LabelResolver,
    tz_name: Optional[str] = None,
):
    """
    Zero or one conflict for a child, first match wins:
    pending handoff, dropoff needed/overdue for an event in progress,
    dropoff needed for an event starting soon, pickup needed after the day's event ended.
    """
    if status.source == StatusSource.custody_cycle_pending and status.expected_label:
        viewer_is_incoming = status.expected_label == resolver.my_label
        return HandoffPendingConflict(
            child_id=child.id,
            child_name=child.name,
            expected_label=status.expected_label,
            current_label=holder_from_status(status.status),
            viewer_is_incoming=viewer_is_incoming,
            action="pickup" if viewer_is_incoming else "dropoff",
        )

    now = to_local(now, tz_name)
    venue = _venue_events(events, child.id, tz_name)
    with_guardian = holder_from_status(status.status) is not None

    active = [
        (event, start, end) for event, start, end in venue
        if end is not None and start <= now <= end
    ]
    if active:
        event, start, _ = active[0]
        if not with_guardian:
            return None
        elapsed = _minutes_between(start, now)
        if now - start > timedelta(minutes=settings.DROPOFF_OVERDUE_MINUTES):
            return DropoffOverdueConflict(
                child_id=child.id,
                child_name=child.name,
                event_id=event.id,
                event_title=event.title,
                event_type=event.type,
                location=event.location_name,
                start_time=event.start_time,
                minutes_late=elapsed,
            )
        return DropoffNeededConflict(
            child_id=child.id,
            child_name=child.name,
            event_id=event.id,
            event_title=event.title,
            event_type=event.type,
            location=event.location_name,
            start_time=event.start_time,
            minutes_until_start=0,
        )

    if with_guardian:
        lead = timedelta(minutes=settings.DROPOFF_LEAD_MINUTES)
        for event, start, _ in venue:
            if now < start <= now + lead:
                return DropoffNeededConflict(
                    child_id=child.id,
                    child_name=child.name,
                    event_id=event.id,
                    event_title=event.title,
                    event_type=event.type,
                    location=event.location_name,
                    start_time=event.start_time,
                    minutes_until_start=_minutes_between(now, start),
                )
        return None

    if status.status in (STATUS_AT_SCHOOL, STATUS_AT_ACTIVITY):
        started_today = [
            (event, start, end) for event, start, end in venue
            if start.date() == now.date() and start <= now
        ]
        if started_today:
            event, _, end = max(started_today, key=lambda item: item[1])
            if end is not None and end < now:
                return PickupNeededConflict(
                    child_id=child.id,
                    child_name=child.name,
                    event_id=event.id,
                    event_title=event.title,
                    event_type=event.type,
                    location=event.location_name,
                    end_time=event.end_time,
                )

    return None
