"""
Next-Handoff Predictor
Scans forward for the next moment the viewing guardian has to act for a child:
taking the child to an event, or a pickup/dropoff at a custody transition.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from core.config import settings
from schemas.child import Child
from schemas.event import Event
from schemas.status import NextHandoff, NextHandoffType
from services.label_resolver import LabelResolver
from services.override_layer import CustodySchedule
from utils.local_time import format_hhmm, parse_hhmm, to_local

logger = logging.getLogger(__name__)

# Event types never surfaced as something to take the child to
EXCLUDED_EVENT_TYPES = ("other",)

def _child_events(events: Iterable[Event], child_id: str) -> List[Event]:
    return [e for e in events if not e.is_cancelled and e.involves(child_id)]

def _event_to_attend(
    child: Child,
    day: date,
    now: datetime,
    is_today: bool,
    events: List[Event],
    schedule: CustodySchedule,
    resolver: LabelResolver,
    tz_name: Optional[str],
) -> Optional[Event]:
    """Earliest event on the day the viewer can take the child to and keep custody through."""
    candidates = []
    for event in events:
        if event.type in EXCLUDED_EVENT_TYPES:
            continue
        start = to_local(event.start_time, tz_name)
        if start.date() != day:
            continue
        if is_today and start <= now:
            continue
        if event.end_time is not None:
            end_day = to_local(event.end_time, tz_name).date()
            if not resolver.includes_me(schedule.assignment(end_day, child.id)):
                continue
        candidates.append((start, event))
    if not candidates:
        return None
    return min(candidates, key=lambda item: item[0])[1]

def _school_pickup(day: date, events: List[Event], tz_name: Optional[str]) -> Optional[Event]:
    """The latest-ending school event on the transition day, if any."""
    schools = [
        e for e in events
        if e.type == "school" and e.end_time is not None
        and to_local(e.start_time, tz_name).date() == day
    ]
    if not schools:
        return None
    return max(schools, key=lambda e: to_local(e.end_time, tz_name))

def next_handoff(
    child: Child,
    now: datetime,
    schedule: CustodySchedule,
    resolver: LabelResolver,
    events: Iterable[Event],
    default_handoff_time: Optional[str] = None,
    default_handoff_location: Optional[str] = None,
    horizon_days: Optional[int] = None,
    tz_name: Optional[str] = None,
) -> Optional[NextHandoff]:
    """
    Next takeToEvent / pickup / dropoff for the viewer within the horizon, or None.

    Args:
        child: The child to predict for
        now: Current time (family-local or aware)
        schedule: Cycle plus approved overrides
        resolver: Label resolver for the viewing guardian
        events: Family events (cancelled ones are ignored)
        default_handoff_time: Guardian-configured "HH:MM" fallback for transitions
        default_handoff_location: Location reported with a default-time handoff
        horizon_days: Days to scan forward, including today
        tz_name: Family timezone used to localize event times
    """
    now = to_local(now, tz_name)
    today = now.date()
    horizon = horizon_days if horizon_days is not None else settings.NEXT_HANDOFF_HORIZON_DAYS
    child_events = _child_events(events, child.id)
    fallback_time = parse_hhmm(default_handoff_time)

    for offset in range(horizon):
        day = today + timedelta(days=offset)
        is_today = offset == 0
        assignment = schedule.assignment(day, child.id)

        if resolver.includes_me(assignment):
            event = _event_to_attend(child, day, now, is_today, child_events, schedule, resolver, tz_name)
            if event is not None:
                return NextHandoff(
                    type=NextHandoffType.take_to_event,
                    time=format_hhmm(to_local(event.start_time, tz_name)),
                    location=event.location_name,
                    date=day,
                    event_id=event.id,
                )

        next_day = day + timedelta(days=1)
        next_assignment = schedule.assignment(next_day, child.id)
        outgoing = resolver.to_label(assignment)
        incoming = resolver.to_label(next_assignment)
        if outgoing is None or incoming is None or outgoing == incoming:
            continue

        me_incoming = resolver.includes_me(next_assignment) and not resolver.is_me(assignment)
        me_outgoing = resolver.includes_me(assignment) and not me_incoming
        if not me_incoming and not me_outgoing:
            continue

        school = _school_pickup(day, child_events, tz_name)
        if school is not None:
            moment = to_local(school.end_time, tz_name)
            handoff_date = day
            location = school.location_name
        elif fallback_time is not None:
            # Default-time handoffs happen on the first day of the new period
            moment = datetime.combine(next_day, fallback_time)
            handoff_date = next_day
            location = default_handoff_location
        else:
            continue

        if is_today and moment <= now:
            continue

        return NextHandoff(
            type=NextHandoffType.pickup if me_incoming else NextHandoffType.dropoff,
            time=format_hhmm(moment),
            location=location,
            date=handoff_date,
            event_id=school.id if school is not None else None,
        )

    return None
