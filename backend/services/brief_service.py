"""
Brief & timeline helpers
Recap of what happened to a child since the viewer last had them, plus the
day timeline shown next to each child.
"""

import re
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from core.config import settings
from schemas.event import Event
from schemas.status import Brief, BriefItem, NextEvent, TimelineEntry
from utils.local_time import format_hhmm, start_of_day, to_local

logger = logging.getLogger(__name__)

BRIEF_MODE_TODAY = "today"
BRIEF_MODE_SINCE_LAST_SEEN = "since-last-seen"

_BACKPACK_PATTERN = re.compile(r"^\[BACKPACK:(.*?)\]\n?")

def parse_backpack_items(description: Optional[str]) -> Tuple[List[str], str]:
    """Split a '[BACKPACK:a,b]\\nnotes' description into (items, notes)."""
    if not description:
        return [], ""
    match = _BACKPACK_PATTERN.match(description)
    if not match:
        return [], description
    items = [item for item in match.group(1).split(",") if item]
    return items, description[match.end():]

def build_description(notes: Optional[str], backpack_items: Optional[List[str]]) -> Optional[str]:
    """Inverse of parse_backpack_items."""
    description = ""
    if backpack_items:
        description = f"[BACKPACK:{','.join(backpack_items)}]\n"
    if notes:
        description += notes
    return description or None

def format_relative_time(moment: datetime, now: datetime) -> str:
    diff = now - moment
    seconds = diff.total_seconds()
    if seconds < 0:
        ahead = -seconds
        if ahead < 3600:
            return f"in {int(ahead // 60)}m"
        if ahead < 86400:
            return f"in {int(ahead // 3600)}h"
        return moment.strftime("%Y-%m-%d")
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days}d ago"
    return moment.strftime("%Y-%m-%d")

def brief_since(mode: str, last_handoff_at: Optional[datetime], now: datetime) -> Tuple[datetime, bool]:
    """
    Start of the brief window and whether a handoff anchored it.

    'today' starts at local midnight. 'since-last-seen' starts at the viewer's last
    dropoff, never more than BRIEF_MAX_DAYS back.
    """
    if mode == BRIEF_MODE_TODAY:
        return start_of_day(now.date()), True

    cap = now - timedelta(days=settings.BRIEF_MAX_DAYS)
    if last_handoff_at is None:
        return cap, False
    return max(last_handoff_at, cap), True

def build_brief(
    events: Iterable[Event],
    child_id: str,
    since: datetime,
    now: datetime,
    had_handoff: bool = True,
    tz_name: Optional[str] = None,
) -> Brief:
    items = []
    linked = [e for e in events if not e.is_cancelled and e.involves(child_id)]
    for event in sorted(linked, key=lambda e: to_local(e.start_time, tz_name)):
        start = to_local(event.start_time, tz_name)
        if start < since:
            continue
        backpack, notes = parse_backpack_items(event.description)
        items.append(BriefItem(
            id=event.id,
            time=format_relative_time(start, now),
            timestamp=format_hhmm(start),
            type=event.type,
            title=event.title or event.type,
            description=notes,
            location=event.location_name or "",
            backpack_items=backpack,
            start_time=event.start_time,
        ))
    return Brief(child_id=child_id, since=since, had_handoff=had_handoff, items=items)

def day_progress(now: datetime) -> float:
    """Share of the local day elapsed, 0-100."""
    return ((now.hour * 60 + now.minute) / (24 * 60)) * 100

def next_event(events: Iterable[Event], child_id: str, now: datetime, tz_name: Optional[str] = None) -> Optional[NextEvent]:
    upcoming = [
        (to_local(e.start_time, tz_name), e) for e in events
        if not e.is_cancelled and e.involves(child_id) and to_local(e.start_time, tz_name) > now
    ]
    if not upcoming:
        return None
    start, event = min(upcoming, key=lambda item: item[0])
    location = event.location_name or ""
    if event.type in ("pickup", "dropoff"):
        location = event.type
    return NextEvent(time=format_hhmm(start), location=location, type=event.type)

def todays_events(events: Iterable[Event], child_id: str, now: datetime, tz_name: Optional[str] = None) -> List[TimelineEntry]:
    entries = []
    for event in events:
        if event.is_cancelled or not event.involves(child_id):
            continue
        start = to_local(event.start_time, tz_name)
        if start.date() != now.date():
            continue
        entries.append((start, TimelineEntry(
            time=format_hhmm(start),
            label=event.title or event.type,
            pos=day_progress(start),
        )))
    entries.sort(key=lambda item: item[0])
    return [entry for _, entry in entries]
