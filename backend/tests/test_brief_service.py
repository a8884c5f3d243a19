"""
Tests for the child brief and day timeline helpers
"""

from datetime import datetime

from conftest import CHILD_ID, make_event
from services.brief_service import (
    BRIEF_MODE_SINCE_LAST_SEEN,
    BRIEF_MODE_TODAY,
    brief_since,
    build_brief,
    build_description,
    day_progress,
    format_relative_time,
    next_event,
    parse_backpack_items,
    todays_events,
)

NOW = datetime(2024, 1, 10, 12, 0)


class TestBackpackItems:

    def test_parse_items_and_notes(self):
        items, notes = parse_backpack_items("[BACKPACK:lunchbox,jacket]\nRemember the permission slip")
        assert items == ["lunchbox", "jacket"]
        assert notes == "Remember the permission slip"

    def test_description_without_items(self):
        assert parse_backpack_items("Just notes") == ([], "Just notes")
        assert parse_backpack_items(None) == ([], "")

    def test_build_description_inverts_parse(self):
        description = build_description("Bring cleats", ["shin guards", "water"])
        assert description == "[BACKPACK:shin guards,water]\nBring cleats"
        assert parse_backpack_items(description) == (["shin guards", "water"], "Bring cleats")
        assert build_description(None, []) is None


class TestRelativeTime:

    def test_past(self):
        assert format_relative_time(datetime(2024, 1, 10, 11, 59, 30), NOW) == "Just now"
        assert format_relative_time(datetime(2024, 1, 10, 11, 45), NOW) == "15m ago"
        assert format_relative_time(datetime(2024, 1, 10, 9, 0), NOW) == "3h ago"
        assert format_relative_time(datetime(2024, 1, 9, 10, 0), NOW) == "Yesterday"
        assert format_relative_time(datetime(2024, 1, 7, 10, 0), NOW) == "3d ago"
        assert format_relative_time(datetime(2023, 12, 1, 10, 0), NOW) == "2023-12-01"

    def test_future(self):
        assert format_relative_time(datetime(2024, 1, 10, 12, 30), NOW) == "in 30m"
        assert format_relative_time(datetime(2024, 1, 10, 17, 0), NOW) == "in 5h"


class TestBrief:

    def test_today_mode_starts_at_midnight(self):
        since, had_handoff = brief_since(BRIEF_MODE_TODAY, None, NOW)
        assert since == datetime(2024, 1, 10, 0, 0)
        assert had_handoff

    def test_since_last_seen_uses_last_handoff(self):
        last = datetime(2024, 1, 8, 17, 0)
        assert brief_since(BRIEF_MODE_SINCE_LAST_SEEN, last, NOW) == (last, True)

    def test_since_last_seen_is_capped(self):
        since, had_handoff = brief_since(BRIEF_MODE_SINCE_LAST_SEEN, datetime(2023, 12, 1), NOW)
        assert since == datetime(2024, 1, 5, 12, 0)
        assert had_handoff

    def test_no_handoff_falls_back_to_cap(self):
        since, had_handoff = brief_since(BRIEF_MODE_SINCE_LAST_SEEN, None, NOW)
        assert since == datetime(2024, 1, 5, 12, 0)
        assert not had_handoff

    def test_build_brief(self):
        events = [
            make_event("evt-old", datetime(2024, 1, 8, 8, 0), datetime(2024, 1, 8, 15, 0)),
            make_event(
                "evt-school",
                datetime(2024, 1, 10, 8, 0),
                datetime(2024, 1, 10, 15, 0),
                description="[BACKPACK:lunchbox]\nPicture day",
                location_name="Lincoln Elementary",
            ),
            make_event("evt-cancelled", datetime(2024, 1, 10, 9, 0), type="activity", status="cancelled"),
            make_event("evt-sibling", datetime(2024, 1, 10, 9, 0), type="activity", child_ids=["someone-else"]),
        ]
        brief = build_brief(events, CHILD_ID, datetime(2024, 1, 9, 17, 0), NOW)

        assert brief.child_id == CHILD_ID
        assert [item.id for item in brief.items] == ["evt-school"]
        item = brief.items[0]
        assert item.time == "4h ago"
        assert item.timestamp == "08:00"
        assert item.backpack_items == ["lunchbox"]
        assert item.description == "Picture day"
        assert item.location == "Lincoln Elementary"


class TestTimeline:

    def test_day_progress(self):
        assert day_progress(NOW) == 50.0
        assert day_progress(datetime(2024, 1, 10, 0, 0)) == 0.0

    def test_todays_events_are_sorted(self):
        events = [
            make_event("evt-soccer", datetime(2024, 1, 10, 18, 0), type="activity", title="Soccer"),
            make_event("evt-school", datetime(2024, 1, 10, 6, 0), title="School"),
            make_event("evt-tomorrow", datetime(2024, 1, 11, 8, 0)),
        ]
        timeline = todays_events(events, CHILD_ID, NOW)
        assert [entry.label for entry in timeline] == ["School", "Soccer"]
        assert timeline[0].pos == 25.0
        assert timeline[1].time == "18:00"

    def test_next_event(self):
        events = [
            make_event("evt-school", datetime(2024, 1, 10, 8, 0)),
            make_event("evt-pickup", datetime(2024, 1, 10, 15, 0), type="pickup", location_name="Gate B"),
            make_event("evt-soccer", datetime(2024, 1, 10, 18, 0), type="activity", location_name="Field 3"),
        ]
        upcoming = next_event(events, CHILD_ID, NOW)
        assert upcoming.time == "15:00"
        assert upcoming.location == "pickup"
        assert upcoming.type == "pickup"

    def test_no_next_event(self):
        assert next_event([], CHILD_ID, NOW) is None
