"""
Tests for predicting the viewer's next handoff for a child
"""

from datetime import date, datetime

import pytest

from conftest import DAD_ID, MOM_ID, make_cycle, make_event
from schemas.status import NextHandoffType
from services.handoff_predictor import next_handoff
from services.label_resolver import LabelResolver
from services.override_layer import CustodySchedule


@pytest.fixture
def predict(child, memberships, two_week_cycle):
    """Dad has 2024-01-07..13, mom has 2024-01-14..20, default handoff at 17:00."""
    def _predict(now, viewer_id, events=(), cycle=two_week_cycle, default_handoff_time="17:00"):
        schedule = CustodySchedule(cycle, [], anchor=now.date())
        return next_handoff(
            child,
            now,
            schedule,
            LabelResolver(memberships, viewer_id),
            list(events),
            default_handoff_time=default_handoff_time,
            default_handoff_location="Front porch",
        )
    return _predict


class TestTransitions:
    """Pickups and dropoffs at custody transitions"""

    def test_incoming_guardian_picks_up_at_default_time(self, predict):
        handoff = predict(datetime(2024, 1, 13, 10, 0), MOM_ID)
        assert handoff.type == NextHandoffType.pickup
        assert handoff.date == date(2024, 1, 14)
        assert handoff.time == "17:00"
        assert handoff.location == "Front porch"
        assert handoff.event_id is None

    def test_outgoing_guardian_drops_off(self, predict):
        handoff = predict(datetime(2024, 1, 10, 10, 0), DAD_ID)
        assert handoff.type == NextHandoffType.dropoff
        assert handoff.date == date(2024, 1, 14)
        assert handoff.time == "17:00"

    def test_school_end_is_the_handoff(self, predict):
        school = make_event(
            "evt-school",
            datetime(2024, 1, 13, 8, 0),
            datetime(2024, 1, 13, 15, 0),
            location_name="Lincoln Elementary",
        )
        handoff = predict(datetime(2024, 1, 13, 7, 0), MOM_ID, [school])
        assert handoff.type == NextHandoffType.pickup
        assert handoff.date == date(2024, 1, 13)
        assert handoff.time == "15:00"
        assert handoff.location == "Lincoln Elementary"
        assert handoff.event_id == "evt-school"

    def test_handoff_already_past_today_is_skipped(self, predict):
        school = make_event("evt-school", datetime(2024, 1, 13, 8, 0), datetime(2024, 1, 13, 15, 0))
        handoff = predict(datetime(2024, 1, 13, 16, 0), MOM_ID, [school])
        # Next transition involving mom is handing back on the 21st
        assert handoff.type == NextHandoffType.dropoff
        assert handoff.date == date(2024, 1, 21)

    def test_no_default_time_and_no_school(self, predict):
        assert predict(datetime(2024, 1, 13, 10, 0), MOM_ID, default_handoff_time=None) is None

    def test_no_cycle(self, predict):
        assert predict(datetime(2024, 1, 13, 10, 0), MOM_ID, cycle=None) is None

    def test_split_to_partner_is_a_dropoff(self, predict):
        cycle = make_cycle(["split"] * 6 + ["mom"])
        handoff = predict(datetime(2024, 1, 11, 10, 0), DAD_ID, cycle=cycle)
        assert handoff.type == NextHandoffType.dropoff
        assert handoff.date == date(2024, 1, 13)


class TestTakeToEvent:
    """Events on the viewer's own days come before transitions"""

    def test_take_to_event_on_my_day(self, predict):
        practice = make_event(
            "evt-practice",
            datetime(2024, 1, 11, 16, 0),
            datetime(2024, 1, 11, 17, 0),
            type="activity",
            location_name="Field 3",
        )
        handoff = predict(datetime(2024, 1, 10, 9, 0), DAD_ID, [practice])
        assert handoff.type == NextHandoffType.take_to_event
        assert handoff.date == date(2024, 1, 11)
        assert handoff.time == "16:00"
        assert handoff.location == "Field 3"
        assert handoff.event_id == "evt-practice"

    def test_event_already_started_is_skipped(self, predict):
        practice = make_event("evt-practice", datetime(2024, 1, 10, 8, 0), datetime(2024, 1, 10, 9, 0), type="activity")
        handoff = predict(datetime(2024, 1, 10, 10, 0), DAD_ID, [practice])
        assert handoff.type == NextHandoffType.dropoff

    def test_event_ending_on_partner_day_is_skipped(self, predict):
        sleepover = make_event(
            "evt-sleepover",
            datetime(2024, 1, 13, 19, 0),
            datetime(2024, 1, 14, 10, 0),
            type="activity",
        )
        handoff = predict(datetime(2024, 1, 13, 9, 0), DAD_ID, [sleepover])
        assert handoff.type == NextHandoffType.dropoff
        assert handoff.date == date(2024, 1, 14)

    def test_other_and_cancelled_events_are_skipped(self, predict):
        other = make_event("evt-other", datetime(2024, 1, 11, 16, 0), type="other")
        cancelled = make_event("evt-cancelled", datetime(2024, 1, 11, 16, 0), type="activity", status="cancelled")
        handoff = predict(datetime(2024, 1, 10, 9, 0), DAD_ID, [other, cancelled])
        assert handoff.type == NextHandoffType.dropoff

    def test_events_on_partner_days_are_not_mine(self, predict):
        practice = make_event("evt-practice", datetime(2024, 1, 15, 16, 0), type="activity")
        handoff = predict(datetime(2024, 1, 14, 18, 0), DAD_ID, [practice])
        assert handoff.type == NextHandoffType.pickup
        assert handoff.date == date(2024, 1, 21)
