"""
Shared fixtures: a two-guardian family (dad/mom) with one child and a
cycle anchored on Sunday 2024-01-07.
"""

from datetime import date, datetime

import pytest

from schemas.child import Child
from schemas.custody import CustodyCycle, CustodyOverride
from schemas.event import Event
from schemas.family import GuardianMembership
from schemas.snapshot import FamilySnapshot

FAMILY_ID = "f0000000-0000-0000-0000-000000000001"
DAD_ID = "11111111-1111-1111-1111-111111111111"
MOM_ID = "22222222-2222-2222-2222-222222222222"
CHILD_ID = "c0000000-0000-0000-0000-000000000001"
EPOCH = date(2024, 1, 7)  # a Sunday

def make_cycle(cycle_data, cycle_length=None, valid_from=EPOCH, default_handoff_time=None):
    return CustodyCycle(
        id=1,
        family_id=FAMILY_ID,
        cycle_length=cycle_length or len(cycle_data),
        cycle_data=cycle_data,
        valid_from=valid_from,
        default_handoff_time=default_handoff_time,
    )

def make_event(event_id, start, end=None, type="school", title=None, child_ids=None, status="scheduled", **kwargs):
    return Event(
        id=event_id,
        family_id=FAMILY_ID,
        type=type,
        title=title or type.title(),
        start_time=start,
        end_time=end,
        status=status,
        child_ids=[CHILD_ID] if child_ids is None else child_ids,
        **kwargs,
    )

def make_override(override_id, from_date, to_date, parent, status="approved", responded_at=None, created_at=None):
    return CustodyOverride(
        id=override_id,
        family_id=FAMILY_ID,
        from_date=from_date,
        to_date=to_date,
        override_parent=parent,
        status=status,
        responded_at=responded_at,
        created_at=created_at or datetime(2024, 1, 1, 9, 0),
    )

@pytest.fixture
def memberships():
    return [
        GuardianMembership(profile_id=DAD_ID, parent_label="dad", first_name="Sam"),
        GuardianMembership(profile_id=MOM_ID, parent_label="mom", first_name="Alex"),
    ]

@pytest.fixture
def child():
    return Child(id=CHILD_ID, family_id=FAMILY_ID, name="Riley")

@pytest.fixture
def two_week_cycle():
    """Seven days with dad, then seven with mom."""
    return make_cycle(["dad"] * 7 + ["mom"] * 7, default_handoff_time="17:00")

@pytest.fixture
def make_snapshot(memberships, child):
    def _make(cycle=None, overrides=(), events=(), children=None, members=None):
        return FamilySnapshot(
            family_id=FAMILY_ID,
            timezone="America/New_York",
            default_handoff_location="Front porch",
            memberships=memberships if members is None else members,
            children=[child] if children is None else children,
            cycle=cycle,
            overrides=list(overrides),
            events=list(events),
            fetched_at=datetime(2024, 1, 10, 8, 0),
        )
    return _make
