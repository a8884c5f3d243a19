"""
Tests for deriving a child's effective custody status
"""

from datetime import date

from conftest import CHILD_ID, DAD_ID, MOM_ID, make_cycle, make_override
from schemas.child import Child
from schemas.status import StatusSource
from services.label_resolver import LabelResolver
from services.override_layer import CustodySchedule
from services.status_reconciler import effective_status

# [dad, dad, mom, mom] from Sunday 2024-01-07: the 9th hands over to mom, the 11th back to dad
ALTERNATING = ["dad", "dad", "mom", "mom"]


def _status(child, today, cycle, memberships, viewer_id=DAD_ID, overrides=()):
    schedule = CustodySchedule(cycle, overrides, anchor=today)
    return effective_status(child, today, schedule, LabelResolver(memberships, viewer_id))


class TestEffectiveStatus:
    """Explicit status, transition hold and schedule projection"""

    def test_transition_day_holds_previous_guardian(self, child, memberships):
        status = _status(child, date(2024, 1, 9), make_cycle(ALTERNATING), memberships)
        assert status.status == "with_dad"
        assert status.source == StatusSource.custody_cycle_pending
        assert status.expected_label == "mom"

    def test_day_after_transition_projects_schedule(self, child, memberships):
        status = _status(child, date(2024, 1, 10), make_cycle(ALTERNATING), memberships)
        assert status.status == "with_mom"
        assert status.source == StatusSource.custody_cycle
        assert status.expected_label is None

    def test_steady_day(self, child, memberships):
        status = _status(child, date(2024, 1, 8), make_cycle(ALTERNATING), memberships)
        assert status.status == "with_dad"
        assert status.source == StatusSource.custody_cycle

    def test_explicit_status_always_wins(self, memberships):
        at_school = Child(id=CHILD_ID, name="Riley", current_status="at_school")
        for day in (date(2024, 1, 8), date(2024, 1, 9), date(2024, 1, 10)):
            status = _status(at_school, day, make_cycle(ALTERNATING), memberships)
            assert status.status == "at_school"
            assert status.source == StatusSource.explicit

    def test_split_day_resolves_to_viewer(self, child, memberships):
        cycle = make_cycle(["split", "split"])
        assert _status(child, date(2024, 1, 9), cycle, memberships, DAD_ID).status == "with_dad"
        assert _status(child, date(2024, 1, 9), cycle, memberships, MOM_ID).status == "with_mom"

    def test_split_yesterday_does_not_hold(self, child, memberships):
        cycle = make_cycle(["split", "dad"])
        status = _status(child, date(2024, 1, 8), cycle, memberships, MOM_ID)
        assert status.status == "with_dad"
        assert status.source == StatusSource.custody_cycle

    def test_no_cycle_is_unknown(self, child, memberships):
        status = _status(child, date(2024, 1, 9), None, memberships)
        assert status.status == "unknown"
        assert status.source == StatusSource.none

    def test_approved_override_creates_transition(self, child, memberships):
        overrides = [make_override(1, date(2024, 1, 9), date(2024, 1, 9), "mom")]
        status = _status(child, date(2024, 1, 9), make_cycle(["dad"]), memberships, overrides=overrides)
        assert status.status == "with_dad"
        assert status.source == StatusSource.custody_cycle_pending
        assert status.expected_label == "mom"

    def test_pending_override_changes_nothing(self, child, memberships):
        overrides = [make_override(1, date(2024, 1, 9), date(2024, 1, 9), "mom", status="pending")]
        status = _status(child, date(2024, 1, 9), make_cycle(["dad"]), memberships, overrides=overrides)
        assert status.status == "with_dad"
        assert status.source == StatusSource.custody_cycle

    def test_guardian_ids_in_cycle_resolve_to_labels(self, child, memberships):
        cycle = make_cycle([DAD_ID, DAD_ID, MOM_ID, MOM_ID])
        status = _status(child, date(2024, 1, 9), cycle, memberships)
        assert status.status == "with_dad"
        assert status.expected_label == "mom"

    def test_child_allocation(self, child, memberships):
        cycle = make_cycle([{
            "parent_label": "dad",
            "allocations": [{"child_id": CHILD_ID, "parent_label": "mom"}],
        }])
        status = _status(child, date(2024, 1, 9), cycle, memberships)
        assert status.status == "with_mom"
        assert status.source == StatusSource.custody_cycle
