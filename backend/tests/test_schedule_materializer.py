"""
Tests for the schedule materializer and the override layer
"""

from datetime import date, datetime, timezone

from conftest import EPOCH, CHILD_ID, make_cycle, make_override
from schemas.custody import CustodyCycle, CycleDay, normalize_cycle_day
from services.schedule_materializer import (
    cycle_day_index,
    cycle_entry_for,
    cycle_epoch,
    materialize_schedule,
)
from services.override_layer import (
    CustodySchedule,
    apply_overrides,
    pending_override_for_date,
)


class TestCycleEpoch:
    """The cycle is anchored on the Sunday on or before valid_from"""

    def test_sunday_is_its_own_epoch(self):
        assert cycle_epoch(date(2024, 1, 7)) == date(2024, 1, 7)

    def test_midweek_rolls_back_to_sunday(self):
        assert cycle_epoch(date(2024, 1, 10)) == date(2024, 1, 7)
        assert cycle_epoch(date(2024, 1, 13)) == date(2024, 1, 7)

    def test_midweek_valid_from_still_indexes_from_sunday(self):
        cycle = make_cycle(["dad", "mom", "dad", "mom", "dad", "mom", "dad"], valid_from=date(2024, 1, 10))
        assert cycle_day_index(cycle, date(2024, 1, 7)) == 0
        assert cycle_day_index(cycle, date(2024, 1, 10)) == 3


class TestMaterializeSchedule:
    """Test cycle materialization over a window"""

    def test_two_week_cycle(self, two_week_cycle):
        schedule = materialize_schedule(two_week_cycle, date(2024, 1, 7), date(2024, 1, 20))
        assert len(schedule) == 14
        assert schedule[date(2024, 1, 13)].parent_label == "dad"
        assert schedule[date(2024, 1, 14)].parent_label == "mom"
        assert schedule[date(2024, 1, 20)].parent_label == "mom"

    def test_dates_before_epoch_wrap_around(self, two_week_cycle):
        assert cycle_day_index(two_week_cycle, date(2024, 1, 6)) == 13
        assert cycle_entry_for(two_week_cycle, date(2024, 1, 6)).parent_label == "mom"
        assert cycle_entry_for(two_week_cycle, date(2023, 12, 31)).parent_label == "mom"
        assert cycle_entry_for(two_week_cycle, date(2023, 12, 24)).parent_label == "dad"

    def test_cycle_length_not_a_multiple_of_seven(self):
        cycle = make_cycle(["dad", "mom", "split"])
        assert cycle_entry_for(cycle, date(2024, 1, 10)).parent_label == "dad"
        assert cycle_entry_for(cycle, date(2024, 1, 9)).parent_label == "split"
        assert cycle_entry_for(cycle, date(2024, 1, 6)).parent_label == "split"

    def test_materialization_is_idempotent(self, two_week_cycle):
        first = materialize_schedule(two_week_cycle, date(2023, 12, 1), date(2024, 2, 1))
        second = materialize_schedule(two_week_cycle, date(2023, 12, 1), date(2024, 2, 1))
        assert first == second

    def test_no_cycle_yields_empty_schedule(self):
        assert materialize_schedule(None, date(2024, 1, 1), date(2024, 1, 31)) == {}

    def test_empty_slots_are_left_out(self):
        cycle = make_cycle(["dad", None, "", "mom", "dad", "mom", "dad"])
        schedule = materialize_schedule(cycle, date(2024, 1, 7), date(2024, 1, 13))
        assert date(2024, 1, 8) not in schedule
        assert date(2024, 1, 9) not in schedule
        assert len(schedule) == 5

    def test_short_cycle_data_is_treated_as_unassigned(self):
        cycle = make_cycle(["dad", "mom"], cycle_length=7)
        schedule = materialize_schedule(cycle, date(2024, 1, 7), date(2024, 1, 13))
        assert set(schedule) == {date(2024, 1, 7), date(2024, 1, 8)}


class TestCycleDataNormalization:
    """Stored cycle_data comes as bare labels or as {parent_label, allocations} records"""

    def test_bare_label(self):
        assert normalize_cycle_day("mom") == CycleDay(parent_label="mom")

    def test_record_with_allocations(self):
        entry = normalize_cycle_day({
            "parent_label": "dad",
            "allocations": [{"child_id": CHILD_ID.upper(), "parent_label": "mom"}],
        })
        assert entry.parent_label == "dad"
        assert entry.label_for(CHILD_ID) == "mom"
        assert entry.label_for("someone-else") == "dad"
        assert entry.label_for() == "dad"

    def test_unknown_shape_is_empty(self):
        assert normalize_cycle_day(42).is_empty
        assert normalize_cycle_day({"allocations": ["bad"]}).is_empty

    def test_cycle_model_normalizes_and_defaults_length(self):
        cycle = CustodyCycle(cycle_length=0, cycle_data=["dad", {"parent_label": "mom"}], valid_from=EPOCH)
        assert cycle.cycle_length == 14
        assert [day.parent_label for day in cycle.cycle_data] == ["dad", "mom"]


class TestOverrideLayer:
    """Approved overrides replace the cycle; pending ones never do"""

    def test_approved_override_replaces_range(self, two_week_cycle):
        base = materialize_schedule(two_week_cycle, date(2024, 1, 7), date(2024, 1, 13))
        merged = apply_overrides(base, [make_override(1, date(2024, 1, 10), date(2024, 1, 11), "mom")])

        assert merged[date(2024, 1, 9)].parent_label == "dad"
        assert merged[date(2024, 1, 10)].parent_label == "mom"
        assert merged[date(2024, 1, 10)].source == "override"
        assert merged[date(2024, 1, 11)].parent_label == "mom"
        assert merged[date(2024, 1, 12)].parent_label == "dad"
        # Input is left untouched
        assert base[date(2024, 1, 10)].parent_label == "dad"

    def test_pending_and_rejected_are_ignored(self, two_week_cycle):
        base = materialize_schedule(two_week_cycle, date(2024, 1, 7), date(2024, 1, 13))
        merged = apply_overrides(base, [
            make_override(1, date(2024, 1, 10), date(2024, 1, 10), "mom", status="pending"),
            make_override(2, date(2024, 1, 11), date(2024, 1, 11), "mom", status="rejected"),
        ])
        assert merged == base

    def test_override_extends_beyond_cycle_days(self):
        merged = apply_overrides({}, [make_override(1, date(2024, 3, 1), date(2024, 3, 2), "mom")])
        assert set(merged) == {date(2024, 3, 1), date(2024, 3, 2)}

    def test_most_recently_approved_wins_on_overlap(self, two_week_cycle):
        older = make_override(
            1, date(2024, 1, 10), date(2024, 1, 12), "mom",
            responded_at=datetime(2024, 1, 2, 12, 0),
        )
        newer = make_override(
            2, date(2024, 1, 11), date(2024, 1, 11), "dad",
            responded_at=datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc),
        )
        base = materialize_schedule(two_week_cycle, date(2024, 1, 7), date(2024, 1, 13))

        for ordering in ([older, newer], [newer, older]):
            merged = apply_overrides(base, ordering)
            assert merged[date(2024, 1, 10)].parent_label == "mom"
            assert merged[date(2024, 1, 11)].parent_label == "dad"
            assert merged[date(2024, 1, 12)].parent_label == "mom"

    def test_inverted_range_is_skipped(self, two_week_cycle):
        base = materialize_schedule(two_week_cycle, date(2024, 1, 7), date(2024, 1, 13))
        merged = apply_overrides(base, [make_override(1, date(2024, 1, 12), date(2024, 1, 10), "mom")])
        assert merged == base

    def test_pending_override_lookup(self):
        pending = make_override(3, date(2024, 1, 10), date(2024, 1, 12), "mom", status="pending")
        approved = make_override(4, date(2024, 1, 10), date(2024, 1, 12), "dad")
        assert pending_override_for_date([approved, pending], date(2024, 1, 11)) == pending
        assert pending_override_for_date([approved, pending], date(2024, 1, 13)) is None


class TestCustodySchedule:
    """Lookups inside and outside the pre-materialized window agree"""

    def test_dates_outside_window_are_computed_on_demand(self, two_week_cycle):
        far = date(2025, 6, 1)
        schedule = CustodySchedule(two_week_cycle, [], anchor=date(2024, 1, 10))
        anchored_at_far = CustodySchedule(two_week_cycle, [], anchor=far)
        assert schedule.assignment(far) == anchored_at_far.assignment(far)
        assert schedule.assignment(far) is not None

    def test_override_outside_window(self, two_week_cycle):
        far = date(2025, 6, 1)
        schedule = CustodySchedule(
            two_week_cycle,
            [make_override(1, far, far, "grandma")],
            anchor=date(2024, 1, 10),
        )
        assert schedule.assignment(far) == "grandma"

    def test_child_allocation_wins_over_day_label(self):
        cycle = make_cycle([{
            "parent_label": "dad",
            "allocations": [{"child_id": CHILD_ID, "parent_label": "mom"}],
        }])
        schedule = CustodySchedule(cycle, [], anchor=date(2024, 1, 10))
        assert schedule.assignment(date(2024, 1, 10)) == "dad"
        assert schedule.assignment(date(2024, 1, 10), CHILD_ID) == "mom"
        assert schedule.assignment(date(2024, 1, 10), CHILD_ID.upper()) == "mom"

    def test_materialize_window(self, two_week_cycle):
        schedule = CustodySchedule(
            two_week_cycle,
            [make_override(1, date(2024, 1, 8), date(2024, 1, 8), "mom")],
            anchor=date(2024, 1, 10),
        )
        days = schedule.materialize(date(2024, 1, 7), date(2024, 1, 9))
        assert [days[d].parent_label for d in sorted(days)] == ["dad", "mom", "dad"]
