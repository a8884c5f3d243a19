"""
Reconciliation pass
Runs the status reconciler, conflict detector and next-handoff predictor for every
child of a family snapshot, on behalf of one viewing guardian.
"""

import logging
from datetime import date, datetime
from typing import Optional

from schemas.child import Child, holder_from_status
from schemas.snapshot import FamilySnapshot
from schemas.status import ChildReconciliation, FamilyReconciliation
from services import brief_service
from services.conflict_detector import detect_conflict
from services.handoff_predictor import next_handoff
from services.label_resolver import LabelResolver
from services.override_layer import CustodySchedule
from services.status_reconciler import UNKNOWN_STATUS, effective_status
from utils.local_time import to_local

logger = logging.getLogger(__name__)

class FamilyContext:
    """Per-evaluation view of a snapshot for one viewer: schedule + label resolver."""

    def __init__(self, snapshot: FamilySnapshot, viewer_id: str, now: datetime):
        self.snapshot = snapshot
        self.tz_name = snapshot.timezone
        self.now = to_local(now, self.tz_name)
        self.today: date = self.now.date()
        self.resolver = LabelResolver(snapshot.memberships, viewer_id)
        self.schedule = CustodySchedule(snapshot.cycle, snapshot.overrides, anchor=self.today)

    def expected_label(self, day: Optional[date] = None, child_id: Optional[str] = None) -> Optional[str]:
        return self.resolver.to_label(self.schedule.assignment(day or self.today, child_id))

def is_expected_guardian_today(snapshot: FamilySnapshot, viewer_id: str, now: datetime) -> bool:
    """Whether the viewer is who the schedule expects to hold the children today."""
    return is_expected(FamilyContext(snapshot, viewer_id, now))

def is_expected(ctx: FamilyContext) -> bool:
    """Anyone is expected when there is no schedule entry; split days are not a match."""
    expected = ctx.expected_label()
    if expected is None:
        return True
    return expected == ctx.resolver.my_label

def _next_action(status: str, ctx: FamilyContext) -> str:
    return "drop" if holder_from_status(status) == ctx.resolver.my_label else "pick"

def reconcile_child(child: Child, ctx: FamilyContext) -> ChildReconciliation:
    snapshot = ctx.snapshot
    status = effective_status(child, ctx.today, ctx.schedule, ctx.resolver)
    conflict = detect_conflict(child, status, snapshot.events, ctx.now, ctx.resolver, ctx.tz_name)
    handoff = next_handoff(
        child,
        ctx.now,
        ctx.schedule,
        ctx.resolver,
        snapshot.events,
        default_handoff_time=snapshot.default_handoff_time,
        default_handoff_location=snapshot.default_handoff_location,
        tz_name=ctx.tz_name,
    )
    return ChildReconciliation(
        child_id=child.id,
        name=child.name,
        effective_status=status,
        conflict=conflict,
        next_handoff=handoff,
        next_action=_next_action(status.status, ctx),
        current_parent_id=child.current_parent_id,
        next_event=brief_service.next_event(snapshot.events, child.id, ctx.now, ctx.tz_name),
        todays_events=brief_service.todays_events(snapshot.events, child.id, ctx.now, ctx.tz_name),
        day_progress=brief_service.day_progress(ctx.now),
    )

def _degraded(child: Child, ctx: FamilyContext) -> ChildReconciliation:
    return ChildReconciliation(
        child_id=child.id,
        name=child.name,
        effective_status=UNKNOWN_STATUS,
        next_action="pick",
        current_parent_id=child.current_parent_id,
        day_progress=brief_service.day_progress(ctx.now),
    )

def evaluate_family(snapshot: FamilySnapshot, viewer_id: str, now: datetime) -> FamilyReconciliation:
    """
    Reconcile every child in the snapshot.

    A failure while evaluating one child is logged and that child degrades to
    unknown status with no conflict or handoff; the others are still evaluated.
    """
    ctx = FamilyContext(snapshot, viewer_id, now)
    results = []
    for child in snapshot.children:
        try:
            results.append(reconcile_child(child, ctx))
        except Exception as e:
            logger.error(
                f"❌ Reconciliation failed for child {child.id} in family {snapshot.family_id}: {e}",
                exc_info=True,
            )
            results.append(_degraded(child, ctx))

    return FamilyReconciliation(
        family_id=snapshot.family_id,
        viewer_id=viewer_id,
        evaluated_at=ctx.now,
        snapshot_fetched_at=snapshot.fetched_at,
        is_expected_guardian_today=is_expected(ctx),
        children=results,
    )
