"""
Custody Actions
Guardian-initiated writes: pickup/dropoff confirmations and custody override
requests. Every write invalidates the cached snapshot and refreshes the store so
the next reconciliation sees the new facts.
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from core.security import uuid_to_string
from schemas.child import STATUS_AT_ACTIVITY, STATUS_AT_SCHOOL, STATUS_UNKNOWN, holder_from_status, with_status
from schemas.custody import SPLIT, CustodyOverride, OverrideDecision, OverrideStatus
from schemas.handoff import DropoffResult, Handoff, HandoffItem, PickupResult
from schemas.snapshot import FamilySnapshot
from services.errors import CustodyActionError, NotFoundError, SnapshotRefreshError
from services.family_repository import FamilyRepository
from services.label_resolver import LabelResolver
from services.reconciliation_service import FamilyContext, is_expected_guardian_today
from services.snapshot_store import SnapshotStore, snapshot_store

logger = logging.getLogger(__name__)

SCHOOL_KEYWORDS = ("school", "daycare", "kindergarten")

def map_location_to_status(location: Optional[str]) -> str:
    """Dropoff location text -> explicit status."""
    if not location or not location.strip():
        return STATUS_UNKNOWN
    lowered = location.lower()
    if any(keyword in lowered for keyword in SCHOOL_KEYWORDS):
        return STATUS_AT_SCHOOL
    return STATUS_AT_ACTIVITY

def event_status_for_date(snapshot: FamilySnapshot, viewer_id: str, day: date, now: Optional[datetime] = None) -> str:
    """
    Status a new event on `day` should get.

    Events the viewer adds on the co-parent's custody day need their approval.
    """
    ctx = FamilyContext(snapshot, viewer_id, now or datetime.now(timezone.utc))
    if ctx.resolver.is_solo:
        return "scheduled"
    expected = ctx.expected_label(day)
    if expected and expected != SPLIT and expected != ctx.resolver.my_label:
        return "pending_approval"
    return "scheduled"

class CustodyActionService:
    """Writes behind the pickup/dropoff buttons and the override workflow."""

    def __init__(self, repository=FamilyRepository, store: SnapshotStore = snapshot_store):
        self.repository = repository
        self.store = store

    async def _after_write(self, family_id: str) -> None:
        await self.repository.invalidate_snapshot(family_id)
        try:
            await self.store.refresh(family_id)
        except SnapshotRefreshError as e:
            # The write succeeded; readers keep the previous snapshot until the next refresh
            logger.warning(f"⚠️ Snapshot refresh after write failed: {e}")

    def _child(self, snapshot: FamilySnapshot, child_id: str):
        child = snapshot.find_child(uuid_to_string(child_id))
        if child is None:
            raise NotFoundError(f"Child {child_id} not found in family {snapshot.family_id}")
        return child

    async def confirm_pickup(
        self,
        snapshot: FamilySnapshot,
        viewer_id: str,
        child_id: str,
        now: Optional[datetime] = None,
        force: bool = False,
    ) -> PickupResult:
        """
        Record that the viewer now has the child.

        When the schedule expects the other guardian today, nothing is written
        unless `force` is set; the caller confirms with the guardian first.
        """
        now = now or datetime.now(timezone.utc)
        child = self._child(snapshot, child_id)

        if not force and not is_expected_guardian_today(snapshot, viewer_id, now):
            logger.info(f"🚸 Pickup of {child.name} by unexpected guardian {viewer_id}; confirmation required")
            return PickupResult(child_id=child.id, confirmed=False, unexpected_guardian=True)

        resolver = LabelResolver(snapshot.memberships, viewer_id)
        new_status = with_status(resolver.my_label)

        await self.repository.update_child_status(child.id, new_status, viewer_id, viewer_id, now)
        await self.repository.insert_handoff(Handoff(
            family_id=snapshot.family_id,
            child_id=child.id,
            from_parent_id=resolver.partner_id or viewer_id,
            to_parent_id=viewer_id,
            scheduled_at=now,
            actual_at=now,
        ))
        logger.info(f"✅ Pickup confirmed: {child.name} is now {new_status}")

        await self._after_write(snapshot.family_id)
        return PickupResult(child_id=child.id, confirmed=True, new_status=new_status)

    async def confirm_dropoff(
        self,
        snapshot: FamilySnapshot,
        viewer_id: str,
        child_id: str,
        location: str,
        items: Optional[List[str]] = None,
        now: Optional[datetime] = None,
    ) -> DropoffResult:
        """Record that the viewer dropped the child off at a location or with the co-parent."""
        now = now or datetime.now(timezone.utc)
        child = self._child(snapshot, child_id)
        resolver = LabelResolver(snapshot.memberships, viewer_id)

        if resolver.partner_label and location and location.strip().lower() == resolver.partner_label.lower():
            new_status = with_status(resolver.partner_label)
        else:
            new_status = map_location_to_status(location)
        if new_status == STATUS_UNKNOWN:
            raise CustodyActionError("A dropoff location is required")

        current_parent_id = resolver.partner_id if holder_from_status(new_status) else None

        await self.repository.update_child_status(child.id, new_status, current_parent_id, viewer_id, now)
        await self.repository.insert_handoff(Handoff(
            family_id=snapshot.family_id,
            child_id=child.id,
            from_parent_id=viewer_id,
            to_parent_id=resolver.partner_id or viewer_id,
            scheduled_at=now,
            actual_at=now,
            items_sent=[HandoffItem(name=item) for item in (items or [])],
            notes=f"Dropped off at {location}",
        ))
        logger.info(f"✅ Dropoff confirmed: {child.name} is now {new_status}")

        await self._after_write(snapshot.family_id)
        return DropoffResult(child_id=child.id, confirmed=True, new_status=new_status)

    async def request_override(
        self,
        snapshot: FamilySnapshot,
        viewer_id: str,
        from_date: date,
        to_date: date,
        override_parent: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CustodyOverride:
        """Create a pending override; ranges are validated here, at creation."""
        if from_date > to_date:
            raise CustodyActionError(f"Override range is inverted: {from_date} > {to_date}")

        resolver = LabelResolver(snapshot.memberships, viewer_id)
        label = resolver.to_label(override_parent)
        if label == SPLIT or not resolver.is_known_label(label):
            raise CustodyActionError(f"Unknown guardian label for override: {override_parent}")

        override = CustodyOverride(
            family_id=snapshot.family_id,
            from_date=from_date,
            to_date=to_date,
            override_parent=label,
            status=OverrideStatus.pending,
            reason=reason,
            requested_by=viewer_id,
            created_at=now or datetime.now(timezone.utc),
        )
        override_id = await self.repository.insert_override(override)
        logger.info(f"📝 Custody override {override_id} requested for {from_date}..{to_date} -> {label}")

        await self._after_write(snapshot.family_id)
        return override.model_copy(update={"id": override_id})

    async def respond_to_override(
        self,
        snapshot: FamilySnapshot,
        viewer_id: str,
        override_id: int,
        decision: OverrideDecision,
        now: Optional[datetime] = None,
    ) -> CustodyOverride:
        override = snapshot.find_override(override_id)
        if override is None:
            raise NotFoundError(f"Override {override_id} not found in family {snapshot.family_id}")
        if override.status != OverrideStatus.pending:
            raise CustodyActionError(f"Override {override_id} is already {OverrideStatus(override.status).value}")

        now = now or datetime.now(timezone.utc)
        status = OverrideStatus.approved if decision == OverrideDecision.approve else OverrideStatus.rejected
        await self.repository.update_override_status(override_id, status, viewer_id, now)
        logger.info(f"📝 Custody override {override_id} {status.value} by {viewer_id}")

        await self._after_write(snapshot.family_id)
        return override.model_copy(update={"status": status, "responded_by": viewer_id, "responded_at": now})

# Global instance wired to storage
custody_actions = CustodyActionService()
