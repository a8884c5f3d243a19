import traceback
from typing import List, Optional
from datetime import date, datetime, timedelta, timezone
from fastapi import APIRouter, Depends, HTTPException, Query

from api.v1.deps import get_family_snapshot
from core.security import get_current_user
from core.logging import logger
from schemas.custody import CustodyOverride, OverrideRequest, OverrideResponse, ScheduleDay
from schemas.event import EventStatusResponse
from schemas.snapshot import FamilySnapshot
from schemas.status import ExpectedGuardianResponse, FamilyReconciliation
from services.custody_actions import custody_actions, event_status_for_date
from services.errors import CustodyActionError, NotFoundError, SnapshotRefreshError
from services.family_repository import FamilyRepository
from services.override_layer import pending_override_for_date
from services.reconciliation_service import FamilyContext, evaluate_family, is_expected
from services.snapshot_store import reconciliation_ticker, snapshot_store

router = APIRouter()

MAX_SCHEDULE_WINDOW_DAYS = 120

@router.get("/status", response_model=FamilyReconciliation)
async def get_custody_status(
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """
    Effective status, conflict, next handoff and next action for every child,
    as seen by the current guardian.
    """
    try:
        result = evaluate_family(snapshot, current_user['id'], datetime.now(timezone.utc))
        reconciliation_ticker.watch(snapshot.family_id, current_user['id'])
        return result
    except Exception as e:
        logger.error(f"❌ Error evaluating custody status: {e}")
        logger.error(f"📋 Full traceback: {traceback.format_exc()}")
        raise HTTPException(status_code=500, detail="Internal server error while evaluating custody status")

@router.get("/expected-today", response_model=ExpectedGuardianResponse)
async def get_expected_today(
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """Whether the current guardian is the one the schedule expects today."""
    ctx = FamilyContext(snapshot, current_user['id'], datetime.now(timezone.utc))
    expected = ctx.expected_label()
    return ExpectedGuardianResponse(
        is_expected_guardian=is_expected(ctx),
        expected_label=expected,
    )

@router.get("/schedule", response_model=List[ScheduleDay])
async def get_schedule(
    start_date: date = Query(...),
    end_date: date = Query(...),
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """Materialized schedule (cycle + approved overrides) with pending overrides flagged."""
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    if (end_date - start_date).days > MAX_SCHEDULE_WINDOW_DAYS:
        raise HTTPException(status_code=400, detail=f"Window is limited to {MAX_SCHEDULE_WINDOW_DAYS} days")

    ctx = FamilyContext(snapshot, current_user['id'], datetime.now(timezone.utc))
    materialized = ctx.schedule.materialize(start_date, end_date)

    days = []
    current = start_date
    while current <= end_date:
        entry = materialized.get(current)
        assignment = entry.parent_label if entry else None
        days.append(ScheduleDay(
            date=current,
            assignment=assignment,
            label=ctx.resolver.to_label(assignment),
            relative=ctx.resolver.resolve(assignment),
            is_override=entry is not None and entry.source == "override",
            pending_override=ctx.schedule.pending_override(current),
        ))
        current += timedelta(days=1)
    return days

@router.get("/pending-override/{day}", response_model=Optional[CustodyOverride])
async def get_pending_override(
    day: date,
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """The pending override covering a date, if any. Pending overrides never change the schedule."""
    return pending_override_for_date(snapshot.overrides, day)

@router.get("/event-status/{day}", response_model=EventStatusResponse)
async def get_event_status(
    day: date,
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """Status a new event on this date gets: pending_approval on the co-parent's custody day."""
    return EventStatusResponse(
        date=str(day),
        status=event_status_for_date(snapshot, current_user['id'], day),
    )

@router.post("/overrides", response_model=CustodyOverride)
async def request_custody_override(
    request: OverrideRequest,
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """Request a one-off custody change; it stays pending until the co-parent responds."""
    logger.info(f"📝 Received override request: {request.model_dump_json()}")
    try:
        return await custody_actions.request_override(
            snapshot,
            current_user['id'],
            request.from_date,
            request.to_date,
            request.override_parent,
            request.reason,
        )
    except CustodyActionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Error requesting custody override: {e}")
        logger.error(f"📋 Full traceback: {traceback.format_exc()}")
        raise HTTPException(status_code=500, detail="Internal server error while requesting override")

@router.post("/overrides/{override_id}/respond", response_model=CustodyOverride)
async def respond_to_custody_override(
    override_id: int,
    response: OverrideResponse,
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """Approve or reject a pending override."""
    try:
        return await custody_actions.respond_to_override(
            snapshot, current_user['id'], override_id, response.action
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CustodyActionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Error responding to custody override {override_id}: {e}")
        logger.error(f"📋 Full traceback: {traceback.format_exc()}")
        raise HTTPException(status_code=500, detail="Internal server error while responding to override")

@router.post("/refresh", response_model=dict)
async def refresh_snapshot(current_user = Depends(get_current_user)):
    """Re-fetch the family's data; the previous snapshot stays in use if this fails."""
    family_id = current_user['family_id']
    await FamilyRepository.invalidate_snapshot(family_id)
    try:
        snapshot = await snapshot_store.refresh(family_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SnapshotRefreshError as e:
        logger.error(f"❌ {e}")
        raise HTTPException(status_code=503, detail="Refresh failed, please retry")
    return {
        "status": "success",
        "family_id": family_id,
        "fetched_at": snapshot.fetched_at,
    }
