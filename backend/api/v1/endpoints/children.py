from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Query

from api.v1.deps import get_family_snapshot
from core.security import get_current_user
from core.logging import logger
from schemas.snapshot import FamilySnapshot
from schemas.status import Brief
from services.brief_service import BRIEF_MODE_SINCE_LAST_SEEN, BRIEF_MODE_TODAY, brief_since, build_brief
from services.family_repository import FamilyRepository
from utils.local_time import to_local

router = APIRouter()

@router.get("/{child_id}/brief", response_model=Brief)
async def get_child_brief(
    child_id: str,
    mode: str = Query(BRIEF_MODE_SINCE_LAST_SEEN, pattern=f"^({BRIEF_MODE_TODAY}|{BRIEF_MODE_SINCE_LAST_SEEN})$"),
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """
    Recap of a child's events since the current guardian last handed them over
    (capped at a few days), or since midnight in 'today' mode.
    """
    child = snapshot.find_child(child_id.lower())
    if child is None:
        raise HTTPException(status_code=404, detail=f"Child {child_id} not found")

    tz_name = snapshot.timezone
    now = to_local(datetime.now(timezone.utc), tz_name)

    last_handoff_at = None
    if mode == BRIEF_MODE_SINCE_LAST_SEEN:
        try:
            last_handoff = await FamilyRepository.get_last_handoff(snapshot.family_id, child.id, current_user['id'])
        except Exception as e:
            logger.error(f"❌ Error fetching last handoff for child {child.id}: {e}")
            raise HTTPException(status_code=503, detail="Handoff history is temporarily unavailable")
        if last_handoff is not None:
            last_handoff_at = to_local(last_handoff.actual_at, tz_name)

    since, had_handoff = brief_since(mode, last_handoff_at, now)
    return build_brief(snapshot.events, child.id, since, now, had_handoff=had_handoff, tz_name=tz_name)
