import traceback
from fastapi import APIRouter, Depends, HTTPException

from api.v1.deps import get_family_snapshot
from core.security import get_current_user
from core.logging import logger
from schemas.handoff import DropoffRequest, DropoffResult, PickupRequest, PickupResult
from schemas.snapshot import FamilySnapshot
from services.custody_actions import custody_actions
from services.errors import CustodyActionError, NotFoundError

router = APIRouter()

@router.post("/pickup", response_model=PickupResult)
async def confirm_pickup(
    request: PickupRequest,
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """
    Confirm the current guardian picked the child up.
    Returns unexpected_guardian=true without writing when the schedule expects the
    co-parent today; resend with force=true after the guardian confirms.
    """
    logger.info(f"🚸 Pickup request: {request.model_dump_json()}")
    try:
        return await custody_actions.confirm_pickup(
            snapshot, current_user['id'], request.child_id, force=request.force
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Error confirming pickup: {e}")
        logger.error(f"📋 Full traceback: {traceback.format_exc()}")
        raise HTTPException(status_code=500, detail="Internal server error while confirming pickup")

@router.post("/dropoff", response_model=DropoffResult)
async def confirm_dropoff(
    request: DropoffRequest,
    current_user = Depends(get_current_user),
    snapshot: FamilySnapshot = Depends(get_family_snapshot),
):
    """Confirm the current guardian dropped the child off at a location."""
    logger.info(f"🚸 Dropoff request: {request.model_dump_json()}")
    try:
        return await custody_actions.confirm_dropoff(
            snapshot, current_user['id'], request.child_id, request.location, request.items
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CustodyActionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Error confirming dropoff: {e}")
        logger.error(f"📋 Full traceback: {traceback.format_exc()}")
        raise HTTPException(status_code=500, detail="Internal server error while confirming dropoff")
