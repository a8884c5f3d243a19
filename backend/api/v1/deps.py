from fastapi import Depends, HTTPException

from core.logging import logger
from core.security import get_current_user
from schemas.snapshot import FamilySnapshot
from services.errors import NotFoundError, SnapshotRefreshError
from services.snapshot_store import snapshot_store

async def get_family_snapshot(current_user = Depends(get_current_user)) -> FamilySnapshot:
    """The cached snapshot for the current user's family, fetched on first use."""
    family_id = current_user['family_id']
    try:
        return await snapshot_store.get_or_refresh(family_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SnapshotRefreshError as e:
        logger.error(f"❌ {e}")
        raise HTTPException(status_code=503, detail="Family data is temporarily unavailable, please retry")
