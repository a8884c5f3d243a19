from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel

# Explicit status values written by pickup/dropoff confirmations
STATUS_UNKNOWN = "unknown"
STATUS_AT_SCHOOL = "at_school"
STATUS_AT_ACTIVITY = "at_activity"
WITH_PREFIX = "with_"

def with_status(label: str) -> str:
    return f"{WITH_PREFIX}{label}"

def holder_from_status(status: Optional[str]) -> Optional[str]:
    """Return the role label in a with_<label> status, else None."""
    if status and status.startswith(WITH_PREFIX) and len(status) > len(WITH_PREFIX):
        return status[len(WITH_PREFIX):]
    return None

class Child(BaseModel):
    id: str
    family_id: Optional[str] = None
    name: str
    date_of_birth: Optional[date] = None
    current_status: str = STATUS_UNKNOWN
    current_parent_id: Optional[str] = None
    status_changed_at: Optional[datetime] = None
    status_changed_by: Optional[str] = None
