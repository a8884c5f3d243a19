from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

class HandoffItem(BaseModel):
    name: str
    flagged_missing: bool = False

class Handoff(BaseModel):
    id: Optional[int] = None
    family_id: str
    child_id: str
    from_parent_id: str
    to_parent_id: str
    scheduled_at: Optional[datetime] = None
    actual_at: datetime
    items_sent: List[HandoffItem] = Field(default_factory=list)
    notes: Optional[str] = None

class PickupRequest(BaseModel):
    child_id: str
    force: bool = False

class DropoffRequest(BaseModel):
    child_id: str
    location: str
    items: List[str] = Field(default_factory=list)

class PickupResult(BaseModel):
    child_id: str
    confirmed: bool
    unexpected_guardian: bool = False
    new_status: Optional[str] = None

class DropoffResult(BaseModel):
    child_id: str
    confirmed: bool
    new_status: str
