from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

# Event types that place a child at a venue
VENUE_EVENT_TYPES = ("school", "activity")

class Event(BaseModel):
    id: str
    family_id: Optional[str] = None
    type: str = "manual"
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    all_day: bool = False
    location_name: Optional[str] = None
    status: str = "scheduled"
    child_ids: List[str] = Field(default_factory=list)

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"

    def involves(self, child_id: str) -> bool:
        return child_id in self.child_ids

class EventStatusResponse(BaseModel):
    date: str
    status: str
