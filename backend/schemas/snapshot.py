from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from schemas.child import Child
from schemas.custody import CustodyCycle, CustodyOverride
from schemas.event import Event
from schemas.family import GuardianMembership

class FamilySnapshot(BaseModel):
    """
    Everything the reconciliation engine needs for one family, fetched at once.

    Snapshots are never mutated; a refresh builds a new one and swaps it in whole.
    """
    family_id: str
    timezone: Optional[str] = None
    default_handoff_location: Optional[str] = None
    memberships: List[GuardianMembership] = Field(default_factory=list)
    children: List[Child] = Field(default_factory=list)
    cycle: Optional[CustodyCycle] = None
    overrides: List[CustodyOverride] = Field(default_factory=list)
    events: List[Event] = Field(default_factory=list)
    fetched_at: Optional[datetime] = None

    class Config:
        frozen = True

    def find_child(self, child_id: str) -> Optional[Child]:
        for child in self.children:
            if child.id == child_id:
                return child
        return None

    def find_override(self, override_id: int) -> Optional[CustodyOverride]:
        for override in self.overrides:
            if override.id == override_id:
                return override
        return None

    @property
    def default_handoff_time(self) -> Optional[str]:
        return self.cycle.default_handoff_time if self.cycle else None
