from typing import Optional, List, Any
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator

SPLIT = "split"

class OverrideStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

class ChildAllocation(BaseModel):
    child_id: str
    parent_label: str

class CycleDay(BaseModel):
    """
    Canonical form of one cycle slot.

    Stored cycle_data entries are either a bare label string ('dad', 'mom',
    'split', or a guardian id) or a mapping {parent_label, allocations[]}.
    Both are normalized into this record when the cycle is loaded.
    """
    parent_label: Optional[str] = None
    allocations: List[ChildAllocation] = Field(default_factory=list)
    source: str = "cycle"

    class Config:
        frozen = True

    @property
    def is_empty(self) -> bool:
        return not self.parent_label and not self.allocations

    def label_for(self, child_id: Optional[str] = None) -> Optional[str]:
        """Assignment for a specific child, falling back to the day's label."""
        if child_id is not None:
            child_id = child_id.lower()
            for allocation in self.allocations:
                if allocation.child_id == child_id:
                    return allocation.parent_label
        return self.parent_label

def normalize_cycle_day(raw: Any) -> CycleDay:
    """Normalize a raw cycle_data entry; unknown shapes become an empty CycleDay."""
    if isinstance(raw, CycleDay):
        return raw
    if isinstance(raw, str):
        label = raw.strip()
        return CycleDay(parent_label=label or None)
    if isinstance(raw, dict):
        label = raw.get("parent_label")
        allocations = []
        for item in raw.get("allocations") or []:
            if not isinstance(item, dict):
                continue
            child_id = item.get("child_id")
            item_label = item.get("parent_label")
            if child_id and isinstance(item_label, str) and item_label:
                allocations.append(ChildAllocation(child_id=str(child_id).lower(), parent_label=item_label))
        return CycleDay(
            parent_label=label if isinstance(label, str) and label else None,
            allocations=allocations,
        )
    return CycleDay()

class CustodyCycle(BaseModel):
    id: Optional[int] = None
    family_id: Optional[str] = None
    cycle_length: int = 14
    cycle_data: List[CycleDay]
    valid_from: date
    valid_until: Optional[date] = None
    default_handoff_time: Optional[str] = None  # "HH:MM"
    version_number: int = 1

    @field_validator("cycle_data", mode="before")
    @classmethod
    def _normalize_cycle_data(cls, value):
        if not isinstance(value, list):
            return []
        return [normalize_cycle_day(entry) for entry in value]

    @field_validator("cycle_length", mode="before")
    @classmethod
    def _default_cycle_length(cls, value):
        return value or 14

class CustodyOverride(BaseModel):
    id: Optional[int] = None
    family_id: Optional[str] = None
    from_date: date
    to_date: date
    override_parent: str
    status: OverrideStatus = OverrideStatus.pending
    reason: Optional[str] = None
    requested_by: Optional[str] = None
    responded_by: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date

class OverrideRequest(BaseModel):
    from_date: date
    to_date: date
    override_parent: str
    reason: Optional[str] = None

class OverrideDecision(str, Enum):
    approve = "approve"
    reject = "reject"

class OverrideResponse(BaseModel):
    action: OverrideDecision

class ScheduleDay(BaseModel):
    date: date
    assignment: Optional[str] = None
    label: Optional[str] = None
    relative: Optional[str] = None
    is_override: bool = False
    pending_override: Optional[CustodyOverride] = None
