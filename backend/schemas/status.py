from typing import Optional, List, Union, Literal, Annotated
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, Field

class StatusSource(str, Enum):
    explicit = "explicit"
    custody_cycle = "custody_cycle"
    custody_cycle_pending = "custody_cycle_pending"
    none = "none"

class EffectiveStatus(BaseModel):
    status: str
    source: StatusSource
    # Today's scheduled holder while a transition is awaiting confirmation
    expected_label: Optional[str] = None

    class Config:
        frozen = True

class HandoffPendingConflict(BaseModel):
    kind: Literal["handoff_pending"] = "handoff_pending"
    child_id: str
    child_name: str
    expected_label: str
    current_label: Optional[str] = None
    viewer_is_incoming: bool
    action: Literal["pickup", "dropoff"]

class DropoffNeededConflict(BaseModel):
    kind: Literal["dropoff_needed"] = "dropoff_needed"
    child_id: str
    child_name: str
    event_id: str
    event_title: Optional[str] = None
    event_type: str
    location: Optional[str] = None
    start_time: datetime
    minutes_until_start: Optional[int] = None

class DropoffOverdueConflict(BaseModel):
    kind: Literal["dropoff_overdue"] = "dropoff_overdue"
    child_id: str
    child_name: str
    event_id: str
    event_title: Optional[str] = None
    event_type: str
    location: Optional[str] = None
    start_time: datetime
    minutes_late: int

class PickupNeededConflict(BaseModel):
    kind: Literal["pickup_needed"] = "pickup_needed"
    child_id: str
    child_name: str
    event_id: str
    event_title: Optional[str] = None
    event_type: str
    location: Optional[str] = None
    end_time: datetime

Conflict = Annotated[
    Union[HandoffPendingConflict, DropoffNeededConflict, DropoffOverdueConflict, PickupNeededConflict],
    Field(discriminator="kind"),
]

class NextHandoffType(str, Enum):
    take_to_event = "takeToEvent"
    pickup = "pickup"
    dropoff = "dropoff"

class NextHandoff(BaseModel):
    type: NextHandoffType
    time: str  # "HH:MM"
    location: Optional[str] = None
    date: date
    event_id: Optional[str] = None

class NextEvent(BaseModel):
    time: str
    location: str = ""
    type: str

class TimelineEntry(BaseModel):
    time: str
    label: str
    pos: float

class ChildReconciliation(BaseModel):
    child_id: str
    name: str
    effective_status: EffectiveStatus
    conflict: Optional[Conflict] = None
    next_handoff: Optional[NextHandoff] = None
    next_action: Literal["pick", "drop"]
    current_parent_id: Optional[str] = None
    next_event: Optional[NextEvent] = None
    todays_events: List[TimelineEntry] = Field(default_factory=list)
    day_progress: float = 0.0

class FamilyReconciliation(BaseModel):
    family_id: str
    viewer_id: str
    evaluated_at: datetime
    snapshot_fetched_at: Optional[datetime] = None
    is_expected_guardian_today: bool
    children: List[ChildReconciliation] = Field(default_factory=list)

class BriefItem(BaseModel):
    id: str
    time: str
    timestamp: str
    type: str
    title: str
    description: str = ""
    location: str = ""
    backpack_items: List[str] = Field(default_factory=list)
    start_time: datetime

class Brief(BaseModel):
    child_id: str
    since: datetime
    had_handoff: bool
    items: List[BriefItem] = Field(default_factory=list)

class ExpectedGuardianResponse(BaseModel):
    is_expected_guardian: bool
    expected_label: Optional[str] = None
