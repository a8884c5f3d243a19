from typing import Optional
from pydantic import BaseModel

class GuardianMembership(BaseModel):
    profile_id: str
    parent_label: str
    first_name: Optional[str] = None
