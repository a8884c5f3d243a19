"""
Label Resolver
Maps assignment values (role labels, guardian ids or 'split') into one label space
and relative to the viewing guardian.
"""

from typing import Dict, Iterable, Optional

from core.config import settings
from core.security import uuid_to_string
from schemas.custody import SPLIT
from schemas.family import GuardianMembership

ME = "me"

class LabelResolver:
    """Built once per evaluation from the family's memberships and the viewer id."""

    def __init__(self, memberships: Iterable[GuardianMembership], viewer_id: Optional[str]):
        self.memberships = list(memberships)
        self.viewer_id = uuid_to_string(viewer_id) if viewer_id else None
        self._label_by_id: Dict[str, str] = {
            uuid_to_string(m.profile_id): m.parent_label for m in self.memberships
        }
        self._known_labels = set(self._label_by_id.values())

        me = self._label_by_id.get(self.viewer_id) if self.viewer_id else None
        self.my_label: str = me or settings.DEFAULT_PARENT_LABEL

        partner = next(
            (m for m in self.memberships if uuid_to_string(m.profile_id) != self.viewer_id),
            None,
        )
        self.partner_id: Optional[str] = uuid_to_string(partner.profile_id) if partner else None
        self.partner_label: Optional[str] = partner.parent_label if partner else None

    @property
    def is_solo(self) -> bool:
        return self.partner_id is None

    def to_label(self, value: Optional[str]) -> Optional[str]:
        """Canonical role label for an assignment value; 'split' and unknown labels pass through."""
        if not value:
            return None
        if value == SPLIT:
            return SPLIT
        by_id = self._label_by_id.get(uuid_to_string(value))
        if by_id:
            return by_id
        return value

    def resolve(self, value: Optional[str]) -> Optional[str]:
        """'me', the partner's label, 'split', or the value itself."""
        label = self.to_label(value)
        if label is None or label == SPLIT:
            return label
        if label == self.my_label:
            return ME
        return label

    def is_known_label(self, value: Optional[str]) -> bool:
        label = self.to_label(value)
        return label == SPLIT or label in self._known_labels or label == self.my_label

    def is_me(self, value: Optional[str]) -> bool:
        return self.resolve(value) == ME

    def includes_me(self, value: Optional[str]) -> bool:
        """True for my days and for split days."""
        return self.resolve(value) in (ME, SPLIT)
