"""Exceptions raised by the storage and guardian-action layers."""


class HandoffServiceError(Exception):
    """Base class for service-level errors."""


class SnapshotRefreshError(HandoffServiceError):
    """Fetching a family snapshot failed; the previous snapshot stays in use."""

    retryable = True

    def __init__(self, family_id: str, message: str):
        self.family_id = family_id
        super().__init__(f"Failed to refresh snapshot for family {family_id}: {message}")


class CustodyActionError(HandoffServiceError):
    """A guardian action was rejected as invalid."""


class NotFoundError(HandoffServiceError):
    """A referenced child, override or family does not exist."""
