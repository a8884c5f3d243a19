"""Pydantic schemas for API validation and reconciliation values."""

__all__ = [
    "child",
    "custody",
    "event",
    "family",
    "handoff",
    "snapshot",
    "status",
]
