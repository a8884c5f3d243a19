"""API v1 endpoints."""

__all__ = [
    "custody",
    "handoffs",
    "children",
]
