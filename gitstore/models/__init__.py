"""Models for gitstore."""

from gitstore.models.content import Entry, EntryKind, ErrorResponse, Summary
from gitstore.models.health import HealthCheckResponse, HealthStatus, ServiceHealth

__all__ = [
    "Entry",
    "EntryKind",
    "ErrorResponse",
    "HealthCheckResponse",
    "HealthStatus",
    "ServiceHealth",
    "Summary",
]
