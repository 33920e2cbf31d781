"""Meeting, port-visit and vessel-status records plus the in-memory event store."""

from .records import (
    AuthorizationStatus,
    EncounterRecord,
    MeetingType,
    METERS_PER_NM,
    PortVisitRecord,
    VesselStatus,
)
from .store import EventStore

__all__ = [
    "AuthorizationStatus",
    "EncounterRecord",
    "EventStore",
    "MeetingType",
    "METERS_PER_NM",
    "PortVisitRecord",
    "VesselStatus",
]
