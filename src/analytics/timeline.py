"""Chronological activity timeline for one reefer: meetings and port visits."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Literal, Optional

from common.models import RecordModel
from events.records import EncounterRecord, PortVisitRecord
from events.store import EventStore

logger = logging.getLogger(__name__)

TimelineKind = Literal["tracked_meeting", "dark_meeting", "port_visit"]

KIND_LABELS = {
    "tracked_meeting": "tracked meeting",
    "dark_meeting": "dark meeting",
    "port_visit": "at port",
}
# Durations from this length up are phrased in days
DAYS_THRESHOLD = timedelta(hours=48)
UNKNOWN = "unknown"

__all__ = [
    "DAYS_THRESHOLD",
    "TimelineEvent",
    "TimelineKind",
    "build_timeline",
    "describe_meeting",
    "describe_port_visit",
    "format_duration",
]


class TimelineEvent(RecordModel):
    kind: TimelineKind
    start: datetime
    end: datetime
    description: str
    duration: str
    distance_from_shore_nm: Optional[float] = None
    meeting_id: Optional[str] = None

    @property
    def label(self) -> str:
        return KIND_LABELS[self.kind]

    @property
    def is_meeting(self) -> bool:
        return self.kind != "port_visit"

    @property
    def caption(self) -> str:
        when = self.start.strftime("%b %d %Y at %H:%M")
        return f"{self.label} {self.description} on {when} for {self.duration}"


def build_timeline(store: EventStore, mmsi: int) -> List[TimelineEvent]:
    """Merge the vessel's port visits and meetings, ordered by start time.

    Equal start times keep port visits ahead of meetings. An unknown vessel
    yields an empty list.
    """

    vessel = store.filter_by_vessel(mmsi)
    events = [_port_event(visit) for visit in vessel.port_visits()]
    events.extend(_meeting_event(meeting) for meeting in vessel.meetings())
    if not events:
        logger.debug("No timeline events for vessel %s", mmsi)
    events.sort(key=lambda event: event.start)
    return events


def format_duration(start: datetime, end: datetime) -> str:
    elapsed = end - start
    if elapsed >= DAYS_THRESHOLD:
        return f"{round(elapsed / timedelta(days=1))} days"
    return f"{round(elapsed / timedelta(hours=1))} hours"


def describe_port_visit(port_name: Optional[str], port_country: Optional[str]) -> str:
    return f"{_title(port_name)} in {port_country or UNKNOWN}"


def describe_meeting(meeting: EncounterRecord) -> str:
    if meeting.is_tracked:
        return f"with {_title(meeting.other_vessel_name)}, flagged to {meeting.other_vessel_flag or UNKNOWN}"
    return "with unknown fishing vessel"


def _port_event(visit: PortVisitRecord) -> TimelineEvent:
    return TimelineEvent(
        kind="port_visit",
        start=visit.start,
        end=visit.end,
        description=describe_port_visit(visit.port_name, visit.port_country),
        duration=format_duration(visit.start, visit.end),
    )


def _meeting_event(meeting: EncounterRecord) -> TimelineEvent:
    return TimelineEvent(
        kind="tracked_meeting" if meeting.is_tracked else "dark_meeting",
        start=meeting.start,
        end=meeting.end,
        description=describe_meeting(meeting),
        duration=format_duration(meeting.start, meeting.end),
        distance_from_shore_nm=meeting.distance_from_shore_nm,
        meeting_id=meeting.id,
    )


def _title(value: Optional[str]) -> str:
    if not value:
        return UNKNOWN
    return value.strip().title()
