"""Record schemas for meetings, port visits and live vessel status."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import FrozenSet, Literal, Optional

from pydantic import Field, validator

from common.models import RecordModel

MeetingType = Literal["encounter", "loitering"]
AuthorizationStatus = Literal["authorized", "unauthorized", "unknown"]

METERS_PER_NM = 1852.0

__all__ = [
    "AuthorizationStatus",
    "EncounterRecord",
    "MeetingType",
    "METERS_PER_NM",
    "PortVisitRecord",
    "VesselStatus",
    "ensure_utc",
    "normalize_navigation_status",
]


class EncounterRecord(RecordModel):
    """One reefer meeting: a tracked encounter or a dark loitering event."""

    id: str = Field(..., description="Meeting identifier shared by mirrored rows")
    vessel_mmsi: int = Field(..., description="MMSI of the reefer")
    vessel_name: str = ""
    vessel_flag: str = ""
    start: datetime
    end: datetime
    type: MeetingType
    distance_from_shore_m: float = Field(..., ge=0.0)
    other_vessel_name: Optional[str] = None
    other_vessel_flag: Optional[str] = None
    other_vessel_origin_port_country: Optional[str] = None
    authorization_status: AuthorizationStatus = "unknown"
    destination_port_name: Optional[str] = None
    destination_port_country: Optional[str] = None
    region_memberships: FrozenSet[str] = Field(default_factory=frozenset)

    @validator("id", pre=True)
    def _coerce_id(cls, value: object) -> str:  # noqa: D417
        return str(value)

    @validator("start", "end")
    def _utc(cls, value: datetime) -> datetime:  # noqa: D417
        return ensure_utc(value)

    @validator("end")
    def _ordered(cls, value: datetime, values: dict) -> datetime:  # noqa: D417
        start = values.get("start")
        if start is not None and value < start:
            raise ValueError("end must not precede start")
        return value

    @validator("authorization_status", pre=True)
    def _authorization(cls, value: object) -> str:  # noqa: D417
        if value in (None, "") or (isinstance(value, float) and value != value):
            return "unknown"
        return str(value).strip().lower()

    @property
    def is_tracked(self) -> bool:
        return self.type == "encounter"

    @property
    def distance_from_shore_nm(self) -> float:
        return self.distance_from_shore_m / METERS_PER_NM


class PortVisitRecord(RecordModel):
    """A reefer's stay at a port."""

    vessel_mmsi: int
    start: datetime
    end: datetime
    port_name: Optional[str] = None
    port_country: Optional[str] = None

    @validator("start", "end")
    def _utc(cls, value: datetime) -> datetime:  # noqa: D417
        return ensure_utc(value)

    @validator("end")
    def _ordered(cls, value: datetime, values: dict) -> datetime:  # noqa: D417
        start = values.get("start")
        if start is not None and value < start:
            raise ValueError("end must not precede start")
        return value


class VesselStatus(RecordModel):
    """Last reported position of a vessel, refreshed outside this package."""

    mmsi: int
    name: Optional[str] = None
    flag: Optional[str] = None
    longitude: Optional[float] = None
    latitude: Optional[float] = None
    navigation_status: Optional[str] = None
    destination: Optional[str] = None
    last_transmission_time: Optional[datetime] = None
    eez: Optional[str] = Field(None, description="ISO3 code of the EEZ the vessel sits in")

    @validator("navigation_status", pre=True)
    def _status(cls, value: object) -> Optional[str]:  # noqa: D417
        return normalize_navigation_status(value)

    @validator("last_transmission_time")
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:  # noqa: D417
        return ensure_utc(value) if value is not None else None

    @property
    def is_moored(self) -> bool:
        return self.navigation_status == "moored"


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_navigation_status(value: object) -> Optional[str]:
    """Reduce AIS status strings such as ``"5-Moored"`` to ``"moored"``."""

    if value is None or (isinstance(value, float) and value != value):
        return None
    text = str(value).strip()
    if not text:
        return None
    head, sep, tail = text.partition("-")
    if sep and head.strip().isdigit():
        text = tail
    return "_".join(text.lower().split())
