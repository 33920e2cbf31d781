from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Callable

import pytest

from events import EncounterRecord, EventStore, PortVisitRecord, VesselStatus

_ids = count(1000)


def meeting(
    vessel_mmsi: int,
    *,
    id=None,
    type: str = "encounter",
    start: datetime = datetime(2020, 3, 1, tzinfo=timezone.utc),
    hours: float = 6.0,
    distance_from_shore_m: float = 50_000.0,
    authorization_status: str = "unknown",
    vessel_name: str = "REEFER ONE",
    vessel_flag: str = "PAN",
    **extra,
) -> EncounterRecord:
    return EncounterRecord(
        id=str(id if id is not None else next(_ids)),
        vessel_mmsi=vessel_mmsi,
        vessel_name=vessel_name,
        vessel_flag=vessel_flag,
        start=start,
        end=start + timedelta(hours=hours),
        type=type,
        distance_from_shore_m=distance_from_shore_m,
        authorization_status=authorization_status,
        **extra,
    )


def port_visit(vessel_mmsi: int, start: datetime, end: datetime, **extra) -> PortVisitRecord:
    return PortVisitRecord(vessel_mmsi=vessel_mmsi, start=start, end=end, **extra)


def store_of(*records, ports=()) -> EventStore:
    encounters = [r for r in records if r.type == "encounter"]
    loiterings = [r for r in records if r.type == "loitering"]
    return EventStore.load(encounters, loiterings, ports)


def status(mmsi: int, **fields) -> VesselStatus:
    return VesselStatus(mmsi=mmsi, **fields)


@pytest.fixture
def make_meeting() -> Callable[..., EncounterRecord]:
    return meeting


@pytest.fixture
def make_store() -> Callable[..., EventStore]:
    return store_of


@pytest.fixture
def make_port_visit() -> Callable[..., PortVisitRecord]:
    return port_visit


@pytest.fixture
def make_status() -> Callable[..., VesselStatus]:
    return status
