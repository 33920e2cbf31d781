"""In-memory event store over meeting and port-visit tables.

The store wraps two pandas frames and never mutates them after construction.
Every filter returns a new :class:`EventStore`, so filters compose by
chaining (predicate conjunction)::

    store.filter_by_year_range(2015, 2020).filter_by_distance_band(25, 1400)
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from common.errors import InvalidFilterRange
from common.models import field_names

from .records import METERS_PER_NM, EncounterRecord, PortVisitRecord

logger = logging.getLogger(__name__)

MEETING_COLUMNS: Tuple[str, ...] = field_names(EncounterRecord)
PORT_COLUMNS: Tuple[str, ...] = field_names(PortVisitRecord)

_OPTIONAL_MEETING_TEXT = (
    "other_vessel_name",
    "other_vessel_flag",
    "other_vessel_origin_port_country",
    "destination_port_name",
    "destination_port_country",
)

__all__ = ["EventStore", "MEETING_COLUMNS", "PORT_COLUMNS"]


class EventStore:
    """Immutable snapshot of meeting and port-visit records."""

    def __init__(self, meetings: pd.DataFrame, port_visits: pd.DataFrame) -> None:
        self._meetings = _normalize_meetings(meetings)
        self._ports = _normalize_ports(port_visits)

    # region constructors
    @classmethod
    def load(
        cls,
        encounters: Iterable[EncounterRecord],
        loiterings: Iterable[EncounterRecord],
        port_visits: Iterable[PortVisitRecord],
    ) -> "EventStore":
        rows = [record.model_dump() for record in encounters]
        rows.extend(record.model_dump() for record in loiterings)
        ports = [record.model_dump() for record in port_visits]
        store = cls(
            pd.DataFrame(rows, columns=list(MEETING_COLUMNS)),
            pd.DataFrame(ports, columns=list(PORT_COLUMNS)),
        )
        logger.debug(
            "Loaded %d meeting rows and %d port visits for %d vessels",
            len(store._meetings),
            len(store._ports),
            len(store.vessels()),
        )
        return store

    @classmethod
    def from_frames(cls, meetings: pd.DataFrame, port_visits: Optional[pd.DataFrame] = None) -> "EventStore":
        if port_visits is None:
            port_visits = pd.DataFrame(columns=list(PORT_COLUMNS))
        return cls(meetings, port_visits)

    @classmethod
    def empty(cls) -> "EventStore":
        return cls.from_frames(pd.DataFrame(columns=list(MEETING_COLUMNS)))
    # endregion

    # region accessors
    @property
    def meeting_frame(self) -> pd.DataFrame:
        return self._meetings.copy()

    @property
    def port_frame(self) -> pd.DataFrame:
        return self._ports.copy()

    def meetings(self) -> Tuple[EncounterRecord, ...]:
        return tuple(EncounterRecord(**_row_to_kwargs(row)) for row in self._meetings.to_dict("records"))

    def port_visits(self) -> Tuple[PortVisitRecord, ...]:
        return tuple(PortVisitRecord(**_row_to_kwargs(row)) for row in self._ports.to_dict("records"))

    def vessels(self) -> List[int]:
        return sorted(int(m) for m in self._meetings["vessel_mmsi"].unique())

    def has_vessel(self, mmsi: int) -> bool:
        return bool((self._meetings["vessel_mmsi"] == int(mmsi)).any())

    def meeting_counts(self) -> pd.Series:
        """Distinct meeting ids per vessel, indexed by MMSI in ascending order."""

        if self._meetings.empty:
            return pd.Series(dtype="int64", name="meeting_count")
        counts = self._meetings.groupby("vessel_mmsi", sort=True)["id"].nunique()
        return counts.rename("meeting_count").astype("int64")

    def __len__(self) -> int:
        return len(self._meetings)

    @property
    def is_empty(self) -> bool:
        return self._meetings.empty and self._ports.empty
    # endregion

    # region filters
    def filter_by_vessel(self, mmsi: int) -> "EventStore":
        mmsi = int(mmsi)
        return self._subset(
            self._meetings["vessel_mmsi"] == mmsi,
            self._ports["vessel_mmsi"] == mmsi,
        )

    def filter_by_vessels(self, mmsis: Iterable[int]) -> "EventStore":
        wanted = {int(m) for m in mmsis}
        return self._subset(
            self._meetings["vessel_mmsi"].isin(wanted),
            self._ports["vessel_mmsi"].isin(wanted),
        )

    def filter_by_date_range(self, start_date: date, end_date: date) -> "EventStore":
        """Keep records whose ``start`` falls on a day in ``[start_date, end_date]``."""

        if start_date > end_date:
            raise InvalidFilterRange(f"start_date {start_date} is after end_date {end_date}")
        lower = pd.Timestamp(start_date).tz_localize("UTC")
        upper = pd.Timestamp(end_date + timedelta(days=1)).tz_localize("UTC")
        return self._subset(
            (self._meetings["start"] >= lower) & (self._meetings["start"] < upper),
            (self._ports["start"] >= lower) & (self._ports["start"] < upper),
        )

    def filter_by_year_range(self, first_year: int, last_year: int) -> "EventStore":
        if first_year > last_year:
            raise InvalidFilterRange(f"year range {first_year}-{last_year} is reversed")
        return self.filter_by_date_range(date(first_year, 1, 1), date(last_year, 12, 31))

    def filter_by_distance_band(self, min_nm: float, max_nm: float) -> "EventStore":
        """Keep meetings between ``min_nm`` and ``max_nm`` nautical miles from shore.

        Port visits carry no distance and pass through unchanged.
        """

        validate_distance_band(min_nm, max_nm)
        lower = float(min_nm) * METERS_PER_NM
        upper = float(max_nm) * METERS_PER_NM
        distance = self._meetings["distance_from_shore_m"]
        return self._subset(
            (distance >= lower) & (distance <= upper),
            pd.Series(True, index=self._ports.index),
        )

    def restrict_to_qualifying(self, min_meetings: int) -> "EventStore":
        """Drop vessels with fewer than ``min_meetings`` distinct meetings."""

        counts = self.meeting_counts()
        keep = counts[counts >= min_meetings].index
        dropped = len(counts) - len(keep)
        if dropped:
            logger.info("Excluded %d vessels with fewer than %d meetings", dropped, min_meetings)
        return self.filter_by_vessels(keep)
    # endregion

    def _subset(self, meeting_mask: pd.Series, port_mask: pd.Series) -> "EventStore":
        clone = object.__new__(EventStore)
        clone._meetings = self._meetings.loc[meeting_mask].reset_index(drop=True)
        clone._ports = self._ports.loc[port_mask].reset_index(drop=True)
        return clone


def validate_distance_band(min_nm: float, max_nm: float) -> None:
    for value in (min_nm, max_nm):
        if value is None or math.isnan(float(value)):
            raise InvalidFilterRange("distance band bounds must be numbers")
    if min_nm < 0:
        raise InvalidFilterRange(f"distance band minimum {min_nm} nm is negative")
    if min_nm > max_nm:
        raise InvalidFilterRange(f"distance band {min_nm}-{max_nm} nm is reversed")


# Internal helpers -----------------------------------------------------------------

def _normalize_meetings(frame: pd.DataFrame) -> pd.DataFrame:
    missing = set(MEETING_COLUMNS).difference(frame.columns)
    # Optional columns may be absent from narrow inputs
    required = {"id", "vessel_mmsi", "start", "end", "type", "distance_from_shore_m"}
    if required & missing:
        raise KeyError(f"missing required meeting columns: {', '.join(sorted(required & missing))}")

    work = frame.copy()
    for column in missing:
        work[column] = None
    work = work[list(MEETING_COLUMNS)]
    work["id"] = work["id"].astype(str)
    work["vessel_mmsi"] = pd.to_numeric(work["vessel_mmsi"]).astype("int64")
    work["start"] = pd.to_datetime(work["start"], utc=True)
    work["end"] = pd.to_datetime(work["end"], utc=True)
    work["distance_from_shore_m"] = pd.to_numeric(work["distance_from_shore_m"]).astype(float)
    work["vessel_name"] = work["vessel_name"].fillna("").astype(str)
    work["vessel_flag"] = work["vessel_flag"].fillna("").astype(str)
    work["authorization_status"] = work["authorization_status"].fillna("unknown")
    for column in _OPTIONAL_MEETING_TEXT:
        work[column] = work[column].where(work[column].notna(), None)
    work["region_memberships"] = [
        frozenset(value) if isinstance(value, (set, frozenset, list, tuple)) else frozenset()
        for value in work["region_memberships"]
    ]
    return work.sort_values(["id", "type"], kind="mergesort").reset_index(drop=True)


def _normalize_ports(frame: pd.DataFrame) -> pd.DataFrame:
    work = frame.copy()
    for column in set(PORT_COLUMNS).difference(work.columns):
        work[column] = None
    work = work[list(PORT_COLUMNS)]
    work["vessel_mmsi"] = pd.to_numeric(work["vessel_mmsi"]).astype("int64")
    work["start"] = pd.to_datetime(work["start"], utc=True)
    work["end"] = pd.to_datetime(work["end"], utc=True)
    for column in ("port_name", "port_country"):
        work[column] = work[column].where(work[column].notna(), None)
    return work.reset_index(drop=True)


def _row_to_kwargs(row: dict) -> dict:
    out = {}
    for key, value in row.items():
        if isinstance(value, pd.Timestamp):
            value = value.to_pydatetime()
        elif value is not None and not isinstance(value, (frozenset, set)) and pd.isna(value):
            value = None
        out[key] = value
    return out
