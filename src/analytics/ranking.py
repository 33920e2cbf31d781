"""Ranking tables of reefers by meeting activity, scoped by jurisdiction.

:func:`rank` is a pure function of its inputs: callers re-invoke it with a new
:class:`RankingFilters` whenever the selection changes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

import pandas as pd
from pydantic import Field

from common.errors import InvalidFilterRange
from common.models import RecordModel
from events.records import METERS_PER_NM, VesselStatus
from events.store import EventStore, validate_distance_band

from .jurisdiction import (
    JurisdictionSelector,
    RosterEntry,
    filter_by_eez,
    filter_by_flag,
    observed_codes,
    resolve,
)
from .summary import modal_value

logger = logging.getLogger(__name__)

ViewKind = Literal["flag", "eez", "port"]
VIEW_KINDS: Tuple[ViewKind, ...] = ("flag", "eez", "port")

__all__ = [
    "RankingFilters",
    "RankingRow",
    "VIEW_KINDS",
    "ViewKind",
    "latest_status",
    "rank",
]


@dataclass(frozen=True)
class RankingFilters:
    """Parameters of one ranking request; hashable so results can be memoised."""

    year_range: Optional[Tuple[int, int]] = None
    distance_band_nm: Optional[Tuple[float, float]] = None
    min_meetings: int = 0
    jurisdiction: Optional[JurisdictionSelector] = None
    view: ViewKind = "flag"

    def __post_init__(self) -> None:
        if self.year_range is not None:
            first, last = (int(y) for y in self.year_range)
            if first > last:
                raise InvalidFilterRange(f"year range {first}-{last} is reversed")
            object.__setattr__(self, "year_range", (first, last))
        if self.distance_band_nm is not None:
            low, high = (float(d) for d in self.distance_band_nm)
            validate_distance_band(low, high)
            object.__setattr__(self, "distance_band_nm", (low, high))
        if self.min_meetings < 0:
            raise InvalidFilterRange(f"min_meetings must be non-negative, got {self.min_meetings}")
        if self.view not in VIEW_KINDS:
            raise ValueError(f"unknown ranking view: {self.view!r}")


class RankingRow(RecordModel):
    """Vessel identity, meeting statistics and live status for one ranked reefer."""

    vessel_mmsi: int
    vessel_name: str = ""
    flag: str = ""
    tracked_encounter_count: int = Field(..., ge=0)
    dark_loitering_count: int = Field(..., ge=0)
    total_meetings: int = Field(..., ge=0)
    authorized_count: int = Field(0, ge=0)
    median_distance_from_shore_nm: Optional[float] = None
    tracked_ratio: float = Field(0.0, ge=0.0, le=1.0)
    authorized_ratio: float = Field(0.0, ge=0.0, le=1.0)
    longitude: Optional[float] = None
    latitude: Optional[float] = None
    navigation_status: Optional[str] = None
    destination: Optional[str] = None
    last_transmission_time: Optional[datetime] = None
    eez: Optional[str] = None


def rank(
    store: EventStore,
    statuses: Iterable[VesselStatus] = (),
    filters: Optional[RankingFilters] = None,
    *,
    nato_roster: Optional[Iterable[RosterEntry]] = None,
) -> List[RankingRow]:
    """Aggregate, join, scope and sort the meeting table.

    Rows are ordered by total meetings, descending; equal totals keep
    ascending MMSI order.
    """

    cfg = filters or RankingFilters()
    status_list = list(statuses)

    scoped = store
    if cfg.year_range is not None:
        scoped = scoped.filter_by_year_range(*cfg.year_range)
    if cfg.distance_band_nm is not None:
        scoped = scoped.filter_by_distance_band(*cfg.distance_band_nm)

    stats = _meeting_stats(scoped.meeting_frame)
    current = latest_status(status_list)
    rows = [_build_row(mmsi, record, current.get(mmsi)) for mmsi, record in stats.iterrows()]

    rows = _scope(rows, cfg, store, status_list, nato_roster)
    rows = [row for row in rows if row.total_meetings >= cfg.min_meetings]
    rows.sort(key=lambda row: -row.total_meetings)
    logger.debug("Ranking for %s produced %d rows", cfg, len(rows))
    return rows


def latest_status(statuses: Iterable[VesselStatus]) -> Dict[int, VesselStatus]:
    """Most recent status per MMSI; rows without a transmission time lose."""

    latest: Dict[int, VesselStatus] = {}
    for status in statuses:
        seen = latest.get(status.mmsi)
        if seen is None or _newer(status, seen):
            latest[status.mmsi] = status
    return latest


# Internal helpers -----------------------------------------------------------------

def _meeting_stats(frame: pd.DataFrame) -> pd.DataFrame:
    columns = ["vessel_name", "flag", "tracked", "dark", "authorized", "median_distance_m"]
    if frame.empty:
        return pd.DataFrame(columns=columns)

    work = frame.assign(
        tracked=(frame["type"] == "encounter").astype(int),
        dark=(frame["type"] == "loitering").astype(int),
        authorized=(frame["authorization_status"] == "authorized").astype(int),
    )
    stats = work.groupby("vessel_mmsi", sort=True).agg(
        tracked=("tracked", "sum"),
        dark=("dark", "sum"),
        authorized=("authorized", "sum"),
        median_distance_m=("distance_from_shore_m", "median"),
    )
    identity = _modal_identity(frame)
    return stats.join(identity, how="left")[columns]


def _modal_identity(frame: pd.DataFrame) -> pd.DataFrame:
    # rows within a group keep canonical table order, so modal ties match the summary page
    return frame.groupby("vessel_mmsi", sort=True).agg(
        vessel_name=("vessel_name", modal_value),
        flag=("vessel_flag", modal_value),
    )


def _build_row(mmsi: int, record: pd.Series, status: Optional[VesselStatus]) -> RankingRow:
    tracked = int(record["tracked"])
    dark = int(record["dark"])
    authorized = int(record["authorized"])
    total = tracked + dark
    median_m = float(record["median_distance_m"])
    return RankingRow(
        vessel_mmsi=int(mmsi),
        vessel_name=_text(record["vessel_name"]),
        flag=_text(record["flag"]),
        tracked_encounter_count=tracked,
        dark_loitering_count=dark,
        total_meetings=total,
        authorized_count=authorized,
        median_distance_from_shore_nm=None if math.isnan(median_m) else median_m / METERS_PER_NM,
        tracked_ratio=_ratio(tracked, total),
        authorized_ratio=_ratio(authorized, total),
        longitude=status.longitude if status else None,
        latitude=status.latitude if status else None,
        navigation_status=status.navigation_status if status else None,
        destination=status.destination if status else None,
        last_transmission_time=status.last_transmission_time if status else None,
        eez=status.eez if status else None,
    )


def _text(value: object) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value)


def _ratio(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return part / total


def _scope(
    rows: Sequence[RankingRow],
    cfg: RankingFilters,
    store: EventStore,
    statuses: Sequence[VesselStatus],
    nato_roster: Optional[Iterable[RosterEntry]],
) -> List[RankingRow]:
    scoped = list(rows)
    if cfg.jurisdiction is not None:
        universe = observed_codes(store, statuses) if cfg.jurisdiction.kind == "any" else ()
        codes = resolve(cfg.jurisdiction, nato_roster=nato_roster, universe=universe)
        if cfg.view == "flag":
            scoped = filter_by_flag(scoped, codes)
        else:
            scoped = filter_by_eez(scoped, codes)
    if cfg.view == "port":
        scoped = [row for row in scoped if row.navigation_status == "moored"]
    return scoped


def _newer(candidate: VesselStatus, current: VesselStatus) -> bool:
    if candidate.last_transmission_time is None:
        return False
    if current.last_transmission_time is None:
        return True
    return candidate.last_transmission_time > current.last_transmission_time
