"""Per-vessel descriptive summary and the chart tables of the vessel page."""

from __future__ import annotations

import logging
from typing import Literal, Optional

import numpy as np
import pandas as pd
import pycountry
from pydantic import Field

from common.models import RecordModel
from events.records import METERS_PER_NM
from events.store import EventStore

logger = logging.getLogger(__name__)

DestinationKey = Literal["country", "port"]
UNKNOWN = "unknown"
MEETING_KINDS = ("tracked", "dark")

__all__ = [
    "DescriptiveSummary",
    "country_name",
    "describe",
    "destination_counts",
    "distance_histogram",
    "modal_value",
    "summarize",
]


class DescriptiveSummary(RecordModel):
    """Most frequent identity values and distance profile of one reefer."""

    vessel_mmsi: int
    meeting_count: int = Field(..., ge=0, description="Distinct meetings")
    vessel_name: Optional[str] = None
    vessel_flag: Optional[str] = None
    destination_port_country: Optional[str] = None
    encountered_vessel_flag: Optional[str] = None
    encountered_origin_port_country: Optional[str] = None
    median_distance_from_shore_nm: Optional[float] = None


def summarize(store: EventStore, mmsi: int) -> Optional[DescriptiveSummary]:
    """Summarise a vessel's meetings; ``None`` when the vessel is unknown.

    "Most frequent" ties go to the value met first in the store's canonical
    row order.
    """

    frame = store.filter_by_vessel(mmsi).meeting_frame
    if frame.empty:
        logger.debug("No meetings recorded for vessel %s", mmsi)
        return None

    median_m = frame["distance_from_shore_m"].median()
    return DescriptiveSummary(
        vessel_mmsi=int(mmsi),
        meeting_count=int(frame["id"].nunique()),
        vessel_name=modal_value(frame["vessel_name"]),
        vessel_flag=modal_value(frame["vessel_flag"]),
        destination_port_country=modal_value(frame["destination_port_country"]),
        encountered_vessel_flag=modal_value(frame["other_vessel_flag"]),
        encountered_origin_port_country=modal_value(frame["other_vessel_origin_port_country"]),
        median_distance_from_shore_nm=None if pd.isna(median_m) else float(median_m) / METERS_PER_NM,
    )


def describe(summary: DescriptiveSummary) -> str:
    """Render the summary as the vessel page's introductory paragraph."""

    name = summary.vessel_name.title() if summary.vessel_name else f"Vessel {summary.vessel_mmsi}"
    text = (
        f"{name} is a reefer vessel flagged to {country_name(summary.vessel_flag)} "
        f"and most frequently visits ports in {country_name(summary.destination_port_country)}."
    )
    if summary.median_distance_from_shore_nm is not None:
        text += (
            " Its median distance from shore during meetings with fishing vessels is "
            f"{round(summary.median_distance_from_shore_nm)} nautical miles."
        )
    return text


def modal_value(series: pd.Series) -> Optional[str]:
    values = series.dropna()
    values = values[values.astype(str).str.strip() != ""]
    if values.empty:
        return None
    # sort=False keeps first-appearance order and idxmax returns the first maximum
    counts = values.groupby(values, sort=False).size()
    return str(counts.idxmax())


def country_name(code: Optional[str]) -> str:
    """Common English name for an ISO3 code, falling back to the code itself."""

    if not code:
        return UNKNOWN
    try:
        country = pycountry.countries.get(alpha_3=code.strip().upper())
    except KeyError:
        country = None
    if country is None:
        return code
    return getattr(country, "common_name", None) or country.name


def distance_histogram(store: EventStore, mmsi: int, bin_nm: float = 25.0) -> pd.DataFrame:
    """Tracked and dark meeting counts per distance-from-shore bin.

    Bins are left-closed, start at zero and run to the farthest meeting.
    """

    if bin_nm <= 0:
        raise ValueError("bin_nm must be positive")
    columns = ["bin_start_nm", "bin_end_nm", *MEETING_KINDS]
    frame = store.filter_by_vessel(mmsi).meeting_frame
    frame = frame[frame["distance_from_shore_m"].notna()]
    if frame.empty:
        return pd.DataFrame(columns=columns)

    distance_nm = frame["distance_from_shore_m"] / METERS_PER_NM
    bins = np.floor(distance_nm / bin_nm).astype(int).rename("bin")
    kind = _meeting_kind(frame).rename("kind")
    table = (
        pd.crosstab(bins, kind)
        .reindex(columns=list(MEETING_KINDS), fill_value=0)
        .reindex(range(int(bins.max()) + 1), fill_value=0)
    )
    out = table.reset_index()
    out["bin_start_nm"] = out["bin"] * bin_nm
    out["bin_end_nm"] = out["bin_start_nm"] + bin_nm
    return out[columns].astype({"tracked": int, "dark": int})


def destination_counts(store: EventStore, mmsi: int, by: DestinationKey = "country") -> pd.DataFrame:
    """Meetings per destination the reefer headed to afterwards, split by kind."""

    columns = ["destination", *MEETING_KINDS, "total"]
    frame = store.filter_by_vessel(mmsi).meeting_frame
    if frame.empty:
        return pd.DataFrame(columns=columns)

    if by == "country":
        destination = frame["destination_port_country"].map(
            lambda code: country_name(code) if isinstance(code, str) and code else UNKNOWN
        )
    elif by == "port":
        destination = frame["destination_port_name"].map(
            lambda name: name.title() if isinstance(name, str) and name else UNKNOWN
        )
    else:
        raise ValueError(f"unknown destination key: {by!r}")

    table = (
        pd.crosstab(destination.rename("destination"), _meeting_kind(frame).rename("kind"))
        .reindex(columns=list(MEETING_KINDS), fill_value=0)
    )
    table["total"] = table["tracked"] + table["dark"]
    table = table.sort_values("total", ascending=False, kind="mergesort")
    return table.reset_index()[columns]


def _meeting_kind(frame: pd.DataFrame) -> pd.Series:
    return pd.Series(
        np.where(frame["type"] == "encounter", "tracked", "dark"),
        index=frame.index,
    )
