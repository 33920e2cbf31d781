"""Presentation tables for the ranking views.

The analytics layer keeps ratios as raw fractions; this module is the only
place they become whole-number percentage strings.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd

from analytics.jurisdiction import JurisdictionSelector
from analytics.ranking import RankingRow, ViewKind

BASE_COLUMNS: List[str] = [
    "MMSI",
    "Flag",
    "Vessel Name",
    "Longitude",
    "Latitude",
    "Meetings",
    "Number of tracked meetings",
    "Number of dark meetings",
    "Median distance from shore (nm)",
    "tracked",
    "authorized",
    "Status",
]

__all__ = ["format_percent", "ranking_table", "view_subtitle"]


def format_percent(ratio: float) -> str:
    return f"{round(ratio * 100)} %"


def ranking_table(rows: Sequence[RankingRow], view: ViewKind = "flag") -> pd.DataFrame:
    """Render ranked rows as the table shown under a value box."""

    columns = list(BASE_COLUMNS)
    if view == "eez":
        columns.append("EEZ")
    elif view == "port":
        columns.append("Port Country")

    records = []
    for row in rows:
        record = {
            "MMSI": row.vessel_mmsi,
            "Flag": row.flag,
            "Vessel Name": row.vessel_name.title(),
            "Longitude": _round(row.longitude, 2),
            "Latitude": _round(row.latitude, 2),
            "Meetings": row.total_meetings,
            "Number of tracked meetings": row.tracked_encounter_count,
            "Number of dark meetings": row.dark_loitering_count,
            "Median distance from shore (nm)": _round(row.median_distance_from_shore_nm, 1),
            "tracked": format_percent(row.tracked_ratio),
            "authorized": format_percent(row.authorized_ratio),
            "Status": row.navigation_status,
        }
        if view == "eez":
            record["EEZ"] = row.eez
        elif view == "port":
            record["Port Country"] = row.eez
        records.append(record)
    return pd.DataFrame(records, columns=columns)


def view_subtitle(view: ViewKind, selector: Optional[JurisdictionSelector]) -> str:
    """Caption of the value box counting rows for ``view``."""

    anyone = selector is None or selector.kind == "any"
    label = selector.label if selector is not None else "any country"
    if view == "flag":
        return f"flagged to {label}"
    if view == "eez":
        return "in any EEZ" if anyone else f"in {label} EEZ"
    return "at any port" if anyone else f"at {label} ports"


def _round(value: Optional[float], digits: int) -> Optional[float]:
    if value is None:
        return None
    return round(value, digits)
