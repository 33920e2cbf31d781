"""Readers for the Global Fishing Watch and SeaVision CSV exports.

Each reader maps the export's column names onto the record schema in
:mod:`events.records` and returns a pandas frame (or records) ready for
:class:`events.store.EventStore`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from analytics.jurisdiction import RosterEntry
from common.errors import TableFormatError
from events.records import VesselStatus
from events.store import MEETING_COLUMNS, PORT_COLUMNS, EventStore

logger = logging.getLogger(__name__)

MEETING_FIELDS: Dict[str, str] = {
    "id": "id",
    "type": "type",
    "start": "start",
    "end": "end",
    "vessel.mmsi": "vessel_mmsi",
    "vessel.name": "vessel_name",
    "vessel.flag": "vessel_flag",
    "distance_from_shore_m": "distance_from_shore_m",
    "encounter.encountered_vessel.name": "other_vessel_name",
    "encounter.encountered_vessel.flag": "other_vessel_flag",
    "encounter.encountered_vessel.origin_port.country": "other_vessel_origin_port_country",
    "encounter.authorization_status": "authorization_status",
    "vessel.destination_port.name": "destination_port_name",
    "vessel.destination_port.country": "destination_port_country",
    "regions.rfmo": "region_memberships",
}
PORT_FIELDS: Dict[str, str] = {
    "vessel.mmsi": "vessel_mmsi",
    "start": "start",
    "end": "end",
    "port.name": "port_name",
    "port.country": "port_country",
}
# SeaVision exports appear both raw and with R-mangled headers
STATUS_FIELDS: Dict[str, str] = {
    "MMSI": "mmsi",
    "Name": "name",
    "Flag": "flag",
    "Longitude": "longitude",
    "Latitude": "latitude",
    "Navigation Status": "navigation_status",
    "Navigation.Status": "navigation_status",
    "Destination": "destination",
    "Time of Fix (formatted)": "last_transmission_time",
    "Time.of.Fix..formatted.": "last_transmission_time",
    "ISO_TER1": "eez",
}

MEETING_FILES = ("encounter.csv", "loitering.csv")
PORT_FILE = "port.csv"
STATUS_FILE = "current_location.csv"
NATO_FILE = "nato_countries.csv"

__all__ = [
    "load_store",
    "read_meetings",
    "read_nato_roster",
    "read_port_visits",
    "read_vessel_status",
]


def read_meetings(path: Path) -> pd.DataFrame:
    """Read an encounter or loitering export into meeting columns.

    Rows that break record invariants (end before start, missing or negative
    distance) are dropped with a warning.
    """

    frame = _read_renamed(path, MEETING_FIELDS, required=("id", "vessel_mmsi", "start", "end", "type"))
    if "distance_from_shore_m" not in frame:
        raise TableFormatError(f"{path}: missing distance_from_shore_m column")
    frame["start"] = _parse_times(frame["start"], path)
    frame["end"] = _parse_times(frame["end"], path)
    frame["distance_from_shore_m"] = pd.to_numeric(frame["distance_from_shore_m"], errors="coerce")
    frame["type"] = frame["type"].astype(str).str.strip().str.lower()
    if "region_memberships" in frame:
        frame["region_memberships"] = [_split_regions(value) for value in frame["region_memberships"]]
    if "authorization_status" in frame:
        frame["authorization_status"] = (
            frame["authorization_status"].fillna("unknown").astype(str).str.strip().str.lower()
        )

    valid = (
        frame["type"].isin(["encounter", "loitering"])
        & (frame["end"] >= frame["start"])
        & (frame["distance_from_shore_m"] >= 0)
    )
    _warn_dropped(path, valid)
    return frame.loc[valid].reindex(columns=[c for c in MEETING_COLUMNS if c in frame]).reset_index(drop=True)


def read_port_visits(path: Path) -> pd.DataFrame:
    frame = _read_renamed(path, PORT_FIELDS, required=("vessel_mmsi", "start", "end"))
    frame["start"] = _parse_times(frame["start"], path)
    frame["end"] = _parse_times(frame["end"], path)
    valid = frame["end"] >= frame["start"]
    _warn_dropped(path, valid)
    return frame.loc[valid].reindex(columns=[c for c in PORT_COLUMNS if c in frame]).reset_index(drop=True)


def read_vessel_status(path: Path) -> List[VesselStatus]:
    frame = _read_renamed(path, STATUS_FIELDS, required=("mmsi",))
    if "last_transmission_time" in frame:
        # SeaVision prefixes the formatted fix time with a quote character
        cleaned = frame["last_transmission_time"].astype("string").str.strip("'\" ")
        frame["last_transmission_time"] = pd.to_datetime(cleaned, utc=True, errors="coerce")
    statuses: List[VesselStatus] = []
    for row in frame.to_dict("records"):
        statuses.append(VesselStatus(**_clean_row(row)))
    return statuses


def read_nato_roster(path: Path) -> List[RosterEntry]:
    frame = _read_csv(path)
    if not {"CTR", "CAT"}.issubset(frame.columns):
        raise TableFormatError(f"{path}: NATO roster needs CTR and CAT columns")
    frame = frame.dropna(subset=["CTR", "CAT"])
    return [RosterEntry(code=str(row.CTR), category=str(row.CAT)) for row in frame.itertuples(index=False)]


def load_store(data_dir: Path, *, min_meetings: int = 10) -> EventStore:
    """Load every meeting and port export in ``data_dir`` into a qualifying store."""

    meetings = [read_meetings(data_dir / name) for name in MEETING_FILES if (data_dir / name).exists()]
    if not meetings:
        raise FileNotFoundError(f"no meeting exports ({', '.join(MEETING_FILES)}) in {data_dir}")
    ports_path = data_dir / PORT_FILE
    ports: Optional[pd.DataFrame] = read_port_visits(ports_path) if ports_path.exists() else None
    store = EventStore.from_frames(pd.concat(meetings, ignore_index=True), ports)
    qualified = store.restrict_to_qualifying(min_meetings)
    logger.info("Loaded %d meeting rows for %d qualifying vessels", len(qualified), len(qualified.vessels()))
    return qualified


# Internal helpers -----------------------------------------------------------------

def _read_csv(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Table not found: {path}")
    try:
        return pd.read_csv(path)
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise TableFormatError(f"{path}: unreadable CSV") from exc


def _read_renamed(path: Path, fields: Mapping[str, str], required: Iterable[str]) -> pd.DataFrame:
    frame = _read_csv(path)
    # Drop R's row-name column when present
    frame = frame.loc[:, [c for c in frame.columns if not str(c).startswith("Unnamed")]]
    frame = frame.rename(columns=dict(fields))
    missing = [column for column in required if column not in frame.columns]
    if missing:
        raise TableFormatError(f"{path}: missing columns {', '.join(missing)}")
    return frame[[c for c in dict.fromkeys(fields.values()) if c in frame.columns]].copy()


def _parse_times(series: pd.Series, path: Path) -> pd.Series:
    parsed = pd.to_datetime(series, utc=True, errors="coerce")
    bad = parsed.isna() & series.notna()
    if bad.any():
        raise TableFormatError(f"{path}: {int(bad.sum())} unparseable timestamps")
    return parsed


def _split_regions(value: object) -> frozenset:
    if not isinstance(value, str) or not value.strip():
        return frozenset()
    return frozenset(part.strip() for part in value.split("|") if part.strip())


def _warn_dropped(path: Path, valid: pd.Series) -> None:
    dropped = int((~valid).sum())
    if dropped:
        logger.warning("%s: dropped %d rows violating record invariants", path, dropped)


def _clean_row(row: dict) -> dict:
    out = {}
    for key, value in row.items():
        if isinstance(value, pd.Timestamp):
            value = value.to_pydatetime()
        elif value is not None and pd.isna(value):
            value = None
        out[key] = value
    return out
