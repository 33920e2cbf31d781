"""Flat exports: a vessel's raw meeting rows as CSV and ranking briefs as JSON."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from analytics.ranking import RankingFilters, RankingRow
from events.records import METERS_PER_NM
from events.store import EventStore

EXPORT_COLUMNS = [
    "id",
    "type",
    "meeting_type",
    "vessel_mmsi",
    "vessel_name",
    "vessel_flag",
    "start",
    "end",
    "distance_from_shore_m",
    "distance_from_shore_nm",
    "other_vessel_name",
    "other_vessel_flag",
    "other_vessel_origin_port_country",
    "authorization_status",
    "destination_port_name",
    "destination_port_country",
    "region_memberships",
]

__all__ = ["EXPORT_COLUMNS", "export_filename", "export_vessel_events", "write_rankings_brief"]


def export_filename(mmsi: int) -> str:
    return f"meeting_of_{int(mmsi)}.csv"


def export_vessel_events(store: EventStore, mmsi: int) -> bytes:
    """CSV bytes of one vessel's meeting rows; header only for unknown vessels."""

    frame = store.filter_by_vessel(mmsi).meeting_frame
    frame["meeting_type"] = np.where(frame["type"] == "encounter", "tracked", "dark")
    frame["distance_from_shore_nm"] = frame["distance_from_shore_m"] / METERS_PER_NM
    frame["region_memberships"] = ["|".join(sorted(regions)) for regions in frame["region_memberships"]]
    for column in ("start", "end"):
        frame[column] = frame[column].map(_iso)
    return frame[EXPORT_COLUMNS].to_csv(index=False).encode("utf-8")


def write_rankings_brief(
    rows: Sequence[RankingRow],
    *,
    filters: RankingFilters,
    artifact_dir: Path,
    generated_at: Optional[datetime] = None,
) -> Path:
    """Write the ranking request and its rows as ``rankings.json``.

    Parameters
    ----------
    rows:
        Output of :func:`analytics.ranking.rank`.
    filters:
        The request that produced ``rows``.
    artifact_dir:
        Directory where the brief should be written.
    generated_at:
        Optional override for the timestamp; defaults to now (UTC).
    """

    artifact_dir.mkdir(parents=True, exist_ok=True)
    generated_at = (generated_at or datetime.now(timezone.utc)).astimezone(timezone.utc)

    brief = {
        "generated_at": _iso(generated_at),
        "filters": {
            "year_range": filters.year_range,
            "distance_band_nm": filters.distance_band_nm,
            "min_meetings": filters.min_meetings,
            "jurisdiction": filters.jurisdiction.label if filters.jurisdiction else None,
            "view": filters.view,
        },
        "row_count": len(rows),
        "rows": [row.model_dump(mode="json") for row in rows],
    }

    brief_path = artifact_dir / "rankings.json"
    brief_path.write_text(json.dumps(brief, indent=2, default=str))
    return brief_path


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")
