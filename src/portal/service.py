"""Query interface consumed by the presentation layer.

:class:`ReeferPortal` holds read-only snapshots of the event store and the
vessel-status table. Every query is a pure computation over those snapshots,
so one instance can serve concurrent requests without locking.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime, time, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from analytics.jurisdiction import RosterEntry
from analytics.ranking import VIEW_KINDS, RankingFilters, RankingRow, ViewKind, latest_status, rank
from analytics.summary import DescriptiveSummary, describe, summarize
from analytics.suspicion import ScoreBuckets, SuspicionLevel, SuspicionScore, bucket_scores, score
from analytics.timeline import TimelineEvent, build_timeline
from common.settings import PortalSettings, load_settings
from events.records import VesselStatus
from events.store import EventStore
from history.client import HistoryResult, VesselHistoryClient, fetch_vessel_history
from ingest.tables import NATO_FILE, STATUS_FILE, load_store, read_nato_roster, read_vessel_status
from report.export import export_vessel_events
from report.tables import ranking_table

logger = logging.getLogger(__name__)

# Distinct filter selections kept in the rankings memo; least recently used go first
RANKING_CACHE_SIZE = 64

__all__ = ["RANKING_CACHE_SIZE", "ReeferPortal"]


class ReeferPortal:
    """Rankings, suspicion buckets and vessel pages over one data snapshot."""

    def __init__(
        self,
        store: EventStore,
        statuses: Iterable[VesselStatus] = (),
        *,
        nato_roster: Optional[Iterable[RosterEntry]] = None,
        settings: Optional[PortalSettings] = None,
        history_client: Optional[VesselHistoryClient] = None,
    ) -> None:
        self.settings = settings or PortalSettings()
        self.store = store.restrict_to_qualifying(self.settings.min_lifetime_meetings)
        self.statuses: Tuple[VesselStatus, ...] = tuple(statuses)
        self.nato_roster: Optional[Tuple[RosterEntry, ...]] = (
            tuple(nato_roster) if nato_roster is not None else None
        )
        self._history_client = history_client
        self._current = latest_status(self.statuses)
        self._scores: Optional[Dict[int, SuspicionScore]] = None
        self._rankings: "OrderedDict[RankingFilters, List[RankingRow]]" = OrderedDict()

    @classmethod
    def from_data_dir(cls, settings: Optional[PortalSettings] = None) -> "ReeferPortal":
        """Load the CSV exports under ``settings.data_dir``."""

        cfg = settings or load_settings()
        data_dir = cfg.data_dir
        store = load_store(data_dir, min_meetings=cfg.min_lifetime_meetings)
        status_path = data_dir / STATUS_FILE
        statuses = read_vessel_status(status_path) if status_path.exists() else []
        if not statuses:
            logger.warning("No vessel status table at %s; rankings will lack positions", status_path)
        roster_path = data_dir / NATO_FILE
        roster = read_nato_roster(roster_path) if roster_path.exists() else None
        return cls(store, statuses, nato_roster=roster, settings=cfg)

    # region rankings
    def get_rankings(self, filters: Optional[RankingFilters] = None) -> List[RankingRow]:
        cfg = filters or RankingFilters()
        cached = self._rankings.get(cfg)
        if cached is None:
            cached = rank(self.store, self.statuses, cfg, nato_roster=self.nato_roster)
            self._rankings[cfg] = cached
            if len(self._rankings) > RANKING_CACHE_SIZE:
                self._rankings.popitem(last=False)
        else:
            self._rankings.move_to_end(cfg)
        return list(cached)

    def ranking_table(self, filters: Optional[RankingFilters] = None) -> pd.DataFrame:
        cfg = filters or RankingFilters()
        return ranking_table(self.get_rankings(cfg), cfg.view)

    def view_counts(self, filters: Optional[RankingFilters] = None) -> Dict[ViewKind, int]:
        """Row count of each view (flag, EEZ, port) under the same filters."""

        cfg = filters or RankingFilters()
        return {view: len(self.get_rankings(replace(cfg, view=view))) for view in VIEW_KINDS}
    # endregion

    # region suspicion
    def scores(self) -> Dict[int, SuspicionScore]:
        if self._scores is None:
            self._scores = score(self.store)
        return dict(self._scores)

    def get_score_buckets(self) -> ScoreBuckets:
        return bucket_scores(
            self.scores(),
            medium_percentile=self.settings.medium_percentile,
            high_percentile=self.settings.high_percentile,
        )

    def vessel_positions(self, level: SuspicionLevel = "low") -> pd.DataFrame:
        """Current positions of vessels at or above ``level``, with map labels."""

        wanted = self.get_score_buckets().at_least(level)
        records = []
        for mmsi in sorted(wanted):
            status = self._current.get(mmsi)
            if status is None:
                continue
            destination = status.destination or "unknown"
            records.append(
                {
                    "MMSI": mmsi,
                    "Name": status.name,
                    "Flag": status.flag,
                    "Longitude": status.longitude,
                    "Latitude": status.latitude,
                    "Destination": destination,
                    "Label": f"Name: {status.name}, Flag: {status.flag}, Destination: {destination}",
                }
            )
        return pd.DataFrame(
            records,
            columns=["MMSI", "Name", "Flag", "Longitude", "Latitude", "Destination", "Label"],
        )

    def selectable_vessels(self) -> List[int]:
        """High-suspicion vessels that transmitted after ``settings.recent_since``."""

        cutoff = datetime.combine(self.settings.recent_since, time.max, tzinfo=timezone.utc)
        selectable: List[int] = []
        for mmsi in sorted(self.get_score_buckets().high):
            status = self._current.get(mmsi)
            if status is None or status.last_transmission_time is None:
                continue
            if status.last_transmission_time > cutoff:
                selectable.append(mmsi)
        return selectable
    # endregion

    # region vessel page
    def get_timeline(self, mmsi: int) -> List[TimelineEvent]:
        return build_timeline(self.store, mmsi)

    def get_summary(self, mmsi: int) -> Optional[DescriptiveSummary]:
        return summarize(self.store, mmsi)

    def describe_vessel(self, mmsi: int) -> Optional[str]:
        summary = self.get_summary(mmsi)
        return describe(summary) if summary is not None else None

    def export_vessel_events(self, mmsi: int) -> bytes:
        return export_vessel_events(self.store, mmsi)

    def get_history(self, mmsi: int, window_days: Optional[int] = None) -> HistoryResult:
        window = window_days or self.settings.history_window_days
        return fetch_vessel_history(self.history_client, mmsi, window)

    @property
    def history_client(self) -> VesselHistoryClient:
        if self._history_client is None:
            self._history_client = VesselHistoryClient(
                self.settings.history_base_url,
                api_key=self.settings.history_api_key,
                timeout=self.settings.history_timeout_s,
            )
        return self._history_client
    # endregion

    def vessels(self) -> Sequence[int]:
        return self.store.vessels()
