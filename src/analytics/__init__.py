"""Reefer risk analytics: suspicion scores, rankings, timelines and summaries."""

from .jurisdiction import (
    FIVE_EYES,
    JurisdictionSelector,
    RosterEntry,
    filter_by_eez,
    filter_by_flag,
    observed_codes,
    parse_selector,
    resolve,
)
from .ranking import RankingFilters, RankingRow, ViewKind, latest_status, rank
from .summary import (
    DescriptiveSummary,
    describe,
    destination_counts,
    distance_histogram,
    summarize,
)
from .suspicion import ScoreBuckets, SuspicionLevel, SuspicionScore, bucket_scores, score
from .timeline import TimelineEvent, build_timeline, format_duration

__all__ = [
    "FIVE_EYES",
    "DescriptiveSummary",
    "JurisdictionSelector",
    "RankingFilters",
    "RankingRow",
    "RosterEntry",
    "ScoreBuckets",
    "SuspicionLevel",
    "SuspicionScore",
    "TimelineEvent",
    "ViewKind",
    "bucket_scores",
    "build_timeline",
    "describe",
    "destination_counts",
    "distance_histogram",
    "filter_by_eez",
    "filter_by_flag",
    "format_duration",
    "latest_status",
    "observed_codes",
    "parse_selector",
    "rank",
    "resolve",
    "score",
    "summarize",
]
