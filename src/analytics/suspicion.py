"""Suspicion scoring: meeting counts turned into fleet percentiles."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Literal, Mapping

from pydantic import Field

from common.models import RecordModel
from events.store import EventStore

logger = logging.getLogger(__name__)

SuspicionLevel = Literal["low", "medium", "high"]

MEDIUM_PERCENTILE = 0.5
HIGH_PERCENTILE = 0.9

__all__ = [
    "HIGH_PERCENTILE",
    "MEDIUM_PERCENTILE",
    "ScoreBuckets",
    "SuspicionLevel",
    "SuspicionScore",
    "bucket_scores",
    "score",
]


class SuspicionScore(RecordModel):
    """Meeting count and fleet percentile for one reefer."""

    vessel_mmsi: int
    meeting_count: int = Field(..., ge=0, description="Distinct meetings (deduplicated by id)")
    percentile: float = Field(
        ..., ge=0.0, le=1.0, description="Share of vessels with at most this many meetings"
    )


@dataclass(frozen=True)
class ScoreBuckets:
    """Vessel sets at or above each suspicion level; ``high <= medium <= low``."""

    low: FrozenSet[int]
    medium: FrozenSet[int]
    high: FrozenSet[int]

    def at_least(self, level: SuspicionLevel) -> FrozenSet[int]:
        if level == "low":
            return self.low
        if level == "medium":
            return self.medium
        if level == "high":
            return self.high
        raise ValueError(f"unknown suspicion level: {level!r}")


def score(store: EventStore) -> Dict[int, SuspicionScore]:
    """Score every vessel in ``store``.

    Meeting counts use distinct ids so the encounter and loitering rows of one
    physical meeting count once. The percentile is the tie-inclusive fraction
    of vessels whose count is at or below the vessel's own.
    """

    counts = store.meeting_counts()
    if counts.empty:
        return {}
    # rank(max) / n == number of vessels with count <= own / n
    percentiles = counts.rank(method="max", pct=True)
    scores = {
        int(mmsi): SuspicionScore(
            vessel_mmsi=int(mmsi),
            meeting_count=int(count),
            percentile=float(percentiles[mmsi]),
        )
        for mmsi, count in counts.items()
    }
    logger.debug("Scored %d vessels", len(scores))
    return scores


def bucket_scores(
    scores: Mapping[int, SuspicionScore],
    *,
    medium_percentile: float = MEDIUM_PERCENTILE,
    high_percentile: float = HIGH_PERCENTILE,
) -> ScoreBuckets:
    if medium_percentile > high_percentile:
        raise ValueError("medium_percentile must not exceed high_percentile")
    low = frozenset(scores)
    medium = frozenset(m for m, s in scores.items() if s.percentile >= medium_percentile)
    high = frozenset(m for m, s in scores.items() if s.percentile >= high_percentile)
    return ScoreBuckets(low=low, medium=medium, high=high)
