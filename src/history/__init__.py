"""Client for the external vessel position-history service."""

from .client import (
    DEFAULT_BASE_URL,
    HistoryResult,
    HistoryServiceError,
    PositionFix,
    VesselHistoryClient,
    fetch_vessel_history,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "HistoryResult",
    "HistoryServiceError",
    "PositionFix",
    "VesselHistoryClient",
    "fetch_vessel_history",
]
