"""Minimal SeaVision client for a vessel's recent position history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests
from pydantic import Field, ValidationError, validator

from common.models import RecordModel

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.seavision.volpe.dot.gov/v1"
DEFAULT_WINDOW_DAYS = 90

__all__ = [
    "DEFAULT_BASE_URL",
    "HistoryResult",
    "HistoryServiceError",
    "PositionFix",
    "VesselHistoryClient",
    "fetch_vessel_history",
]


class HistoryServiceError(RuntimeError):
    """Raised when the history service returns an error or malformed payload."""


class PositionFix(RecordModel):
    """One reported position of a vessel."""

    timestamp: datetime
    longitude: float = Field(..., ge=-180.0, le=180.0)
    latitude: float = Field(..., ge=-90.0, le=90.0)

    @validator("timestamp")
    def _utc(cls, value: datetime) -> datetime:  # noqa: D417
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def from_payload(cls, item: Mapping[str, Any]) -> "PositionFix":
        if not isinstance(item, Mapping):
            raise HistoryServiceError("Invalid position record in history payload")
        timestamp = item.get("timestamp") or item.get("timeOfFix") or item.get("time")
        try:
            return cls(
                timestamp=timestamp,
                longitude=item.get("longitude"),
                latitude=item.get("latitude"),
            )
        except ValidationError as exc:
            raise HistoryServiceError("Invalid position record in history payload") from exc


@dataclass
class HistoryResult:
    """Outcome of a history lookup; ``available`` is False when the service failed."""

    vessel_id: int
    window_days: int
    fixes: List[PositionFix] = field(default_factory=list)
    available: bool = True
    error: Optional[str] = None

    @classmethod
    def unavailable(cls, vessel_id: int, window_days: int, error: str) -> "HistoryResult":
        return cls(vessel_id=vessel_id, window_days=window_days, available=False, error=error)


class VesselHistoryClient:
    """Tiny wrapper around the ``/vessels/{mmsi}/history`` endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._session = session or requests.Session()
        self.timeout = timeout

    def fetch_history(self, vessel_id: int, window_days: int = DEFAULT_WINDOW_DAYS) -> List[PositionFix]:
        """Positions reported over the last ``window_days`` days, oldest first."""

        if window_days <= 0:
            raise ValueError("window_days must be positive")
        payload = self._get_json(f"vessels/{int(vessel_id)}/history", params={"age": str(window_days)})
        fixes = [PositionFix.from_payload(item) for item in _records(payload)]
        fixes.sort(key=lambda fix: fix.timestamp)
        return fixes

    def _get_json(self, path: str, *, params: Optional[Mapping[str, str]] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers: Dict[str, str] = {"accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        response = self._session.get(url, params=params, headers=headers, timeout=self.timeout)
        if response.status_code != 200:
            raise HistoryServiceError(f"History API error {response.status_code}: {response.text}")
        try:
            return response.json()
        except ValueError as exc:
            raise HistoryServiceError("History API returned invalid JSON") from exc


def fetch_vessel_history(
    client: VesselHistoryClient,
    vessel_id: int,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> HistoryResult:
    """Fetch history without raising; failures yield ``available=False``."""

    try:
        fixes = client.fetch_history(vessel_id, window_days)
    except (HistoryServiceError, requests.RequestException) as exc:
        logger.warning("Vessel history unavailable for %s: %s", vessel_id, exc)
        return HistoryResult.unavailable(int(vessel_id), window_days, str(exc))
    return HistoryResult(vessel_id=int(vessel_id), window_days=window_days, fixes=fixes)


def _records(payload: Any) -> Sequence[Mapping[str, Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in ("history", "data", "positions"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise HistoryServiceError("History API payload holds no position list")
