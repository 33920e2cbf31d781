"""Runtime settings for the reefer portal, read from ``.env`` and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from history.client import DEFAULT_BASE_URL as DEFAULT_HISTORY_BASE_URL

ENV_PREFIX = "REEFER_"


@dataclass(frozen=True)
class PortalSettings:
    """Knobs shared by the loaders, the analytics layer and the history client."""

    data_dir: Path = field(default_factory=lambda: Path("data"))
    history_base_url: str = DEFAULT_HISTORY_BASE_URL
    history_api_key: Optional[str] = None
    history_timeout_s: float = 10.0
    history_window_days: int = 90
    # Vessels below this many distinct meetings never enter the scored universe
    min_lifetime_meetings: int = 10
    recent_since: date = date(2023, 2, 1)
    medium_percentile: float = 0.5
    high_percentile: float = 0.9

    def __post_init__(self) -> None:
        if not 0.0 <= self.medium_percentile <= self.high_percentile <= 1.0:
            raise ValueError("percentile thresholds must satisfy 0 <= medium <= high <= 1")
        if self.history_window_days <= 0:
            raise ValueError("history_window_days must be positive")


def load_settings(env_file: Optional[Path] = None) -> PortalSettings:
    """Build :class:`PortalSettings` from ``REEFER_*`` variables.

    Values already present in the environment win over the ``.env`` file.
    """

    load_dotenv(dotenv_path=env_file, override=False)
    defaults = PortalSettings()
    api_key = _env("HISTORY_API_KEY") or os.getenv("api_key")
    return PortalSettings(
        data_dir=Path(_env("DATA_DIR") or defaults.data_dir),
        history_base_url=_env("HISTORY_BASE_URL") or defaults.history_base_url,
        history_api_key=api_key or None,
        history_timeout_s=float(_env("HISTORY_TIMEOUT_S") or defaults.history_timeout_s),
        history_window_days=int(_env("HISTORY_WINDOW_DAYS") or defaults.history_window_days),
        min_lifetime_meetings=int(_env("MIN_LIFETIME_MEETINGS") or defaults.min_lifetime_meetings),
        recent_since=_parse_date(_env("RECENT_SINCE")) or defaults.recent_since,
        medium_percentile=float(_env("MEDIUM_PERCENTILE") or defaults.medium_percentile),
        high_percentile=float(_env("HIGH_PERCENTILE") or defaults.high_percentile),
    )


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)
