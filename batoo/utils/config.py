"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_optional(name: str) -> Optional[str]:
    raw = os.getenv(name, "").strip()
    return raw or None


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    seed_demo_data: bool
    calendar_api_base_url: str
    calendar_api_key: Optional[str]
    calendar_access_token: Optional[str]
    calendar_default_id: str
    calendar_lookahead_days: int
    calendar_max_results: int
    calendar_timeout_seconds: float
    calendar_timezone: Optional[str]
    listing_types: tuple[str, ...]
    default_price_unit: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; tests clear the cache to re-read."""
    return Settings(
        app_name=os.getenv("BATOO_APP_NAME", "Batoo Booking API"),
        app_version=os.getenv("BATOO_APP_VERSION", "1.0.0"),
        log_level=os.getenv("BATOO_LOG_LEVEL", "INFO"),
        database_path=Path(
            os.getenv("BATOO_DATABASE_PATH", str(PROJECT_ROOT / "data" / "batoo.db"))
        ),
        seed_demo_data=_env_bool("BATOO_SEED_DEMO_DATA", True),
        calendar_api_base_url=os.getenv(
            "GOOGLE_CALENDAR_API_BASE_URL",
            "https://www.googleapis.com/calendar/v3",
        ).rstrip("/"),
        calendar_api_key=_env_optional("GOOGLE_API_KEY"),
        calendar_access_token=_env_optional("GOOGLE_CALENDAR_ACCESS_TOKEN"),
        calendar_default_id=os.getenv("GOOGLE_CALENDAR_ID", "primary"),
        calendar_lookahead_days=int(os.getenv("BATOO_CALENDAR_LOOKAHEAD_DAYS", "60")),
        calendar_max_results=int(os.getenv("BATOO_CALENDAR_MAX_RESULTS", "50")),
        calendar_timeout_seconds=float(os.getenv("BATOO_CALENDAR_TIMEOUT_SECONDS", "5")),
        calendar_timezone=_env_optional("BATOO_CALENDAR_TIMEZONE"),
        listing_types=("yacht", "jetski", "experience", "other"),
        default_price_unit="day",
    )
