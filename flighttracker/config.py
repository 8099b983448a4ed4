"""Configuration settings for the FlightTracker backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


_DATA_DIR = Path(os.getenv("FLIGHTTRACKER_DATA_DIR", "./data"))


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    flighttracker_env: str = os.getenv("FLIGHTTRACKER_ENV", "local")
    log_level: str = os.getenv("FLIGHTTRACKER_LOG_LEVEL", "INFO")

    # Reference tables
    airlines_file: Path = Path(
        os.getenv("FLIGHTTRACKER_AIRLINES_FILE", str(_DATA_DIR / "airlines.csv"))
    )
    aircrafts_file: Path = Path(
        os.getenv("FLIGHTTRACKER_AIRCRAFTS_FILE", str(_DATA_DIR / "aircrafts.csv"))
    )

    # Route lookups
    route_api_url: str = os.getenv(
        "ROUTE_API_URL", "https://api.adsb.lol/api/0/routeset"
    )
    route_api_timeout: float = float(os.getenv("ROUTE_API_TIMEOUT", "5.0"))
    enable_routes_default: bool = _get_bool("ENABLE_ROUTES", default=False)

    # Network (SBS-1) stream
    aircraft_timeout_seconds: float = float(os.getenv("AIRCRAFT_TIMEOUT_SECONDS", "30"))
    reconnect_max_delay: float = float(os.getenv("RECONNECT_MAX_DELAY", "30"))

    # Poll (tar1090 aircraft.json)
    poll_default_path: str = os.getenv("POLL_DEFAULT_PATH", "/data/aircraft.json")
    poll_default_interval_ms: int = int(os.getenv("POLL_DEFAULT_INTERVAL_MS", "5000"))
    poll_timeout: float = float(os.getenv("POLL_TIMEOUT", "10.0"))


settings = Settings()

__all__ = ["settings", "Settings"]
