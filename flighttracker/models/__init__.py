"""Pydantic models for the FlightTracker backend."""

from .aircraft import AircraftRecord, Connectivity
from .reference import AircraftType, Airline
from .tracking import (
    AircraftListResponse,
    ClientConfig,
    ConnectivityResponse,
    StopResponse,
    TrackingConfig,
)

__all__ = [
    "AircraftListResponse",
    "AircraftRecord",
    "AircraftType",
    "Airline",
    "ClientConfig",
    "Connectivity",
    "ConnectivityResponse",
    "StopResponse",
    "TrackingConfig",
]
