"""Service-layer helpers for the FlightTracker backend."""

from .enrichment import EnrichmentPipeline, limit_aircraft, parse_order_by, sort_aircraft
from .geometry import haversine_distance, initial_bearing
from .reference_db import ReferenceDatabase
from .tracker import TrackingService, build_adapter

__all__ = [
    "EnrichmentPipeline",
    "ReferenceDatabase",
    "TrackingService",
    "build_adapter",
    "haversine_distance",
    "initial_bearing",
    "limit_aircraft",
    "parse_order_by",
    "sort_aircraft",
]
