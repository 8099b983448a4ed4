"""Aircraft sources for the FlightTracker backend."""

from .base import ConfigurationError, Listeners, SourceAdapter
from .poll import PollAdapter, parse_aircraft_document
from .routes import RouteResolver
from .store import AircraftStore
from .stream import ReconnectingConnection, StreamAdapter, backoff_delay

__all__ = [
    "AircraftStore",
    "ConfigurationError",
    "Listeners",
    "PollAdapter",
    "ReconnectingConnection",
    "RouteResolver",
    "SourceAdapter",
    "StreamAdapter",
    "backoff_delay",
    "parse_aircraft_document",
]
