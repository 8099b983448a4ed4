"""In-memory aircraft state accumulated from SBS-1 (BaseStation) messages."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Callable, Optional

from flighttracker.config import settings
from flighttracker.models.aircraft import AircraftRecord

logger = logging.getLogger("flighttracker.ingestors.store")

# Message types that carry aircraft state; everything else on the feed is noise.
SBS_MESSAGE_TYPES = frozenset({"MSG", "ID", "AIR"})

_HEX_IDENT = 4
_CALLSIGN = 10
_ALTITUDE = 11
_GROUND_SPEED = 12
_TRACK = 13
_LATITUDE = 14
_LONGITUDE = 15
_VERTICAL_RATE = 16
_SQUAWK = 17


def _field(fields: list[str], index: int) -> str | None:
    if index >= len(fields):
        return None
    value = fields[index].strip()
    return value or None


def _float_field(fields: list[str], index: int) -> float | None:
    raw = _field(fields, index)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.debug("Ignoring non-numeric SBS field %s: %r", index, raw)
        return None


@dataclass
class AircraftState:
    """Mutable state for one transponder address."""

    icao: str
    callsign: Optional[str] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None
    vertical_rate: Optional[float] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    squawk: Optional[str] = None
    count: int = 0
    last_seen: float = 0.0

    def to_record(self, now: float) -> AircraftRecord:
        return AircraftRecord(
            icao=self.icao,
            callsign=self.callsign,
            altitude=self.altitude,
            speed=self.speed,
            heading=self.heading,
            vertical_rate=self.vertical_rate,
            lat=self.lat,
            lng=self.lng,
            squawk=self.squawk,
            count=self.count,
            seen=round(max(now - self.last_seen, 0.0), 1),
        )


class AircraftStore:
    """Accumulate SBS-1 messages into per-aircraft state with a staleness timeout."""

    def __init__(
        self,
        *,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.aircraft_timeout_seconds
        self.clock = clock
        self._aircraft: dict[str, AircraftState] = {}

    def add_message(self, fields: list[str]) -> AircraftState | None:
        """Apply one split SBS-1 line. Returns the updated state, if any."""

        if not fields or fields[0].strip() not in SBS_MESSAGE_TYPES:
            return None
        hex_ident = _field(fields, _HEX_IDENT)
        if hex_ident is None:
            return None

        icao = hex_ident.upper()
        state = self._aircraft.get(icao)
        if state is None:
            state = AircraftState(icao=icao)
            self._aircraft[icao] = state

        state.count += 1
        state.last_seen = self.clock()

        callsign = _field(fields, _CALLSIGN)
        if callsign:
            state.callsign = callsign

        for attr, index in (
            ("altitude", _ALTITUDE),
            ("speed", _GROUND_SPEED),
            ("vertical_rate", _VERTICAL_RATE),
            ("lat", _LATITUDE),
            ("lng", _LONGITUDE),
        ):
            value = _float_field(fields, index)
            if value is not None:
                setattr(state, attr, value)

        track = _float_field(fields, _TRACK)
        if track is not None:
            state.heading = track % 360

        squawk = _field(fields, _SQUAWK)
        if squawk:
            state.squawk = squawk

        return state

    def prune(self) -> int:
        """Drop aircraft that have been silent for longer than the timeout."""

        cutoff = self.clock() - self.timeout
        stale = [icao for icao, state in self._aircraft.items() if state.last_seen < cutoff]
        for icao in stale:
            del self._aircraft[icao]
        if stale:
            logger.debug("Expired %s silent aircraft", len(stale))
        return len(stale)

    def aircraft(self) -> list[AircraftRecord]:
        self.prune()
        now = self.clock()
        return [state.to_record(now) for state in self._aircraft.values()]

    def __len__(self) -> int:
        return len(self._aircraft)


__all__ = ["AircraftState", "AircraftStore", "SBS_MESSAGE_TYPES"]
