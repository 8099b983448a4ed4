"""Poll-mode ingestion of tar1090/readsb ``aircraft.json`` snapshots."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from flighttracker.config import settings
from flighttracker.ingestors.base import Listeners, require_endpoint
from flighttracker.ingestors.routes import RouteResolver, backfill_routes
from flighttracker.models.aircraft import AircraftRecord
from flighttracker.models.tracking import ClientConfig

logger = logging.getLogger("flighttracker.ingestors.poll")


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):  # pragma: no cover
        return None


def _to_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):  # pragma: no cover
        return None


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _altitude(entry: dict[str, Any]) -> float | None:
    # readsb reports "ground" instead of a barometric altitude on the surface
    baro = entry.get("alt_baro")
    if baro == "ground":
        return 0.0
    if baro is not None:
        return _to_float(baro)
    return _to_float(entry.get("alt_geom"))


def _vertical_rate(entry: dict[str, Any]) -> float | None:
    baro = entry.get("baro_rate")
    if baro is not None:
        return _to_float(baro)
    return _to_float(entry.get("geom_rate"))


def map_aircraft(
    entry: Any, route_for: Callable[[str | None], Optional[str]] | None = None
) -> AircraftRecord | None:
    """Map one ``aircraft.json`` entry, dropping those with no callsign or registration."""

    if not isinstance(entry, dict):
        return None

    callsign = _to_str(entry.get("flight"))
    registration = _to_str(entry.get("r"))
    if not callsign and not registration:
        return None

    hex_id = _to_str(entry.get("hex")) or ""
    distance = _to_float(entry.get("r_dst"))
    return AircraftRecord(
        icao=hex_id.upper(),
        callsign=callsign,
        registration=registration,
        type=_to_str(entry.get("t")),
        description=_to_str(entry.get("desc")),
        operator=_to_str(entry.get("ownOp")),
        year=_to_str(entry.get("year")),
        altitude=_altitude(entry),
        speed=_to_float(entry.get("gs")),
        heading=_to_float(entry.get("track")),
        vertical_rate=_vertical_rate(entry),
        lat=_to_float(entry.get("lat")),
        lng=_to_float(entry.get("lon")),
        distance=distance,
        distance_unit="nm" if distance is not None else None,
        bearing=_to_float(entry.get("r_dir")),
        route=route_for(callsign) if route_for else None,
        squawk=_to_str(entry.get("squawk")),
        category=_to_str(entry.get("category")),
        rssi=_to_float(entry.get("rssi")),
        count=_to_int(entry.get("messages")),
        seen=_to_float(entry.get("seen")),
    )


def parse_aircraft_document(
    payload: Any, route_for: Callable[[str | None], Optional[str]] | None = None
) -> list[AircraftRecord] | None:
    """Parse an ``aircraft.json`` document. Returns None when it has no aircraft array."""

    if not isinstance(payload, dict):
        return None
    entries = payload.get("aircraft")
    if not isinstance(entries, list):
        return None

    records: list[AircraftRecord] = []
    for entry in entries:
        record = map_aircraft(entry, route_for)
        if record:
            records.append(record)
    return records


class PollAdapter:
    """Poll-mode source: refetch a JSON snapshot on a fixed timer.

    Fetches are not serialized. A slow request may still be running when the
    next tick fires, and whichever finishes last wins the snapshot.
    """

    mode = "poll"

    def __init__(
        self,
        client: ClientConfig,
        *,
        resolver: RouteResolver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self.client = client
        self.resolver = resolver
        self.transport = transport
        self.timeout = timeout or settings.poll_timeout
        self._sleep = sleep or asyncio.sleep
        self._snapshot: list[AircraftRecord] = []
        self._connected: bool | None = None
        self._connectivity: Listeners[bool] = Listeners()
        self._updates: Listeners[list[AircraftRecord]] = Listeners()
        self._timer: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        self._stopped = False

    @property
    def url(self) -> str:
        path = self.client.path or settings.poll_default_path
        if not path.startswith("/"):
            path = "/" + path
        return f"http://{self.client.host}:{self.client.port}{path}"

    @property
    def interval_seconds(self) -> float:
        interval_ms = self.client.interval or settings.poll_default_interval_ms
        return interval_ms / 1000.0

    def add_connectivity_callback(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        return self._connectivity.add(callback)

    def add_update_callback(
        self, callback: Callable[[list[AircraftRecord]], None]
    ) -> Callable[[], None]:
        return self._updates.add(callback)

    def start(self) -> None:
        require_endpoint(self.client.host, self.client.port)
        if self._timer is not None:
            raise RuntimeError("Cannot start the poll adapter more than once")
        logger.info(
            "Polling %s every %.1f seconds", self.url, self.interval_seconds
        )
        self._timer = asyncio.create_task(self._run())

    def stop(self) -> None:
        self._stopped = True
        self._connectivity.close()
        self._updates.close()
        if self._timer is not None:
            self._timer.cancel()
        for task in list(self._in_flight):
            task.cancel()
        self._in_flight.clear()

    def aircraft(self) -> list[AircraftRecord]:
        return list(self._snapshot)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def _run(self) -> None:
        while not self._stopped:
            task = asyncio.create_task(self.fetch())
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            await self._sleep(self.interval_seconds)

    async def fetch(self) -> bool:
        """Run one fetch cycle. Returns True when the snapshot was replaced."""

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(self.url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Fetching %s timed out: %s", self.url, exc)
            self._set_connected(False)
            return False
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Fetching %s returned HTTP %s", self.url, exc.response.status_code
            )
            self._set_connected(False)
            return False
        except httpx.RequestError as exc:
            logger.warning("Fetching %s failed: %s", self.url, exc)
            self._set_connected(False)
            return False

        self._set_connected(True)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Failed to parse aircraft JSON from %s: %s", self.url, exc)
            return False

        route_for = self.resolver.route_for if self.resolver else None
        records = parse_aircraft_document(payload, route_for)
        if records is None:
            logger.warning("Document from %s has no aircraft array", self.url)
            return False

        if self._stopped:
            return False

        self._snapshot = records
        logger.debug("Ingested %s aircraft from %s", len(records), self.url)
        self._updates.emit(list(records))
        if self.resolver is not None:
            self.resolver.schedule(records, on_resolved=self._backfill)
        return True

    def _backfill(self, routes: dict[str, str]) -> None:
        backfill_routes(self._snapshot, routes)

    def _set_connected(self, connected: bool) -> None:
        # Every failed fetch reports a disconnect; connect fires on recovery only.
        if self._stopped or (connected and self._connected is True):
            return
        self._connected = connected
        self._connectivity.emit(connected)


__all__ = ["PollAdapter", "map_aircraft", "parse_aircraft_document"]
