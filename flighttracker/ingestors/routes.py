"""Batched callsign to route resolution against a routeset API."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Iterable, Optional

import httpx

from flighttracker.config import settings
from flighttracker.models.aircraft import AircraftRecord

logger = logging.getLogger("flighttracker.ingestors.routes")

_DIGIT_RE = re.compile(r"\d")


def is_scheduled_callsign(callsign: str | None) -> bool:
    """Scheduled flights carry a flight number; tail-number callsigns do not."""

    return bool(callsign) and _DIGIT_RE.search(callsign) is not None


def _route_from_entry(entry: Any) -> tuple[str, str] | None:
    if not isinstance(entry, dict):
        return None
    callsign = entry.get("callsign")
    route = entry.get("route") or entry.get("_airport_codes_iata")
    if not isinstance(callsign, str) or not isinstance(route, str):
        return None
    callsign = callsign.strip()
    route = route.strip()
    if not callsign or not route or route.lower() == "unknown":
        return None
    return callsign, route


class RouteResolver:
    """Cache routes per callsign and look up new ones in one request per cycle.

    Cached routes live for the lifetime of the resolver and are never
    refetched. A callsign is never part of two outstanding requests.
    """

    def __init__(
        self,
        *,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url or settings.route_api_url
        self.timeout = timeout or settings.route_api_timeout
        self.transport = transport
        self.cache: dict[str, str] = {}
        self._pending: set[str] = set()
        self._tasks: set[asyncio.Task] = set()
        self.request_count = 0

    def route_for(self, callsign: str | None) -> Optional[str]:
        if not callsign:
            return None
        return self.cache.get(callsign)

    def eligible(self, records: Iterable[AircraftRecord]) -> list[AircraftRecord]:
        selected: dict[str, AircraftRecord] = {}
        for record in records:
            callsign = record.callsign
            if not is_scheduled_callsign(callsign) or not record.has_position:
                continue
            if callsign in self.cache or callsign in self._pending or callsign in selected:
                continue
            selected[callsign] = record
        return list(selected.values())

    def schedule(
        self,
        records: Iterable[AircraftRecord],
        on_resolved: Callable[[dict[str, str]], None] | None = None,
    ) -> asyncio.Task | None:
        """Start a background lookup for the eligible records, if any."""

        planes = self.eligible(records)
        if not planes:
            return None
        self._mark_pending(planes)
        task = asyncio.create_task(self._lookup(planes, on_resolved))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def resolve(
        self,
        records: Iterable[AircraftRecord],
        on_resolved: Callable[[dict[str, str]], None] | None = None,
    ) -> dict[str, str]:
        """Look up the eligible records now and return the routes found."""

        planes = self.eligible(records)
        if not planes:
            return {}
        self._mark_pending(planes)
        return await self._lookup(planes, on_resolved)

    async def wait_idle(self) -> None:
        """Wait for every background lookup started by ``schedule``."""

        while True:
            running = [task for task in self._tasks if not task.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    @property
    def pending(self) -> frozenset[str]:
        return frozenset(self._pending)

    def _mark_pending(self, planes: list[AircraftRecord]) -> None:
        for plane in planes:
            self._pending.add(plane.callsign)

    async def _lookup(
        self,
        planes: list[AircraftRecord],
        on_resolved: Callable[[dict[str, str]], None] | None,
    ) -> dict[str, str]:
        payload = {
            "planes": [
                {"callsign": plane.callsign, "lat": plane.lat, "lng": plane.lng}
                for plane in planes
            ]
        }
        try:
            routes = await self._post(payload)
        finally:
            for plane in planes:
                self._pending.discard(plane.callsign)

        if not routes:
            return {}

        self.cache.update(routes)
        logger.debug("Resolved %s routes (%s cached)", len(routes), len(self.cache))
        if on_resolved is not None:
            on_resolved(routes)
        return routes

    async def _send(self, payload: dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            return await client.post(self.url, json=payload)

    async def _post(self, payload: dict[str, Any]) -> dict[str, str]:
        self.request_count += 1
        try:
            # httpx timeouts apply per phase; wait_for bounds the whole call.
            response = await asyncio.wait_for(self._send(payload), self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            logger.warning("Route lookup timed out after %.1fs: %r", self.timeout, exc)
            return {}
        except httpx.RequestError as exc:
            logger.warning("Route lookup failed: %s", exc)
            return {}

        if response.status_code != 200:
            logger.debug("Route service returned HTTP %s", response.status_code)
            return {}

        try:
            body = response.json()
        except ValueError as exc:
            logger.debug("Failed to parse route response: %s", exc)
            return {}

        if not isinstance(body, list):
            logger.debug("Unexpected route response shape: %s", type(body).__name__)
            return {}

        routes: dict[str, str] = {}
        for entry in body:
            parsed = _route_from_entry(entry)
            if parsed:
                routes[parsed[0]] = parsed[1]
        return routes


def backfill_routes(records: Iterable[AircraftRecord], routes: dict[str, str]) -> int:
    """Set the route on every record whose callsign was resolved."""

    updated = 0
    for record in records:
        route = routes.get(record.callsign) if record.callsign else None
        if route:
            record.route = route
            updated += 1
    return updated


__all__ = ["RouteResolver", "backfill_routes", "is_scheduled_callsign"]
