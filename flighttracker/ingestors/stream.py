"""SBS-1 (BaseStation) TCP stream ingestion with reconnection backoff."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable

from flighttracker.config import settings
from flighttracker.ingestors.base import Listeners, require_endpoint
from flighttracker.ingestors.routes import RouteResolver
from flighttracker.ingestors.store import SBS_MESSAGE_TYPES, AircraftStore
from flighttracker.models.aircraft import AircraftRecord
from flighttracker.models.tracking import ClientConfig

logger = logging.getLogger("flighttracker.ingestors.stream")

Connector = Callable[
    [str, int], Awaitable[tuple[asyncio.StreamReader, asyncio.StreamWriter]]
]
Sleeper = Callable[[float], Awaitable[None]]


def backoff_delay(attempts: int, max_delay: float | None = None) -> float:
    """Seconds to wait before reconnect attempt number ``attempts``."""

    ceiling = max_delay if max_delay is not None else settings.reconnect_max_delay
    return min(attempts ** 2, ceiling)


def split_sbs_line(line: str) -> list[str] | None:
    """Split a feed line, returning None for lines that carry no aircraft state."""

    fields = line.strip().split(",")
    if fields[0] not in SBS_MESSAGE_TYPES:
        return None
    return fields


class ReconnectingConnection:
    """Keep one SBS-1 TCP stream open and feed its lines into an AircraftStore.

    The attempt counter is never reset, so a connection that has dropped
    before keeps its longer backoff after a successful reconnect.
    """

    def __init__(
        self,
        *,
        host: str | None,
        port: int | None,
        store: AircraftStore,
        connect: Connector | None = None,
        sleep: Sleeper | None = None,
        max_delay: float | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.store = store
        self.max_delay = max_delay
        self.attempts = 0
        self._connect = connect or asyncio.open_connection
        self._sleep = sleep or asyncio.sleep
        self._events: Listeners[bool] = Listeners()
        self._task: asyncio.Task | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._stopped = False

    def add_listener(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        return self._events.add(callback)

    def start(self) -> None:
        require_endpoint(self.host, self.port)
        if self._task is not None:
            raise RuntimeError("Cannot start the stream connection more than once")
        self._task = asyncio.create_task(self.run())

    def stop(self) -> None:
        self._stopped = True
        self._events.close()
        if self._task is not None:
            self._task.cancel()
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def run(self) -> None:
        """Stream until stopped, reconnecting after every close or failure."""

        while not self._stopped:
            try:
                await self._connect_and_stream()
            except asyncio.CancelledError:
                logger.info("Stream to %s:%s cancelled", self.host, self.port)
                raise
            except Exception as exc:
                logger.error(
                    "Failed to open stream to %s:%s: %s", self.host, self.port, exc
                )

            if self._stopped:
                return

            self._events.emit(False)
            self.attempts += 1
            delay = backoff_delay(self.attempts, self.max_delay)
            logger.warning(
                "Stream to %s:%s has been closed. Retrying to open it again in %s seconds ...",
                self.host,
                self.port,
                delay,
            )
            await self._sleep(delay)

    async def _connect_and_stream(self) -> None:
        reader, writer = await self._connect(self.host, self.port)
        if self._stopped:
            writer.close()
            return
        self._writer = writer
        logger.info(
            "Successfully opened stream to %s:%s. Waiting for data...",
            self.host,
            self.port,
        )
        self._events.emit(True)
        try:
            while not self._stopped:
                data = await reader.readline()
                if not data:
                    break
                self.handle_line(data.decode("ascii", errors="ignore"))
        finally:
            writer.close()
            with contextlib.suppress(Exception):
                await writer.wait_closed()
            self._writer = None

    def handle_line(self, line: str) -> None:
        fields = split_sbs_line(line)
        if fields is not None:
            self.store.add_message(fields)


class StreamAdapter:
    """Network-mode source: an SBS-1 stream accumulated into an AircraftStore."""

    mode = "network"

    def __init__(
        self,
        client: ClientConfig,
        *,
        store: AircraftStore | None = None,
        resolver: RouteResolver | None = None,
        connect: Connector | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self.client = client
        self.store = store or AircraftStore()
        self.resolver = resolver
        self._sleep = sleep or asyncio.sleep
        self.connection = ReconnectingConnection(
            host=client.host,
            port=client.port,
            store=self.store,
            connect=connect,
            sleep=sleep,
        )
        self._updates: Listeners[list[AircraftRecord]] = Listeners()
        self._refresh_task: asyncio.Task | None = None

    @property
    def interval_seconds(self) -> float:
        interval_ms = self.client.interval or settings.poll_default_interval_ms
        return interval_ms / 1000.0

    def add_connectivity_callback(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        return self.connection.add_listener(callback)

    def add_update_callback(
        self, callback: Callable[[list[AircraftRecord]], None]
    ) -> Callable[[], None]:
        return self._updates.add(callback)

    def start(self) -> None:
        self.connection.start()
        self._refresh_task = asyncio.create_task(self._refresh_loop())

    def stop(self) -> None:
        self.connection.stop()
        self._updates.close()
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None

    def aircraft(self) -> list[AircraftRecord]:
        records = self.store.aircraft()
        if self.resolver is not None:
            for record in records:
                record.route = self.resolver.route_for(record.callsign)
        return records

    def refresh(self) -> list[AircraftRecord]:
        """Publish the current store contents and queue route lookups for them."""

        records = self.aircraft()
        self._updates.emit(records)
        if self.resolver is not None and not self.connection.stopped:
            self.resolver.schedule(records)
        return records

    async def _refresh_loop(self) -> None:
        while not self.connection.stopped:
            await self._sleep(self.interval_seconds)
            self.refresh()


__all__ = [
    "ReconnectingConnection",
    "StreamAdapter",
    "backoff_delay",
    "split_sbs_line",
]
