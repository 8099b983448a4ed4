"""Registry of running aircraft sources, one per distinct client configuration."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from flighttracker.ingestors.base import ConfigurationError, SourceAdapter
from flighttracker.ingestors.poll import PollAdapter
from flighttracker.ingestors.routes import RouteResolver
from flighttracker.ingestors.stream import StreamAdapter
from flighttracker.models.aircraft import AircraftRecord, Connectivity
from flighttracker.models.tracking import ClientConfig, TrackingConfig
from flighttracker.services.enrichment import EnrichmentPipeline
from flighttracker.services.reference_db import ReferenceDatabase

logger = logging.getLogger("flighttracker.tracker")

AdapterFactory = Callable[[ClientConfig, Optional[RouteResolver]], SourceAdapter]


def build_adapter(client: ClientConfig, resolver: RouteResolver | None) -> SourceAdapter:
    """Select the source variant named by the client mode."""

    if client.mode == "poll":
        return PollAdapter(client, resolver=resolver)
    return StreamAdapter(client, resolver=resolver)


class TrackingService:
    """Start, query and stop aircraft sources keyed by their configuration.

    Starting the same configuration twice reuses the running source. Each
    configuration gets its own route cache.
    """

    def __init__(
        self,
        reference_db: ReferenceDatabase | None = None,
        *,
        adapter_factory: AdapterFactory = build_adapter,
        resolver_factory: Callable[[], RouteResolver] = RouteResolver,
    ) -> None:
        self.pipeline = EnrichmentPipeline(reference_db)
        self.adapter_factory = adapter_factory
        self.resolver_factory = resolver_factory
        self._adapters: dict[tuple, SourceAdapter] = {}
        self._connectivity: dict[tuple, Connectivity] = {}

    def start(self, client: ClientConfig) -> Connectivity:
        key = client.key
        if key in self._adapters:
            logger.info(
                "A client with the same configuration (%s) already exists. Skipping ...",
                key,
            )
            return self.connectivity(client)

        logger.info("Initialising %s client for %s:%s ...", client.mode, client.host, client.port)
        resolver = self.resolver_factory() if client.enable_routes else None
        adapter = self.adapter_factory(client, resolver)
        self._adapters[key] = adapter
        self._connectivity[key] = Connectivity.UNKNOWN
        adapter.add_connectivity_callback(
            lambda connected: self._on_connectivity(key, connected)
        )

        try:
            adapter.start()
        except ConfigurationError as exc:
            logger.error("Failed to initialise %s client: %s", client.mode, exc)
            del self._adapters[key]
            self._connectivity[key] = Connectivity.FAILED
            raise

        return self._connectivity[key]

    def _on_connectivity(self, key: tuple, connected: bool) -> None:
        state = Connectivity.CONNECTED if connected else Connectivity.UNKNOWN
        if self._connectivity.get(key) != state:
            logger.info("Client %s connectivity is now %s", key, state.value)
        self._connectivity[key] = state

    def connectivity(self, client: ClientConfig) -> Connectivity:
        return self._connectivity.get(client.key, Connectivity.UNKNOWN)

    def is_running(self, client: ClientConfig) -> bool:
        return client.key in self._adapters

    def adapter(self, client: ClientConfig) -> SourceAdapter | None:
        return self._adapters.get(client.key)

    def aircraft(self, tracking: TrackingConfig) -> list[AircraftRecord]:
        adapter = self._adapters.get(tracking.client.key)
        if adapter is None:
            return []
        return self.pipeline.run(adapter.aircraft(), tracking, mode=adapter.mode)

    def stop(self, client: ClientConfig) -> bool:
        key = client.key
        adapter = self._adapters.pop(key, None)
        self._connectivity.pop(key, None)
        if adapter is None:
            return False
        adapter.stop()
        logger.info("Stopped %s client for %s:%s", client.mode, client.host, client.port)
        return True

    def stop_all(self) -> None:
        logger.info("Closing down %s client(s) ...", len(self._adapters))
        for adapter in list(self._adapters.values()):
            adapter.stop()
        self._adapters.clear()
        self._connectivity.clear()

    def __len__(self) -> int:
        return len(self._adapters)


__all__ = ["TrackingService", "build_adapter"]
