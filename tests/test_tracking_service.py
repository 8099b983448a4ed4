import pytest

from flighttracker.ingestors.base import ConfigurationError, Listeners, require_endpoint
from flighttracker.ingestors.poll import PollAdapter
from flighttracker.ingestors.stream import StreamAdapter
from flighttracker.models.aircraft import AircraftRecord, Connectivity
from flighttracker.models.tracking import ClientConfig, TrackingConfig
from flighttracker.services.reference_db import ReferenceDatabase
from flighttracker.services.tracker import TrackingService, build_adapter


class FakeAdapter:
    def __init__(self, client, resolver, records=None):
        self.client = client
        self.mode = client.mode
        self.resolver = resolver
        self.records = records or []
        self.start_count = 0
        self.stopped = False
        self._connectivity = Listeners()
        self._updates = Listeners()

    def start(self):
        require_endpoint(self.client.host, self.client.port)
        self.start_count += 1

    def stop(self):
        self.stopped = True
        self._connectivity.close()

    def aircraft(self):
        return list(self.records)

    def add_connectivity_callback(self, callback):
        return self._connectivity.add(callback)

    def add_update_callback(self, callback):
        return self._updates.add(callback)

    def emit_connected(self, connected: bool):
        self._connectivity.emit(connected)


class FakeAdapterFactory:
    def __init__(self, records=None):
        self.records = records
        self.created: list[FakeAdapter] = []

    def __call__(self, client, resolver):
        adapter = FakeAdapter(client, resolver, self.records)
        self.created.append(adapter)
        return adapter


def _client(**overrides) -> ClientConfig:
    values = {"mode": "network", "host": "192.168.1.10", "port": 30003}
    values.update(overrides)
    return ClientConfig(**values)


def test_build_adapter_selects_variant_by_mode():
    assert isinstance(build_adapter(_client(), None), StreamAdapter)
    assert isinstance(build_adapter(_client(mode="poll", port=8080), None), PollAdapter)


def test_duplicate_start_shares_the_existing_adapter():
    factory = FakeAdapterFactory()
    service = TrackingService(adapter_factory=factory)

    assert service.start(_client()) == Connectivity.UNKNOWN
    factory.created[0].emit_connected(True)
    assert service.start(_client()) == Connectivity.CONNECTED

    assert len(factory.created) == 1
    assert factory.created[0].start_count == 1
    assert len(service) == 1


def test_connectivity_follows_adapter_events():
    factory = FakeAdapterFactory()
    service = TrackingService(adapter_factory=factory)
    client = _client()

    service.start(client)
    adapter = factory.created[0]
    adapter.emit_connected(True)
    assert service.connectivity(client) == Connectivity.CONNECTED
    adapter.emit_connected(False)
    assert service.connectivity(client) == Connectivity.UNKNOWN


def test_configuration_error_marks_client_failed():
    factory = FakeAdapterFactory()
    service = TrackingService(adapter_factory=factory)
    client = _client(host=None)

    with pytest.raises(ConfigurationError):
        service.start(client)

    assert service.connectivity(client) == Connectivity.FAILED
    assert not service.is_running(client)


def test_configuration_error_with_real_adapters():
    service = TrackingService()

    with pytest.raises(ConfigurationError):
        service.start(_client(port=None))
    with pytest.raises(ConfigurationError):
        service.start(_client(mode="poll", host=""))

    assert len(service) == 0


def test_distinct_configs_are_isolated():
    factory = FakeAdapterFactory()
    service = TrackingService(adapter_factory=factory)
    first = _client(enable_routes=True)
    second = _client(port=30005, enable_routes=True)

    service.start(first)
    service.start(second)

    assert len(factory.created) == 2
    resolvers = [adapter.resolver for adapter in factory.created]
    assert resolvers[0] is not None
    assert resolvers[0] is not resolvers[1]

    factory.created[0].emit_connected(True)
    assert service.connectivity(first) == Connectivity.CONNECTED
    assert service.connectivity(second) == Connectivity.UNKNOWN


def test_routes_disabled_means_no_resolver():
    factory = FakeAdapterFactory()
    service = TrackingService(adapter_factory=factory)

    service.start(_client(enable_routes=False))

    assert factory.created[0].resolver is None


def test_aircraft_runs_the_enrichment_pipeline():
    records = [
        AircraftRecord(icao="4CA2D6", callsign="RYR12AB", speed=420),
        AircraftRecord(icao="400A1B", callsign="BAW256", speed=480),
        AircraftRecord(icao="ABCDEF", speed=999),
    ]
    factory = FakeAdapterFactory(records)
    service = TrackingService(ReferenceDatabase(), adapter_factory=factory)
    client = _client()

    assert service.aircraft(TrackingConfig(client=client)) == []

    service.start(client)
    result = service.aircraft(TrackingConfig(client=client, order_by="speed:desc", limit=1))

    assert [record.callsign for record in result] == ["BAW256"]
    assert result[0].airline == "Unknown"


def test_stop_releases_the_adapter():
    factory = FakeAdapterFactory()
    service = TrackingService(adapter_factory=factory)
    client = _client()

    service.start(client)
    assert service.stop(client) is True
    assert service.stop(client) is False
    assert factory.created[0].stopped

    service.start(client)
    service.start(_client(port=30004))
    service.stop_all()
    assert len(service) == 0
    assert all(adapter.stopped for adapter in factory.created)
