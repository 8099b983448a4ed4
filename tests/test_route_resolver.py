import asyncio
import json

import anyio
import httpx
import pytest

from flighttracker.ingestors.routes import RouteResolver, backfill_routes, is_scheduled_callsign
from flighttracker.models.aircraft import AircraftRecord

URL = "https://routes.test/api/0/routeset"


def _aircraft() -> list[AircraftRecord]:
    return [
        AircraftRecord(icao="4CA2D6", callsign="RYR12AB", lat=53.1, lng=-6.2),
        AircraftRecord(icao="400A1B", callsign="BAW256", lat=51.4, lng=-0.4),
        AircraftRecord(icao="A1B2C3", callsign="GABCD", lat=51.0, lng=0.1),
        AircraftRecord(icao="3C6444", callsign="DLH4X", lat=None, lng=None),
        AircraftRecord(icao="3C6445", callsign=None, lat=50.0, lng=8.0),
    ]


def test_is_scheduled_callsign():
    assert is_scheduled_callsign("BAW256")
    assert not is_scheduled_callsign("GABCD")
    assert not is_scheduled_callsign(None)
    assert not is_scheduled_callsign("")


def test_eligible_requires_digit_position_and_no_cache():
    resolver = RouteResolver(url=URL)
    resolver.cache["BAW256"] = "LHR-JFK"

    eligible = resolver.eligible(_aircraft())

    assert [record.callsign for record in eligible] == ["RYR12AB"]


@pytest.mark.anyio
async def test_resolve_batches_one_request_per_cycle():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request):
        captured.append(request)
        return httpx.Response(
            200,
            json=[
                {"callsign": "RYR12AB", "route": "DUB-STN"},
                {"callsign": "BAW256", "_airport_codes_iata": "LHR-JFK"},
                {"callsign": "XXX1", "_airport_codes_iata": "unknown"},
                "garbage",
            ],
        )

    resolver = RouteResolver(url=URL, transport=httpx.MockTransport(handler))
    records = _aircraft()

    routes = await resolver.resolve(records, on_resolved=lambda found: backfill_routes(records, found))

    assert len(captured) == 1
    assert captured[0].method == "POST"
    body = json.loads(captured[0].content.decode())
    assert body == {
        "planes": [
            {"callsign": "RYR12AB", "lat": 53.1, "lng": -6.2},
            {"callsign": "BAW256", "lat": 51.4, "lng": -0.4},
        ]
    }
    assert routes == {"RYR12AB": "DUB-STN", "BAW256": "LHR-JFK"}
    assert records[0].route == "DUB-STN"
    assert records[1].route == "LHR-JFK"
    assert resolver.route_for("RYR12AB") == "DUB-STN"


@pytest.mark.anyio
async def test_cached_callsigns_are_never_requested_again():
    captured = []

    def handler(request: httpx.Request):
        captured.append(request)
        body = json.loads(request.content.decode())
        return httpx.Response(
            200,
            json=[{"callsign": plane["callsign"], "route": "AAA-BBB"} for plane in body["planes"]],
        )

    resolver = RouteResolver(url=URL, transport=httpx.MockTransport(handler))

    await resolver.resolve(_aircraft())
    await resolver.resolve(_aircraft())
    assert resolver.schedule(_aircraft()) is None

    assert len(captured) == 1
    assert resolver.request_count == 1


@pytest.mark.anyio
async def test_in_flight_callsigns_are_not_requested_twice():
    release = asyncio.Event()
    captured = []

    async def handler(request: httpx.Request):
        captured.append(request)
        await release.wait()
        return httpx.Response(200, json=[])

    resolver = RouteResolver(url=URL, transport=httpx.MockTransport(handler))

    task = resolver.schedule(_aircraft())
    assert task is not None
    assert resolver.pending == {"RYR12AB", "BAW256"}
    assert resolver.schedule(_aircraft()) is None

    release.set()
    with anyio.fail_after(5):
        await resolver.wait_idle()

    assert len(captured) == 1
    assert resolver.pending == frozenset()
    assert resolver.cache == {}


@pytest.mark.anyio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json={"callsign": "RYR12AB", "route": "DUB-STN"}),
    ],
)
async def test_bad_responses_are_discarded(response):
    resolver = RouteResolver(url=URL, transport=httpx.MockTransport(lambda request: response))

    routes = await resolver.resolve(_aircraft())

    assert routes == {}
    assert resolver.cache == {}


@pytest.mark.anyio
async def test_timeout_is_not_retried_until_next_cycle():
    calls = []

    def handler(request: httpx.Request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(200, json=[{"callsign": "RYR12AB", "route": "DUB-STN"}])

    resolver = RouteResolver(url=URL, transport=httpx.MockTransport(handler))

    assert await resolver.resolve(_aircraft()) == {}
    assert len(calls) == 1
    assert resolver.pending == frozenset()

    assert await resolver.resolve(_aircraft()) == {"RYR12AB": "DUB-STN"}
    assert len(calls) == 2


@pytest.mark.anyio
async def test_slow_response_is_abandoned_after_overall_timeout():
    async def handler(request: httpx.Request):
        await asyncio.sleep(5)
        return httpx.Response(200, json=[{"callsign": "RYR12AB", "route": "DUB-STN"}])

    resolver = RouteResolver(url=URL, timeout=0.05, transport=httpx.MockTransport(handler))

    with anyio.fail_after(2):
        assert await resolver.resolve(_aircraft()) == {}
    assert resolver.pending == frozenset()
    assert resolver.cache == {}
