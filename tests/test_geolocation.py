from __future__ import annotations

from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from smsbeacon.exceptions import GeolocationPositionError
from smsbeacon.geolocation import (
    GeolocationService,
    HttpGeolocationService,
    StaticGeolocationService,
    parse_position_payload,
)
from smsbeacon.models.location import PositionOptions

# ------------------------------------------------------------------
# Payload parsing
# ------------------------------------------------------------------


def test_parse_flat_payload() -> None:
    reading = parse_position_payload({"latitude": -23.5, "longitude": -46.6, "accuracy": 15})
    assert (reading.latitude, reading.longitude, reading.accuracy) == (-23.5, -46.6, 15.0)


def test_parse_nested_payload() -> None:
    reading = parse_position_payload({"location": {"lat": 10.0, "lng": 20.0}, "accuracy": 50})
    assert (reading.latitude, reading.longitude, reading.accuracy) == (10.0, 20.0, 50.0)


def test_parse_coords_payload() -> None:
    reading = parse_position_payload({"coords": {"latitude": 1.0, "longitude": 2.0, "accuracy": 3.0}})
    assert reading.latitude == 1.0


@pytest.mark.parametrize("payload", [[], "x", {"latitude": 1.0}, {"lat": 100, "lng": 0, "accuracy": 1}])
def test_parse_unusable_payload(payload) -> None:
    with pytest.raises(GeolocationPositionError) as excinfo:
        parse_position_payload(payload)
    assert excinfo.value.code == GeolocationPositionError.POSITION_UNAVAILABLE


# ------------------------------------------------------------------
# HTTP service
# ------------------------------------------------------------------


async def _position(request: web.Request) -> web.StreamResponse:
    mode = request.match_info["mode"]
    if mode == "ok":
        return web.json_response(
            {
                "location": {"lat": -23.5505, "lng": -46.6333},
                "accuracy": 12,
            }
        )
    if mode == "denied":
        return web.Response(status=403, text="forbidden")
    if mode == "broken":
        return web.Response(status=500, text="boom")
    return web.Response(status=200, text="<html>not json</html>")


@pytest_asyncio.fixture
async def geo_server() -> AsyncIterator[TestServer]:
    app = web.Application()
    app.router.add_get("/position/{mode}", _position)
    server = TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_http_success(geo_server: TestServer) -> None:
    async with HttpGeolocationService(str(geo_server.make_url("/position/ok"))) as service:
        reading = await service.get_current_position(PositionOptions())
    assert reading.latitude == -23.5505
    assert reading.longitude == -46.6333
    assert reading.accuracy == 12.0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("mode", "code"),
    [
        ("denied", GeolocationPositionError.PERMISSION_DENIED),
        ("broken", GeolocationPositionError.POSITION_UNAVAILABLE),
        ("garbage", GeolocationPositionError.POSITION_UNAVAILABLE),
    ],
)
async def test_http_errors_mapped_to_codes(geo_server: TestServer, mode: str, code: int) -> None:
    async with HttpGeolocationService(str(geo_server.make_url(f"/position/{mode}"))) as service:
        with pytest.raises(GeolocationPositionError) as excinfo:
            await service.get_current_position(PositionOptions())
    assert excinfo.value.code == code


@pytest.mark.asyncio
async def test_http_uses_external_session_without_closing_it(geo_server: TestServer) -> None:
    async with aiohttp.ClientSession() as session:
        service = HttpGeolocationService(str(geo_server.make_url("/position/ok")), session=session)
        await service.get_current_position(PositionOptions())
        await service.close()
        assert not session.closed


@pytest.mark.asyncio
async def test_http_connection_failure_is_unavailable() -> None:
    service = HttpGeolocationService("http://127.0.0.1:9/position")
    try:
        with pytest.raises(GeolocationPositionError) as excinfo:
            await service.get_current_position(PositionOptions(timeout_ms=2000))
    finally:
        await service.close()
    assert excinfo.value.code in (
        GeolocationPositionError.POSITION_UNAVAILABLE,
        GeolocationPositionError.TIMEOUT,
    )


# ------------------------------------------------------------------
# Static service
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_static_service_reports_fixed_position() -> None:
    service = StaticGeolocationService(-23.5, -46.6, 9.0)
    assert isinstance(service, GeolocationService)
    reading = await service.get_current_position(PositionOptions())
    assert (reading.latitude, reading.longitude, reading.accuracy) == (-23.5, -46.6, 9.0)
    assert reading.timestamp is not None
