"""Platform geolocation services.

The core talks to geolocation through the :class:`GeolocationService`
protocol. Two implementations ship with the library:

* :class:`HttpGeolocationService` queries a JSON geolocation endpoint over
  HTTP.
* :class:`StaticGeolocationService` always reports a fixed reading, which
  is handy for simulations.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol, runtime_checkable

import aiohttp
from pydantic import ValidationError

from smsbeacon.exceptions import GeolocationPositionError
from smsbeacon.models._base import utcnow
from smsbeacon.models.location import PositionOptions, PositionReading

_logger = logging.getLogger(__name__)


@runtime_checkable
class GeolocationService(Protocol):
    """Structural geolocation interface.

    Implementations either return a :class:`PositionReading` or raise
    :class:`GeolocationPositionError` with a W3C-style code.
    """

    async def get_current_position(self, options: PositionOptions) -> PositionReading:
        ...


def _flatten_position_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Lift nested ``location``/``coords``/``data`` objects to the top level."""
    merged = dict(payload)
    for key in ("data", "coords", "location"):
        nested = merged.get(key)
        if isinstance(nested, dict):
            merged.update(nested)
    return merged


def parse_position_payload(payload: Any) -> PositionReading:
    """Build a reading from a JSON geolocation response.

    Accepts flat (``{"latitude", "longitude", "accuracy"}``) and nested
    (``{"location": {"lat", "lng"}, "accuracy"}``) shapes.

    Raises
    ------
    GeolocationPositionError
        ``POSITION_UNAVAILABLE`` when the payload carries no usable position.
    """
    if not isinstance(payload, dict):
        raise GeolocationPositionError(
            GeolocationPositionError.POSITION_UNAVAILABLE,
            "geolocation response is not a JSON object",
        )
    try:
        return PositionReading.model_validate(_flatten_position_payload(payload))
    except ValidationError as exc:
        raise GeolocationPositionError(
            GeolocationPositionError.POSITION_UNAVAILABLE,
            f"geolocation response has no usable position: {exc.error_count()} error(s)",
        ) from exc


class HttpGeolocationService:
    """Geolocation over a JSON HTTP endpoint.

    The request options are forwarded as query parameters
    (``enableHighAccuracy``, ``timeout``, ``maximumAge``) and the request is
    bounded by ``options.timeout_ms``.

    Status mapping:

    - 401/403 → ``PERMISSION_DENIED``
    - any other non-200, network failure or unusable body → ``POSITION_UNAVAILABLE``
    - client-side timeout → ``TIMEOUT``

    Usage::

        async with HttpGeolocationService(url) as service:
            reading = await service.get_current_position(PositionOptions())
    """

    def __init__(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._url = url
        self._external_session = session is not None
        self._http_session = session
        self._headers = dict(headers or {})

    async def __aenter__(self) -> HttpGeolocationService:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self._http_session

    async def get_current_position(self, options: PositionOptions) -> PositionReading:
        session = self._require_session()
        params = {
            "enableHighAccuracy": "true" if options.high_accuracy else "false",
            "timeout": str(options.timeout_ms),
            "maximumAge": str(options.max_cached_age_ms),
        }
        headers = {"accept": "application/json", "cache-control": "no-cache", **self._headers}
        timeout = aiohttp.ClientTimeout(total=options.timeout_ms / 1000)

        _logger.debug("GET %s", self._url)

        try:
            async with session.get(self._url, params=params, headers=headers, timeout=timeout) as resp:
                text = await resp.text()
                status = resp.status
        except TimeoutError as exc:
            raise GeolocationPositionError(GeolocationPositionError.TIMEOUT, "geolocation request timed out") from exc
        except aiohttp.ClientError as exc:
            raise GeolocationPositionError(
                GeolocationPositionError.POSITION_UNAVAILABLE,
                f"geolocation request failed: {exc}",
            ) from exc

        if status in (401, 403):
            raise GeolocationPositionError(
                GeolocationPositionError.PERMISSION_DENIED,
                f"HTTP {status} from geolocation endpoint",
            )
        if status != 200:
            raise GeolocationPositionError(
                GeolocationPositionError.POSITION_UNAVAILABLE,
                f"HTTP {status} from geolocation endpoint: {text[:200]}",
            )

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GeolocationPositionError(
                GeolocationPositionError.POSITION_UNAVAILABLE,
                f"invalid JSON from geolocation endpoint: {text[:200]}",
            ) from exc

        return parse_position_payload(payload)


class StaticGeolocationService:
    """Always reports the same position after an optional *delay*."""

    def __init__(self, latitude: float, longitude: float, accuracy: float = 10.0, *, delay: float = 0.0) -> None:
        self._reading = PositionReading(latitude=latitude, longitude=longitude, accuracy=accuracy)
        self._delay = delay

    async def get_current_position(self, options: PositionOptions) -> PositionReading:
        if self._delay > 0:
            await asyncio.sleep(self._delay)
        return self._reading.model_copy(update={"timestamp": utcnow()})
