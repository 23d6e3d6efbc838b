"""Location acquisition with a bounded timeout and classified failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from smsbeacon._constants import DEFAULT_LANGUAGE, location_error_reason
from smsbeacon.exceptions import (
    GeolocationPositionError,
    LocationError,
    LocationTimeoutError,
    PermissionDeniedError,
    PositionUnavailableError,
    UnknownLocationError,
    UnsupportedCapabilityError,
)
from smsbeacon.geolocation import GeolocationService
from smsbeacon.models._base import utcnow
from smsbeacon.models.events import LocationFailure
from smsbeacon.models.location import Location, LocationErrorKind, LocatorStatus, PositionOptions

_logger = logging.getLogger(__name__)

_ERRORS_BY_CODE: dict[int, type[LocationError]] = {
    GeolocationPositionError.PERMISSION_DENIED: PermissionDeniedError,
    GeolocationPositionError.POSITION_UNAVAILABLE: PositionUnavailableError,
    GeolocationPositionError.TIMEOUT: LocationTimeoutError,
}


class LocationAcquirer:
    """Owner of the current :class:`Location`.

    :meth:`acquire` issues at most one platform request at a time. Calls made
    while a request is outstanding are coalesced onto it and observe the same
    outcome. There is no automatic retry; callers re-invoke :meth:`acquire`.

    Parameters
    ----------
    service : GeolocationService or None
        Platform geolocation. ``None`` means the host has no geolocation
        capability and every call fails with
        :class:`UnsupportedCapabilityError`.
    options : PositionOptions
        Options passed to *service* on every request.
    language : str
        Language of the failure reasons.
    clock : callable
        Source of ``acquired_at`` timestamps.
    """

    def __init__(
        self,
        service: GeolocationService | None,
        *,
        options: PositionOptions | None = None,
        language: str = DEFAULT_LANGUAGE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._service = service
        self._options = options or PositionOptions()
        self._language = language
        self._clock = clock
        self._location: Location | None = None
        self._status = LocatorStatus.IDLE
        self._last_failure: LocationFailure | None = None
        self._pending: asyncio.Task[Location] | None = None

    @property
    def location(self) -> Location | None:
        return self._location

    @property
    def status(self) -> LocatorStatus:
        return self._status

    @property
    def in_progress(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def last_failure(self) -> LocationFailure | None:
        return self._last_failure

    @property
    def supported(self) -> bool:
        """Whether a geolocation service is available at all."""
        return self._service is not None

    async def acquire(self) -> Location:
        """Request the current position.

        Returns
        -------
        Location
            The new current location (also stored on :attr:`location`).

        Raises
        ------
        LocationError
            One of :class:`PermissionDeniedError`,
            :class:`PositionUnavailableError`, :class:`LocationTimeoutError`,
            :class:`UnsupportedCapabilityError` or
            :class:`UnknownLocationError`.
        """
        if self._service is None:
            raise self._fail(UnsupportedCapabilityError(self._reason(LocationErrorKind.UNSUPPORTED)))

        if self._pending is None or self._pending.done():
            self._status = LocatorStatus.LOCATING
            self._pending = asyncio.create_task(self._request(self._service), name="smsbeacon-locate")
        else:
            _logger.debug("Location request already in flight; joining it")

        # Shield so one caller being cancelled does not cancel the others.
        return await asyncio.shield(self._pending)

    def cancel(self) -> None:
        """Abandon an outstanding request; its result is discarded."""
        pending = self._pending
        self._pending = None
        if pending is not None and not pending.done():
            pending.cancel()
            self._status = LocatorStatus.IDLE

    async def _request(self, service: GeolocationService) -> Location:
        timeout_s = self._options.timeout_ms / 1000
        _logger.debug(
            "Requesting position high_accuracy=%s timeout=%.1fs max_age=%dms",
            self._options.high_accuracy,
            timeout_s,
            self._options.max_cached_age_ms,
        )
        try:
            reading = await asyncio.wait_for(service.get_current_position(self._options), timeout_s)
        except TimeoutError:
            raise self._fail(LocationTimeoutError(self._reason(LocationErrorKind.TIMEOUT))) from None
        except GeolocationPositionError as exc:
            error_cls = _ERRORS_BY_CODE.get(exc.code, UnknownLocationError)
            raise self._fail(error_cls(self._reason(error_cls.kind))) from exc
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.debug("Geolocation service raised unexpectedly", exc_info=True)
            raise self._fail(UnknownLocationError(self._reason(LocationErrorKind.UNKNOWN))) from exc

        location = Location.from_reading(reading, acquired_at=self._clock())
        self._location = location
        self._status = LocatorStatus.LOCATED
        self._last_failure = None
        _logger.info("Location acquired (accuracy=%.0fm)", location.accuracy)
        return location

    def _fail(self, error: LocationError) -> LocationError:
        self._status = LocatorStatus.FAILED
        self._last_failure = LocationFailure(kind=error.kind, reason=error.reason, occurred_at=self._clock())
        _logger.warning("Location acquisition failed: %s (%s)", error.kind, error.reason)
        return error

    def _reason(self, kind: LocationErrorKind) -> str:
        return location_error_reason(kind, self._language)
