"""Custom exception hierarchy for smsbeacon."""

from __future__ import annotations

from smsbeacon.models.location import LocationErrorKind


class BeaconError(Exception):
    """Base exception for all smsbeacon errors."""


class BeaconConfigError(BeaconError):
    """Invalid or missing configuration (e.g. an empty keyword)."""


class BeaconTransportError(BeaconError):
    """Network-level failure talking to an external service (HTTP, MQTT)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class GeolocationPositionError(BeaconError):
    """Failure reported by a platform geolocation service.

    ``code`` follows the W3C Geolocation numbering so platform adapters can
    pass codes through unchanged:

    - ``1`` permission denied
    - ``2`` position unavailable
    - ``3`` timeout

    Any other value is treated as an unknown failure by
    :class:`~smsbeacon.location.LocationAcquirer`.
    """

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        super().__init__(message or f"geolocation failed with code {code}")


class LocationError(BeaconError):
    """A classified, non-fatal location acquisition failure.

    Every subclass pins :attr:`kind`; :attr:`reason` is the human readable
    text a presentation layer can show as-is.
    """

    kind: LocationErrorKind = LocationErrorKind.UNKNOWN

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class PermissionDeniedError(LocationError):
    """The user or the platform refused location access."""

    kind = LocationErrorKind.PERMISSION_DENIED


class PositionUnavailableError(LocationError):
    """The platform could not determine a position."""

    kind = LocationErrorKind.POSITION_UNAVAILABLE


class LocationTimeoutError(LocationError):
    """No position arrived within the configured bound."""

    kind = LocationErrorKind.TIMEOUT


class UnknownLocationError(LocationError):
    """Any other platform-reported failure."""

    kind = LocationErrorKind.UNKNOWN


class UnsupportedCapabilityError(LocationError):
    """The host offers no geolocation capability at all.

    Raised before a request is issued; retrying is pointless until a
    geolocation service is configured.
    """

    kind = LocationErrorKind.UNSUPPORTED
