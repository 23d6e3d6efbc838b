"""Location models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, Field, field_validator

from smsbeacon.models._base import AwareDatetime, BeaconBaseModel


class LocationErrorKind(StrEnum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class LocatorStatus(StrEnum):
    """Acquisition status reported by :class:`~smsbeacon.location.LocationAcquirer`.

    ``LOCATING`` is the in-progress status; presentation layers disable
    their "locate" control while it is reported.
    """

    IDLE = "idle"
    LOCATING = "locating"
    LOCATED = "located"
    FAILED = "failed"


class PositionOptions(BeaconBaseModel):
    """Request options passed to a geolocation service.

    Parameters
    ----------
    high_accuracy : bool
        Ask the platform for its most accurate fix.
    timeout_ms : int
        Upper bound for the request in milliseconds.
    max_cached_age_ms : int
        Maximum age of a cached platform position that may be reused.
        ``0`` forces a fresh reading.
    """

    high_accuracy: bool = True
    timeout_ms: int = Field(default=10_000, gt=0)
    max_cached_age_ms: int = Field(default=0, ge=0)


class PositionReading(BeaconBaseModel):
    """Raw reading reported by a geolocation service."""

    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lng", "lon"))
    accuracy: float = Field(validation_alias=AliasChoices("accuracy", "acc", "radius"))
    timestamp: AwareDatetime | None = None

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: float) -> float:
        if not -90.0 <= value <= 90.0:
            raise ValueError(f"latitude out of range: {value}")
        return value

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value: float) -> float:
        if not -180.0 <= value <= 180.0:
            raise ValueError(f"longitude out of range: {value}")
        return value


class Location(BeaconBaseModel):
    """The device's current position.

    Either fully populated or absent: every field is required, so a
    half-written record cannot be constructed.

    Parameters
    ----------
    latitude : float
        Decimal degrees.
    longitude : float
        Decimal degrees.
    accuracy : float
        Radius in meters as reported by the source.
    acquired_at : datetime
        When the reading was captured (UTC).
    """

    latitude: float
    longitude: float
    accuracy: float
    acquired_at: AwareDatetime

    @classmethod
    def from_reading(cls, reading: PositionReading, acquired_at: AwareDatetime) -> Location:
        return cls(
            latitude=reading.latitude,
            longitude=reading.longitude,
            accuracy=reading.accuracy,
            acquired_at=acquired_at,
        )
