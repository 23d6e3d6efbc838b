"""Data models for the smsbeacon core."""

from smsbeacon.models._base import AwareDatetime, BeaconBaseModel, utcnow
from smsbeacon.models.alarm import AlarmState
from smsbeacon.models.events import FinderEvent, FinderEventKind, FinderSnapshot, LocationFailure
from smsbeacon.models.location import (
    Location,
    LocationErrorKind,
    LocatorStatus,
    PositionOptions,
    PositionReading,
)
from smsbeacon.models.message import InboundMessage

__all__ = [
    "AlarmState",
    "AwareDatetime",
    "BeaconBaseModel",
    "FinderEvent",
    "FinderEventKind",
    "FinderSnapshot",
    "InboundMessage",
    "Location",
    "LocationErrorKind",
    "LocationFailure",
    "LocatorStatus",
    "PositionOptions",
    "PositionReading",
    "utcnow",
]
