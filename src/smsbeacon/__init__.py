"""smsbeacon - keyword-triggered find-my-phone core (alarm + location)."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("smsbeacon")
except PackageNotFoundError:
    __version__ = "0+local"
from smsbeacon.alarm import AlarmController
from smsbeacon.audio import LoggingTonePlayer, TonePlayer
from smsbeacon.config import BeaconConfig
from smsbeacon.exceptions import (
    BeaconConfigError,
    BeaconError,
    BeaconTransportError,
    GeolocationPositionError,
    LocationError,
    LocationTimeoutError,
    PermissionDeniedError,
    PositionUnavailableError,
    UnknownLocationError,
    UnsupportedCapabilityError,
)
from smsbeacon.finder import PhoneFinder
from smsbeacon.geolocation import GeolocationService, HttpGeolocationService, StaticGeolocationService
from smsbeacon.location import LocationAcquirer
from smsbeacon.matcher import matches, normalize_keyword
from smsbeacon.models import (
    AlarmState,
    FinderEvent,
    FinderEventKind,
    FinderSnapshot,
    InboundMessage,
    Location,
    LocationErrorKind,
    LocationFailure,
    LocatorStatus,
    PositionOptions,
    PositionReading,
)
from smsbeacon.share import MapMarker, format_share_text, map_marker, maps_url, static_map_url
from smsbeacon.state.inbox import InboxFeed
from smsbeacon.state.keyword import KeywordSetting

__all__ = [
    "__version__",
    "AlarmController",
    "AlarmState",
    "BeaconConfig",
    "BeaconConfigError",
    "BeaconError",
    "BeaconTransportError",
    "FinderEvent",
    "FinderEventKind",
    "FinderSnapshot",
    "GeolocationPositionError",
    "GeolocationService",
    "HttpGeolocationService",
    "InboundMessage",
    "InboxFeed",
    "KeywordSetting",
    "Location",
    "LocationAcquirer",
    "LocationError",
    "LocationErrorKind",
    "LocationFailure",
    "LocationTimeoutError",
    "LocatorStatus",
    "LoggingTonePlayer",
    "MapMarker",
    "PermissionDeniedError",
    "PhoneFinder",
    "PositionOptions",
    "PositionReading",
    "PositionUnavailableError",
    "StaticGeolocationService",
    "TonePlayer",
    "UnknownLocationError",
    "UnsupportedCapabilityError",
    "format_share_text",
    "map_marker",
    "maps_url",
    "matches",
    "normalize_keyword",
    "static_map_url",
]
