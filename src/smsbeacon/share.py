"""Presentation helpers derived from a :class:`Location`.

These build the content handed to the clipboard/share collaborator and the
map viewer. They do no I/O.
"""

from __future__ import annotations

from datetime import tzinfo
from urllib.parse import urlencode

from smsbeacon._constants import (
    MAPBOX_DEFAULT_STYLE,
    MAPBOX_DEFAULT_ZOOM,
    MAPBOX_MARKER_COLOR,
    MAPBOX_STATIC_URL,
    MAPS_URL_TEMPLATE,
)
from smsbeacon.exceptions import BeaconConfigError
from smsbeacon.models._base import AwareDatetime, BeaconBaseModel
from smsbeacon.models.location import Location


class MapMarker(BeaconBaseModel):
    """Payload for the map viewer."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: AwareDatetime


def map_marker(location: Location) -> MapMarker:
    return MapMarker(
        latitude=location.latitude,
        longitude=location.longitude,
        accuracy=location.accuracy,
        timestamp=location.acquired_at,
    )


def maps_url(location: Location) -> str:
    """Google Maps link for *location*."""
    return MAPS_URL_TEMPLATE.format(latitude=location.latitude, longitude=location.longitude)


def format_local_timestamp(location: Location, tz: tzinfo | None = None) -> str:
    """``dd/mm/yyyy, HH:MM:SS`` in *tz* (system local time when omitted)."""
    local = location.acquired_at.astimezone(tz)
    return local.strftime("%d/%m/%Y, %H:%M:%S")


def format_share_text(location: Location, tz: tzinfo | None = None) -> str:
    """Multi-line text block for the clipboard."""
    return "\n".join(
        [
            "Localização do celular:",
            f"Latitude: {location.latitude}",
            f"Longitude: {location.longitude}",
            f"Google Maps: {maps_url(location)}",
            f"Precisão: {round(location.accuracy)}m",
            f"Horário: {format_local_timestamp(location, tz)}",
        ]
    )


def static_map_url(
    location: Location,
    access_token: str | None,
    *,
    width: int = 600,
    height: int = 400,
    zoom: int = MAPBOX_DEFAULT_ZOOM,
    style: str = MAPBOX_DEFAULT_STYLE,
) -> str:
    """Mapbox Static Images URL centred on *location* with a red pin.

    Raises
    ------
    BeaconConfigError
        If no access token is provided.
    """
    if not access_token or not access_token.strip():
        raise BeaconConfigError("a map access token is required to build a map URL")
    overlay = f"pin-s+{MAPBOX_MARKER_COLOR}({location.longitude},{location.latitude})"
    base = MAPBOX_STATIC_URL.format(
        style=style,
        overlay=overlay,
        longitude=location.longitude,
        latitude=location.latitude,
        zoom=zoom,
        width=width,
        height=height,
    )
    return f"{base}?{urlencode({'access_token': access_token.strip()})}"
