"""Internal constants shared across the library."""

from smsbeacon.models.location import LocationErrorKind

DEFAULT_KEYWORD = "ACHARCELULAR123"
DEFAULT_INBOX_CAPACITY = 10

# ------------------------------------------------------------------
# Alarm
# ------------------------------------------------------------------

DEFAULT_ALARM_DURATION_S = 3.0
DEFAULT_TONE_FREQUENCY_HZ = 800.0
DEFAULT_TONE_AMPLITUDE = 0.3

# ------------------------------------------------------------------
# Location
# ------------------------------------------------------------------

DEFAULT_LOCATION_TIMEOUT_S = 10.0
MAPS_URL_TEMPLATE = "https://maps.google.com/?q={latitude},{longitude}"
MAPBOX_STATIC_URL = "https://api.mapbox.com/styles/v1/mapbox/{style}/static/{overlay}/{longitude},{latitude},{zoom}/{width}x{height}"
MAPBOX_DEFAULT_STYLE = "streets-v12"
MAPBOX_DEFAULT_ZOOM = 15
MAPBOX_MARKER_COLOR = "ef4444"

# Human readable reasons per failure kind, keyed by language code.
LOCATION_ERROR_REASONS: dict[str, dict[LocationErrorKind, str]] = {
    "pt": {
        LocationErrorKind.PERMISSION_DENIED: "Permissão de localização negada",
        LocationErrorKind.POSITION_UNAVAILABLE: "Localização indisponível",
        LocationErrorKind.TIMEOUT: "Timeout ao obter localização",
        LocationErrorKind.UNSUPPORTED: "Geolocalização não suportada neste dispositivo",
        LocationErrorKind.UNKNOWN: "Erro desconhecido",
    },
    "en": {
        LocationErrorKind.PERMISSION_DENIED: "Location permission denied",
        LocationErrorKind.POSITION_UNAVAILABLE: "Location unavailable",
        LocationErrorKind.TIMEOUT: "Timed out while acquiring location",
        LocationErrorKind.UNSUPPORTED: "Geolocation is not supported on this device",
        LocationErrorKind.UNKNOWN: "Unknown error",
    },
}
DEFAULT_LANGUAGE = "pt"


def location_error_reason(kind: LocationErrorKind, language: str = DEFAULT_LANGUAGE) -> str:
    """Return the reason text for *kind*, falling back to the default language."""
    table = LOCATION_ERROR_REASONS.get(language) or LOCATION_ERROR_REASONS[DEFAULT_LANGUAGE]
    return table[kind]
