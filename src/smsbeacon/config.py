"""Runtime configuration for smsbeacon."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from smsbeacon._constants import (
    DEFAULT_ALARM_DURATION_S,
    DEFAULT_INBOX_CAPACITY,
    DEFAULT_KEYWORD,
    DEFAULT_LANGUAGE,
    DEFAULT_LOCATION_TIMEOUT_S,
    DEFAULT_TONE_AMPLITUDE,
    DEFAULT_TONE_FREQUENCY_HZ,
    LOCATION_ERROR_REASONS,
)
from smsbeacon.exceptions import BeaconConfigError
from smsbeacon.models.location import PositionOptions


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise BeaconConfigError(f"Environment variable {env_key} must be {cast.__name__}, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class BeaconConfig:
    """Finder configuration.

    Parameters
    ----------
    keyword : str
        Initial secret keyword. Normalized to uppercase by the keyword
        setting, may be changed at runtime.
    ignore_case : bool
        Case-fold the message body as well as the keyword before matching.
        ``False`` keeps the classic behaviour where only the keyword is
        uppercased.
    inbox_capacity : int
        Number of most recent messages kept by the inbox feed.
    alarm_duration : float
        Seconds the alarm stays active after being triggered.
    tone_frequency_hz : float
        Frequency of the alarm tone.
    tone_amplitude : float
        Tone gain in ``[0, 1]``.
    location_timeout : float
        Upper bound in seconds for a single location acquisition.
    high_accuracy : bool
        Request a high-accuracy fix from the geolocation service.
    max_cached_age : float
        Maximum age in seconds of a cached platform fix. ``0`` demands a
        fresh reading.
    language : str
        Language for human readable failure reasons (``"pt"`` or ``"en"``).
    geolocation_url : str or None
        JSON geolocation endpoint used by :class:`HttpGeolocationService`.
    map_access_token : str or None
        Access token handed to the map viewer (Mapbox).
    mqtt_enabled : bool
        Listen for injected inbound messages on an MQTT topic.
    mqtt_host, mqtt_port, mqtt_topic : str, int, str
        Broker location and topic carrying ``{"sender", "body"}`` payloads.
    mqtt_username, mqtt_password : str or None
        Optional broker credentials.
    mqtt_tls : bool
        Enable TLS for the broker connection.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    """

    keyword: str = DEFAULT_KEYWORD
    ignore_case: bool = False
    inbox_capacity: int = DEFAULT_INBOX_CAPACITY
    alarm_duration: float = DEFAULT_ALARM_DURATION_S
    tone_frequency_hz: float = DEFAULT_TONE_FREQUENCY_HZ
    tone_amplitude: float = DEFAULT_TONE_AMPLITUDE
    location_timeout: float = DEFAULT_LOCATION_TIMEOUT_S
    high_accuracy: bool = True
    max_cached_age: float = 0.0
    language: str = DEFAULT_LANGUAGE
    geolocation_url: str | None = None
    map_access_token: str | None = None
    mqtt_enabled: bool = False
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_topic: str = "smsbeacon/inbox"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_tls: bool = False
    mqtt_keepalive: int = 60

    def __post_init__(self) -> None:
        if not self.keyword or not self.keyword.strip():
            raise BeaconConfigError("keyword must be non-empty")
        if self.inbox_capacity <= 0:
            raise BeaconConfigError(f"inbox_capacity must be positive, got {self.inbox_capacity}")
        if self.alarm_duration <= 0:
            raise BeaconConfigError(f"alarm_duration must be positive, got {self.alarm_duration}")
        if self.location_timeout <= 0:
            raise BeaconConfigError(f"location_timeout must be positive, got {self.location_timeout}")
        if self.max_cached_age < 0:
            raise BeaconConfigError(f"max_cached_age must not be negative, got {self.max_cached_age}")
        if not 0.0 <= self.tone_amplitude <= 1.0:
            raise BeaconConfigError(f"tone_amplitude must be between 0 and 1, got {self.tone_amplitude}")
        if self.language not in LOCATION_ERROR_REASONS:
            raise BeaconConfigError(f"unsupported language {self.language!r}")

    def position_options(self) -> PositionOptions:
        """Options passed to the geolocation service for every request."""
        return PositionOptions(
            high_accuracy=self.high_accuracy,
            timeout_ms=int(self.location_timeout * 1000),
            max_cached_age_ms=int(self.max_cached_age * 1000),
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> BeaconConfig:
        """Create configuration from ``BEACON_*`` environment variables.

        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BeaconConfig
            Populated configuration.

        Raises
        ------
        BeaconConfigError
            If a numeric variable cannot be parsed or a value is invalid.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "BEACON_KEYWORD": "keyword",
            "BEACON_LANGUAGE": "language",
            "BEACON_GEOLOCATION_URL": "geolocation_url",
            "BEACON_MAP_ACCESS_TOKEN": "map_access_token",
            "BEACON_MQTT_HOST": "mqtt_host",
            "BEACON_MQTT_TOPIC": "mqtt_topic",
            "BEACON_MQTT_USERNAME": "mqtt_username",
            "BEACON_MQTT_PASSWORD": "mqtt_password",
        }
        _ENV_FLOAT_MAP = {
            "BEACON_ALARM_DURATION": "alarm_duration",
            "BEACON_TONE_FREQUENCY": "tone_frequency_hz",
            "BEACON_TONE_AMPLITUDE": "tone_amplitude",
            "BEACON_LOCATION_TIMEOUT": "location_timeout",
            "BEACON_MAX_CACHED_AGE": "max_cached_age",
        }
        _ENV_INT_MAP = {
            "BEACON_INBOX_CAPACITY": "inbox_capacity",
            "BEACON_MQTT_PORT": "mqtt_port",
            "BEACON_MQTT_KEEPALIVE": "mqtt_keepalive",
        }
        _ENV_BOOL_MAP = {
            "BEACON_IGNORE_CASE": ("ignore_case", False),
            "BEACON_HIGH_ACCURACY": ("high_accuracy", True),
            "BEACON_MQTT_ENABLED": ("mqtt_enabled", False),
            "BEACON_MQTT_TLS": ("mqtt_tls", False),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, float)

        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, int)

        for env_key, (field_name, default) in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), default)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
