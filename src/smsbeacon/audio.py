"""Audio output collaborator used by the alarm."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

_logger = logging.getLogger(__name__)


@runtime_checkable
class TonePlayer(Protocol):
    """Structural interface for whatever produces the alarm sound.

    ``play_tone`` is invoked once when the alarm becomes active and must
    stop on its own within ``duration_ms``.
    """

    def play_tone(self, frequency_hz: float, amplitude: float, duration_ms: int) -> None:
        ...


class LoggingTonePlayer:
    """Tone player for hosts without an audio device; logs the tone instead."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger

    def play_tone(self, frequency_hz: float, amplitude: float, duration_ms: int) -> None:
        self._logger.info(
            "Alarm tone %.0f Hz amplitude=%.2f for %d ms",
            frequency_hz,
            amplitude,
            duration_ms,
        )

    def stop(self) -> None:
        self._logger.debug("Alarm tone stopped")
