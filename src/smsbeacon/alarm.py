"""Timed alarm state machine.

``IDLE -> ACTIVE`` on :meth:`AlarmController.trigger`, ``ACTIVE -> IDLE``
automatically once the fixed duration has elapsed. Triggering while active
is a no-op: the running countdown is neither restarted nor extended, and a
second timer is never scheduled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from smsbeacon._constants import DEFAULT_ALARM_DURATION_S, DEFAULT_TONE_AMPLITUDE, DEFAULT_TONE_FREQUENCY_HZ
from smsbeacon.audio import TonePlayer
from smsbeacon.models.alarm import AlarmState

_logger = logging.getLogger(__name__)

AlarmListener = Callable[[AlarmState], None]


class AlarmController:
    """Owner of the alarm state and its single countdown.

    The controller only owns timing and state. Producing sound is delegated
    to the optional *tone_player*; its failures are logged and never change
    the state machine.

    Parameters
    ----------
    duration : float
        Seconds the alarm stays active.
    tone_player : TonePlayer or None
        Audio collaborator started on entry into ``ACTIVE``. If it has a
        ``stop()`` method it is called on expiry.
    frequency_hz, amplitude : float
        Tone parameters passed to *tone_player*.
    loop : asyncio.AbstractEventLoop or None
        Loop the countdown is scheduled on. Defaults to the running loop at
        trigger time.
    """

    def __init__(
        self,
        *,
        duration: float = DEFAULT_ALARM_DURATION_S,
        tone_player: TonePlayer | None = None,
        frequency_hz: float = DEFAULT_TONE_FREQUENCY_HZ,
        amplitude: float = DEFAULT_TONE_AMPLITUDE,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        self._duration = duration
        self._tone_player = tone_player
        self._frequency_hz = frequency_hz
        self._amplitude = amplitude
        self._loop = loop
        self._state = AlarmState.IDLE
        self._handle: asyncio.TimerHandle | None = None
        self._activated_at: float | None = None
        self._listeners: list[AlarmListener] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> AlarmState:
        return self._state

    def current_state(self) -> AlarmState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is AlarmState.ACTIVE

    @property
    def activated_at(self) -> float | None:
        """Loop time of the current activation, ``None`` while idle."""
        return self._activated_at

    @property
    def expires_at(self) -> float | None:
        """Loop time at which the current activation ends, ``None`` while idle."""
        if self._handle is None:
            return None
        return self._handle.when()

    def add_listener(self, listener: AlarmListener) -> Callable[[], None]:
        """Register *listener* for state transitions; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def trigger(self) -> bool:
        """Enter ``ACTIVE`` if idle.

        Returns ``True`` when this call started the alarm, ``False`` when it
        was already active (the running countdown is left untouched).
        """
        if self._state is AlarmState.ACTIVE or self._handle is not None:
            _logger.debug("Alarm already active; trigger ignored")
            return False

        loop = self._loop or asyncio.get_running_loop()
        self._state = AlarmState.ACTIVE
        self._activated_at = loop.time()
        self._handle = loop.call_at(self._activated_at + self._duration, self._expire)
        _logger.info("Alarm active for %.1fs", self._duration)

        self._start_tone()
        self._notify(AlarmState.ACTIVE)
        return True

    def _expire(self) -> None:
        self._handle = None
        self._activated_at = None
        self._state = AlarmState.IDLE
        _logger.info("Alarm back to idle")

        self._stop_tone()
        self._notify(AlarmState.IDLE)

    def close(self) -> None:
        """Cancel a live countdown on shutdown without notifying listeners."""
        handle = self._handle
        self._handle = None
        self._activated_at = None
        self._state = AlarmState.IDLE
        if handle is not None:
            handle.cancel()
            self._stop_tone()

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _start_tone(self) -> None:
        if self._tone_player is None:
            return
        try:
            self._tone_player.play_tone(self._frequency_hz, self._amplitude, int(self._duration * 1000))
        except Exception:
            _logger.warning("Tone player failed to start", exc_info=True)

    def _stop_tone(self) -> None:
        stop = getattr(self._tone_player, "stop", None)
        if stop is None:
            return
        try:
            stop()
        except Exception:
            _logger.warning("Tone player failed to stop", exc_info=True)

    def _notify(self, state: AlarmState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                _logger.error("Alarm listener failed", exc_info=True)
