"""High-level coordinator for the find-my-phone core."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from smsbeacon._mqtt import InboxMqttRuntime, InjectedMessage
from smsbeacon._redact import mask_sender
from smsbeacon.alarm import AlarmController
from smsbeacon.audio import LoggingTonePlayer, TonePlayer
from smsbeacon.config import BeaconConfig
from smsbeacon.exceptions import LocationError
from smsbeacon.geolocation import GeolocationService, HttpGeolocationService
from smsbeacon.location import LocationAcquirer
from smsbeacon.models._base import utcnow
from smsbeacon.models.alarm import AlarmState
from smsbeacon.models.events import FinderEvent, FinderEventKind, FinderSnapshot
from smsbeacon.models.location import Location, LocationErrorKind
from smsbeacon.models.message import InboundMessage
from smsbeacon.share import static_map_url as build_static_map_url
from smsbeacon.state.inbox import InboxFeed
from smsbeacon.state.keyword import KeywordSetting

_logger = logging.getLogger(__name__)

EventCallback = Callable[[FinderEvent], None]


class PhoneFinder:
    """Wires keyword, inbox, alarm and location acquisition together.

    * A recorded message that matches the keyword triggers the alarm.
    * Every transition of the alarm into ``ACTIVE`` starts one location
      acquisition, unless a location is already held or one is in flight.
    * A held location is only refreshed by an explicit :meth:`locate`.

    Every observable change is published to *on_event*.

    Usage::

        async with PhoneFinder(BeaconConfig.from_env()) as finder:
            finder.receive("+551199990000", "ache meu ACHARCELULAR123 celular")
    """

    def __init__(
        self,
        config: BeaconConfig | None = None,
        *,
        geolocation: GeolocationService | None = None,
        tone_player: TonePlayer | None = None,
        on_event: EventCallback | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config or BeaconConfig()
        self._clock = clock
        self._on_event = on_event
        self._loop: asyncio.AbstractEventLoop | None = None
        self._mqtt_runtime: InboxMqttRuntime | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

        self._owned_geolocation: HttpGeolocationService | None = None
        if geolocation is None and self._config.geolocation_url:
            self._owned_geolocation = HttpGeolocationService(self._config.geolocation_url)
            geolocation = self._owned_geolocation

        self._keyword = KeywordSetting(self._config.keyword)
        self._inbox = InboxFeed(
            self._keyword,
            capacity=self._config.inbox_capacity,
            ignore_case=self._config.ignore_case,
            clock=clock,
        )
        self._alarm = AlarmController(
            duration=self._config.alarm_duration,
            tone_player=tone_player if tone_player is not None else LoggingTonePlayer(),
            frequency_hz=self._config.tone_frequency_hz,
            amplitude=self._config.tone_amplitude,
        )
        self._locator = LocationAcquirer(
            geolocation,
            options=self._config.position_options(),
            language=self._config.language,
            clock=clock,
        )
        self._alarm.add_listener(self._on_alarm_state)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PhoneFinder:
        self._loop = asyncio.get_running_loop()
        if self._config.mqtt_enabled:
            runtime = InboxMqttRuntime(
                config=self._config,
                loop=self._loop,
                on_message=self._on_injected_message,
            )
            await self._loop.run_in_executor(None, runtime.start)
            self._mqtt_runtime = runtime
        return self

    async def __aexit__(self, *exc: Any) -> None:
        runtime = self._mqtt_runtime
        self._mqtt_runtime = None
        if runtime is not None and self._loop is not None:
            try:
                await self._loop.run_in_executor(None, runtime.stop)
            except Exception:
                _logger.debug("MQTT runtime stop failed", exc_info=True)

        self._locator.cancel()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._alarm.close()

        if self._owned_geolocation is not None:
            await self._owned_geolocation.close()
        self._loop = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def config(self) -> BeaconConfig:
        return self._config

    @property
    def keyword(self) -> str:
        return self._keyword.value

    @property
    def alarm(self) -> AlarmController:
        return self._alarm

    @property
    def locator(self) -> LocationAcquirer:
        return self._locator

    @property
    def alarm_state(self) -> AlarmState:
        return self._alarm.state

    @property
    def location(self) -> Location | None:
        return self._locator.location

    @property
    def messages(self) -> tuple[InboundMessage, ...]:
        return self._inbox.snapshot()

    def snapshot(self) -> FinderSnapshot:
        return FinderSnapshot(
            keyword=self._keyword.value,
            alarm_state=self._alarm.state,
            locator_status=self._locator.status,
            location=self._locator.location,
            last_failure=self._locator.last_failure,
            messages=self._inbox.snapshot(),
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def receive(self, sender: str, body: str, now: datetime | None = None) -> InboundMessage:
        """Record an inbound message and raise the alarm on a keyword match."""
        message = self._inbox.record(sender, body, now)
        self._emit(FinderEventKind.MESSAGE_RECEIVED, message=message)
        if message.matched:
            _logger.info("Keyword matched in message from %s", mask_sender(sender))
            self._alarm.trigger()
        return message

    def set_keyword(self, value: str) -> str:
        """Replace the keyword; rejected values raise ``BeaconConfigError``.

        Messages already recorded keep their ``matched`` flag.
        """
        keyword = self._keyword.update(value)
        self._emit(FinderEventKind.KEYWORD_CHANGED, keyword=keyword)
        return keyword

    def trigger_alarm(self) -> bool:
        """Manually raise the alarm. Returns ``False`` if it was already active."""
        return self._alarm.trigger()

    async def locate(self) -> Location:
        """Acquire (or refresh) the location on explicit request.

        Raises :class:`~smsbeacon.exceptions.LocationError` on failure. A
        request still outstanding when the finder is closed is abandoned and
        its callers see :class:`asyncio.CancelledError`, not a classified
        failure.
        """
        return await self._run_locate()

    def static_map_url(self, *, width: int = 600, height: int = 400) -> str | None:
        """Static map image URL for the held location, ``None`` if none is held.

        Uses ``config.map_access_token``; raises
        :class:`~smsbeacon.exceptions.BeaconConfigError` when it is not set.
        """
        location = self._locator.location
        if location is None:
            return None
        return build_static_map_url(location, self._config.map_access_token, width=width, height=height)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run_locate(self) -> Location:
        joining = self._locator.in_progress
        # No service: acquire() fails before any request is issued.
        if not joining and self._locator.supported:
            self._emit(FinderEventKind.LOCATION_STARTED)
        try:
            location = await self._locator.acquire()
        except LocationError:
            if not joining:
                self._emit(FinderEventKind.LOCATION_FAILED, failure=self._locator.last_failure)
            raise
        if not joining:
            self._emit(FinderEventKind.LOCATION_ACQUIRED, location=location)
        return location

    async def _auto_locate(self) -> None:
        try:
            await self._run_locate()
        except LocationError as exc:
            _logger.info("Automatic location after alarm failed: %s", exc.reason)

    def _on_alarm_state(self, state: AlarmState) -> None:
        if state is AlarmState.IDLE:
            self._emit(FinderEventKind.ALARM_STOPPED, alarm_state=state)
            return

        self._emit(FinderEventKind.ALARM_STARTED, alarm_state=state)
        if self._locator.location is not None or self._locator.in_progress:
            return
        failure = self._locator.last_failure
        unsupported = failure is not None and failure.kind is LocationErrorKind.UNSUPPORTED
        if unsupported and not self._locator.supported:
            _logger.debug("No geolocation capability; already reported, not locating")
            return
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._auto_locate(), name="smsbeacon-auto-locate")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_injected_message(self, message: InjectedMessage) -> None:
        self.receive(message.sender, message.body)

    def _emit(self, kind: FinderEventKind, **fields: Any) -> None:
        if self._on_event is None:
            return
        event = FinderEvent(kind=kind, observed_at=self._clock(), **fields)
        try:
            self._on_event(event)
        except Exception:
            _logger.error("on_event callback failed for %s", kind, exc_info=True)
