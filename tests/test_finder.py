from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from smsbeacon._mqtt import InjectedMessage
from smsbeacon.config import BeaconConfig
from smsbeacon.exceptions import (
    BeaconConfigError,
    GeolocationPositionError,
    PermissionDeniedError,
    UnsupportedCapabilityError,
)
from smsbeacon.finder import PhoneFinder
from smsbeacon.models.alarm import AlarmState
from smsbeacon.models.events import FinderEvent, FinderEventKind
from smsbeacon.models.location import LocationErrorKind, LocatorStatus, PositionOptions, PositionReading

_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
_ALARM_S = 0.1


class _CountingGeolocation:
    def __init__(self, *, delay: float = 0.0, error: GeolocationPositionError | None = None) -> None:
        self.calls = 0
        self._delay = delay
        self._error = error

    async def get_current_position(self, options: PositionOptions) -> PositionReading:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return PositionReading(latitude=-23.5505, longitude=-46.6333, accuracy=12.0 + self.calls)


class _SilentTone:
    def play_tone(self, frequency_hz: float, amplitude: float, duration_ms: int) -> None:
        pass


def _finder(geolocation=None, events: list[FinderEvent] | None = None, **config) -> PhoneFinder:
    config.setdefault("alarm_duration", _ALARM_S)
    return PhoneFinder(
        BeaconConfig(**config),
        geolocation=geolocation,
        tone_player=_SilentTone(),
        on_event=events.append if events is not None else None,
        clock=lambda: _NOW,
    )


async def _settle() -> None:
    await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_keyword_message_raises_alarm_and_locates() -> None:
    geolocation = _CountingGeolocation()
    async with _finder(geolocation) as finder:
        message = finder.receive("+551199990000", "ache meu ACHARCELULAR123 celular")

        assert message.matched is True
        assert finder.messages[0] == message
        assert finder.alarm_state is AlarmState.ACTIVE

        await _settle()
        assert geolocation.calls == 1
        assert finder.location is not None
        assert finder.location.latitude == -23.5505

        await asyncio.sleep(_ALARM_S * 3)
        assert finder.alarm_state is AlarmState.IDLE


@pytest.mark.asyncio
async def test_plain_message_is_recorded_without_side_effects() -> None:
    geolocation = _CountingGeolocation()
    async with _finder(geolocation) as finder:
        message = finder.receive("unknown", "oi, tudo bem?")
        await _settle()

        assert message.matched is False
        assert finder.messages == (message,)
        assert finder.alarm_state is AlarmState.IDLE
        assert geolocation.calls == 0
        assert finder.location is None


@pytest.mark.asyncio
async def test_lowercase_keyword_in_body_does_not_trigger() -> None:
    async with _finder(_CountingGeolocation()) as finder:
        assert finder.receive("a", "acharcelular123").matched is False
        assert finder.alarm_state is AlarmState.IDLE


@pytest.mark.asyncio
async def test_second_match_while_active_is_recorded_but_does_nothing_more() -> None:
    geolocation = _CountingGeolocation(delay=0.01)
    events: list[FinderEvent] = []
    async with _finder(geolocation, events, alarm_duration=0.2) as finder:
        finder.receive("a", "ACHARCELULAR123")
        expires_at = finder.alarm.expires_at
        finder.receive("b", "ACHARCELULAR123 de novo")
        await asyncio.sleep(0.05)

        assert len(finder.messages) == 2
        assert all(m.matched for m in finder.messages)
        assert finder.alarm.expires_at == expires_at
        assert geolocation.calls == 1
        assert [e.kind for e in events].count(FinderEventKind.ALARM_STARTED) == 1


@pytest.mark.asyncio
async def test_no_auto_locate_when_location_is_held() -> None:
    geolocation = _CountingGeolocation()
    async with _finder(geolocation) as finder:
        await finder.locate()
        assert geolocation.calls == 1

        finder.receive("a", "ACHARCELULAR123")
        await _settle()
        assert finder.alarm_state is AlarmState.ACTIVE
        assert geolocation.calls == 1


@pytest.mark.asyncio
async def test_explicit_locate_refreshes_held_location() -> None:
    geolocation = _CountingGeolocation()
    async with _finder(geolocation) as finder:
        first = await finder.locate()
        second = await finder.locate()

        assert geolocation.calls == 2
        assert finder.location == second
        assert second.accuracy != first.accuracy


@pytest.mark.asyncio
async def test_each_new_activation_locates_until_a_fix_is_held() -> None:
    geolocation = _CountingGeolocation(error=GeolocationPositionError(2))
    async with _finder(geolocation) as finder:
        finder.receive("a", "ACHARCELULAR123")
        await _settle()
        await asyncio.sleep(_ALARM_S * 3)
        assert finder.alarm_state is AlarmState.IDLE
        assert finder.location is None

        finder.receive("a", "ACHARCELULAR123")
        await _settle()
        assert geolocation.calls == 2


@pytest.mark.asyncio
async def test_manual_trigger_also_locates() -> None:
    geolocation = _CountingGeolocation()
    async with _finder(geolocation) as finder:
        assert finder.trigger_alarm() is True
        assert finder.trigger_alarm() is False
        await _settle()
        assert geolocation.calls == 1


@pytest.mark.asyncio
async def test_events_for_a_full_cycle() -> None:
    events: list[FinderEvent] = []
    async with _finder(_CountingGeolocation(), events) as finder:
        finder.receive("+551199990000", "ache meu ACHARCELULAR123 celular")
        await _settle()
        await asyncio.sleep(_ALARM_S * 3)

    kinds = [e.kind for e in events]
    assert kinds == [
        FinderEventKind.MESSAGE_RECEIVED,
        FinderEventKind.ALARM_STARTED,
        FinderEventKind.LOCATION_STARTED,
        FinderEventKind.LOCATION_ACQUIRED,
        FinderEventKind.ALARM_STOPPED,
    ]
    assert events[0].message is not None and events[0].message.matched
    assert events[1].alarm_state is AlarmState.ACTIVE
    assert events[3].location is not None
    assert events[4].alarm_state is AlarmState.IDLE
    assert all(e.observed_at == _NOW for e in events)


@pytest.mark.asyncio
async def test_failed_auto_locate_is_published_not_raised() -> None:
    events: list[FinderEvent] = []
    geolocation = _CountingGeolocation(error=GeolocationPositionError(1))
    async with _finder(geolocation, events) as finder:
        finder.receive("a", "ACHARCELULAR123")
        await _settle()

        failed = [e for e in events if e.kind is FinderEventKind.LOCATION_FAILED]
        assert len(failed) == 1
        assert failed[0].failure is not None
        assert failed[0].failure.kind is LocationErrorKind.PERMISSION_DENIED
        assert finder.snapshot().locator_status is LocatorStatus.FAILED


@pytest.mark.asyncio
async def test_explicit_locate_failure_raises() -> None:
    async with _finder(_CountingGeolocation(error=GeolocationPositionError(1))) as finder:
        with pytest.raises(PermissionDeniedError):
            await finder.locate()


@pytest.mark.asyncio
async def test_without_geolocation_alarm_still_works() -> None:
    events: list[FinderEvent] = []
    async with _finder(None, events) as finder:
        finder.receive("a", "ACHARCELULAR123")
        await _settle()

        assert finder.alarm_state is AlarmState.ACTIVE
        failed = [e for e in events if e.kind is FinderEventKind.LOCATION_FAILED]
        assert failed[0].failure is not None
        assert failed[0].failure.kind is LocationErrorKind.UNSUPPORTED


@pytest.mark.asyncio
async def test_set_keyword_applies_to_later_messages_only() -> None:
    events: list[FinderEvent] = []
    async with _finder(_CountingGeolocation(), events) as finder:
        old = finder.receive("a", "NOVA palavra")
        assert finder.set_keyword("nova") == "NOVA"
        new = finder.receive("a", "NOVA palavra")

        assert finder.keyword == "NOVA"
        assert old.matched is False
        assert new.matched is True
        assert finder.messages[1].matched is False
        keyword_events = [e for e in events if e.kind is FinderEventKind.KEYWORD_CHANGED]
        assert keyword_events[0].keyword == "NOVA"


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["", "   "])
async def test_blank_keyword_rejected(value: str) -> None:
    async with _finder(_CountingGeolocation()) as finder:
        with pytest.raises(BeaconConfigError):
            finder.set_keyword(value)
        assert finder.keyword == "ACHARCELULAR123"


@pytest.mark.asyncio
async def test_inbox_holds_ten_most_recent() -> None:
    async with _finder(_CountingGeolocation()) as finder:
        for i in range(12):
            finder.receive("a", f"msg {i}")
        bodies = [m.body for m in finder.messages]
        assert bodies == [f"msg {i}" for i in range(11, 1, -1)]


@pytest.mark.asyncio
async def test_snapshot_reflects_state() -> None:
    async with _finder(_CountingGeolocation()) as finder:
        finder.receive("a", "ACHARCELULAR123")
        await _settle()
        snap = finder.snapshot()

        assert snap.keyword == "ACHARCELULAR123"
        assert snap.alarm_state is AlarmState.ACTIVE
        assert snap.locator_status is LocatorStatus.LOCATED
        assert snap.location == finder.location
        assert snap.last_failure is None
        assert snap.messages == finder.messages


@pytest.mark.asyncio
async def test_event_callback_failure_does_not_break_flow() -> None:
    def _boom(_event: FinderEvent) -> None:
        raise RuntimeError("ui bug")

    finder = PhoneFinder(
        BeaconConfig(alarm_duration=_ALARM_S),
        geolocation=_CountingGeolocation(),
        tone_player=_SilentTone(),
        on_event=_boom,
    )
    async with finder:
        assert finder.receive("a", "ACHARCELULAR123").matched
        await _settle()
        assert finder.location is not None


@pytest.mark.asyncio
async def test_exit_cancels_pending_location() -> None:
    geolocation = _CountingGeolocation(delay=5.0)
    async with _finder(geolocation) as finder:
        finder.receive("a", "ACHARCELULAR123")
        await _settle()
        assert finder.locator.in_progress

    assert not finder.locator.in_progress
    assert finder.alarm_state is AlarmState.IDLE
    assert finder.location is None


@pytest.mark.asyncio
async def test_injected_mqtt_message_is_received() -> None:
    async with _finder(_CountingGeolocation()) as finder:
        finder._on_injected_message(  # type: ignore[attr-defined]
            InjectedMessage(sender="+5511", body="ACHARCELULAR123", topic="smsbeacon/inbox")
        )
        assert finder.messages[0].sender == "+5511"
        assert finder.alarm_state is AlarmState.ACTIVE


@pytest.mark.asyncio
async def test_missing_geolocation_reported_once_across_activations() -> None:
    events: list[FinderEvent] = []
    async with _finder(None, events, alarm_duration=0.02) as finder:
        for _ in range(3):
            finder.receive("a", "ACHARCELULAR123")
            await asyncio.sleep(0.06)
            assert finder.alarm_state is AlarmState.IDLE

    kinds = [e.kind for e in events]
    assert kinds.count(FinderEventKind.ALARM_STARTED) == 3
    assert kinds.count(FinderEventKind.LOCATION_FAILED) == 1
    assert FinderEventKind.LOCATION_STARTED not in kinds


@pytest.mark.asyncio
async def test_explicit_locate_without_geolocation_still_raises() -> None:
    events: list[FinderEvent] = []
    async with _finder(None, events) as finder:
        with pytest.raises(UnsupportedCapabilityError):
            await finder.locate()

    assert [e.kind for e in events] == [FinderEventKind.LOCATION_FAILED]


@pytest.mark.asyncio
async def test_static_map_url_uses_configured_token() -> None:
    async with _finder(_CountingGeolocation(), map_access_token="pk.test") as finder:
        assert finder.static_map_url() is None

        await finder.locate()
        url = finder.static_map_url(width=300, height=200)

    assert url is not None
    assert "pin-s+ef4444(-46.6333,-23.5505)" in url
    assert "/300x200?" in url
    assert url.endswith("access_token=pk.test")


@pytest.mark.asyncio
async def test_static_map_url_without_token_rejected() -> None:
    async with _finder(_CountingGeolocation()) as finder:
        await finder.locate()
        with pytest.raises(BeaconConfigError):
            finder.static_map_url()


@pytest.mark.asyncio
async def test_locate_pending_at_exit_is_cancelled() -> None:
    async with _finder(_CountingGeolocation(delay=5.0)) as finder:
        pending = asyncio.create_task(finder.locate())
        await _settle()
        assert finder.locator.in_progress

    with pytest.raises(asyncio.CancelledError):
        await pending
    assert finder.location is None
