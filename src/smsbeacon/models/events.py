"""Events and snapshots published to presentation collaborators.

The core never renders anything. Every observable change is published as a
:class:`FinderEvent` and the full state can be read at any time as a
:class:`FinderSnapshot`.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from smsbeacon.models._base import AwareDatetime, BeaconBaseModel, utcnow
from smsbeacon.models.alarm import AlarmState
from smsbeacon.models.location import Location, LocationErrorKind, LocatorStatus
from smsbeacon.models.message import InboundMessage


class FinderEventKind(StrEnum):
    MESSAGE_RECEIVED = "message_received"
    KEYWORD_CHANGED = "keyword_changed"
    ALARM_STARTED = "alarm_started"
    ALARM_STOPPED = "alarm_stopped"
    LOCATION_STARTED = "location_started"
    LOCATION_ACQUIRED = "location_acquired"
    LOCATION_FAILED = "location_failed"


class LocationFailure(BeaconBaseModel):
    """Last classified acquisition failure."""

    kind: LocationErrorKind
    reason: str
    occurred_at: AwareDatetime = Field(default_factory=utcnow)


class FinderEvent(BeaconBaseModel):
    """A single observable change in the finder core.

    Only the fields relevant to :attr:`kind` are populated.
    """

    kind: FinderEventKind
    observed_at: AwareDatetime = Field(default_factory=utcnow)
    message: InboundMessage | None = None
    keyword: str | None = None
    alarm_state: AlarmState | None = None
    location: Location | None = None
    failure: LocationFailure | None = None


class FinderSnapshot(BeaconBaseModel):
    """Read-only view of the whole core, most recent message first."""

    keyword: str
    alarm_state: AlarmState
    locator_status: LocatorStatus
    location: Location | None = None
    last_failure: LocationFailure | None = None
    messages: tuple[InboundMessage, ...] = ()
