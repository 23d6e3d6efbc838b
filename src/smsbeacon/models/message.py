"""Inbound message model."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from smsbeacon.models._base import AwareDatetime, BeaconBaseModel


class InboundMessage(BeaconBaseModel):
    """A single received text message.

    Parameters
    ----------
    id : str
        Unique, monotonically increasing identifier assigned at arrival.
    sender : str
        Opaque origin identifier. Untrusted and not validated.
    body : str
        Free-form message text.
    received_at : datetime
        Arrival time (UTC).
    matched : bool
        Whether the body contained the keyword active at arrival time.
        Computed once and never re-evaluated.
    """

    id: str
    sender: str
    body: str = Field(validation_alias=AliasChoices("body", "message"))
    received_at: AwareDatetime = Field(validation_alias=AliasChoices("receivedAt", "received_at", "timestamp"))
    matched: bool = Field(default=False, validation_alias=AliasChoices("matched", "triggered"))
