"""Base model and timestamp helpers shared by smsbeacon models.

Every smsbeacon model inherits from :class:`BeaconBaseModel` which
provides:

* ``frozen=True`` so entities are immutable once built.
* ``populate_by_name=True`` together with camelCase aliases, so payloads
  produced by JavaScript-style collaborators (``receivedAt``,
  ``acquiredAt``) validate without translation.
* Timezone normalisation: naive datetimes are interpreted as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: Any) -> Any:
    """Attach UTC to naive datetimes; leave everything else to pydantic."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


AwareDatetime = Annotated[datetime, BeforeValidator(ensure_utc)]
"""Datetime that is always timezone aware (naive inputs are taken as UTC)."""


class BeaconBaseModel(BaseModel):
    """Base for smsbeacon entities."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
