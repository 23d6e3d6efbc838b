"""Alarm state model."""

from __future__ import annotations

from enum import StrEnum


class AlarmState(StrEnum):
    IDLE = "idle"
    ACTIVE = "active"
