"""Process-wide keyword setting."""

from __future__ import annotations

import logging

from smsbeacon.matcher import normalize_keyword

_logger = logging.getLogger(__name__)


class KeywordSetting:
    """Owner of the single current keyword value.

    The value is always non-empty and uppercase. A rejected update leaves the
    previous value untouched.
    """

    def __init__(self, initial: str) -> None:
        self._value = normalize_keyword(initial)

    @property
    def value(self) -> str:
        return self._value

    def update(self, value: str) -> str:
        """Replace the keyword and return the normalized value.

        Raises :class:`~smsbeacon.exceptions.BeaconConfigError` for an empty or
        whitespace-only *value*.
        """
        normalized = normalize_keyword(value)
        if normalized != self._value:
            _logger.info("Keyword updated (length=%d)", len(normalized))
        self._value = normalized
        return normalized
