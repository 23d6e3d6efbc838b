"""Bounded, most-recent-first log of received messages."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterator
from datetime import datetime

from smsbeacon._constants import DEFAULT_INBOX_CAPACITY
from smsbeacon._redact import mask_sender
from smsbeacon.matcher import matches
from smsbeacon.models._base import ensure_utc, utcnow
from smsbeacon.models.message import InboundMessage
from smsbeacon.state.keyword import KeywordSetting

_logger = logging.getLogger(__name__)


class _MessageIds:
    """Time-based ids that never repeat or go backwards within a process."""

    def __init__(self) -> None:
        self._last = 0

    def next(self, at: datetime) -> str:
        candidate = int(at.timestamp() * 1000)
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return str(candidate)


class InboxFeed:
    """Append-only log of the most recent inbound messages.

    Only :meth:`record` mutates the log; entries beyond ``capacity`` are
    evicted oldest first. Reads return snapshots, never the live container.
    """

    def __init__(
        self,
        keyword: KeywordSetting,
        *,
        capacity: int = DEFAULT_INBOX_CAPACITY,
        ignore_case: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._keyword = keyword
        self._ignore_case = ignore_case
        self._clock = clock
        self._ids = _MessageIds()
        self._messages: deque[InboundMessage] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._messages.maxlen or 0

    def record(self, sender: str, body: str, now: datetime | None = None) -> InboundMessage:
        """Match *body* against the current keyword and store the message.

        Returns the stored :class:`InboundMessage`; callers inspect
        ``matched`` to decide whether to raise the alarm.
        """
        received_at = ensure_utc(now) if now is not None else self._clock()
        matched = matches(body, self._keyword.value, ignore_case=self._ignore_case)
        message = InboundMessage(
            id=self._ids.next(received_at),
            sender=sender,
            body=body,
            received_at=received_at,
            matched=matched,
        )
        self._messages.appendleft(message)
        _logger.debug(
            "Recorded message id=%s sender=%s matched=%s held=%d",
            message.id,
            mask_sender(sender),
            matched,
            len(self._messages),
        )
        return message

    def snapshot(self) -> tuple[InboundMessage, ...]:
        """Held messages, most recent first."""
        return tuple(self._messages)

    @property
    def latest(self) -> InboundMessage | None:
        return self._messages[0] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[InboundMessage]:
        return iter(self.snapshot())
