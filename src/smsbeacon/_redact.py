"""Helpers for safe debug logging.

smsbeacon handles phone numbers, message bodies carrying the secret
keyword, broker credentials and map tokens. This module redacts them before
they reach log records.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "accesstoken",
        "access_token",
        "authorization",
        "keyword",
        "body",
        "message",
    }
)


def mask_sender(sender: str, *, visible: int = 4) -> str:
    """Mask all but the last *visible* characters of a sender identifier."""
    if len(sender) <= visible:
        return "*" * len(sender)
    return "*" * (len(sender) - visible) + sender[-visible:]


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            lowered = key.lower()
            if lowered in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            elif lowered == "sender" and isinstance(v, str):
                redacted[key] = mask_sender(v)
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
