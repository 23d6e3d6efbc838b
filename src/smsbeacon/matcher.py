"""Keyword matching for inbound message bodies."""

from __future__ import annotations

from smsbeacon.exceptions import BeaconConfigError


def normalize_keyword(value: str) -> str:
    """Return *value* stripped and uppercased.

    Raises :class:`BeaconConfigError` if nothing is left.
    """
    keyword = value.strip().upper() if isinstance(value, str) else ""
    if not keyword:
        raise BeaconConfigError("keyword must be a non-empty string")
    return keyword


def matches(body: str, keyword: str, *, ignore_case: bool = False) -> bool:
    """Whether *body* contains *keyword* as a contiguous substring.

    The keyword is expected to be normalized already (uppercase). With the
    default policy the body is *not* normalized, so ``"acharcelular123"``
    does not match the keyword ``"ACHARCELULAR123"``. Pass
    ``ignore_case=True`` to case-fold both sides.

    An empty keyword never matches.
    """
    if not keyword:
        return False
    if ignore_case:
        return keyword.casefold() in body.casefold()
    return keyword in body
