"""Conversion between human time strings and seconds.

Accepts ``SS``, ``MM:SS`` and ``HH:MM:SS``, with optional fractional
parts and whitespace around each field.
"""

from __future__ import annotations

import math
from enum import Enum


class Invalid(Enum):
    """Marker returned by :func:`to_seconds` for unparseable text."""

    INVALID = "invalid"

    def __repr__(self) -> str:
        return "INVALID"


INVALID = Invalid.INVALID

# Seconds per field, indexed by field count: [S], [M, S], [H, M, S]
_FIELD_WEIGHTS = {
    1: (1,),
    2: (60, 1),
    3: (3600, 60, 1),
}


def _parse_field(field: str) -> float | None:
    field = field.strip()
    if not field:
        return None
    try:
        value = float(field)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def to_seconds(text: str) -> float | Invalid:
    """Convert a time string to seconds.

    Args:
        text: Time such as ``"75"``, ``"01:15"`` or ``"00:01:15.5"``

    Returns:
        Number of seconds, or ``INVALID`` if the text has a non-numeric
        field or does not have exactly 1, 2 or 3 fields.
    """
    if not text or not text.strip():
        return INVALID

    fields = text.strip().split(":")
    weights = _FIELD_WEIGHTS.get(len(fields))
    if weights is None:
        return INVALID

    total = 0.0
    for field, weight in zip(fields, weights):
        value = _parse_field(field)
        if value is None:
            return INVALID
        total += value * weight
    return total


def is_invalid(value: float | Invalid) -> bool:
    """Check whether a :func:`to_seconds` result is the failure marker."""
    return value is INVALID


def to_text(seconds: float) -> str:
    """Format seconds as ``MM:SS``, or ``HH:MM:SS`` once past an hour.

    Fractional seconds are truncated.
    """
    whole = int(seconds)
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
