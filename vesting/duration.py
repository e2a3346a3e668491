"""
duration.py - Compact Duration Strings

Durations are written as a positive integer immediately followed by a unit:

    "45min"  ->      2,700 seconds
    "30d"    ->  2,592,000 seconds
    "6mon"   -> 15,552,000 seconds (30-day months)
    "2yr"    -> 63,072,000 seconds (365-day years)

No whitespace, signs, zero magnitudes or compound specs ("1d6min") are accepted.
Parsing is pure: no locale, no timezone, no calendar.
"""

from __future__ import annotations
import re
from typing import Dict, Tuple

from .core import InvalidDurationFormat


SECONDS_PER_MINUTE = 60
SECONDS_PER_DAY = 86_400
SECONDS_PER_MONTH = 30 * SECONDS_PER_DAY
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY

# Unit tag -> seconds per unit.
UNIT_SECONDS: Dict[str, int] = {
    'min': SECONDS_PER_MINUTE,
    'd': SECONDS_PER_DAY,
    'mon': SECONDS_PER_MONTH,
    'yr': SECONDS_PER_YEAR,
}

# Largest first, for rendering.
_DISPLAY_ORDER: Tuple[Tuple[str, int], ...] = tuple(
    sorted(UNIT_SECONDS.items(), key=lambda kv: kv[1], reverse=True)
)

# re.ASCII keeps non-ASCII digits out of the magnitude.
_DURATION_PATTERN = re.compile(r"([0-9]+)(min|mon|yr|d)", re.ASCII)


def parse_duration(spec: str) -> int:
    """
    Convert a duration spec to a number of seconds.

    Args:
        spec: Duration string such as "30d" or "6mon"

    Returns:
        Positive number of seconds

    Raises:
        InvalidDurationFormat: If spec is not <positive integer><unit>

    Example:
        parse_duration("1mon")  # 2592000
    """
    if not isinstance(spec, str):
        raise InvalidDurationFormat(f"duration must be a string, got {type(spec).__name__}")
    match = _DURATION_PATTERN.fullmatch(spec)
    if match is None:
        raise InvalidDurationFormat(f"unrecognized duration {spec!r}")
    magnitude = int(match.group(1))
    if magnitude <= 0:
        raise InvalidDurationFormat(f"duration magnitude must be positive in {spec!r}")
    return magnitude * UNIT_SECONDS[match.group(2)]


def is_duration(spec: str) -> bool:
    """Return True if spec parses as a duration."""
    try:
        parse_duration(spec)
    except InvalidDurationFormat:
        return False
    return True


def format_duration(seconds: int) -> str:
    """
    Render a second count in the largest unit that divides it exactly.

    Display helper: counts that are not whole minutes fall back to "<n>s",
    which parse_duration() does not accept.

    Example:
        format_duration(2592000)  # "1mon"
        format_duration(86400 * 45)  # "45d"
    """
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise ValueError(f"seconds must be an int, got {seconds!r}")
    if seconds < 0:
        raise ValueError(f"seconds cannot be negative, got {seconds}")
    if seconds == 0:
        return "0s"
    for unit, size in _DISPLAY_ORDER:
        if seconds % size == 0:
            return f"{seconds // size}{unit}"
    return f"{seconds}s"
