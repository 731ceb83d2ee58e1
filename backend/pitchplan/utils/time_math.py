"""
Clock-time arithmetic.

Clock strings are "HH:MM" (24h). All scheduling math happens in minutes
since midnight; these helpers convert at the edges.
"""

from typing import Optional

MINUTES_PER_DAY = 24 * 60


def to_minutes(clock: Optional[str]) -> Optional[int]:
    """Convert "HH:MM" to minutes since midnight.

    Returns None for anything that is not a well-formed clock string, so a
    malformed time reads as "no time" instead of raising.
    """
    if not isinstance(clock, str):
        return None
    parts = clock.strip().split(":")
    if len(parts) != 2:
        return None
    hours_str, minutes_str = parts
    if not (hours_str.isascii() and minutes_str.isascii()):
        return None
    if not (hours_str.isdecimal() and minutes_str.isdecimal()):
        return None
    hours = int(hours_str)
    minutes = int(minutes_str)
    if hours >= 24 or minutes >= 60:
        return None
    return hours * 60 + minutes


def to_clock(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM", wrapping past midnight."""
    normalized = int(minutes) % MINUTES_PER_DAY
    return f"{normalized // 60:02d}:{normalized % 60:02d}"


def is_valid_clock(clock: Optional[str]) -> bool:
    return to_minutes(clock) is not None


def snap_minutes(value: float, step: int) -> int:
    """Round a minute delta to the nearest multiple of step."""
    if step <= 0:
        return int(round(value))
    return int(round(value / step)) * step
