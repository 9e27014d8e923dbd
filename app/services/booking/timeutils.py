"""
Time and calendar primitives for booking evaluation.
Everything works at minute granularity on wall-clock times.
"""

import re
from datetime import date, datetime, time
from typing import Optional


HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Parse an HH:MM string into minutes since midnight."""
    match = HHMM_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid HH:MM time: {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_hhmm(minutes: int) -> str:
    """Format minutes since midnight as HH:MM."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minute of day out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_of_day(t: time) -> int:
    return t.hour * 60 + t.minute


def round_up_to_step(minutes: int, step: int) -> int:
    """Smallest multiple of `step` that is >= minutes."""
    return -(-minutes // step) * step


def weekday_sun0(day: date) -> int:
    """Weekday with Sunday=0 ... Saturday=6 (Python's weekday() is Monday=0)."""
    return (day.weekday() + 1) % 7


def date_in_range(day: date, start: Optional[date], end: Optional[date]) -> bool:
    """Inclusive containment; a None bound is open in that direction."""
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def intervals_overlap(
    start1: datetime, end1: datetime,
    start2: datetime, end2: datetime
) -> bool:
    """Check if two half-open ranges overlap."""
    return start1 < end2 and start2 < end1


def overlap_minutes(
    start1: datetime, end1: datetime,
    start2: datetime, end2: datetime
) -> int:
    """Length in minutes of the intersection of two ranges (0 when disjoint)."""
    latest_start = max(start1, start2)
    earliest_end = min(end1, end2)
    if earliest_end <= latest_start:
        return 0
    return int((earliest_end - latest_start).total_seconds() // 60)
