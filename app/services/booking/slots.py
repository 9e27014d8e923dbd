"""
Candidate slot generation.

Strategy:
1. Reject the whole date on weekday/blackout/horizon rules
2. Pick the first duration rule that covers the service duration
3. Step each start window from the lead-time cutoff (or midnight) to its latest_start
4. Merge the windows into one ascending, de-duplicated sequence
"""

import heapq
import math
from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from .types import BookingParams, DurationRule, RejectReason
from .timeutils import format_hhmm, minutes_of_day, round_up_to_step, weekday_sun0


def check_booking_date(params: BookingParams, on_date: date, today: date) -> Optional[RejectReason]:
    """
    Date-level rules, independent of time of day.

    Returns:
        The RejectReason for the date, or None if the date is bookable.
        A date in the past is reported as BEFORE_LEAD_TIME.
    """
    rules = params.weekday_rules
    if weekday_sun0(on_date) not in rules.allowed_dow:
        return RejectReason.DISALLOWED_WEEKDAY
    if on_date in rules.blackout_dates:
        return RejectReason.BLACKOUT_DATE
    if on_date < today:
        return RejectReason.BEFORE_LEAD_TIME
    if on_date > today + timedelta(days=params.max_horizon_days):
        return RejectReason.BEYOND_HORIZON
    return None


def match_duration_rule(params: BookingParams, service_duration: int) -> Optional[DurationRule]:
    """First rule in source order whose [min, max] contains the duration."""
    for rule in params.duration_windows:
        if rule.matches(service_duration):
            return rule
    return None


def earliest_start_minute(params: BookingParams, on_date: date, now: datetime) -> Optional[int]:
    """
    Lowest bookable minute-of-day on `on_date` given the lead time.

    The cutoff is `now + min_lead_time_min`. Days before the cutoff's date
    return None, the cutoff's date returns the cutoff minute, later days 0.
    """
    now = now.replace(tzinfo=None)
    lowest = now + timedelta(minutes=params.min_lead_time_min)
    if on_date > lowest.date():
        return 0
    if on_date < lowest.date():
        return None
    # Seconds count: 08:00:30 + 60 min must not allow 09:00
    seconds = (lowest - datetime.combine(on_date, datetime.min.time())).total_seconds()
    return math.ceil(seconds / 60)


class CandidateSlots:
    """
    Finite, restartable sequence of HH:MM start times.
    Each iteration recomputes lazily, so taking a prefix is cheap.
    """

    def __init__(self, params: BookingParams, rule: Optional[DurationRule], lower_minute: Optional[int]):
        self.params = params
        self.rule = rule
        self.lower_minute = lower_minute

    def _window_minutes(self, latest: int) -> Iterator[int]:
        step = self.params.slot_granularity_min
        return iter(range(round_up_to_step(self.lower_minute, step), latest + 1, step))

    def minutes(self) -> Iterator[int]:
        if self.rule is None or self.lower_minute is None:
            return
        windows = [
            self._window_minutes(minutes_of_day(w.latest_start))
            for w in self.rule.start_windows
        ]
        previous = None
        for minute in heapq.merge(*windows):
            if minute != previous:
                yield minute
            previous = minute

    def __iter__(self) -> Iterator[str]:
        return (format_hhmm(m) for m in self.minutes())

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None

    def __repr__(self) -> str:
        return f"CandidateSlots({list(self)!r})"


def generate_candidate_slots(
    params: BookingParams,
    on_date: date,
    service_duration: int,
    now: datetime,
) -> CandidateSlots:
    """
    Candidate start times for a service on a date, before checking bookings.

    Args:
        params: Effective policy parameters
        on_date: Target date
        service_duration: Service length in minutes
        now: Current wall-clock time; its date is "today"

    Returns:
        CandidateSlots, empty when the date, duration or lead time rule it out
    """
    if check_booking_date(params, on_date, now.date()) is not None:
        return CandidateSlots(params, None, None)

    rule = match_duration_rule(params, service_duration)
    if rule is None:
        return CandidateSlots(params, None, None)

    return CandidateSlots(params, rule, earliest_start_minute(params, on_date, now))
