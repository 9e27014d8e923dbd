"""
Booking evaluator - main orchestration layer.

Combines resolution, slot generation and validation:
resolver picks one policy -> generator yields raw candidates -> validator
filters them against bookings, breaks and overbooking.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from .types import (
    Appointment,
    BookingParams,
    BookingPolicy,
    BookingRequest,
    BookingVerdict,
    Break,
    DayAvailability,
    DEFAULT_BOOKING_PARAMS,
    NoPolicyFallback,
    PolicyContext,
    RejectReason,
    SlotCandidate,
)
from .resolver import resolve_effective_policy
from .slots import (
    check_booking_date,
    earliest_start_minute,
    generate_candidate_slots,
    match_duration_rule,
)
from .timeutils import minutes_of_day, parse_hhmm
from .validator import validate_slot


logger = logging.getLogger(__name__)


def params_for(
    policy: Optional[BookingPolicy],
    fallback: NoPolicyFallback,
) -> Optional[BookingParams]:
    """
    Parameters to evaluate with. Without a policy, UNRESTRICTED falls back to
    DEFAULT_BOOKING_PARAMS and BLOCKED yields None (nothing bookable).
    """
    if policy is not None:
        return policy.params
    if fallback == NoPolicyFallback.UNRESTRICTED:
        return DEFAULT_BOOKING_PARAMS
    return None


def check_start_window(
    params: BookingParams,
    start: time,
    service_duration: int,
) -> Optional[RejectReason]:
    """OUTSIDE_WINDOW if no rule covers the duration, the start is off-grid, or after every latest_start."""
    rule = match_duration_rule(params, service_duration)
    if rule is None:
        return RejectReason.OUTSIDE_WINDOW

    minute = minutes_of_day(start)
    if start.second or minute % params.slot_granularity_min:
        return RejectReason.OUTSIDE_WINDOW

    if not any(minute <= minutes_of_day(w.latest_start) for w in rule.start_windows):
        return RejectReason.OUTSIDE_WINDOW
    return None


def list_available_slots(
    params: BookingParams,
    on_date: date,
    service_duration: int,
    professional_id: int,
    now: datetime,
    appointments: Iterable[Appointment],
    shift_end: Optional[time],
    breaks: Iterable[Break] = (),
) -> list[str]:
    """Candidate slots that also pass validate_slot, in ascending order."""
    appointments = list(appointments)
    breaks = list(breaks)
    available = []
    for slot in generate_candidate_slots(params, on_date, service_duration, now):
        candidate = SlotCandidate(
            date=on_date,
            start=_to_time(slot),
            service_duration=service_duration,
            professional_id=professional_id,
        )
        if validate_slot(candidate, params, appointments, shift_end, breaks).accepted:
            available.append(slot)
    return available


def evaluate_booking(
    request: BookingRequest,
    policies: Iterable[BookingPolicy],
    appointments: Iterable[Appointment],
    now: datetime,
    shift_end: Optional[time],
    breaks: Iterable[Break] = (),
    fallback: NoPolicyFallback = NoPolicyFallback.UNRESTRICTED,
) -> BookingVerdict:
    """
    Full accept/reject verdict for one requested booking.

    Checks, first failure wins:
    1. an applicable policy exists (or the fallback allows booking)
    2. date rules: weekday, blackout, past date, horizon
    3. lead time: start >= now + min_lead_time_min
    4. duration rule / start window / granularity
    5. validate_slot: shift end, breaks, overbooking

    Returns:
        BookingVerdict with the policy that was applied (None for the fallback)
    """
    policy = resolve_effective_policy(policies, request.context)
    params = params_for(policy, fallback)
    if params is None:
        return BookingVerdict(accepted=False, reason=RejectReason.NO_POLICY)

    reason = _check_request(params, request, now)
    if reason is None:
        decision = validate_slot(request.candidate, params, appointments, shift_end, breaks)
        reason = decision.reason

    if reason is not None:
        logger.debug(
            f"Rejected booking for professional {request.professional_id} at "
            f"{request.date} {request.start:%H:%M}: {reason.value}"
        )
        return BookingVerdict(accepted=False, reason=reason, policy=policy)
    return BookingVerdict(accepted=True, policy=policy)


def summarize_availability(
    policies: Iterable[BookingPolicy],
    service_id: int,
    professional_id: int,
    start_date: date,
    end_date: date,
    service_duration: int,
    now: datetime,
    appointments: Iterable[Appointment],
    shift_end: Optional[time],
    breaks: Iterable[Break] = (),
    fallback: NoPolicyFallback = NoPolicyFallback.UNRESTRICTED,
) -> list[DayAvailability]:
    """
    Available slots per day over an inclusive date range.
    The effective policy is resolved separately for each day.
    """
    if end_date < start_date:
        raise ValueError("end_date must not be before start_date")

    policies = list(policies)
    appointments = list(appointments)
    breaks = list(breaks)

    days = []
    current = start_date
    while current <= end_date:
        policy = resolve_effective_policy(
            policies, PolicyContext(service_id, professional_id, current)
        )
        params = params_for(policy, fallback)
        day = DayAvailability(date=current, policy_id=policy.id if policy else None)
        if params is not None:
            day.slots = list_available_slots(
                params, current, service_duration, professional_id,
                now, appointments, shift_end, breaks,
            )
        days.append(day)
        current += timedelta(days=1)
    return days


def _check_request(params: BookingParams, request: BookingRequest, now: datetime) -> Optional[RejectReason]:
    reason = check_booking_date(params, request.date, now.date())
    if reason is not None:
        return reason

    lower = earliest_start_minute(params, request.date, now)
    if lower is None or minutes_of_day(request.start) < lower:
        return RejectReason.BEFORE_LEAD_TIME

    return check_start_window(params, request.start, request.service_duration)


def _to_time(hhmm: str) -> time:
    minutes = parse_hhmm(hhmm)
    return time(minutes // 60, minutes % 60)
