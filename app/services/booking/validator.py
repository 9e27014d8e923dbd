"""
Availability checking for a single candidate slot.
Determines if a professional can take a booking at a given start time.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from .types import (
    Appointment,
    BookingParams,
    Break,
    BreakMode,
    RejectReason,
    SlotCandidate,
    SlotDecision,
)
from .timeutils import intervals_overlap, minutes_of_day, overlap_minutes


logger = logging.getLogger(__name__)


def service_interval(candidate: SlotCandidate) -> tuple[datetime, datetime]:
    start = datetime.combine(candidate.date, candidate.start)
    return start, start + timedelta(minutes=candidate.service_duration)


def effective_interval(
    day: date, start: time, duration: int, params: BookingParams
) -> tuple[datetime, datetime]:
    """Service interval widened by the policy's buffers."""
    begin = datetime.combine(day, start)
    return (
        begin - timedelta(minutes=params.buffer_before_min),
        begin + timedelta(minutes=duration + params.buffer_after_min),
    )


def finishes_after_shift(candidate: SlotCandidate, shift_end: time) -> bool:
    return minutes_of_day(candidate.start) + candidate.service_duration > minutes_of_day(shift_end)


def has_break_conflict(
    candidate: SlotCandidate,
    params: BookingParams,
    breaks: Iterable[Break],
) -> bool:
    """
    Check the service interval (buffers excluded) against the professional's breaks.

    - respect: any overlap conflicts
    - exception: conflicts when the overlap summed over all breaks exceeds
      break_exception_minutes
    - merge: breaks never conflict
    """
    constraints = params.finish_constraints
    if constraints.respect_breaks == BreakMode.MERGE:
        return False

    start, end = service_interval(candidate)
    total = 0
    for brk in breaks:
        if brk.professional_id != candidate.professional_id or brk.date != candidate.date:
            continue
        brk_start = datetime.combine(brk.date, brk.start)
        brk_end = datetime.combine(brk.date, brk.end)
        overlap = overlap_minutes(start, end, brk_start, brk_end)
        if overlap == 0:
            continue
        if constraints.respect_breaks == BreakMode.RESPECT:
            return True
        total += overlap
        if total > constraints.break_exception_minutes:
            return True
    return False


def count_overlapping_appointments(
    candidate: SlotCandidate,
    params: BookingParams,
    appointments: Iterable[Appointment],
) -> int:
    """Non-cancelled appointments of the same professional whose buffered interval overlaps the candidate's."""
    start, end = effective_interval(candidate.date, candidate.start, candidate.service_duration, params)
    count = 0
    for appt in appointments:
        if appt.professional_id != candidate.professional_id or appt.is_cancelled:
            continue
        appt_start, appt_end = effective_interval(appt.date, appt.start, appt.duration, params)
        if intervals_overlap(start, end, appt_start, appt_end):
            count += 1
    return count


def validate_slot(
    candidate: SlotCandidate,
    params: BookingParams,
    existing_appointments: Iterable[Appointment],
    shift_end: Optional[time],
    breaks: Iterable[Break] = (),
) -> SlotDecision:
    """
    Accept or reject a candidate start time. First failing check wins.

    Order:
    1. must finish before shift end (skipped when shift_end is None)
    2. break handling per respect_breaks mode
    3. overbooking limit

    Returns:
        SlotDecision with accepted=True, or accepted=False and a RejectReason
    """
    if (
        shift_end is not None
        and params.finish_constraints.must_finish_before_shift_end
        and finishes_after_shift(candidate, shift_end)
    ):
        return SlotDecision.reject(RejectReason.FINISHES_AFTER_SHIFT)

    if has_break_conflict(candidate, params, breaks):
        return SlotDecision.reject(RejectReason.BREAK_CONFLICT)

    parallel = count_overlapping_appointments(candidate, params, existing_appointments)
    limit = params.overbooking.max_parallel_per_professional
    if parallel >= limit:
        logger.debug(
            f"Professional {candidate.professional_id} has {parallel} overlapping booking(s) "
            f"at {candidate.date} {candidate.start:%H:%M}, limit {limit}"
        )
        return SlotDecision.reject(RejectReason.OVERBOOKED)

    return SlotDecision.accept()
