"""
Booking policy evaluation package.

Usage:
    from datetime import date, datetime, time
    from app.services.booking import BookingRequest, evaluate_booking

    # Full verdict for one requested booking
    request = BookingRequest(service_id=3, professional_id=7, date=date(2025, 1, 21),
                             start=time(10, 0), service_duration=45)
    verdict = evaluate_booking(request, policies, appointments,
                               now=datetime(2025, 1, 20, 9, 0), shift_end=time(18, 0))

    # Or run the steps separately
    from app.services.booking import (
        PolicyContext, resolve_effective_policy, generate_candidate_slots, validate_slot,
    )

    policy = resolve_effective_policy(policies, PolicyContext(3, 7, date(2025, 1, 21)))
    slots = generate_candidate_slots(policy.params, date(2025, 1, 21), 45, now)
"""

from .types import (
    Appointment,
    AppointmentStatus,
    BookingParams,
    BookingPolicy,
    BookingRequest,
    BookingVerdict,
    Break,
    BreakMode,
    DayAvailability,
    DEFAULT_BOOKING_PARAMS,
    DurationRule,
    FinishConstraints,
    InvariantViolation,
    NoPolicyFallback,
    Overbooking,
    PolicyContext,
    RejectReason,
    ScopeType,
    SlotCandidate,
    SlotDecision,
    StartWindow,
    WeekdayRules,
)
from .resolver import filter_policies, rank_policies, resolve_effective_policy
from .slots import CandidateSlots, check_booking_date, generate_candidate_slots, match_duration_rule
from .validator import validate_slot
from .evaluator import evaluate_booking, list_available_slots, summarize_availability

__all__ = [
    # Types
    "Appointment",
    "AppointmentStatus",
    "BookingParams",
    "BookingPolicy",
    "BookingRequest",
    "BookingVerdict",
    "Break",
    "BreakMode",
    "DayAvailability",
    "DEFAULT_BOOKING_PARAMS",
    "DurationRule",
    "FinishConstraints",
    "InvariantViolation",
    "NoPolicyFallback",
    "Overbooking",
    "PolicyContext",
    "RejectReason",
    "ScopeType",
    "SlotCandidate",
    "SlotDecision",
    "StartWindow",
    "WeekdayRules",
    # Main entry points
    "evaluate_booking",
    "list_available_slots",
    "summarize_availability",
    # Lower-level functions
    "resolve_effective_policy",
    "rank_policies",
    "filter_policies",
    "generate_candidate_slots",
    "check_booking_date",
    "match_duration_rule",
    "CandidateSlots",
    "validate_slot",
]
