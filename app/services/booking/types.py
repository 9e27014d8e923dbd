"""
Internal data types for booking policy evaluation.
Decoupled from the pydantic boundary schemas for cleaner logic.
"""

from dataclasses import dataclass, field
from datetime import date, time, datetime
from enum import Enum
from typing import Optional


class InvariantViolation(ValueError):
    """Policy data broke an invariant the boundary should have enforced."""
    pass


class ScopeType(str, Enum):
    COMPANY = "company"
    SERVICE = "service"
    PROFESSIONAL = "professional"


# Higher = more specific
SCOPE_SPECIFICITY = {
    ScopeType.COMPANY: 0,
    ScopeType.SERVICE: 1,
    ScopeType.PROFESSIONAL: 2,
}


class BreakMode(str, Enum):
    RESPECT = "respect"
    EXCEPTION = "exception"
    MERGE = "merge"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RejectReason(str, Enum):
    FINISHES_AFTER_SHIFT = "FINISHES_AFTER_SHIFT"
    BREAK_CONFLICT = "BREAK_CONFLICT"
    OVERBOOKED = "OVERBOOKED"
    OUTSIDE_WINDOW = "OUTSIDE_WINDOW"
    BLACKOUT_DATE = "BLACKOUT_DATE"
    DISALLOWED_WEEKDAY = "DISALLOWED_WEEKDAY"
    BEYOND_HORIZON = "BEYOND_HORIZON"
    BEFORE_LEAD_TIME = "BEFORE_LEAD_TIME"
    NO_POLICY = "NO_POLICY"


class NoPolicyFallback(str, Enum):
    UNRESTRICTED = "unrestricted"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class StartWindow:
    label: str
    latest_start: time


@dataclass(frozen=True)
class DurationRule:
    min_duration: int
    max_duration: int
    start_windows: tuple[StartWindow, ...]

    def matches(self, duration: int) -> bool:
        return self.min_duration <= duration <= self.max_duration


@dataclass(frozen=True)
class FinishConstraints:
    must_finish_before_shift_end: bool = True
    respect_breaks: BreakMode = BreakMode.EXCEPTION
    break_exception_minutes: int = 30


@dataclass(frozen=True)
class WeekdayRules:
    allowed_dow: frozenset[int] = frozenset({1, 2, 3, 4, 5, 6})  # Sun=0
    blackout_dates: frozenset[date] = frozenset()


@dataclass(frozen=True)
class Overbooking:
    max_parallel_per_professional: int = 1


@dataclass(frozen=True)
class BookingParams:
    duration_windows: tuple[DurationRule, ...]
    slot_granularity_min: int = 15
    min_lead_time_min: int = 60
    max_horizon_days: int = 90
    buffer_before_min: int = 0
    buffer_after_min: int = 0
    finish_constraints: FinishConstraints = field(default_factory=FinishConstraints)
    weekday_rules: WeekdayRules = field(default_factory=WeekdayRules)
    overbooking: Overbooking = field(default_factory=Overbooking)


@dataclass(frozen=True)
class BookingPolicy:
    scope_type: ScopeType
    params: BookingParams
    scope_id: Optional[int] = None
    priority: int = 100
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class PolicyContext:
    """What a booking is for: resolver input."""
    service_id: int
    professional_id: int
    on_date: date


@dataclass(frozen=True)
class Appointment:
    professional_id: int
    date: date
    start: time
    duration: int = 30  # minutes
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    id: Optional[int] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED


@dataclass(frozen=True)
class Break:
    professional_id: int
    date: date
    start: time
    end: time


@dataclass(frozen=True)
class SlotCandidate:
    date: date
    start: time
    service_duration: int
    professional_id: int


@dataclass(frozen=True)
class SlotDecision:
    accepted: bool
    reason: Optional[RejectReason] = None

    @classmethod
    def accept(cls) -> "SlotDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectReason) -> "SlotDecision":
        return cls(accepted=False, reason=reason)


@dataclass(frozen=True)
class BookingRequest:
    service_id: int
    professional_id: int
    date: date
    start: time
    service_duration: int

    @property
    def context(self) -> PolicyContext:
        return PolicyContext(self.service_id, self.professional_id, self.date)

    @property
    def candidate(self) -> SlotCandidate:
        return SlotCandidate(self.date, self.start, self.service_duration, self.professional_id)


@dataclass(frozen=True)
class BookingVerdict:
    """Output of a full booking evaluation."""
    accepted: bool
    reason: Optional[RejectReason] = None
    policy: Optional[BookingPolicy] = None  # None when no policy applied


@dataclass
class DayAvailability:
    date: date
    slots: list[str] = field(default_factory=list)
    policy_id: Optional[int] = None

    @property
    def available(self) -> bool:
        return len(self.slots) > 0


# Used when no policy applies and the fallback is UNRESTRICTED
DEFAULT_BOOKING_PARAMS = BookingParams(
    slot_granularity_min=15,
    min_lead_time_min=60,
    max_horizon_days=90,
    buffer_before_min=0,
    buffer_after_min=0,
    duration_windows=(
        DurationRule(
            min_duration=0,
            max_duration=60,
            start_windows=(StartWindow(label="geral", latest_start=time(18, 0)),),
        ),
    ),
    finish_constraints=FinishConstraints(
        must_finish_before_shift_end=True,
        respect_breaks=BreakMode.EXCEPTION,
        break_exception_minutes=30,
    ),
    weekday_rules=WeekdayRules(allowed_dow=frozenset({1, 2, 3, 4, 5, 6})),
    overbooking=Overbooking(max_parallel_per_professional=1),
)
