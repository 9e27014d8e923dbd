from pydantic import BaseModel, Field, model_validator
from datetime import date, time, datetime
from typing import Annotated, List, Optional

from app.services.booking.types import (
    Appointment,
    AppointmentStatus,
    BookingParams,
    BookingPolicy,
    Break,
    BreakMode,
    DurationRule,
    FinishConstraints,
    Overbooking,
    RejectReason,
    ScopeType,
    StartWindow,
    WeekdayRules,
)
from app.services.booking.timeutils import parse_hhmm


HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"
MAX_AVAILABILITY_DAYS = 62


def hhmm_to_time(value: str) -> time:
    minutes = parse_hhmm(value)
    return time(minutes // 60, minutes % 60)


class StartWindowSchema(BaseModel):
    label: str = Field(min_length=1)
    latest_start: str = Field(pattern=HHMM)

    def to_domain(self) -> StartWindow:
        return StartWindow(label=self.label, latest_start=hhmm_to_time(self.latest_start))


class DurationRuleSchema(BaseModel):
    min_duration: int = Field(ge=0)
    max_duration: int = Field(gt=0)
    start_windows: List[StartWindowSchema] = Field(min_length=1)

    @model_validator(mode="after")
    def check_range(self):
        if self.max_duration < self.min_duration:
            raise ValueError("max_duration must be >= min_duration")
        return self

    def to_domain(self) -> DurationRule:
        return DurationRule(
            min_duration=self.min_duration,
            max_duration=self.max_duration,
            start_windows=tuple(w.to_domain() for w in self.start_windows),
        )


class FinishConstraintsSchema(BaseModel):
    must_finish_before_shift_end: bool = True
    respect_breaks: BreakMode = BreakMode.EXCEPTION
    break_exception_minutes: int = Field(default=30, ge=0, le=120)


class WeekdayRulesSchema(BaseModel):
    allowed_dow: List[Annotated[int, Field(ge=0, le=6)]] = Field(min_length=1)  # 0 = Sunday
    blackout_dates: List[date] = []


class OverbookingSchema(BaseModel):
    max_parallel_per_professional: int = Field(default=1, ge=1, le=10)


class BookingParamsSchema(BaseModel):
    slot_granularity_min: int = Field(default=15, ge=5, le=120)
    min_lead_time_min: int = Field(default=60, ge=0, le=10080)
    max_horizon_days: int = Field(default=180, ge=1, le=365)
    buffer_before_min: int = Field(default=0, ge=0, le=240)
    buffer_after_min: int = Field(default=0, ge=0, le=240)
    duration_windows: List[DurationRuleSchema] = Field(min_length=1)
    finish_constraints: FinishConstraintsSchema
    weekday_rules: WeekdayRulesSchema
    overbooking: OverbookingSchema

    def to_domain(self) -> BookingParams:
        fc = self.finish_constraints
        return BookingParams(
            slot_granularity_min=self.slot_granularity_min,
            min_lead_time_min=self.min_lead_time_min,
            max_horizon_days=self.max_horizon_days,
            buffer_before_min=self.buffer_before_min,
            buffer_after_min=self.buffer_after_min,
            duration_windows=tuple(r.to_domain() for r in self.duration_windows),
            finish_constraints=FinishConstraints(
                must_finish_before_shift_end=fc.must_finish_before_shift_end,
                respect_breaks=fc.respect_breaks,
                break_exception_minutes=fc.break_exception_minutes,
            ),
            weekday_rules=WeekdayRules(
                allowed_dow=frozenset(self.weekday_rules.allowed_dow),
                blackout_dates=frozenset(self.weekday_rules.blackout_dates),
            ),
            overbooking=Overbooking(
                max_parallel_per_professional=self.overbooking.max_parallel_per_professional,
            ),
        )


class BookingPolicySchema(BaseModel):
    id: Optional[int] = None
    scope_type: ScopeType
    scope_id: Optional[int] = None
    priority: int = Field(default=100, ge=0, le=999)
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    active: bool = True
    params: BookingParamsSchema
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_scope(self):
        if self.scope_type == ScopeType.COMPANY:
            if self.scope_id is not None:
                raise ValueError("scope_id must be null for company scope")
        elif not self.scope_id or self.scope_id <= 0:
            raise ValueError("scope_id is required for service/professional scope")
        if self.effective_from and self.effective_to and self.effective_to < self.effective_from:
            raise ValueError("effective_to must not be before effective_from")
        return self

    def to_domain(self) -> BookingPolicy:
        return BookingPolicy(
            id=self.id,
            scope_type=self.scope_type,
            scope_id=self.scope_id,
            priority=self.priority,
            effective_from=self.effective_from,
            effective_to=self.effective_to,
            active=self.active,
            params=self.params.to_domain(),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class AppointmentSchema(BaseModel):
    id: Optional[int] = None
    professional_id: int
    date: date
    start: str = Field(pattern=HHMM)
    duration: Optional[int] = Field(default=None, gt=0)  # None = 30 min
    status: AppointmentStatus = AppointmentStatus.SCHEDULED

    def to_domain(self) -> Appointment:
        return Appointment(
            id=self.id,
            professional_id=self.professional_id,
            date=self.date,
            start=hhmm_to_time(self.start),
            duration=self.duration or 30,
            status=self.status,
        )


class BreakSchema(BaseModel):
    professional_id: int
    date: date
    start: str = Field(pattern=HHMM)
    end: str = Field(pattern=HHMM)

    @model_validator(mode="after")
    def check_order(self):
        if parse_hhmm(self.end) <= parse_hhmm(self.start):
            raise ValueError("break end must be after start")
        return self

    def to_domain(self) -> Break:
        return Break(
            professional_id=self.professional_id,
            date=self.date,
            start=hhmm_to_time(self.start),
            end=hhmm_to_time(self.end),
        )


# ==================== Requests ====================

class ScheduleInputs(BaseModel):
    """Existing bookings and breaks shared by the evaluation requests."""
    appointments: List[AppointmentSchema] = []
    breaks: List[BreakSchema] = []
    shift_end: Optional[str] = Field(default=None, pattern=HHMM)
    now: Optional[datetime] = None  # None = current time in the configured timezone

    def domain_appointments(self) -> List[Appointment]:
        return [a.to_domain() for a in self.appointments]

    def domain_breaks(self) -> List[Break]:
        return [b.to_domain() for b in self.breaks]


class ResolveRequest(BaseModel):
    policies: List[BookingPolicySchema]
    service_id: int
    professional_id: int
    on_date: date


class SlotsRequest(ScheduleInputs):
    policies: List[BookingPolicySchema]
    service_id: int
    professional_id: int
    date: date
    service_duration: int = Field(gt=0)


class ValidateRequest(ScheduleInputs):
    params: BookingParamsSchema
    professional_id: int
    date: date
    start: str = Field(pattern=HHMM)
    service_duration: int = Field(gt=0)


class EvaluateRequest(ScheduleInputs):
    policies: List[BookingPolicySchema]
    service_id: int
    professional_id: int
    date: date
    start: str = Field(pattern=HHMM)
    service_duration: int = Field(gt=0)


class AvailabilityRequest(ScheduleInputs):
    policies: List[BookingPolicySchema]
    service_id: int
    professional_id: int
    start_date: date
    end_date: date
    service_duration: int = Field(gt=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if (self.end_date - self.start_date).days >= MAX_AVAILABILITY_DAYS:
            raise ValueError(f"date range is limited to {MAX_AVAILABILITY_DAYS} days")
        return self


# ==================== Responses ====================

class ResolveResponse(BaseModel):
    policy: Optional[BookingPolicySchema]
    ranked_ids: List[Optional[int]]


class SlotsResponse(BaseModel):
    policy_id: Optional[int]
    candidates: List[str]
    available: List[str]


class VerdictResponse(BaseModel):
    accepted: bool
    reason: Optional[RejectReason] = None
    policy_id: Optional[int] = None


class DayAvailabilityResponse(BaseModel):
    date: date
    available: bool
    slots: List[str]
    policy_id: Optional[int] = None
