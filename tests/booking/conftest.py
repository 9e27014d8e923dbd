import pytest
from dataclasses import replace
from datetime import date, datetime, time

from app.services.booking.types import (
    BookingParams,
    BookingPolicy,
    BreakMode,
    DurationRule,
    FinishConstraints,
    Overbooking,
    ScopeType,
    StartWindow,
    WeekdayRules,
)


ALL_DAYS = frozenset(range(7))


def get_test_monday() -> date:
    # returns a fixed Monday for deterministic tests
    return date(2025, 1, 20)


def get_test_now() -> datetime:
    # 08:00 on the test Monday
    return datetime.combine(get_test_monday(), time(8, 0))


def make_params(**overrides) -> BookingParams:
    # 15-min grid, 60-min lead, one 0-60 min rule up to 18:00, every weekday open
    base = BookingParams(
        slot_granularity_min=15,
        min_lead_time_min=60,
        max_horizon_days=90,
        duration_windows=(
            DurationRule(0, 60, (StartWindow("geral", time(18, 0)),)),
        ),
        finish_constraints=FinishConstraints(
            must_finish_before_shift_end=True,
            respect_breaks=BreakMode.EXCEPTION,
            break_exception_minutes=30,
        ),
        weekday_rules=WeekdayRules(allowed_dow=ALL_DAYS),
        overbooking=Overbooking(max_parallel_per_professional=1),
    )
    return replace(base, **overrides)


def make_policy(scope_type: ScopeType = ScopeType.COMPANY, **overrides) -> BookingPolicy:
    fields = dict(
        id=1,
        scope_type=scope_type,
        scope_id=None,
        priority=100,
        params=make_params(),
    )
    fields.update(overrides)
    return BookingPolicy(**fields)


@pytest.fixture
def params() -> BookingParams:
    return make_params()


@pytest.fixture
def company_policy() -> BookingPolicy:
    return make_policy(id=1)


@pytest.fixture
def service_policy() -> BookingPolicy:
    # service 10
    return make_policy(ScopeType.SERVICE, id=2, scope_id=10, priority=1)


@pytest.fixture
def professional_policy() -> BookingPolicy:
    # professional 20
    return make_policy(ScopeType.PROFESSIONAL, id=3, scope_id=20, priority=0)


@pytest.fixture
def policy_json() -> dict:
    # shaped like the dashboard's JSON preview
    return {
        "id": 7,
        "scope_type": "company",
        "scope_id": None,
        "priority": 100,
        "effective_from": None,
        "effective_to": None,
        "active": True,
        "params": {
            "slot_granularity_min": 15,
            "min_lead_time_min": 60,
            "max_horizon_days": 90,
            "buffer_before_min": 0,
            "buffer_after_min": 0,
            "duration_windows": [
                {"min_duration": 0, "max_duration": 60,
                 "start_windows": [{"label": "geral", "latest_start": "18:00"}]}
            ],
            "finish_constraints": {
                "must_finish_before_shift_end": True,
                "respect_breaks": "exception",
                "break_exception_minutes": 30,
            },
            "weekday_rules": {"allowed_dow": [0, 1, 2, 3, 4, 5, 6], "blackout_dates": ["2025-01-22"]},
            "overbooking": {"max_parallel_per_professional": 1},
        },
    }
