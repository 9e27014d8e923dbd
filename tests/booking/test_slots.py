import pytest
from datetime import date, datetime, time, timedelta, timezone
from itertools import islice

from app.services.booking.types import (
    DurationRule,
    RejectReason,
    StartWindow,
    WeekdayRules,
)
from app.services.booking.slots import (
    CandidateSlots,
    check_booking_date,
    earliest_start_minute,
    generate_candidate_slots,
    match_duration_rule,
)
from app.services.booking.timeutils import parse_hhmm

from conftest import ALL_DAYS, get_test_monday, get_test_now, make_params


class TestCheckBookingDate:
    def test_bookable(self, params):
        monday = get_test_monday()
        assert check_booking_date(params, monday, monday) is None

    def test_disallowed_weekday(self):
        params = make_params(weekday_rules=WeekdayRules(allowed_dow=frozenset({1, 2, 3, 4, 5, 6})))
        sunday = date(2025, 1, 26)
        assert check_booking_date(params, sunday, get_test_monday()) == RejectReason.DISALLOWED_WEEKDAY

    def test_blackout(self):
        blackout = date(2025, 1, 22)
        params = make_params(
            weekday_rules=WeekdayRules(allowed_dow=ALL_DAYS, blackout_dates=frozenset({blackout}))
        )
        assert check_booking_date(params, blackout, get_test_monday()) == RejectReason.BLACKOUT_DATE

    def test_past_date(self, params):
        monday = get_test_monday()
        result = check_booking_date(params, monday - timedelta(days=1), monday)
        assert result == RejectReason.BEFORE_LEAD_TIME

    def test_horizon_boundary(self, params):
        monday = get_test_monday()
        last = monday + timedelta(days=params.max_horizon_days)
        assert check_booking_date(params, last, monday) is None
        assert check_booking_date(params, last + timedelta(days=1), monday) == RejectReason.BEYOND_HORIZON


class TestMatchDurationRule:
    def test_inclusive_range(self, params):
        assert match_duration_rule(params, 0) is params.duration_windows[0]
        assert match_duration_rule(params, 60) is params.duration_windows[0]

    def test_no_match(self, params):
        assert match_duration_rule(params, 61) is None

    def test_first_match_in_source_order(self):
        first = DurationRule(0, 60, (StartWindow("manha", time(12, 0)),))
        second = DurationRule(30, 90, (StartWindow("tarde", time(18, 0)),))
        params = make_params(duration_windows=(first, second))
        assert match_duration_rule(params, 45) is first
        assert match_duration_rule(params, 75) is second


class TestEarliestStartMinute:
    def test_day_after_cutoff_has_no_lower_bound(self, params):
        tomorrow = get_test_monday() + timedelta(days=1)
        assert earliest_start_minute(params, tomorrow, get_test_now()) == 0

    def test_today_adds_lead_time(self, params):
        assert earliest_start_minute(params, get_test_monday(), get_test_now()) == 540

    def test_seconds_round_up(self, params):
        now = datetime(2025, 1, 20, 8, 0, 30)
        assert earliest_start_minute(params, get_test_monday(), now) == 541

    def test_lead_past_midnight(self, params):
        now = datetime(2025, 1, 20, 23, 30)
        assert earliest_start_minute(params, get_test_monday(), now) is None

    def test_lead_past_midnight_lands_tomorrow(self, params):
        now = datetime(2025, 1, 20, 23, 30)
        tomorrow = get_test_monday() + timedelta(days=1)
        assert earliest_start_minute(params, tomorrow, now) == 30

    def test_multi_day_lead(self):
        params = make_params(min_lead_time_min=3 * 24 * 60)
        monday = get_test_monday()
        assert earliest_start_minute(params, monday + timedelta(days=1), get_test_now()) is None
        assert earliest_start_minute(params, monday + timedelta(days=2), get_test_now()) is None
        assert earliest_start_minute(params, monday + timedelta(days=3), get_test_now()) == 480
        assert earliest_start_minute(params, monday + timedelta(days=4), get_test_now()) == 0


class TestGenerateCandidateSlots:
    def test_company_scenario(self, params):
        # 45-min service, now 08:00, 60-min lead, 15-min grid, latest start 18:00
        slots = list(generate_candidate_slots(params, get_test_monday(), 45, get_test_now()))
        assert slots[0] == "09:00"
        assert slots[-1] == "18:00"
        assert len(slots) == 37

    def test_lead_time_rounds_up_to_grid(self, params):
        now = datetime(2025, 1, 20, 8, 7)
        slots = generate_candidate_slots(params, get_test_monday(), 45, now)
        assert next(iter(slots)) == "09:15"

    def test_lead_time_boundary_today(self, params):
        now = datetime(2025, 1, 20, 10, 23)
        lowest = datetime(2025, 1, 20, 11, 23)
        for slot in generate_candidate_slots(params, get_test_monday(), 30, now):
            assert datetime.combine(get_test_monday(), time.fromisoformat(slot)) >= lowest

    def test_future_date_past_cutoff_starts_at_midnight(self, params):
        tomorrow = get_test_monday() + timedelta(days=1)
        slots = list(generate_candidate_slots(params, tomorrow, 45, get_test_now()))
        assert slots[0] == "00:00"

    def test_lead_time_past_midnight_is_empty(self, params):
        now = datetime(2025, 1, 20, 23, 30)
        assert list(generate_candidate_slots(params, get_test_monday(), 30, now)) == []

    def test_lead_time_past_midnight_carries_over(self, params):
        now = datetime(2025, 1, 20, 23, 30)
        tomorrow = get_test_monday() + timedelta(days=1)
        assert next(iter(generate_candidate_slots(params, tomorrow, 30, now))) == "00:30"

    def test_multi_day_lead_time(self):
        params = make_params(min_lead_time_min=3 * 24 * 60)
        monday = get_test_monday()
        assert list(generate_candidate_slots(params, monday + timedelta(days=1), 45, get_test_now())) == []
        slots = generate_candidate_slots(params, monday + timedelta(days=3), 45, get_test_now())
        assert next(iter(slots)) == "08:00"

    def test_horizon_boundary(self, params):
        now = get_test_now()
        last = get_test_monday() + timedelta(days=params.max_horizon_days)
        assert list(generate_candidate_slots(params, last, 30, now)) != []
        assert list(generate_candidate_slots(params, last + timedelta(days=1), 30, now)) == []

    def test_past_date_is_empty(self, params):
        yesterday = get_test_monday() - timedelta(days=1)
        assert list(generate_candidate_slots(params, yesterday, 30, get_test_now())) == []

    def test_blackout_on_allowed_wednesday(self):
        christmas = date(2024, 12, 25)
        params = make_params(
            weekday_rules=WeekdayRules(allowed_dow=frozenset({1, 2, 3, 4, 5}),
                                       blackout_dates=frozenset({christmas}))
        )
        now = datetime(2024, 12, 20, 9, 0)
        assert list(generate_candidate_slots(params, christmas, 30, now)) == []
        assert list(generate_candidate_slots(params, christmas - timedelta(days=1), 30, now)) != []

    def test_disallowed_weekday_is_empty(self):
        params = make_params(weekday_rules=WeekdayRules(allowed_dow=frozenset({1, 2, 3, 4, 5, 6})))
        sunday = date(2025, 1, 26)
        assert list(generate_candidate_slots(params, sunday, 30, get_test_now())) == []

    def test_no_matching_duration_rule_is_empty(self, params):
        tomorrow = get_test_monday() + timedelta(days=1)
        assert list(generate_candidate_slots(params, tomorrow, 90, get_test_now())) == []

    def test_uses_first_matching_rule(self):
        params = make_params(duration_windows=(
            DurationRule(0, 60, (StartWindow("manha", time(12, 0)),)),
            DurationRule(30, 90, (StartWindow("tarde", time(18, 0)),)),
        ))
        tomorrow = get_test_monday() + timedelta(days=1)
        slots = list(generate_candidate_slots(params, tomorrow, 45, get_test_now()))
        assert slots[-1] == "12:00"

    def test_windows_union_without_duplicates(self):
        params = make_params(
            slot_granularity_min=30,
            duration_windows=(
                DurationRule(0, 60, (
                    StartWindow("cedo", time(10, 0)),
                    StartWindow("tarde", time(12, 0)),
                )),
            ),
        )
        tomorrow = get_test_monday() + timedelta(days=1)
        slots = list(generate_candidate_slots(params, tomorrow, 30, get_test_now()))
        assert len(slots) == len(set(slots)) == 25
        assert slots == sorted(slots)
        assert slots[-1] == "12:00"

    def test_granularity_alignment(self):
        params = make_params(
            slot_granularity_min=20,
            duration_windows=(DurationRule(0, 60, (StartWindow("geral", time(18, 10)),)),),
        )
        slots = list(generate_candidate_slots(params, get_test_monday(), 30, datetime(2025, 1, 20, 7, 5)))
        assert slots[0] == "08:20"
        assert slots[-1] == "18:00"
        assert all(parse_hhmm(s) % 20 == 0 for s in slots)

    def test_idempotent_and_restartable(self, params):
        slots = generate_candidate_slots(params, get_test_monday(), 45, get_test_now())
        first = list(slots)
        second = list(slots)
        assert first == second
        again = list(generate_candidate_slots(params, get_test_monday(), 45, get_test_now()))
        assert again == first

    def test_prefix_without_full_generation(self, params):
        slots = generate_candidate_slots(params, get_test_monday(), 45, get_test_now())
        assert list(islice(slots, 3)) == ["09:00", "09:15", "09:30"]

    def test_empty_result_is_falsy(self, params):
        slots = generate_candidate_slots(params, get_test_monday(), 90, get_test_now())
        assert isinstance(slots, CandidateSlots)
        assert not slots

    def test_aware_now_uses_wall_clock(self, params):
        now = datetime(2025, 1, 20, 8, 0, tzinfo=timezone.utc)
        slots = generate_candidate_slots(params, get_test_monday(), 45, now)
        assert next(iter(slots)) == "09:00"
