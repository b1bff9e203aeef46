from __future__ import annotations

import datetime

import pytest

from ptoplan.days import DayCalendar, PlanningWindow
from ptoplan.errors import (
    InvalidBudgetError,
    InvalidRangeError,
    InvalidWeekendError,
    UnknownStyleError,
)
from ptoplan.opportunities import Opportunity, OpportunityKind, find_holiday_bridges
from ptoplan.optimizer import (
    Allocation,
    OptimizationRequest,
    VacationPeriod,
    VacationStyle,
    allocate,
    allocate_exact,
    format_calendar_view,
    format_schedule,
    optimize_all_styles,
    optimize_leave,
)

D = datetime.date


def _us_holidays_2025() -> list[datetime.date]:
    return [
        D(2025, 1, 1),
        D(2025, 1, 20),
        D(2025, 2, 17),
        D(2025, 5, 26),
        D(2025, 6, 19),
        D(2025, 7, 4),
        D(2025, 9, 1),
        D(2025, 11, 27),
        D(2025, 12, 25),
    ]


def _make_request(
    budget: int = 10,
    style: VacationStyle | str = VacationStyle.LONG_WEEKENDS,
    start: datetime.date = D(2025, 1, 1),
    end: datetime.date = D(2025, 12, 31),
    holidays: list[datetime.date] | None = None,
    **kwargs,
) -> OptimizationRequest:
    return OptimizationRequest(
        leave_days_budget=budget,
        window=PlanningWindow(start, end),
        holidays=_us_holidays_2025() if holidays is None else holidays,
        style=style,
        **kwargs,
    )


def _march_request(budget: int, style: VacationStyle) -> OptimizationRequest:
    return _make_request(budget, style, D(2025, 3, 1), D(2025, 3, 31), holidays=[])


def _spans(schedule) -> list[tuple[datetime.date, datetime.date]]:
    return [(p.start_date, p.end_date) for p in schedule.periods]


class TestScenarios:
    def test_monday_holiday_long_weekend(self) -> None:
        request = _make_request(
            1, VacationStyle.LONG_WEEKENDS, D(2024, 1, 1), D(2024, 1, 31), holidays=[D(2024, 1, 15)]
        )
        schedule = optimize_leave(request)
        assert schedule.periods == [
            VacationPeriod(
                start_date=D(2024, 1, 12),
                end_date=D(2024, 1, 15),
                total_days=4,
                leave_days_used=1,
                weekend_days=2,
                holiday_days=1,
                efficiency=4.0,
                kind=OpportunityKind.HOLIDAY_BRIDGE,
            )
        ]
        assert schedule.leave_days_used == 1
        assert schedule.leave_dates == [D(2024, 1, 12)]

    def test_mini_breaks_in_march(self) -> None:
        schedule = optimize_leave(_march_request(4, VacationStyle.MINI_BREAKS))
        assert _spans(schedule) == [(D(2025, 3, 3), D(2025, 3, 4)), (D(2025, 3, 17), D(2025, 3, 18))]
        assert schedule.leave_days_used == 4
        for period in schedule.periods:
            assert period.weekend_days == 0
            assert period.leave_days_used == 2

    def test_zero_budget_rejected(self) -> None:
        with pytest.raises(InvalidBudgetError):
            optimize_leave(_make_request(budget=0))

    def test_negative_budget_rejected(self) -> None:
        with pytest.raises(InvalidBudgetError):
            optimize_leave(_make_request(budget=-3))

    def test_start_after_end_rejected(self) -> None:
        with pytest.raises(InvalidRangeError):
            optimize_leave(_make_request(start=D(2025, 2, 1), end=D(2025, 1, 1)))


class TestValidation:
    def test_unknown_style(self) -> None:
        with pytest.raises(UnknownStyleError):
            optimize_leave(_make_request(style="week_breaks"))

    def test_style_parsing(self) -> None:
        assert VacationStyle.parse("long_weekends") is VacationStyle.LONG_WEEKENDS
        assert VacationStyle.parse("MINI_BREAKS") is VacationStyle.MINI_BREAKS
        assert VacationStyle.parse(VacationStyle.BALANCED_MIX) is VacationStyle.BALANCED_MIX

    def test_invalid_weekend(self) -> None:
        with pytest.raises(InvalidWeekendError):
            optimize_leave(_make_request(weekend_days=frozenset({6, 8})))

    def test_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            optimize_leave(_make_request(budget=0))


class TestStyles:
    def test_long_weekends_without_holidays(self) -> None:
        schedule = optimize_leave(_march_request(3, VacationStyle.LONG_WEEKENDS))
        assert _spans(schedule) == [
            (D(2025, 3, 1), D(2025, 3, 3)),
            (D(2025, 3, 7), D(2025, 3, 9)),
            (D(2025, 3, 14), D(2025, 3, 16)),
        ]
        assert all(p.kind is OpportunityKind.WEEKEND_EXTENSION for p in schedule.periods)

    def test_balanced_mix_combines_both(self) -> None:
        schedule = optimize_leave(_march_request(5, VacationStyle.BALANCED_MIX))
        assert _spans(schedule) == [
            (D(2025, 3, 1), D(2025, 3, 3)),
            (D(2025, 3, 7), D(2025, 3, 9)),
            (D(2025, 3, 10), D(2025, 3, 11)),
            (D(2025, 3, 14), D(2025, 3, 16)),
        ]
        assert schedule.leave_days_used == 5
        kinds = [p.kind for p in schedule.periods]
        assert kinds.count(OpportunityKind.MINI_BREAK) == 1

    def test_custom_weekend(self) -> None:
        # Friday/Saturday weekend; Jan 1, 2025 is a Wednesday
        request = _make_request(
            1,
            VacationStyle.LONG_WEEKENDS,
            D(2025, 1, 1),
            D(2025, 1, 31),
            holidays=[],
            weekend_days=frozenset({5, 6}),
        )
        schedule = optimize_leave(request)
        assert _spans(schedule) == [(D(2025, 1, 2), D(2025, 1, 4))]
        assert schedule.periods[0].weekend_days == 2

    def test_company_off_days_count_as_holidays(self) -> None:
        request = _make_request(
            1,
            VacationStyle.LONG_WEEKENDS,
            D(2024, 1, 1),
            D(2024, 1, 31),
            holidays=[],
            company_off_days=[D(2024, 1, 15)],
        )
        schedule = optimize_leave(request)
        assert _spans(schedule) == [(D(2024, 1, 12), D(2024, 1, 15))]
        assert schedule.periods[0].holiday_days == 1

    def test_all_styles(self) -> None:
        schedules = optimize_all_styles(_make_request(budget=8))
        assert [s.style for s in schedules] == list(VacationStyle)

    def test_unused_budget_reported(self) -> None:
        # Two weekends in a week-long window cannot absorb 10 leave days
        request = _make_request(
            10, VacationStyle.LONG_WEEKENDS, D(2025, 3, 1), D(2025, 3, 9), holidays=[]
        )
        schedule = optimize_leave(request)
        assert schedule.leave_days_used < 10
        assert schedule.leave_days_remaining == 10 - schedule.leave_days_used


class TestScheduleProperties:
    @pytest.mark.parametrize("style", list(VacationStyle))
    @pytest.mark.parametrize("budget", [1, 3, 10, 25])
    @pytest.mark.parametrize("exact", [False, True])
    def test_invariants(self, style: VacationStyle, budget: int, exact: bool) -> None:
        schedule = optimize_leave(_make_request(budget, style, exact=exact))

        assert schedule.leave_days_used <= budget
        assert schedule.leave_days_used == len(schedule.leave_dates)
        starts = [p.start_date for p in schedule.periods]
        assert starts == sorted(starts)

        for prev, nxt in zip(schedule.periods, schedule.periods[1:]):
            assert prev.end_date < nxt.start_date

        for p in schedule.periods:
            assert p.total_days == (p.end_date - p.start_date).days + 1
            assert p.total_days == p.leave_days_used + p.weekend_days + p.holiday_days
            assert p.leave_days_used > 0
            assert p.efficiency == pytest.approx(p.total_days / p.leave_days_used)

    @pytest.mark.parametrize("style", list(VacationStyle))
    def test_idempotent(self, style: VacationStyle) -> None:
        request = _make_request(12, style)
        assert optimize_leave(request) == optimize_leave(request)

    @pytest.mark.parametrize("style", list(VacationStyle))
    def test_single_day_window(self, style: VacationStyle) -> None:
        for day in (D(2025, 3, 7), D(2025, 3, 8)):
            schedule = optimize_leave(_make_request(3, style, day, day, holidays=[]))
            assert all(p.total_days <= 1 for p in schedule.periods)

    @pytest.mark.parametrize("style", [VacationStyle.LONG_WEEKENDS, VacationStyle.MINI_BREAKS])
    def test_exact_never_worse_than_greedy(self, style: VacationStyle) -> None:
        for budget in (2, 5, 9):
            greedy = optimize_leave(_make_request(budget, style))
            exact = optimize_leave(_make_request(budget, style, exact=True))
            assert exact.total_days_off >= greedy.total_days_off

    def test_metadata(self) -> None:
        request = _make_request(
            2,
            VacationStyle.LONG_WEEKENDS,
            D(2024, 1, 1),
            D(2024, 1, 31),
            holidays=[D(2024, 1, 15), D(2024, 2, 19)],
            company_off_days=[D(2024, 1, 16), datetime.datetime(2024, 1, 15, 9, 0)],
        )
        meta = optimize_leave(request).metadata
        assert meta.total_days_in_range == 31
        assert meta.weekend_day_count == 8
        assert meta.holiday_day_count == 2
        assert meta.company_off_day_count == 2


# =========================================================================
# Allocator in isolation
# =========================================================================


def _opp(start: datetime.date, end: datetime.date, need: int, value: float) -> Opportunity:
    return Opportunity(start, end, need, value, OpportunityKind.HOLIDAY_BRIDGE)


class TestAllocator:
    def test_skips_unaffordable_and_keeps_going(self) -> None:
        big = _opp(D(2025, 6, 14), D(2025, 6, 22), 3, 9.0)
        small = _opp(D(2025, 7, 4), D(2025, 7, 6), 1, 3.0)
        allocation = allocate([big, small], Allocation(2))
        assert allocation.accepted == [small]
        assert allocation.remaining == 1

    def test_no_double_booking(self) -> None:
        first = _opp(D(2024, 1, 12), D(2024, 1, 15), 1, 4.0)
        overlapping = _opp(D(2024, 1, 13), D(2024, 1, 16), 1, 4.0)
        allocation = allocate([first, overlapping], Allocation(2))
        assert allocation.accepted == [first]
        assert D(2024, 1, 14) in allocation.consumed

    def test_stops_when_budget_spent(self) -> None:
        opps = [_opp(D(2025, 3, d), D(2025, 3, d), 1, 1.0) for d in (3, 5, 7)]
        allocation = allocate(opps, Allocation(2))
        assert len(allocation.accepted) == 2
        assert allocation.remaining == 0

    def test_grant_extends_budget(self) -> None:
        allocation = Allocation(1)
        allocation.grant(2)
        assert allocation.remaining == 3

    def test_bridge_shortened_to_remaining_budget(self) -> None:
        # Wednesday holiday: two workdays to either weekend, one day left
        cal = DayCalendar(
            PlanningWindow(D(2025, 6, 1), D(2025, 6, 30)), [D(2025, 6, 18)]
        )
        allocation = allocate(find_holiday_bridges(cal, 2), Allocation(1))
        assert allocation.accepted == [
            Opportunity(D(2025, 6, 17), D(2025, 6, 18), 1, 2.0, OpportunityKind.HOLIDAY_BRIDGE)
        ]
        assert allocation.remaining == 0

    def test_exact_beats_greedy(self) -> None:
        wide = _opp(D(2025, 6, 14), D(2025, 6, 18), 2, 5.0)
        early = _opp(D(2025, 6, 5), D(2025, 6, 8), 1, 4.0)
        late = _opp(D(2025, 6, 26), D(2025, 6, 29), 1, 4.0)

        greedy = allocate([wide, early, late], Allocation(2))
        assert greedy.accepted == [wide]

        exact = allocate_exact([wide, early, late], Allocation(2))
        assert exact.accepted == [early, late]
        assert exact.remaining == 0

    def test_exact_respects_consumed_dates(self) -> None:
        allocation = Allocation(2)
        allocation.consumed.add(D(2025, 6, 6))
        early = _opp(D(2025, 6, 5), D(2025, 6, 8), 1, 4.0)
        late = _opp(D(2025, 6, 26), D(2025, 6, 29), 1, 4.0)
        allocate_exact([early, late], allocation)
        assert allocation.accepted == [late]


class TestFormatting:
    def test_format_schedule(self) -> None:
        schedule = optimize_leave(_make_request(5))
        output = format_schedule(schedule)
        assert "Long Weekends" in output
        assert "Days to request off:" in output

    def test_format_empty_schedule(self) -> None:
        day = D(2025, 3, 7)
        schedule = optimize_leave(_make_request(3, start=day, end=day, holidays=[]))
        assert "No vacation periods" in format_schedule(schedule)
        assert format_calendar_view(schedule) == ""

    def test_calendar_view(self) -> None:
        schedule = optimize_leave(_make_request(5))
        output = format_calendar_view(schedule)
        assert "Calendar View" in output
        assert "L" in output
