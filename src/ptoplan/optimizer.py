"""Leave-day optimizer

Recommend where to spend a fixed budget of leave days so they combine with
weekends, public holidays and company off-days into longer breaks.

Pipeline: the calendar is classified (:mod:`ptoplan.days`), each style's
finder proposes candidate periods (:mod:`ptoplan.opportunities`), and the
allocator here picks candidates under the budget and assembles the final
:class:`Schedule`.

Styles:
  1. Long Weekends - bridge holidays to weekends, then extend plain weekends
  2. Mini Breaks   - one short weekday break per slice of the window
  3. Balanced Mix  - long weekends with ~60% of the budget, mini breaks after
"""

from __future__ import annotations

import bisect
import calendar
import datetime
import logging
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import NamedTuple

from ptoplan.days import (
    DAY_NAMES,
    DEFAULT_WEEKEND_DAYS,
    DayCalendar,
    PlanningWindow,
    as_day,
    make_window,
    merge_off_days,
    normalize_weekend_days,
)
from ptoplan.errors import InvalidBudgetError, UnknownStyleError
from ptoplan.opportunities import (
    Opportunity,
    OpportunityKind,
    find_long_weekends,
    find_mini_breaks,
    rank,
)

logger = logging.getLogger(__name__)

LONG_WEEKEND_SHARE = (3, 5)
"""Fraction of the budget the balanced mix hands to long weekends first."""

# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class VacationStyle(str, Enum):
    BALANCED_MIX = "balanced_mix"
    LONG_WEEKENDS = "long_weekends"
    MINI_BREAKS = "mini_breaks"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def description(self) -> str:
        return _STYLE_DESCRIPTIONS[self]

    @classmethod
    def parse(cls, value: object) -> VacationStyle:
        """Accept a member, its value (``"long_weekends"``) or its name."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text.lower())
        except ValueError:
            pass
        try:
            return cls[text.upper()]
        except KeyError:
            raise UnknownStyleError(value, [s.value for s in cls]) from None


_STYLE_DESCRIPTIONS = {
    VacationStyle.BALANCED_MIX: "Spends most leave on long weekends around holidays, "
    "then scatters short weekday breaks across the window.",
    VacationStyle.LONG_WEEKENDS: "Bridges holidays to weekends and stretches plain "
    "weekends into three-day breaks.",
    VacationStyle.MINI_BREAKS: "Spreads short two-day weekday breaks evenly across "
    "the planning window.",
}


class OptimizationRequest(NamedTuple):
    """Everything one optimisation run needs."""

    leave_days_budget: int
    window: PlanningWindow
    holidays: Sequence[datetime.date] = ()
    company_off_days: Sequence[datetime.date] = ()
    style: VacationStyle | str = VacationStyle.BALANCED_MIX
    weekend_days: frozenset[int] = DEFAULT_WEEKEND_DAYS
    exact: bool = False


class VacationPeriod(NamedTuple):
    """One contiguous break in the final schedule.

    Each date is counted once: off-day before weekend before leave day.
    """

    start_date: datetime.date
    end_date: datetime.date
    total_days: int
    leave_days_used: int
    weekend_days: int
    holiday_days: int
    efficiency: float
    kind: OpportunityKind

    @property
    def label(self) -> str:
        return self.kind.label


class ScheduleMetadata(NamedTuple):
    """Counts over the whole window, regardless of what was scheduled."""

    total_days_in_range: int
    weekend_day_count: int
    holiday_day_count: int
    company_off_day_count: int


class Schedule(NamedTuple):
    """The optimizer's answer for one style."""

    style: VacationStyle
    window: PlanningWindow
    total_leave_budget: int
    leave_days_used: int
    periods: list[VacationPeriod]
    leave_dates: list[datetime.date]
    off_days: list[datetime.date]
    metadata: ScheduleMetadata

    @property
    def leave_days_remaining(self) -> int:
        return self.total_leave_budget - self.leave_days_used

    @property
    def total_days_off(self) -> int:
        return sum(p.total_days for p in self.periods)

    @property
    def efficiency(self) -> float:
        if self.leave_days_used == 0:
            return 0.0
        return self.total_days_off / self.leave_days_used


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


class Allocation:
    """Running state of one allocation: budget left and dates already booked."""

    def __init__(self, budget: int):
        self.remaining = budget
        self.consumed: set[datetime.date] = set()
        self.accepted: list[Opportunity] = []

    def grant(self, days: int) -> None:
        """Add *days* to the remaining budget (used between composite stages)."""
        self.remaining += days

    def overlaps(self, opportunity: Opportunity) -> bool:
        return any(d in self.consumed for d in opportunity.dates())

    def accept(self, opportunity: Opportunity) -> None:
        self.remaining -= opportunity.leave_days_needed
        self.consumed.update(opportunity.dates())
        self.accepted.append(opportunity)


def allocate(opportunities: Iterable[Opportunity], allocation: Allocation) -> Allocation:
    """Greedy selection in score order.

    An opportunity is skipped, never trimmed, when it needs more leave than
    remains or touches a date an earlier pick already booked.
    """
    for opp in rank(list(opportunities)):
        if allocation.remaining <= 0:
            break
        if opp.leave_days_needed > allocation.remaining:
            logger.debug(
                "Skipping %s..%s: needs %d, %d left",
                opp.start_date,
                opp.end_date,
                opp.leave_days_needed,
                allocation.remaining,
            )
            continue
        if allocation.overlaps(opp):
            logger.debug("Skipping %s..%s: overlaps a booked period", opp.start_date, opp.end_date)
            continue
        allocation.accept(opp)
    return allocation


def allocate_exact(opportunities: Iterable[Opportunity], allocation: Allocation) -> Allocation:
    """Pick non-overlapping opportunities maximising total days off.

    Weighted interval scheduling with a budget dimension: candidates are
    sorted by end date and ``best[i][b]`` is the most days off reachable
    with the first *i* candidates and *b* leave days.
    """
    budget = allocation.remaining
    candidates = sorted(
        (
            o
            for o in opportunities
            if 0 < o.leave_days_needed <= budget and not allocation.overlaps(o)
        ),
        key=lambda o: (o.end_date, o.start_date),
    )
    if not candidates:
        return allocation

    ends = [c.end_date for c in candidates]
    # prev[i]: how many candidates end strictly before candidate i starts
    prev = [bisect.bisect_left(ends, c.start_date) for c in candidates]

    best: list[list[int]] = [[0] * (budget + 1)]
    for i, cand in enumerate(candidates):
        need = cand.leave_days_needed
        row = list(best[i])
        for b in range(need, budget + 1):
            take = cand.total_days + best[prev[i]][b - need]
            if take > row[b]:
                row[b] = take
        best.append(row)

    # Backtrack to recover the chosen candidates
    chosen: list[Opportunity] = []
    i, b = len(candidates), budget
    while i > 0:
        cand = candidates[i - 1]
        if best[i][b] != best[i - 1][b]:
            chosen.append(cand)
            b -= cand.leave_days_needed
            i = prev[i - 1]
        else:
            i -= 1

    for cand in reversed(chosen):
        allocation.accept(cand)
    return allocation


# ---------------------------------------------------------------------------
# Result assembly
# ---------------------------------------------------------------------------


def _make_period(cal: DayCalendar, opp: Opportunity) -> VacationPeriod:
    holiday_days = weekend_days = leave_days = 0
    for d in opp.dates():
        day = cal.classify(d)
        if day.is_off_day:
            holiday_days += 1
        elif day.is_weekend:
            weekend_days += 1
        else:
            leave_days += 1
    total = holiday_days + weekend_days + leave_days
    return VacationPeriod(
        start_date=opp.start_date,
        end_date=opp.end_date,
        total_days=total,
        leave_days_used=leave_days,
        weekend_days=weekend_days,
        holiday_days=holiday_days,
        efficiency=total / leave_days if leave_days else float(total),
        kind=opp.kind,
    )


def _assemble(
    request: OptimizationRequest,
    style: VacationStyle,
    cal: DayCalendar,
    allocation: Allocation,
) -> Schedule:
    periods = sorted(
        (_make_period(cal, opp) for opp in allocation.accepted),
        key=lambda p: p.start_date,
    )
    leave_dates = sorted(d for d in allocation.consumed if cal.classify(d).is_workday)
    company = {as_day(d) for d in request.company_off_days}
    metadata = ScheduleMetadata(
        total_days_in_range=cal.num_days,
        weekend_day_count=cal.weekend_day_count,
        holiday_day_count=cal.off_day_count,
        company_off_day_count=sum(1 for d in company if cal.window.includes(d)),
    )
    return Schedule(
        style=style,
        window=cal.window,
        total_leave_budget=request.leave_days_budget,
        leave_days_used=sum(p.leave_days_used for p in periods),
        periods=periods,
        leave_dates=leave_dates,
        off_days=sorted(cal.off_days),
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def _validate(request: OptimizationRequest) -> tuple[VacationStyle, DayCalendar]:
    budget = request.leave_days_budget
    if budget is None or isinstance(budget, bool) or budget <= 0:
        raise InvalidBudgetError(budget)
    window = make_window(*request.window)
    style = VacationStyle.parse(request.style)
    weekend = normalize_weekend_days(request.weekend_days)
    off_days = merge_off_days(request.holidays, request.company_off_days)
    return style, DayCalendar(window, off_days, weekend)


def optimize_leave(request: OptimizationRequest) -> Schedule:
    """Run one style and return its schedule.

    Raises :class:`~ptoplan.errors.OptimizationError` subclasses for
    invalid budgets, windows, styles or weekend days.  Running out of
    opportunities is not an error: the schedule simply reports the unused
    leave.
    """
    style, cal = _validate(request)
    budget = request.leave_days_budget
    pick = allocate_exact if request.exact else allocate

    if style is VacationStyle.LONG_WEEKENDS:
        allocation = pick(find_long_weekends(cal, budget), Allocation(budget))
    elif style is VacationStyle.MINI_BREAKS:
        allocation = pick(find_mini_breaks(cal, budget), Allocation(budget))
    else:
        num, den = LONG_WEEKEND_SHARE
        long_budget = max(1, budget * num // den)
        allocation = pick(find_long_weekends(cal, long_budget), Allocation(long_budget))
        allocation.grant(budget - long_budget)
        minis = find_mini_breaks(cal, allocation.remaining, taken=allocation.consumed)
        pick(minis, allocation)

    schedule = _assemble(request, style, cal, allocation)
    logger.info(
        "%s: %d period(s), %d/%d leave days used",
        style.label,
        len(schedule.periods),
        schedule.leave_days_used,
        schedule.total_leave_budget,
    )
    return schedule


def optimize_all_styles(request: OptimizationRequest) -> list[Schedule]:
    """One schedule per style, in declaration order."""
    return [optimize_leave(request._replace(style=style)) for style in VacationStyle]


# ---------------------------------------------------------------------------
# Output formatting
# ---------------------------------------------------------------------------


def _date_range(start: datetime.date, end: datetime.date) -> str:
    if start == end:
        return start.strftime("%a, %b %d")
    return f"{start.strftime('%a, %b %d')} -> {end.strftime('%a, %b %d')}"


def format_weekend_days(weekend_days: Iterable[int]) -> str:
    days = sorted(weekend_days)
    if not days:
        return "none (seven-day week)"
    return ", ".join(DAY_NAMES[d] for d in days)


def format_schedule(schedule: Schedule) -> str:
    """Return a human-readable summary of a schedule."""
    lines: list[str] = []
    w = 64

    lines.append("")
    lines.append("=" * w)
    lines.append(f"  STYLE: {schedule.style.label}")
    lines.append(f"  {schedule.style.description}")
    lines.append("=" * w)

    lines.append(f"  Leave days used: {schedule.leave_days_used} / {schedule.total_leave_budget}")
    lines.append(f"  Total days off: {schedule.total_days_off}")
    if schedule.leave_days_used > 0:
        lines.append(f"  Efficiency: {schedule.efficiency:.1f}x (days off per leave day)")
    if schedule.leave_days_remaining > 0:
        lines.append(f"  Unused leave days: {schedule.leave_days_remaining}")
    lines.append("")

    if not schedule.periods:
        lines.append("  No vacation periods found for this window and budget.")
        return "\n".join(lines)

    lines.append("  Vacation Periods:")
    lines.append("  " + "-" * (w - 4))

    for i, period in enumerate(schedule.periods, 1):
        n = period.total_days
        day_word = "day" if n == 1 else "days"
        dr = _date_range(period.start_date, period.end_date)
        lines.append(f"  {i:>2}. {dr}  ({n} {day_word}, {period.label})")

        parts: list[str] = []
        if period.leave_days_used:
            parts.append(f"{period.leave_days_used} leave")
        if period.holiday_days:
            parts.append(f"{period.holiday_days} holiday{'s' if period.holiday_days > 1 else ''}")
        if period.weekend_days:
            parts.append(f"{period.weekend_days} weekend")
        lines.append(f"      {' + '.join(parts)}")
        lines.append("")

    lines.append("  Days to request off:")
    for d in schedule.leave_dates:
        lines.append(f"    -> {d.strftime('%A, %B %d, %Y')}")

    return "\n".join(lines)


def _months_between(start: datetime.date, end: datetime.date) -> Iterable[tuple[int, int]]:
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)


def format_calendar_view(schedule: Schedule) -> str:
    """Return a month-by-month calendar marking leave and off-days."""
    leave_set = set(schedule.leave_dates)
    off_set = set(schedule.off_days)
    window = schedule.window

    active_months = {(d.year, d.month) for d in leave_set}
    active_months.update((d.year, d.month) for d in off_set if window.includes(d))
    if not active_months:
        return ""

    lines: list[str] = [
        "",
        f"  Calendar View {window.start.isoformat()} .. {window.end.isoformat()}",
        "  Legend: L=Leave  H=Holiday/off-day",
        "",
    ]

    cal = calendar.Calendar(firstweekday=0)

    for year, month in _months_between(window.start, window.end):
        if (year, month) not in active_months:
            continue

        lines.append(f"  {calendar.month_name[month]} {year}")
        lines.append("  Mo  Tu  We  Th  Fr  Sa  Su")

        row = ""
        for day_num, weekday in cal.itermonthdays2(year, month):
            if day_num == 0:
                row += "    "
            else:
                d = datetime.date(year, month, day_num)
                if d in leave_set:
                    cell = f" {day_num:>2}L"
                elif d in off_set:
                    cell = f" {day_num:>2}H"
                else:
                    cell = f"  {day_num:>2}"
                row += cell

            if weekday == 6:
                lines.append(row)
                row = ""

        if row.strip():
            lines.append(row)
        lines.append("")

    return "\n".join(lines)
