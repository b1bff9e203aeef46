"""Calendar enumeration and day classification.

Day-of-week indices follow the Sunday-first convention used throughout the
request layer: 0 = Sunday, 1 = Monday … 6 = Saturday.  This differs from
``datetime.date.weekday()`` (0 = Monday), so always go through
:func:`day_of_week`.

All dates are compared by calendar day.  Values that arrive as
``datetime.datetime`` are truncated to their date at ingestion.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from ptoplan.errors import InvalidRangeError, InvalidWeekendError

DEFAULT_WEEKEND_DAYS: frozenset[int] = frozenset({0, 6})

DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

_ONE_DAY = datetime.timedelta(days=1)

# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class PlanningWindow(NamedTuple):
    """Inclusive range of dates to plan leave in."""

    start: datetime.date
    end: datetime.date

    @property
    def num_days(self) -> int:
        return (self.end - self.start).days + 1

    def includes(self, d: datetime.date) -> bool:
        return self.start <= d <= self.end


class CalendarDay(NamedTuple):
    """A date plus the flags the finders care about."""

    date: datetime.date
    is_weekend: bool
    is_off_day: bool

    @property
    def is_workday(self) -> bool:
        return not (self.is_weekend or self.is_off_day)


# ---------------------------------------------------------------------------
# Ingestion helpers
# ---------------------------------------------------------------------------


def as_day(value: datetime.date) -> datetime.date:
    """Drop any time component so *value* compares by calendar day."""
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def parse_day(value: str) -> datetime.date:
    """Parse ``YYYY-MM-DD`` (or a longer ISO-8601 timestamp) to a date.

    Only the calendar-day part of a timestamp is kept, so
    ``2025-01-01T00:00:00.000Z`` parses to ``2025-01-01``.
    Raises ``ValueError`` for anything else.
    """
    text = value.strip()
    if len(text) > 10 and text[10] not in "T ":
        raise ValueError(f"Invalid date {value!r}. Use YYYY-MM-DD.")
    try:
        return datetime.date.fromisoformat(text[:10])
    except ValueError:
        raise ValueError(f"Invalid date {value!r}. Use YYYY-MM-DD.") from None


def day_of_week(d: datetime.date) -> int:
    """Sunday-first day-of-week index of *d*."""
    return (d.weekday() + 1) % 7


def normalize_weekend_days(weekend_days: Iterable[int] | None) -> frozenset[int]:
    """Validate weekend indices, falling back to Saturday/Sunday."""
    if weekend_days is None:
        return DEFAULT_WEEKEND_DAYS
    days = frozenset(weekend_days)
    bad = [d for d in days if isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6]
    if bad:
        raise InvalidWeekendError(sorted(bad, key=repr))
    return days


def make_window(start: datetime.date, end: datetime.date) -> PlanningWindow:
    """Build a :class:`PlanningWindow`, rejecting ``start > end``."""
    start, end = as_day(start), as_day(end)
    if start > end:
        raise InvalidRangeError(start, end)
    return PlanningWindow(start, end)


def merge_off_days(
    holidays: Iterable[datetime.date],
    company_off_days: Iterable[datetime.date] = (),
) -> list[datetime.date]:
    """Union of holidays and company off-days, deduplicated by calendar day."""
    merged = {as_day(d) for d in holidays}
    merged.update(as_day(d) for d in company_off_days)
    return sorted(merged)


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------


def iter_dates(start: datetime.date, end: datetime.date) -> Iterator[datetime.date]:
    """Every date from *start* to *end* inclusive.

    The range is validated immediately, not on first iteration.
    """
    window = make_window(start, end)
    return _walk(window.start, window.end)


def _walk(start: datetime.date, end: datetime.date) -> Iterator[datetime.date]:
    current = start
    while current <= end:
        yield current
        current += _ONE_DAY


class DayCalendar:
    """A classified calendar over one planning window.

    Per-day lookups are precomputed as parallel lists indexed by the day's
    offset from ``start_date``; finders and the allocator work on those
    indices and only convert back to dates at the edges.
    """

    def __init__(
        self,
        window: PlanningWindow | tuple[datetime.date, datetime.date],
        off_days: Iterable[datetime.date] = (),
        weekend_days: Iterable[int] | None = None,
    ):
        self.window = make_window(*window)
        self.weekend_days = normalize_weekend_days(weekend_days)
        self.off_days: frozenset[datetime.date] = frozenset(as_day(d) for d in off_days)

        self.start_date = self.window.start
        self.end_date = self.window.end
        self.num_days = self.window.num_days

        self.dates: list[datetime.date] = list(_walk(self.start_date, self.end_date))
        self.days: list[CalendarDay] = [self.classify(d) for d in self.dates]
        self.is_weekend: list[bool] = [day.is_weekend for day in self.days]
        self.is_off_day: list[bool] = [day.is_off_day for day in self.days]
        self.is_rest: list[bool] = [not day.is_workday for day in self.days]

    def classify(self, d: datetime.date) -> CalendarDay:
        """Classify any date, inside the window or not."""
        d = as_day(d)
        return CalendarDay(
            date=d,
            is_weekend=day_of_week(d) in self.weekend_days,
            is_off_day=d in self.off_days,
        )

    def is_weekend_date(self, d: datetime.date) -> bool:
        return day_of_week(as_day(d)) in self.weekend_days

    def index_of(self, d: datetime.date) -> int | None:
        d = as_day(d)
        if not self.window.includes(d):
            return None
        return (d - self.start_date).days

    def rest_block(self, idx: int) -> tuple[int, int]:
        """Maximal run of rest days (weekend or off-day) containing *idx*.

        Returns ``(idx, idx)`` for a workday.  The run is clipped to the
        window.
        """
        if not self.is_rest[idx]:
            return idx, idx
        first = last = idx
        while first > 0 and self.is_rest[first - 1]:
            first -= 1
        while last < self.num_days - 1 and self.is_rest[last + 1]:
            last += 1
        return first, last

    @property
    def weekend_day_count(self) -> int:
        return sum(self.is_weekend)

    @property
    def off_day_count(self) -> int:
        return sum(self.is_off_day)
