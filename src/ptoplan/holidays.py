"""Built-in public-holiday presets.

Each preset computes the days actually taken off for a given year:

- ``us``: federal holidays, *observed* rules (Saturday -> preceding Friday,
  Sunday -> following Monday).
- ``uk``: England & Wales bank holidays, weekend dates replaced by the next
  free weekday.

Planning windows may span several years; :func:`holidays_between` stitches
the yearly presets together.
"""

from __future__ import annotations

import calendar
import datetime
from collections.abc import Callable

HolidayList = list[tuple[datetime.date, str]]

_MONTHS = calendar.Calendar(firstweekday=calendar.MONDAY)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def weekday_in_month(year: int, month: int, weekday: int, n: int) -> datetime.date:
    """The *n*-th *weekday* of a month; negative *n* counts from the end.

    *weekday* uses the ``calendar`` constants (``calendar.MONDAY`` = 0).
    """
    days = [
        week[weekday] for week in _MONTHS.monthdayscalendar(year, month) if week[weekday]
    ]
    return datetime.date(year, month, days[n - 1 if n > 0 else n])


def _observed(d: datetime.date) -> datetime.date:
    """US observed date: Saturday moves back to Friday, Sunday on to Monday."""
    shift = {calendar.SATURDAY: -1, calendar.SUNDAY: 1}.get(d.weekday(), 0)
    return d + datetime.timedelta(days=shift)


def _substitute(d: datetime.date, taken: set[datetime.date]) -> datetime.date:
    """Move *d* forward to the first weekday not already in *taken*."""
    while d.weekday() >= calendar.SATURDAY or d in taken:
        d += datetime.timedelta(days=1)
    return d


def easter_sunday(year: int) -> datetime.date:
    """Western Easter Sunday (anonymous Gregorian algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    el = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * el) // 451
    month, day = divmod(h + el - 7 * m + 114, 31)
    return datetime.date(year, month, day + 1)


# ---------------------------------------------------------------------------
# Country presets
# ---------------------------------------------------------------------------

PRESETS: dict[str, str] = {
    "uk": "England & Wales bank holidays",
    "us": "United States federal holidays",
}

# (month, day, name), shifted to the observed weekday
_US_FIXED = (
    (1, 1, "New Year's Day"),
    (6, 19, "Juneteenth"),
    (7, 4, "Independence Day"),
    (12, 25, "Christmas Day"),
)

# (month, weekday, n, name); n = -1 is the last one in the month
_US_FLOATING = (
    (1, calendar.MONDAY, 3, "Martin Luther King Jr. Day"),
    (2, calendar.MONDAY, 3, "Presidents' Day"),
    (5, calendar.MONDAY, -1, "Memorial Day"),
    (9, calendar.MONDAY, 1, "Labor Day"),
    (11, calendar.THURSDAY, 4, "Thanksgiving"),
)


def us_holidays(year: int) -> HolidayList:
    """US federal holidays (observed) for *year*."""
    result: HolidayList = [
        (_observed(datetime.date(year, month, day)), name) for month, day, name in _US_FIXED
    ]
    result.extend(
        (weekday_in_month(year, month, weekday, n), name)
        for month, weekday, n, name in _US_FLOATING
    )
    return sorted(result)


def uk_holidays(year: int) -> HolidayList:
    """England & Wales bank holidays for *year*."""
    easter = easter_sunday(year)
    taken: set[datetime.date] = set()
    result: HolidayList = []
    for d, name in [
        (datetime.date(year, 1, 1), "New Year's Day"),
        (easter - datetime.timedelta(days=2), "Good Friday"),
        (easter + datetime.timedelta(days=1), "Easter Monday"),
        (weekday_in_month(year, 5, calendar.MONDAY, 1), "Early May bank holiday"),
        (weekday_in_month(year, 5, calendar.MONDAY, -1), "Spring bank holiday"),
        (weekday_in_month(year, 8, calendar.MONDAY, -1), "Summer bank holiday"),
        (datetime.date(year, 12, 25), "Christmas Day"),
        (datetime.date(year, 12, 26), "Boxing Day"),
    ]:
        day = _substitute(d, taken)
        taken.add(day)
        result.append((day, name))
    return sorted(result)


_PRESET_FNS: dict[str, Callable[[int], HolidayList]] = {
    "uk": uk_holidays,
    "us": us_holidays,
}


def get_holidays(country: str, year: int) -> HolidayList:
    """Return ``(date, name)`` pairs for the given *country* preset and *year*.

    Raises ``KeyError`` if the country is not supported.
    """
    fn = _PRESET_FNS.get(country.lower())
    if fn is None:
        supported = ", ".join(sorted(PRESETS))
        msg = f"Unknown country preset {country!r}. Supported: {supported}"
        raise KeyError(msg)
    return fn(year)


def holidays_between(country: str, start: datetime.date, end: datetime.date) -> HolidayList:
    """Preset holidays falling inside ``start..end`` (inclusive)."""
    result: HolidayList = []
    for year in range(start.year, end.year + 1):
        result.extend((d, name) for d, name in get_holidays(country, year) if start <= d <= end)
    return result
