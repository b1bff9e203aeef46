"""Candidate vacation periods, one finder per vacation style.

Every finder takes a :class:`~ptoplan.days.DayCalendar` and a leave budget
and returns an unordered list of :class:`Opportunity`.  The leave an
opportunity needs is always the number of workdays inside its span, so a
period built from it later adds up exactly.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Collection
from enum import Enum
from typing import NamedTuple

from ptoplan.days import DayCalendar

logger = logging.getLogger(__name__)

MAX_BRIDGE_WORKDAYS = 2
"""Longest run of workdays a holiday bridge will cross to reach a weekend."""

MINI_BREAK_SIZE = 2


class OpportunityKind(str, Enum):
    HOLIDAY_BRIDGE = "holiday_bridge"
    WEEKEND_EXTENSION = "weekend_extension"
    MINI_BREAK = "mini_break"

    @property
    def label(self) -> str:
        if self is OpportunityKind.MINI_BREAK:
            return "Mini Break"
        return "Long Weekend"


class Opportunity(NamedTuple):
    """A candidate vacation period and the leave it costs.

    ``value`` is a heuristic score, larger is better.  It is only
    comparable between opportunities produced by the same finder.
    """

    start_date: datetime.date
    end_date: datetime.date
    leave_days_needed: int
    value: float
    kind: OpportunityKind

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def efficiency(self) -> float:
        if self.leave_days_needed == 0:
            return float(self.total_days)
        return self.total_days / self.leave_days_needed

    def dates(self) -> list[datetime.date]:
        return [
            self.start_date + datetime.timedelta(days=i) for i in range(self.total_days)
        ]


def _span(
    cal: DayCalendar,
    first: int,
    last: int,
    kind: OpportunityKind,
    value: float | None = None,
) -> Opportunity:
    leave = sum(1 for i in range(first, last + 1) if not cal.is_rest[i])
    return Opportunity(
        start_date=cal.dates[first],
        end_date=cal.dates[last],
        leave_days_needed=leave,
        value=float(last - first + 1) if value is None else value,
        kind=kind,
    )


def rank(opportunities: list[Opportunity]) -> list[Opportunity]:
    """Highest value first; equal values keep discovery order."""
    return sorted(opportunities, key=lambda o: -o.value)


# ---------------------------------------------------------------------------
# Long weekends
# ---------------------------------------------------------------------------


def _has_weekend(cal: DayCalendar, first: int, last: int) -> bool:
    return any(cal.is_weekend[i] for i in range(first, last + 1))


def _bridge(
    cal: DayCalendar, first: int, last: int, step: int, budget: int
) -> list[tuple[int, int]]:
    """Walk from the rest block ``first..last`` toward the next weekend.

    *step* is -1 to look backwards, +1 to look forwards.  Returns the spans
    to propose, empty when no weekend is close enough.  The full bridge
    comes first when *budget* covers it, followed by the shorter spans
    that stop after the 1, 2, ... workdays nearest the block, so a
    bridge can still be taken with whatever budget is left.
    """
    gap: list[int] = []
    i = first - 1 if step < 0 else last + 1
    while 0 <= i < cal.num_days and not cal.is_rest[i]:
        gap.append(i)
        if len(gap) > MAX_BRIDGE_WORKDAYS:
            return []
        i += step
    if not gap or not 0 <= i < cal.num_days:
        return []

    far_first, far_last = cal.rest_block(i)
    if not _has_weekend(cal, far_first, far_last):
        return []

    spans: list[tuple[int, int]] = []
    if len(gap) <= budget:
        spans.append((far_first, last) if step < 0 else (first, far_last))
    for reach in gap[: min(len(gap) - 1, budget)]:
        spans.append((reach, last) if step < 0 else (first, reach))
    return spans


def find_holiday_bridges(cal: DayCalendar, leave_budget: int) -> list[Opportunity]:
    """Join weekday off-days to a nearby weekend.

    An off-day already touching a weekend is extended by the workday on the
    far side of that weekend (a Monday holiday gains the Friday before).
    Otherwise up to ``MAX_BRIDGE_WORKDAYS`` workdays are bridged to reach
    the weekend, and shorter bridges are offered alongside so the
    allocator can spend min(required, remaining) leave on one.  ``value``
    is the number of days spanned.
    """
    if leave_budget <= 0:
        return []

    found: list[Opportunity] = []
    seen: set[tuple[int, int]] = set()

    def add(first: int, last: int) -> None:
        if (first, last) in seen:
            return
        seen.add((first, last))
        found.append(_span(cal, first, last, OpportunityKind.HOLIDAY_BRIDGE))

    for idx in range(cal.num_days):
        # Off-days on a weekend are left to the weekend extensions.
        if not cal.is_off_day[idx] or cal.is_weekend[idx]:
            continue
        first, last = cal.rest_block(idx)

        if idx > first and _has_weekend(cal, first, idx - 1):
            if first > 0:
                add(first - 1, last)
        else:
            for span in _bridge(cal, first, last, -1, leave_budget):
                add(*span)

        if idx < last and _has_weekend(cal, idx + 1, last):
            if last < cal.num_days - 1:
                add(first, last + 1)
        else:
            for span in _bridge(cal, first, last, 1, leave_budget):
                add(*span)

    logger.debug("Found %d holiday bridge(s)", len(found))
    return found


def find_weekend_extensions(cal: DayCalendar, leave_budget: int) -> list[Opportunity]:
    """Add a leading and a trailing workday to every plain weekend.

    Weekends that already merge with a weekday off-day are skipped; the
    holiday bridges cover those.
    """
    if leave_budget <= 0:
        return []

    found: list[Opportunity] = []
    idx = 0
    while idx < cal.num_days:
        if not cal.is_rest[idx]:
            idx += 1
            continue
        first, last = cal.rest_block(idx)
        block = range(first, last + 1)
        plain = not any(cal.is_off_day[i] and not cal.is_weekend[i] for i in block)
        if plain and _has_weekend(cal, first, last):
            value = float(last - first + 2)
            if first > 0:
                found.append(
                    _span(cal, first - 1, last, OpportunityKind.WEEKEND_EXTENSION, value)
                )
            if last < cal.num_days - 1:
                found.append(
                    _span(cal, first, last + 1, OpportunityKind.WEEKEND_EXTENSION, value)
                )
        idx = last + 1

    logger.debug("Found %d weekend extension(s)", len(found))
    return found


def find_long_weekends(cal: DayCalendar, leave_budget: int) -> list[Opportunity]:
    """Holiday bridges first, then plain weekend extensions."""
    return find_holiday_bridges(cal, leave_budget) + find_weekend_extensions(cal, leave_budget)


# ---------------------------------------------------------------------------
# Mini breaks
# ---------------------------------------------------------------------------


def segment_bounds(num_days: int, count: int) -> list[tuple[int, int]]:
    """Split ``0..num_days-1`` into *count* near-equal inclusive ranges.

    Earlier segments absorb the remainder.  Empty segments are dropped.
    """
    if count <= 0:
        return []
    size, extra = divmod(num_days, count)
    bounds: list[tuple[int, int]] = []
    start = 0
    for k in range(count):
        length = size + (1 if k < extra else 0)
        if length:
            bounds.append((start, start + length - 1))
        start += length
    return bounds


def mini_break_score(cal: DayCalendar, first: int, last: int) -> float:
    """1, +2 per weekend touching either end, +3 per off-day inside."""
    score = 1.0
    if cal.is_weekend_date(cal.dates[first] - datetime.timedelta(days=1)):
        score += 2
    if cal.is_weekend_date(cal.dates[last] + datetime.timedelta(days=1)):
        score += 2
    score += 3 * sum(1 for i in range(first, last + 1) if cal.is_off_day[i])
    return score


def find_mini_breaks(
    cal: DayCalendar,
    leave_budget: int,
    taken: Collection[datetime.date] = frozenset(),
    break_size: int = MINI_BREAK_SIZE,
) -> list[Opportunity]:
    """Best short weekday break in each of ``leave_budget // break_size`` segments.

    Windows containing a weekend day, touching a date in *taken*, or needing
    no leave at all are rejected.
    """
    found: list[Opportunity] = []
    for seg_first, seg_last in segment_bounds(cal.num_days, leave_budget // break_size):
        best: tuple[int, int] | None = None
        best_score = 0.0
        for first in range(seg_first, seg_last - break_size + 2):
            last = first + break_size - 1
            window = range(first, last + 1)
            if any(cal.is_weekend[i] for i in window):
                continue
            if any(cal.dates[i] in taken for i in window):
                continue
            if all(cal.is_rest[i] for i in window):
                continue
            score = mini_break_score(cal, first, last)
            if best is None or score > best_score:
                best, best_score = (first, last), score
        if best is not None:
            found.append(_span(cal, best[0], best[1], OpportunityKind.MINI_BREAK, best_score))

    logger.debug("Found %d mini break(s)", len(found))
    return found
