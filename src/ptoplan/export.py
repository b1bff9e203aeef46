"""JSON and CSV export of optimisation results, and JSON request import.

The JSON document embeds the request next to its schedule so a saved plan
can be loaded back with :func:`request_from_dict`.  Dates are written as
ISO-8601 calendar days (``YYYY-MM-DD``).
"""

from __future__ import annotations

import csv
import datetime
import io
import json
from collections.abc import Mapping, Sequence
from typing import Any

from ptoplan.days import (
    DEFAULT_WEEKEND_DAYS,
    PlanningWindow,
    as_day,
    merge_off_days,
    normalize_weekend_days,
    parse_day,
)
from ptoplan.optimizer import (
    OptimizationRequest,
    Schedule,
    VacationPeriod,
    VacationStyle,
)

CSV_COLUMNS = ("StartDate", "EndDate", "Days", "Type", "Reason")


def _iso(dates: Sequence[datetime.date]) -> list[str]:
    return [d.isoformat() for d in dates]


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def request_to_dict(request: OptimizationRequest) -> dict[str, Any]:
    """Flat request mapping; timestamps are written as their calendar day."""
    start, end = request.window
    return {
        "leave_days_budget": request.leave_days_budget,
        "start": as_day(start).isoformat(),
        "end": as_day(end).isoformat(),
        "holidays": _iso(merge_off_days(request.holidays)),
        "company_off_days": _iso(merge_off_days(request.company_off_days)),
        "style": VacationStyle.parse(request.style).value,
        "weekend_days": sorted(normalize_weekend_days(request.weekend_days)),
        "exact": request.exact,
    }


def period_to_dict(period: VacationPeriod) -> dict[str, Any]:
    return {
        "start_date": period.start_date.isoformat(),
        "end_date": period.end_date.isoformat(),
        "total_days": period.total_days,
        "leave_days_used": period.leave_days_used,
        "weekend_days": period.weekend_days,
        "holiday_days": period.holiday_days,
        "efficiency": round(period.efficiency, 2),
        "type": period.label,
        "reason": period.kind.value,
    }


def schedule_to_dict(schedule: Schedule) -> dict[str, Any]:
    meta = schedule.metadata
    return {
        "style": schedule.style.value,
        "planning_window": {
            "start": schedule.window.start.isoformat(),
            "end": schedule.window.end.isoformat(),
        },
        "total_leave_budget": schedule.total_leave_budget,
        "leave_days_used": schedule.leave_days_used,
        "leave_days_remaining": schedule.leave_days_remaining,
        "periods": [period_to_dict(p) for p in schedule.periods],
        "leave_dates": _iso(schedule.leave_dates),
        "metadata": {
            "total_days_in_range": meta.total_days_in_range,
            "weekend_day_count": meta.weekend_day_count,
            "holiday_day_count": meta.holiday_day_count,
            "company_off_day_count": meta.company_off_day_count,
        },
        "summary": {
            "total_days_off": schedule.total_days_off,
            "efficiency": round(schedule.efficiency, 2),
        },
    }


def export_json(
    request: OptimizationRequest,
    schedule: Schedule,
    *,
    exported_at: datetime.datetime | None = None,
) -> str:
    """JSON document holding *request* and its *schedule*."""
    doc: dict[str, Any] = {
        "request": request_to_dict(request),
        "schedule": schedule_to_dict(schedule),
    }
    if exported_at is not None:
        doc["exported_at"] = exported_at.isoformat()
    return json.dumps(doc, indent=2)


def export_json_many(
    request: OptimizationRequest,
    schedules: Sequence[Schedule],
    *,
    exported_at: datetime.datetime | None = None,
) -> str:
    """Like :func:`export_json` for several styles run on the same request."""
    doc: dict[str, Any] = {
        "request": request_to_dict(request),
        "schedules": [schedule_to_dict(s) for s in schedules],
    }
    if exported_at is not None:
        doc["exported_at"] = exported_at.isoformat()
    return json.dumps(doc, indent=2)


def export_csv(schedule: Schedule) -> str:
    """One quoted row per period; ``Days`` is the leave spent on it."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for p in schedule.periods:
        writer.writerow(
            [
                p.start_date.isoformat(),
                p.end_date.isoformat(),
                p.leave_days_used,
                p.label,
                p.kind.value,
            ]
        )
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _date_list(data: Mapping[str, Any], key: str) -> list[datetime.date]:
    raw = data.get(key) or []
    if not isinstance(raw, list):
        raise ValueError(f"{key!r} must be a list of dates.")
    return [parse_day(str(v)) for v in raw]


def request_from_dict(data: Mapping[str, Any]) -> OptimizationRequest:
    """Build a request from a config mapping or an exported document.

    Budget, style and weekend values are carried over as given; the
    optimizer validates them.  Raises ``ValueError`` for missing fields or
    unparseable dates.
    """
    if "request" in data:
        data = data["request"]
    if not isinstance(data, Mapping):
        raise ValueError("Request must be a JSON object.")

    try:
        budget = int(data["leave_days_budget"])
        start = parse_day(str(data["start"]))
        end = parse_day(str(data["end"]))
    except KeyError as exc:
        raise ValueError(f"Missing required field {exc.args[0]!r}.") from None
    except (TypeError, ValueError) as exc:
        raise ValueError(str(exc)) from None

    weekend = data.get("weekend_days")
    if weekend is not None and not isinstance(weekend, list):
        raise ValueError("'weekend_days' must be a list of day indices.")
    weekend_days = DEFAULT_WEEKEND_DAYS if weekend is None else frozenset(weekend)

    return OptimizationRequest(
        leave_days_budget=budget,
        window=PlanningWindow(start, end),
        holidays=_date_list(data, "holidays"),
        company_off_days=_date_list(data, "company_off_days"),
        style=data.get("style", VacationStyle.BALANCED_MIX.value),
        weekend_days=weekend_days,
        exact=bool(data.get("exact", False)),
    )
