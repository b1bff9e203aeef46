"""Typer CLI for the leave-day planner."""

from __future__ import annotations

import datetime
import json
import logging
import pathlib

import typer

from ptoplan.days import DEFAULT_WEEKEND_DAYS, PlanningWindow, merge_off_days, parse_day
from ptoplan.errors import OptimizationError
from ptoplan.export import export_csv, export_json, export_json_many, request_from_dict
from ptoplan.holidays import PRESETS, get_holidays, holidays_between
from ptoplan.optimizer import (
    OptimizationRequest,
    Schedule,
    VacationStyle,
    format_calendar_view,
    format_schedule,
    format_weekend_days,
    optimize_all_styles,
    optimize_leave,
)

app = typer.Typer(
    name="ptoplan",
    help="Leave-day planner: spend a fixed budget of leave days where they "
    "join weekends and holidays into the longest breaks.",
    add_completion=False,
)

STYLE_CHOICES = ["all", *(s.value for s in VacationStyle)]


def _parse_date(value: str) -> datetime.date:
    """Parse a YYYY-MM-DD date string."""
    try:
        return parse_day(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date format {value!r}. Use YYYY-MM-DD.") from None


def _current_year() -> int:
    return datetime.date.today().year


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code=1)


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            force=True,
        )


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


def _load_config(path: str) -> OptimizationRequest:
    """Load a JSON request file (or a previously exported plan)."""
    p = pathlib.Path(path)
    if not p.exists():
        raise _fail(f"Config file not found: {path}")

    try:
        data = json.loads(p.read_text())
    except json.JSONDecodeError as exc:
        raise _fail(f"Invalid JSON in config file: {exc}") from None

    if not isinstance(data, dict):
        raise _fail("Config file must contain a JSON object.")

    try:
        return request_from_dict(data)
    except ValueError as exc:
        raise _fail(f"Invalid config file: {exc}") from None


def _build_request(
    budget: int | None,
    year: int | None,
    start: str | None,
    end: str | None,
    country: str | None,
    holiday: list[str] | None,
    company_off_day: list[str] | None,
    weekend: list[int] | None,
    exact: bool,
) -> tuple[OptimizationRequest, dict[datetime.date, str]]:
    if budget is None:
        raise _fail("--budget is required (or use --config to load a request).")

    resolved_year = year if year is not None else _current_year()
    start_date = _parse_date(start) if start else datetime.date(resolved_year, 1, 1)
    end_date = _parse_date(end) if end else datetime.date(resolved_year, 12, 31)

    holidays: list[datetime.date] = []
    holiday_names: dict[datetime.date, str] = {}

    if country and country != "none" and start_date <= end_date:
        try:
            preset = holidays_between(country, start_date, end_date)
        except KeyError as exc:
            raise _fail(str(exc.args[0])) from None
        for d, name in preset:
            holidays.append(d)
            holiday_names[d] = name

    if holiday:
        holidays.extend(_parse_date(h) for h in holiday)

    off_days = [_parse_date(d) for d in company_off_day or []]
    for d in off_days:
        holiday_names.setdefault(d, "Company off-day")

    request = OptimizationRequest(
        leave_days_budget=budget,
        window=PlanningWindow(start_date, end_date),
        holidays=merge_off_days(holidays),
        company_off_days=merge_off_days(off_days),
        weekend_days=frozenset(weekend) if weekend else DEFAULT_WEEKEND_DAYS,
        exact=exact,
    )
    return request, holiday_names


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def optimize(
    budget: int = typer.Option(
        None,
        "--budget",
        "-b",
        help="Number of leave days available.",
    ),
    year: int = typer.Option(
        None,
        "--year",
        "-y",
        help="Plan the whole of this year. Defaults to the current year.",
    ),
    start: str | None = typer.Option(
        None,
        "--start",
        help="First day of the planning window (YYYY-MM-DD).",
    ),
    end: str | None = typer.Option(
        None,
        "--end",
        help="Last day of the planning window (YYYY-MM-DD).",
    ),
    country: str | None = typer.Option(
        "us",
        "--country",
        "-c",
        help=f"Holiday preset ({', '.join(sorted(PRESETS))}). Use 'none' to skip.",
    ),
    holiday: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--holiday",
        "-H",
        help="Additional holiday date (YYYY-MM-DD). Repeatable.",
    ),
    company_off_day: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--company-off-day",
        "-O",
        help="Company-wide off-day (YYYY-MM-DD). Repeatable.",
    ),
    weekend: list[int] | None = typer.Option(  # noqa: B008
        None,
        "--weekend",
        "-w",
        help="Weekend day index, 0=Sunday … 6=Saturday. Repeatable. Default: 0 and 6.",
    ),
    style: str | None = typer.Option(
        None,
        "--style",
        "-s",
        help=f"Vacation style: {', '.join(STYLE_CHOICES)}. Defaults to all "
        "(or the style stored in --config).",
    ),
    exact: bool = typer.Option(
        False,
        "--exact",
        help="Use the exact allocator instead of the greedy one.",
    ),
    calendar: bool = typer.Option(
        True,
        "--calendar/--no-calendar",
        help="Show month-by-month calendar view.",
    ),
    output_json: bool = typer.Option(
        False,
        "--json",
        help="Output the request and schedule(s) as JSON.",
    ),
    output_csv: bool = typer.Option(
        False,
        "--csv",
        help="Output one CSV row per vacation period (single style only).",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        help="Path to a JSON request file or an exported plan.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log optimizer decisions to stderr.",
    ),
) -> None:
    """Recommend where to take leave for the longest breaks.

    Use --budget with --year or --start/--end, or --config to load a
    request saved as JSON.
    """
    _configure_logging(verbose)

    if config is not None:
        request = _load_config(config)
        holiday_names: dict[datetime.date, str] = {}
        if exact:
            request = request._replace(exact=True)
    else:
        request, holiday_names = _build_request(
            budget, year, start, end, country, holiday, company_off_day, weekend, exact
        )

    try:
        if style is None and config is not None:
            schedules = [optimize_leave(request)]
        elif style is None or style == "all":
            schedules = optimize_all_styles(request)
        else:
            request = request._replace(style=VacationStyle.parse(style))
            schedules = [optimize_leave(request)]
    except OptimizationError as exc:
        raise _fail(str(exc)) from None

    if output_csv:
        if len(schedules) != 1:
            raise _fail("--csv needs a single --style.")
        typer.echo(export_csv(schedules[0]), nl=False)
    elif output_json:
        if len(schedules) == 1:
            typer.echo(export_json(request, schedules[0]))
        else:
            typer.echo(export_json_many(request, schedules))
    else:
        _print_text(schedules, request, holiday_names, calendar)


def _print_text(
    schedules: list[Schedule],
    request: OptimizationRequest,
    holiday_names: dict[datetime.date, str],
    show_calendar: bool,
) -> None:
    w = 64
    start, end = request.window
    off_days = merge_off_days(request.holidays, request.company_off_days)

    typer.echo("=" * w)
    typer.echo("  LEAVE PLANNER")
    typer.echo("=" * w)
    typer.echo(f"  Window:            {start.isoformat()} .. {end.isoformat()}")
    typer.echo(f"  Leave budget:      {request.leave_days_budget} days")
    typer.echo(f"  Weekend:           {format_weekend_days(request.weekend_days)}")
    typer.echo(f"  Holidays/off-days: {len(off_days)}")
    typer.echo()
    for d in off_days:
        name = holiday_names.get(d, d.strftime("%b %d"))
        typer.echo(f"    {d.strftime('%a, %b %d'):>12}  {name}")

    for schedule in schedules:
        typer.echo(format_schedule(schedule))
        if show_calendar:
            typer.echo(format_calendar_view(schedule))

    typer.echo()
    typer.echo("=" * w)
    typer.echo(f"  Generated {len(schedules)} schedule{'s' if len(schedules) != 1 else ''}.")
    typer.echo("=" * w)


@app.command()
def holidays(
    country: str = typer.Option(
        "us",
        "--country",
        "-c",
        help=f"Country preset ({', '.join(sorted(PRESETS))}).",
    ),
    year: int = typer.Option(
        None,
        "--year",
        "-y",
        help="Year to list holidays for. Defaults to the current year.",
    ),
) -> None:
    """List holidays for a country preset."""
    resolved_year = year if year is not None else _current_year()

    try:
        preset = get_holidays(country, resolved_year)
    except KeyError as exc:
        raise _fail(str(exc.args[0])) from None

    typer.echo(f"  {PRESETS[country.lower()]} — {resolved_year}")
    typer.echo()
    for d, name in preset:
        typer.echo(f"    {d.strftime('%a, %b %d'):>12}  {name}")


def main() -> None:
    """Entry point for the CLI."""
    app()
