"""Leave-day planner.

Spend a fixed budget of leave days where they join weekends, public
holidays and company off-days into the longest breaks.
"""

from ptoplan.days import DayCalendar, PlanningWindow, iter_dates
from ptoplan.errors import (
    InvalidBudgetError,
    InvalidRangeError,
    InvalidWeekendError,
    OptimizationError,
    UnknownStyleError,
)
from ptoplan.export import export_csv, export_json, request_from_dict
from ptoplan.holidays import get_holidays, holidays_between, uk_holidays, us_holidays
from ptoplan.opportunities import Opportunity, OpportunityKind
from ptoplan.optimizer import (
    Allocation,
    OptimizationRequest,
    Schedule,
    ScheduleMetadata,
    VacationPeriod,
    VacationStyle,
    allocate,
    allocate_exact,
    optimize_all_styles,
    optimize_leave,
)

__all__ = [
    "Allocation",
    "DayCalendar",
    "InvalidBudgetError",
    "InvalidRangeError",
    "InvalidWeekendError",
    "Opportunity",
    "OpportunityKind",
    "OptimizationError",
    "OptimizationRequest",
    "PlanningWindow",
    "Schedule",
    "ScheduleMetadata",
    "UnknownStyleError",
    "VacationPeriod",
    "VacationStyle",
    "allocate",
    "allocate_exact",
    "export_csv",
    "export_json",
    "get_holidays",
    "holidays_between",
    "iter_dates",
    "optimize_all_styles",
    "optimize_leave",
    "request_from_dict",
    "uk_holidays",
    "us_holidays",
]
