"""Validation errors raised before any optimisation work starts.

Exception hierarchy::

    OptimizationError (ValueError)
    ├── InvalidBudgetError
    ├── InvalidRangeError
    ├── UnknownStyleError
    └── InvalidWeekendError
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable


class OptimizationError(ValueError):
    """Base class for requests the optimizer refuses to run."""


class InvalidBudgetError(OptimizationError):
    """The leave-day budget is zero, negative or missing."""

    def __init__(self, budget: object) -> None:
        self.budget = budget
        super().__init__(f"Leave budget must be a positive number of days, got {budget!r}.")


class InvalidRangeError(OptimizationError):
    """The planning window starts after it ends."""

    def __init__(self, start: datetime.date, end: datetime.date) -> None:
        self.start = start
        self.end = end
        super().__init__(
            f"Start date {start.isoformat()} must not be after end date {end.isoformat()}."
        )


class UnknownStyleError(OptimizationError):
    """The requested vacation style is not one the optimizer knows."""

    def __init__(self, style: object, supported: Iterable[str] = ()) -> None:
        self.style = style
        msg = f"Unknown vacation style {style!r}."
        choices = ", ".join(supported)
        if choices:
            msg += f" Supported: {choices}"
        super().__init__(msg)


class InvalidWeekendError(OptimizationError):
    """A weekend day-of-week index falls outside 0 (Sunday) .. 6 (Saturday)."""

    def __init__(self, indices: Iterable[object]) -> None:
        self.indices = list(indices)
        shown = ", ".join(repr(i) for i in self.indices)
        super().__init__(f"Weekend day indices must be between 0 and 6, got {shown}.")
