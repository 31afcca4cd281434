"""COUNT and UNTIL bounds applied to instances after filtering."""

from __future__ import annotations

from typing import Optional

from calendarbot_rrule.core.date_values import DateTimeValue, DateValue, comparable
from calendarbot_rrule.recurrence.filters import Predicate, always_true
from calendarbot_rrule.recurrence.models import Recurrence


class CountCondition:
    """Accepts exactly the first ``count`` instances it is asked about."""

    def __init__(self, count: int) -> None:
        self._remaining = count

    def __call__(self, value: DateValue) -> bool:
        self._remaining -= 1
        return self._remaining >= 0

    def __repr__(self) -> str:
        return f"CountCondition(remaining={self._remaining})"


class UntilCondition:
    """Accepts instances on or before an inclusive bound.

    The bound is in UTC when timed, as are the instances it is compared with.
    """

    def __init__(self, until: DateValue) -> None:
        self.until = until
        self._bound = comparable(until)

    def __call__(self, value: DateValue) -> bool:
        return comparable(value) <= self._bound

    def __repr__(self) -> str:
        return f"UntilCondition({self.until})"


def until_for_start(until: DateValue, dtstart: DateValue) -> DateValue:
    """Convert UNTIL to the same kind (date or date-time) as the start value.

    A timed UNTIL for a date-only start keeps only its date; a date-only UNTIL
    for a timed start means 00:00:00 UTC of that day.
    """
    if isinstance(dtstart, DateTimeValue):
        if isinstance(until, DateTimeValue):
            return until
        return DateTimeValue(until.year, until.month, until.day)
    return until.date_part()


def create_condition(recurrence: Recurrence, dtstart: DateValue) -> Predicate:
    """Build the bound for a rule; COUNT wins when both COUNT and UNTIL are set."""
    count: Optional[int] = recurrence.count
    if count is not None:
        return CountCondition(count)
    if recurrence.until is not None:
        return UntilCondition(until_for_start(recurrence.until, dtstart))
    return always_true
