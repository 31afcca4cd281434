"""Iterator over an explicit list of dates (RDATE / EXDATE)."""

from __future__ import annotations

import bisect
from collections.abc import Iterable
from typing import Optional

from calendarbot_rrule.core.date_values import DateValue, comparable
from calendarbot_rrule.recurrence.iterators import RecurrenceIterator


class RDateIterator(RecurrenceIterator):
    """Yields the given values in ascending order with duplicates removed.

    Timed values are expected in UTC, as produced by the rule iterators.
    """

    def __init__(self, dates: Iterable[DateValue]) -> None:
        self._dates = sorted(set(dates), key=comparable)
        self._keys = [comparable(d) for d in self._dates]
        self._i = 0

    def has_next(self) -> bool:
        return self._i < len(self._dates)

    def next(self) -> Optional[DateValue]:
        if self._i >= len(self._dates):
            return None
        value = self._dates[self._i]
        self._i += 1
        return value

    def advance_to(self, target: DateValue) -> None:
        self._i = max(self._i, bisect.bisect_left(self._keys, comparable(target)))

    def __repr__(self) -> str:
        return f"RDateIterator({len(self._dates)} dates, position={self._i})"
