"""Mutable date-time cursor shared by the generators of one rule iterator."""

from __future__ import annotations

from calendarbot_rrule.core import time_utils
from calendarbot_rrule.core.date_values import DateTimeValue, DateValue, comparable


class DTBuilder:
    """A (year, month, day, hour, minute, second) cursor that generators edit in place.

    Fields may be pushed out of range while generators work (day 33, hour -1);
    :meth:`normalize` carries the overflow into the next coarser field.
    """

    __slots__ = ("year", "month", "day", "hour", "minute", "second")

    def __init__(
        self, year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0
    ) -> None:
        self.year = year
        self.month = month
        self.day = day
        self.hour = hour
        self.minute = minute
        self.second = second

    @classmethod
    def from_value(cls, value: DateValue) -> DTBuilder:
        if isinstance(value, DateTimeValue):
            return cls(value.year, value.month, value.day, value.hour, value.minute, value.second)
        return cls(value.year, value.month, value.day)

    def to_date(self) -> DateValue:
        """Normalize, then snapshot the date fields."""
        self.normalize()
        return DateValue(self.year, self.month, self.day)

    def to_datetime(self) -> DateTimeValue:
        """Normalize, then snapshot all fields."""
        self.normalize()
        return DateTimeValue(self.year, self.month, self.day, self.hour, self.minute, self.second)

    def compare_to(self, value: DateValue) -> int:
        """Three-way comparison of the cursor against ``value``.

        The cursor is compared at the precision of ``value``: date-only
        values ignore the cursor's time fields.
        """
        if isinstance(value, DateTimeValue):
            mine = comparable(self.to_datetime())
        else:
            mine = comparable(self.to_date())
        theirs = comparable(value)
        return (mine > theirs) - (mine < theirs)

    def normalize(self) -> None:
        self._normalize_time()
        self._normalize_date()

    def _normalize_time(self) -> None:
        carry, self.second = divmod(self.second, 60)
        self.minute += carry
        carry, self.minute = divmod(self.minute, 60)
        self.hour += carry
        carry, self.hour = divmod(self.hour, 24)
        self.day += carry

    def _normalize_date(self) -> None:
        carry, month0 = divmod(self.month - 1, 12)
        self.year += carry
        self.month = month0 + 1

        # Borrow whole years, then whole months, for non-positive days
        while self.day <= 0:
            self.day += time_utils.year_length(self.year if self.month > 2 else self.year - 1)
            self.year -= 1

        while True:
            if self.month == 1:
                length = time_utils.year_length(self.year)
                if self.day > length:
                    self.year += 1
                    self.day -= length
            length = time_utils.month_length(self.year, self.month)
            if self.day <= length:
                break
            self.day -= length
            self.month += 1
            if self.month > 12:
                self.month = 1
                self.year += 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DTBuilder):
            return NotImplemented
        return (self.year, self.month, self.day, self.hour, self.minute, self.second) == (
            other.year,
            other.month,
            other.day,
            other.hour,
            other.minute,
            other.second,
        )

    def __hash__(self) -> int:
        return hash((self.year, self.month, self.day, self.hour, self.minute, self.second))

    def __repr__(self) -> str:
        return (
            f"DTBuilder({self.year}, {self.month}, {self.day}, "
            f"{self.hour}, {self.minute}, {self.second})"
        )
