"""Immutable date and date-time values used throughout the recurrence engine.

``DateValue`` represents a whole calendar day and ``DateTimeValue`` a day plus
a wall-clock time. Both order through :func:`comparable`, a packed integer in
which a date-only value sorts immediately before the date-time at 00:00:00 of
the same day, so mixed lists still have a strict total order.
"""

from __future__ import annotations

import datetime
from functools import total_ordering
from typing import Union

_TIME_BITS = 18  # hour (5) + minute (6) + second (6) + date/date-time flag (1)


@total_ordering
class DateValue:
    """A proleptic Gregorian calendar date (year, month 1-12, day 1-31)."""

    __slots__ = ("_year", "_month", "_day")

    def __init__(self, year: int, month: int, day: int) -> None:
        self._year = year
        self._month = month
        self._day = day

    @property
    def year(self) -> int:
        return self._year

    @property
    def month(self) -> int:
        return self._month

    @property
    def day(self) -> int:
        return self._day

    @property
    def has_time(self) -> bool:
        """True for :class:`DateTimeValue` instances."""
        return False

    def to_date(self) -> datetime.date:
        """Convert to ``datetime.date``."""
        return datetime.date(self._year, self._month, self._day)

    def date_part(self) -> DateValue:
        """Return the date-only part of this value."""
        return self

    @classmethod
    def from_date(cls, value: datetime.date) -> DateValue:
        return cls(value.year, value.month, value.day)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DateValue):
            return NotImplemented
        return comparable(self) == comparable(other)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DateValue):
            return NotImplemented
        return comparable(self) < comparable(other)

    def __hash__(self) -> int:
        return hash(comparable(self))

    def __str__(self) -> str:
        return f"{self._year:04d}{self._month:02d}{self._day:02d}"

    def __repr__(self) -> str:
        return f"DateValue({self._year}, {self._month}, {self._day})"


class DateTimeValue(DateValue):
    """A calendar date with hour (0-23), minute (0-59) and second (0-59)."""

    __slots__ = ("_hour", "_minute", "_second")

    def __init__(
        self, year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0
    ) -> None:
        super().__init__(year, month, day)
        self._hour = hour
        self._minute = minute
        self._second = second

    @property
    def hour(self) -> int:
        return self._hour

    @property
    def minute(self) -> int:
        return self._minute

    @property
    def second(self) -> int:
        return self._second

    @property
    def has_time(self) -> bool:
        return True

    def date_part(self) -> DateValue:
        return DateValue(self._year, self._month, self._day)

    def to_datetime(self, tzinfo: datetime.tzinfo | None = None) -> datetime.datetime:
        """Convert to ``datetime.datetime`` carrying ``tzinfo`` (naive when None)."""
        return datetime.datetime(
            self._year, self._month, self._day, self._hour, self._minute, self._second, tzinfo=tzinfo
        )

    @classmethod
    def from_datetime(cls, value: datetime.datetime) -> DateTimeValue:
        """Build from the wall-clock fields of ``value`` (tzinfo is ignored)."""
        return cls(value.year, value.month, value.day, value.hour, value.minute, value.second)

    def __str__(self) -> str:
        return f"{super().__str__()}T{self._hour:02d}{self._minute:02d}{self._second:02d}"

    def __repr__(self) -> str:
        return (
            f"DateTimeValue({self._year}, {self._month}, {self._day}, "
            f"{self._hour}, {self._minute}, {self._second})"
        )


AnyDateValue = Union[DateValue, DateTimeValue]


def comparable(value: DateValue) -> int:
    """Pack a value into an integer whose natural order is the engine's total order.

    Layout, most significant first: year, month (4 bits), day (5 bits),
    hour (5 bits), minute (6 bits), second (6 bits), then one flag bit that
    is set only for date-times. A date-only value therefore lands directly
    before midnight of the same day.
    """
    key = (((value.year << 4) + value.month) << 5) + value.day
    if isinstance(value, DateTimeValue):
        key = (((((key << 5) + value.hour) << 6) + value.minute) << 6) + value.second
        return (key << 1) | 1
    return key << _TIME_BITS


def to_date_value(value: datetime.date) -> DateValue:
    """Convert a ``date`` or ``datetime`` into the matching engine value.

    Aware datetimes are taken at their own wall-clock fields; callers wanting
    UTC must convert first.
    """
    if isinstance(value, datetime.datetime):
        return DateTimeValue.from_datetime(value)
    return DateValue.from_date(value)
