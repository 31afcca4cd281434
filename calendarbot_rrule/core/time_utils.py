"""Calendar arithmetic for the recurrence engine.

Pure functions over (year, month, day) triples on the proleptic Gregorian
calendar. Ordinal day numbers follow ``datetime.date.toordinal()`` (0001-01-01
is day 1) but are computed arithmetically so years past 9999 still work while
an iterator runs ahead.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from typing import Optional

from calendarbot_rrule.core.date_values import DateTimeValue, DateValue
from calendarbot_rrule.core.weekday import Weekday

# Days before the first of each month in a common year, indexed by month (1-12)
_DAYS_BEFORE_MONTH = (0, 0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)
_MONTH_LENGTHS = (0, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

# Every week-based year has at least this many days of its first week
MIN_DAYS_IN_FIRST_WEEK = 4


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def year_length(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def month_length(year: int, month: int) -> int:
    if month == 2 and is_leap_year(year):
        return 29
    return _MONTH_LENGTHS[month]


def day_of_year(year: int, month: int, day: int) -> int:
    """Zero-based day of the year (January 1st is 0)."""
    offset = _DAYS_BEFORE_MONTH[month] + day - 1
    if month > 2 and is_leap_year(year):
        offset += 1
    return offset


def to_ordinal(year: int, month: int, day: int) -> int:
    """Day number with 0001-01-01 as 1, identical to ``date.toordinal()``."""
    prior = year - 1
    return prior * 365 + prior // 4 - prior // 100 + prior // 400 + day_of_year(year, month, day) + 1


def days_between(a: DateValue, b: DateValue) -> int:
    """Whole days from ``b`` to ``a`` (positive when ``a`` is later)."""
    return to_ordinal(a.year, a.month, a.day) - to_ordinal(b.year, b.month, b.day)


def day_of_week(year: int, month: int, day: int) -> Weekday:
    return Weekday((to_ordinal(year, month, day) + 6) % 7)


def first_day_of_week_in_month(year: int, month: int) -> Weekday:
    return day_of_week(year, month, 1)


def week_start_offset(dow: Weekday, wkst: Weekday) -> int:
    """Days between the most recent ``wkst`` on or before a day and that day."""
    return (7 + dow - wkst) % 7


def add_days(value: DateValue, days: int) -> DateValue:
    """Shift a value by whole days, keeping its time of day."""
    year, month, day = value.year, value.month, value.day + days
    while day > month_length(year, month):
        day -= month_length(year, month)
        month += 1
        if month > 12:
            month = 1
            year += 1
    while day < 1:
        month -= 1
        if month < 1:
            month = 12
            year -= 1
        day += month_length(year, month)
    if isinstance(value, DateTimeValue):
        return DateTimeValue(year, month, day, value.hour, value.minute, value.second)
    return DateValue(year, month, day)


def next_week_start(value: DateValue, wkst: Weekday) -> DateValue:
    """First day on or after ``value`` that falls on ``wkst``."""
    dow = day_of_week(value.year, value.month, value.day)
    return add_days(value, (7 - week_start_offset(dow, wkst)) % 7)


def week_start_before(value: DateValue, wkst: Weekday) -> DateValue:
    """Start of the week (per ``wkst``) that contains ``value``."""
    dow = day_of_week(value.year, value.month, value.day)
    return add_days(value, -week_start_offset(dow, wkst))


# ---------------------------------------------------------------------------
# Week numbering
# ---------------------------------------------------------------------------


def first_week_start(year: int, wkst: Weekday) -> int:
    """Ordinal of the first day of week 1 of ``year``.

    Week 1 is the first week, starting on ``wkst``, that has at least four of
    its days in ``year``. It may start in the last days of the previous year.
    """
    jan1 = to_ordinal(year, 1, 1)
    offset = week_start_offset(day_of_week(year, 1, 1), wkst)
    start = jan1 - offset
    if 7 - offset < MIN_DAYS_IN_FIRST_WEEK:
        start += 7
    return start


def week_count(year: int, wkst: Weekday) -> int:
    """Number of weeks (52 or 53) in ``year`` under the given week start."""
    return (first_week_start(year + 1, wkst) - first_week_start(year, wkst)) // 7


def week_number(year: int, month: int, day: int, wkst: Weekday) -> tuple[int, int]:
    """Return ``(week_year, week_number)`` for a date.

    Days before week 1 belong to the last week of the previous year, days on
    or after next year's week 1 belong to week 1 of the next year.
    """
    ordinal = to_ordinal(year, month, day)
    start = first_week_start(year, wkst)
    if ordinal < start:
        return year - 1, (ordinal - first_week_start(year - 1, wkst)) // 7 + 1
    next_start = first_week_start(year + 1, wkst)
    if ordinal >= next_start:
        return year + 1, 1
    return year, (ordinal - start) // 7 + 1


def resolve_week_number(week_no: int, weeks_in_year: int) -> int:
    """Turn a possibly negative BYWEEKNO entry into 1..weeks_in_year, or 0 if absent."""
    resolved = week_no if week_no > 0 else weeks_in_year + week_no + 1
    return resolved if 1 <= resolved <= weeks_in_year else 0


# ---------------------------------------------------------------------------
# Weekday ordinals (BYDAY=2TU, BYDAY=-1FR)
# ---------------------------------------------------------------------------


def count_in_period(dow: Weekday, dow0: Weekday, n_days: int) -> int:
    """Count the ``dow`` weekdays in a period of ``n_days`` starting on ``dow0``."""
    if dow >= dow0:
        return 1 + (n_days - (dow - dow0) - 1) // 7
    return 1 + (n_days - (7 - (dow0 - dow)) - 1) // 7


def invert_weekday_num(num: int, dow: Weekday, dow0: Weekday, n_days: int) -> int:
    """Convert a negative ordinal (``-1FR``) into its positive equivalent."""
    return count_in_period(dow, dow0, n_days) + num + 1


def day_num_to_date(
    dow0: Weekday, n_days: int, week_num: int, dow: Weekday, d0: int, n_days_in_month: int
) -> int:
    """Resolve an ordinal weekday to a day of the month.

    Args:
        dow0: Weekday of the first day of the period (month or year)
        n_days: Length of the period in days
        week_num: Ordinal, positive from the start or negative from the end
        dow: The weekday being looked for
        d0: Zero-based offset of the month's first day inside the period
        n_days_in_month: Length of the month

    Returns:
        Day of the month (1-based), or 0 when the ordinal falls outside the month
    """
    first = 1 + (dow - dow0) % 7
    if week_num > 0:
        date = (week_num - 1) * 7 + first - d0
    else:
        last = first + 7 * ((n_days - first) // 7)
        date = last + 7 * (week_num + 1) - d0
    if date <= 0 or date > n_days_in_month:
        return 0
    return date


def uniquify(values: Iterable[int]) -> tuple[int, ...]:
    """Sorted, de-duplicated copy of ``values``."""
    return tuple(sorted(set(values)))


# ---------------------------------------------------------------------------
# Wall-clock <-> UTC
# ---------------------------------------------------------------------------


def to_utc(value: DateValue, tzinfo: Optional[datetime.tzinfo]) -> DateValue:
    """Convert a local wall-clock value to UTC; date-only values pass through."""
    if not isinstance(value, DateTimeValue) or tzinfo is None:
        return value
    local = value.to_datetime(tzinfo)
    return DateTimeValue.from_datetime(local.astimezone(datetime.timezone.utc))


def from_utc(value: DateValue, tzinfo: Optional[datetime.tzinfo]) -> DateValue:
    """Convert a UTC value to local wall-clock time; date-only values pass through."""
    if not isinstance(value, DateTimeValue) or tzinfo is None:
        return value
    utc = value.to_datetime(datetime.timezone.utc)
    return DateTimeValue.from_datetime(utc.astimezone(tzinfo))
