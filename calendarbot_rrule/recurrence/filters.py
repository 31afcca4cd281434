"""Predicates for BYxxx parts that constrain, rather than generate, candidates.

Each factory returns a callable over a fully built candidate. Which BY parts
end up here depends on the frequency; see ``generators.build_generator_plan``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Callable

from calendarbot_rrule.core import time_utils
from calendarbot_rrule.core.date_values import DateTimeValue, DateValue
from calendarbot_rrule.core.weekday import Weekday, WeekdayNum

Predicate = Callable[[DateValue], bool]


def always_true(_value: DateValue) -> bool:
    return True


def all_of(predicates: Iterable[Predicate]) -> Predicate:
    """Conjunction of ``predicates``; the empty conjunction accepts everything."""
    checks = tuple(predicates)
    if not checks:
        return always_true
    if len(checks) == 1:
        return checks[0]

    def _all(value: DateValue) -> bool:
        return all(check(value) for check in checks)

    return _all


def by_day_filter(days: Iterable[WeekdayNum], weeks_in_year: bool) -> Predicate:
    """Accept days matching any BYDAY entry.

    Ordinals count within the year when ``weeks_in_year`` is set, otherwise
    within the month: ``2TU`` is the second Tuesday, ``-1FR`` the last Friday.
    """
    entries = tuple(days)

    def _by_day(value: DateValue) -> bool:
        dow = time_utils.day_of_week(value.year, value.month, value.day)
        if weeks_in_year:
            n_days = time_utils.year_length(value.year)
            instance = time_utils.day_of_year(value.year, value.month, value.day)
        else:
            n_days = time_utils.month_length(value.year, value.month)
            instance = value.day - 1

        # Occurrences of this weekday counted from either end of the period
        from_start = instance // 7 + 1
        from_end = -((n_days - 1 - instance) // 7 + 1)
        for entry in entries:
            if entry.wday != dow:
                continue
            if entry.num == 0 or entry.num in (from_start, from_end):
                return True
        return False

    return _by_day


def by_month_day_filter(month_days: Iterable[int]) -> Predicate:
    """Accept days of the month in ``month_days``; negatives count from month end."""
    wanted = tuple(month_days)

    def _by_month_day(value: DateValue) -> bool:
        n_days = time_utils.month_length(value.year, value.month)
        for day in wanted:
            if day < 0:
                day += n_days + 1
            if day == value.day:
                return True
        return False

    return _by_month_day


def by_year_day_filter(year_days: Iterable[int]) -> Predicate:
    """Accept days of the year in ``year_days`` (1-based, negatives from Dec 31)."""
    wanted = tuple(year_days)

    def _by_year_day(value: DateValue) -> bool:
        n_days = time_utils.year_length(value.year)
        doy = time_utils.day_of_year(value.year, value.month, value.day) + 1
        for day in wanted:
            if day < 0:
                day += n_days + 1
            if day == doy:
                return True
        return False

    return _by_year_day


def by_week_no_filter(week_nos: Iterable[int], wkst: Weekday) -> Predicate:
    """Accept days whose week of their own year is listed in ``week_nos``."""
    wanted = tuple(week_nos)

    def _by_week_no(value: DateValue) -> bool:
        start = time_utils.first_week_start(value.year, wkst)
        n_weeks = time_utils.week_count(value.year, wkst)
        ordinal = time_utils.to_ordinal(value.year, value.month, value.day)
        if not start <= ordinal < start + 7 * n_weeks:
            return False
        week = (ordinal - start) // 7 + 1
        return any(time_utils.resolve_week_number(w, n_weeks) == week for w in wanted)

    return _by_week_no


def by_month_filter(months: Iterable[int]) -> Predicate:
    wanted = frozenset(months)

    def _by_month(value: DateValue) -> bool:
        return value.month in wanted

    return _by_month


def week_interval_filter(interval: int, wkst: Weekday, dtstart: DateValue) -> Predicate:
    """Accept days in every ``interval``-th week counted from the week of ``dtstart``.

    Weeks start on ``wkst``, so FREQ=WEEKLY;INTERVAL=2 only produces dates in
    the right weeks even when BYDAY generates every matching day of the month.
    """
    week_start = time_utils.week_start_before(dtstart.date_part(), wkst)

    def _week_interval(value: DateValue) -> bool:
        weeks = time_utils.days_between(value, week_start) // 7
        return weeks % interval == 0

    return _week_interval


def _time_field_filter(values: Iterable[int], field: str, span: int) -> Predicate:
    wanted = frozenset(values)
    if wanted >= frozenset(range(span)):
        return always_true

    def _by_time_field(value: DateValue) -> bool:
        if not isinstance(value, DateTimeValue):
            return False
        return getattr(value, field) in wanted

    return _by_time_field


def by_hour_filter(hours: Iterable[int]) -> Predicate:
    return _time_field_filter(hours, "hour", 24)


def by_minute_filter(minutes: Iterable[int]) -> Predicate:
    return _time_field_filter(minutes, "minute", 60)


def by_second_filter(seconds: Iterable[int]) -> Predicate:
    return _time_field_filter(seconds, "second", 60)
