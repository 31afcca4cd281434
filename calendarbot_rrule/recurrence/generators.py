"""Field generators and the generator plan for one recurrence rule.

A generator owns one field of the shared :class:`DTBuilder` cursor. Each call
to ``generate`` writes the next candidate value for that field within the
period fixed by the coarser fields and returns True, or returns False once
the period is exhausted so the caller rolls the next coarser generator.

Generators remember the period they last worked in. When a coarser field
changes they start over from the beginning of the new period; serial
generators instead keep their phase so that INTERVAL counts across periods.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from calendarbot_rrule.core import time_utils
from calendarbot_rrule.core.date_values import DateTimeValue, DateValue
from calendarbot_rrule.core.dt_builder import DTBuilder
from calendarbot_rrule.core.weekday import Weekday, WeekdayNum
from calendarbot_rrule.recurrence import filters
from calendarbot_rrule.recurrence.filters import Predicate
from calendarbot_rrule.recurrence.models import Frequency, Recurrence
from calendarbot_rrule.rrule_exceptions import GenerationStopped

logger = logging.getLogger(__name__)


class Generator(Protocol):
    """Advances one field of the cursor."""

    def generate(self, builder: DTBuilder) -> bool:
        """Write the next value into ``builder``; False when the period is exhausted."""
        ...


# ---------------------------------------------------------------------------
# Serial generators: step by INTERVAL units from the start value
# ---------------------------------------------------------------------------


class SerialYearGenerator:
    """Yields every ``interval``-th year, with a guard against barren rules.

    Every call counts as one roll. When ``max_empty_rolls`` calls pass without
    :meth:`work_done` being called, :class:`GenerationStopped` is raised.
    """

    def __init__(self, interval: int, dtstart: DateValue, max_empty_rolls: int) -> None:
        self.interval = interval
        self._year = dtstart.year - interval
        self._max_empty_rolls = max_empty_rolls
        self._rolls_left = max_empty_rolls

    def generate(self, builder: DTBuilder) -> bool:
        self._rolls_left -= 1
        if self._rolls_left < 0:
            raise GenerationStopped(
                f"No instance in {self._max_empty_rolls} consecutive year rolls (last year {self._year})"
            )
        self._year += self.interval
        builder.year = self._year
        return True

    def work_done(self) -> None:
        """Reset the guard after the rule produced an instance."""
        self._rolls_left = self._max_empty_rolls


class SerialMonthGenerator:
    def __init__(self, interval: int, dtstart: DateValue) -> None:
        self.interval = interval
        year_carry, month0 = divmod(dtstart.month - 1 - interval, 12)
        self._year = dtstart.year + year_carry
        self._month = month0 + 1

    def generate(self, builder: DTBuilder) -> bool:
        if self._year != builder.year:
            months_between = (builder.year - self._year) * 12 - (self._month - 1)
            month = (self.interval - months_between % self.interval) % self.interval + 1
            if month > 12:
                return False
            self._year = builder.year
        else:
            month = self._month + self.interval
            if month > 12:
                return False
        self._month = month
        builder.month = month
        return True


class SerialDayGenerator:
    def __init__(self, interval: int, dtstart: DateValue) -> None:
        self.interval = interval
        anchor = time_utils.add_days(dtstart.date_part(), -interval)
        self._year, self._month, self._day = anchor.year, anchor.month, anchor.day

    def generate(self, builder: DTBuilder) -> bool:
        if self._year == builder.year and self._month == builder.month:
            day = self._day + self.interval
            if day > time_utils.month_length(self._year, self._month):
                return False
        else:
            if self.interval == 1:
                day = 1
            else:
                days_between = time_utils.to_ordinal(builder.year, builder.month, 1) - time_utils.to_ordinal(
                    self._year, self._month, self._day
                )
                day = (self.interval - days_between % self.interval) % self.interval + 1
                if day > time_utils.month_length(builder.year, builder.month):
                    return False
            self._year, self._month = builder.year, builder.month
        self._day = day
        builder.day = day
        return True


def _time_anchor(dtstart: DateValue, **delta: int) -> DTBuilder:
    anchor = DTBuilder.from_value(dtstart)
    for name, amount in delta.items():
        setattr(anchor, name, getattr(anchor, name) - amount)
    anchor.normalize()
    return anchor


class SerialHourGenerator:
    def __init__(self, interval: int, dtstart: DateValue) -> None:
        self.interval = interval
        anchor = _time_anchor(dtstart, hour=interval)
        self._date = (anchor.year, anchor.month, anchor.day)
        self._hour = anchor.hour

    def generate(self, builder: DTBuilder) -> bool:
        date = (builder.year, builder.month, builder.day)
        if date != self._date:
            hours_between = _days_between(date, self._date) * 24 - self._hour
            hour = (self.interval - hours_between % self.interval) % self.interval
            if hour > 23:
                return False
            self._date = date
        else:
            hour = self._hour + self.interval
            if hour > 23:
                return False
        self._hour = hour
        builder.hour = hour
        return True


class SerialMinuteGenerator:
    def __init__(self, interval: int, dtstart: DateValue) -> None:
        self.interval = interval
        anchor = _time_anchor(dtstart, minute=interval)
        self._date = (anchor.year, anchor.month, anchor.day)
        self._hour = anchor.hour
        self._minute = anchor.minute

    def generate(self, builder: DTBuilder) -> bool:
        date = (builder.year, builder.month, builder.day)
        if date != self._date or builder.hour != self._hour:
            hours_between = _days_between(date, self._date) * 24 + builder.hour - self._hour
            minutes_between = hours_between * 60 - self._minute
            minute = (self.interval - minutes_between % self.interval) % self.interval
            if minute > 59:
                return False
            self._date = date
            self._hour = builder.hour
        else:
            minute = self._minute + self.interval
            if minute > 59:
                return False
        self._minute = minute
        builder.minute = minute
        return True


class SerialSecondGenerator:
    def __init__(self, interval: int, dtstart: DateValue) -> None:
        self.interval = interval
        anchor = _time_anchor(dtstart, second=interval)
        self._date = (anchor.year, anchor.month, anchor.day)
        self._hour = anchor.hour
        self._minute = anchor.minute
        self._second = anchor.second

    def generate(self, builder: DTBuilder) -> bool:
        date = (builder.year, builder.month, builder.day)
        if date != self._date or builder.hour != self._hour or builder.minute != self._minute:
            minutes_between = (
                _days_between(date, self._date) * 24 + builder.hour - self._hour
            ) * 60 + builder.minute - self._minute
            seconds_between = minutes_between * 60 - self._second
            second = (self.interval - seconds_between % self.interval) % self.interval
            if second > 59:
                return False
            self._date = date
            self._hour = builder.hour
            self._minute = builder.minute
        else:
            second = self._second + self.interval
            if second > 59:
                return False
        self._second = second
        builder.second = second
        return True


def _days_between(a: tuple[int, int, int], b: tuple[int, int, int]) -> int:
    return time_utils.to_ordinal(*a) - time_utils.to_ordinal(*b)


# ---------------------------------------------------------------------------
# List generators: step through an explicit BYxxx list
# ---------------------------------------------------------------------------


class ByMonthGenerator:
    def __init__(self, months: tuple[int, ...], dtstart: DateValue) -> None:
        self.months = time_utils.uniquify(months)
        self._year = dtstart.year
        self._i = 0

    def generate(self, builder: DTBuilder) -> bool:
        if self._year != builder.year:
            self._year = builder.year
            self._i = 0
        if self._i >= len(self.months):
            return False
        builder.month = self.months[self._i]
        self._i += 1
        return True


class _DayListGenerator:
    """Steps through the matching days of each month, computed once per month."""

    def __init__(self) -> None:
        self._period: Optional[tuple[int, int]] = None
        self._days: tuple[int, ...] = ()
        self._i = 0

    def days_in_month(self, year: int, month: int) -> tuple[int, ...]:
        raise NotImplementedError

    def generate(self, builder: DTBuilder) -> bool:
        period = (builder.year, builder.month)
        if period != self._period:
            self._period = period
            self._days = self.days_in_month(builder.year, builder.month)
            self._i = 0
        if self._i >= len(self._days):
            return False
        builder.day = self._days[self._i]
        self._i += 1
        return True


class ByMonthDayGenerator(_DayListGenerator):
    def __init__(self, month_days: tuple[int, ...]) -> None:
        super().__init__()
        self.month_days = time_utils.uniquify(month_days)

    def days_in_month(self, year: int, month: int) -> tuple[int, ...]:
        n_days = time_utils.month_length(year, month)
        days = []
        for day in self.month_days:
            if day < 0:
                day += n_days + 1
            if 1 <= day <= n_days:
                days.append(day)
        return time_utils.uniquify(days)


class ByYearDayGenerator(_DayListGenerator):
    def __init__(self, year_days: tuple[int, ...]) -> None:
        super().__init__()
        self.year_days = time_utils.uniquify(year_days)

    def days_in_month(self, year: int, month: int) -> tuple[int, ...]:
        n_days = time_utils.year_length(year)
        month_offset = time_utils.day_of_year(year, month, 1)
        n_days_in_month = time_utils.month_length(year, month)
        days = []
        for year_day in self.year_days:
            doy = year_day - 1 if year_day > 0 else n_days + year_day
            if 0 <= doy < n_days and 0 <= doy - month_offset < n_days_in_month:
                days.append(doy - month_offset + 1)
        return time_utils.uniquify(days)


class ByDayGenerator(_DayListGenerator):
    """Days matching BYDAY entries; ordinals count in the month or in the year."""

    def __init__(self, days: tuple[WeekdayNum, ...], weeks_in_year: bool) -> None:
        super().__init__()
        self.days = days
        self.weeks_in_year = weeks_in_year

    def days_in_month(self, year: int, month: int) -> tuple[int, ...]:
        n_days_in_month = time_utils.month_length(year, month)
        month_dow0 = time_utils.first_day_of_week_in_month(year, month)
        if self.weeks_in_year:
            n_days = time_utils.year_length(year)
            dow0 = time_utils.first_day_of_week_in_month(year, 1)
            d0 = time_utils.day_of_year(year, month, 1)
        else:
            n_days = n_days_in_month
            dow0 = month_dow0
            d0 = 0

        days = []
        for entry in self.days:
            if entry.num == 0:
                first = 1 + (entry.wday - month_dow0) % 7
                days.extend(range(first, n_days_in_month + 1, 7))
            else:
                day = time_utils.day_num_to_date(dow0, n_days, entry.num, entry.wday, d0, n_days_in_month)
                if day:
                    days.append(day)
        return time_utils.uniquify(days)


class ByWeekNoGenerator(_DayListGenerator):
    """Days of the month falling in the listed weeks of the year.

    Only the month's own year numbering is used: the days of a week that
    belongs to a neighbouring year are never produced.
    """

    def __init__(self, week_nos: tuple[int, ...], wkst: Weekday) -> None:
        super().__init__()
        self.week_nos = time_utils.uniquify(week_nos)
        self.wkst = wkst

    def days_in_month(self, year: int, month: int) -> tuple[int, ...]:
        start = time_utils.first_week_start(year, self.wkst)
        n_weeks = time_utils.week_count(year, self.wkst)
        weeks = {time_utils.resolve_week_number(w, n_weeks) for w in self.week_nos} - {0}
        if not weeks:
            return ()

        first = time_utils.to_ordinal(year, month, 1)
        days = []
        for day in range(1, time_utils.month_length(year, month) + 1):
            offset = first + day - 1 - start
            if 0 <= offset < 7 * n_weeks and offset // 7 + 1 in weeks:
                days.append(day)
        return tuple(days)


class _TimeListGenerator:
    """Steps through a sorted list of hours, minutes or seconds per period."""

    field_name = ""

    def __init__(self, values: tuple[int, ...]) -> None:
        self.values = time_utils.uniquify(values)
        self._period: Optional[tuple[int, ...]] = None
        self._i = 0

    @property
    def single_value(self) -> Optional[int]:
        """The only value, when the list has exactly one entry."""
        return self.values[0] if len(self.values) == 1 else None

    def period_of(self, builder: DTBuilder) -> tuple[int, ...]:
        raise NotImplementedError

    def generate(self, builder: DTBuilder) -> bool:
        period = self.period_of(builder)
        if period != self._period:
            self._period = period
            self._i = 0
        if self._i >= len(self.values):
            return False
        setattr(builder, self.field_name, self.values[self._i])
        self._i += 1
        return True


class ByHourGenerator(_TimeListGenerator):
    field_name = "hour"

    def period_of(self, builder: DTBuilder) -> tuple[int, ...]:
        return (builder.year, builder.month, builder.day)


class ByMinuteGenerator(_TimeListGenerator):
    field_name = "minute"

    def period_of(self, builder: DTBuilder) -> tuple[int, ...]:
        return (builder.year, builder.month, builder.day, builder.hour)


class BySecondGenerator(_TimeListGenerator):
    field_name = "second"

    def period_of(self, builder: DTBuilder) -> tuple[int, ...]:
        return (builder.year, builder.month, builder.day, builder.hour, builder.minute)


# ---------------------------------------------------------------------------
# Generator plan: which BY parts generate and which filter, per frequency
# ---------------------------------------------------------------------------


@dataclass
class GeneratorPlan:
    """Generators, filters and BYSETPOS positions wired for one rule."""

    frequency: Frequency
    wkst: Weekday
    year: SerialYearGenerator
    month: Generator
    day: Generator
    hour: Generator
    minute: Generator
    second: Generator
    filters: list[Predicate] = field(default_factory=list)
    by_set_pos: tuple[int, ...] = ()
    counted: bool = False
    description: list[str] = field(default_factory=list)

    @property
    def can_shortcut_advance(self) -> bool:
        """Whether ``advance_to`` may skip whole years and months without generating.

        COUNT must see every instance, and a BYSETPOS set is only complete
        when its whole period was generated.
        """
        return not self.by_set_pos and not self.counted


def filter_by_set_pos(members: tuple[int, ...], set_pos: tuple[int, ...]) -> tuple[int, ...]:
    """Apply BYSETPOS positions to a sorted BY list (1-based, negatives from the end)."""
    members = time_utils.uniquify(members)
    selected = set()
    for pos in set_pos:
        if pos == 0:
            continue
        index = pos + len(members) if pos < 0 else pos - 1
        if 0 <= index < len(members):
            selected.add(members[index])
    return time_utils.uniquify(selected)


def set_pos_period_start(frequency: Frequency, dtstart: DateValue, wkst: Weekday) -> DateValue:
    """Start of the BYSETPOS period containing ``dtstart``.

    A set is only meaningful when complete, so generation begins at the start
    of the year, month or week rather than at ``dtstart``.
    """
    if frequency == Frequency.YEARLY:
        return DateValue(dtstart.year, 1, 1)
    if frequency == Frequency.MONTHLY:
        return DateValue(dtstart.year, dtstart.month, 1)
    if frequency == Frequency.WEEKLY:
        return time_utils.week_start_before(dtstart.date_part(), wkst)
    return dtstart.date_part()


def build_generator_plan(
    recurrence: Recurrence, dtstart: DateValue, max_empty_year_rolls: int
) -> GeneratorPlan:
    """Partition the rule's BY parts into generators and filters.

    Args:
        recurrence: The rule
        dtstart: Start value in local wall-clock time
        max_empty_year_rolls: Exhaustion guard for the year generator

    Returns:
        GeneratorPlan ready to drive an instance generator
    """
    freq = recurrence.frequency
    interval = recurrence.interval if recurrence.interval > 0 else 1
    wkst = recurrence.workweek_starts

    by_day = recurrence.by_day
    by_month_day = recurrence.by_month_day
    by_year_day = recurrence.by_year_day
    by_week_no = recurrence.by_week_no
    by_month = recurrence.by_month
    by_hour = recurrence.by_hour
    by_minute = recurrence.by_minute
    by_second = recurrence.by_second
    by_set_pos = recurrence.by_set_pos
    description: list[str] = []

    # Sets are not computed below DAILY; fold the positions into the BY list
    if by_set_pos and freq.is_finer_than(Frequency.DAILY):
        if freq == Frequency.HOURLY and by_hour and len(by_minute) <= 1 and len(by_second) <= 1:
            by_hour = filter_by_set_pos(by_hour, by_set_pos)
        elif freq == Frequency.MINUTELY and by_minute and len(by_hour) <= 1 and len(by_second) <= 1:
            by_minute = filter_by_set_pos(by_minute, by_set_pos)
        elif freq == Frequency.SECONDLY and by_second and len(by_hour) <= 1 and len(by_minute) <= 1:
            by_second = filter_by_set_pos(by_second, by_set_pos)
        else:
            logger.debug("Ignoring BYSETPOS=%s for %s rule", list(by_set_pos), freq.value)
            by_set_pos = ()
        if by_set_pos:
            description.append(f"BYSETPOS folded into {freq.value} BY list")
        by_set_pos = ()

    period_start = set_pos_period_start(freq, dtstart, wkst) if by_set_pos else dtstart
    plan_filters: list[Predicate] = []

    # Day level
    day_gen: Optional[Generator] = None
    month_gen: Optional[Generator] = None
    year_scoped = freq == Frequency.YEARLY and not by_month

    if freq in (Frequency.YEARLY, Frequency.MONTHLY):
        if freq == Frequency.YEARLY and by_year_day:
            day_gen = ByYearDayGenerator(by_year_day)
            by_year_day = ()
            description.append("day: BYYEARDAY")
        elif by_month_day:
            day_gen = ByMonthDayGenerator(by_month_day)
            by_month_day = ()
            description.append("day: BYMONTHDAY")
        elif freq == Frequency.YEARLY and by_week_no:
            day_gen = ByWeekNoGenerator(by_week_no, wkst)
            by_week_no = ()
            description.append("day: BYWEEKNO")
        elif by_day:
            day_gen = ByDayGenerator(by_day, year_scoped)
            by_day = ()
            description.append("day: BYDAY (%s)" % ("year" if year_scoped else "month"))
        elif freq == Frequency.YEARLY and not by_month:
            # Plain yearly rule: the month and day of the start value
            month_gen = ByMonthGenerator((dtstart.month,), dtstart)
            description.append("month: start month")
    elif freq == Frequency.WEEKLY:
        if by_day:
            day_gen = ByDayGenerator(by_day, False)
            by_day = ()
            if interval > 1:
                plan_filters.append(filters.week_interval_filter(interval, wkst, dtstart))
            description.append("day: BYDAY (week)")
        else:
            day_gen = SerialDayGenerator(interval * 7, dtstart)
            description.append(f"day: serial every {interval * 7} days")
    elif freq == Frequency.DAILY:
        day_gen = SerialDayGenerator(interval, dtstart)
        description.append(f"day: serial every {interval} days")
    else:
        day_gen = SerialDayGenerator(1, dtstart)
        description.append("day: serial daily")

    if day_gen is None:
        day_gen = ByMonthDayGenerator((dtstart.day,))
        description.append("day: start day of month")

    # Remaining day-level parts constrain the generated days
    if by_day:
        plan_filters.append(filters.by_day_filter(by_day, year_scoped))
    if by_month_day:
        plan_filters.append(filters.by_month_day_filter(by_month_day))
    if by_year_day:
        plan_filters.append(filters.by_year_day_filter(by_year_day))
    if by_week_no:
        plan_filters.append(filters.by_week_no_filter(by_week_no, wkst))

    # Month level
    if month_gen is None:
        if by_month and not (freq == Frequency.MONTHLY and interval > 1):
            month_gen = ByMonthGenerator(by_month, period_start)
            description.append("month: BYMONTH")
        else:
            month_interval = interval if freq == Frequency.MONTHLY else 1
            month_gen = SerialMonthGenerator(month_interval, period_start)
            description.append(f"month: serial every {month_interval} months")
            if by_month:
                plan_filters.append(filters.by_month_filter(by_month))

    year_interval = interval if freq == Frequency.YEARLY else 1
    year_gen = SerialYearGenerator(year_interval, period_start, max_empty_year_rolls)

    # Time of day
    start_hour, start_minute, start_second = _time_of(dtstart)
    if freq == Frequency.HOURLY:
        hour_gen: Generator = SerialHourGenerator(interval, dtstart)
        if by_hour:
            plan_filters.append(filters.by_hour_filter(by_hour))
    elif freq.is_finer_than(Frequency.HOURLY) and not by_hour:
        hour_gen = SerialHourGenerator(1, dtstart)
    else:
        hour_gen = ByHourGenerator(by_hour or (start_hour,))

    if freq == Frequency.MINUTELY:
        minute_gen: Generator = SerialMinuteGenerator(interval, dtstart)
        if by_minute:
            plan_filters.append(filters.by_minute_filter(by_minute))
    elif freq.is_finer_than(Frequency.MINUTELY) and not by_minute:
        minute_gen = SerialMinuteGenerator(1, dtstart)
    else:
        minute_gen = ByMinuteGenerator(by_minute or (start_minute,))

    if freq == Frequency.SECONDLY:
        second_gen: Generator = SerialSecondGenerator(interval, dtstart)
        if by_second:
            plan_filters.append(filters.by_second_filter(by_second))
    else:
        second_gen = BySecondGenerator(by_second or (start_second,))

    plan = GeneratorPlan(
        frequency=freq,
        wkst=wkst,
        year=year_gen,
        month=month_gen,
        day=day_gen,
        hour=hour_gen,
        minute=minute_gen,
        second=second_gen,
        filters=plan_filters,
        by_set_pos=by_set_pos,
        counted=recurrence.count is not None,
        description=description,
    )
    logger.debug(
        "Generator plan for %s: %s; %d filter(s); BYSETPOS=%s",
        freq.value,
        ", ".join(description),
        len(plan_filters),
        list(by_set_pos) or "-",
    )
    return plan


def _time_of(value: DateValue) -> tuple[int, int, int]:
    if isinstance(value, DateTimeValue):
        return value.hour, value.minute, value.second
    return 0, 0, 0
