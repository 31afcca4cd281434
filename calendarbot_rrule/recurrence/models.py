"""Recurrence specification models for calendarbot_rrule."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from calendarbot_rrule.core.date_values import DateTimeValue, DateValue
from calendarbot_rrule.core.weekday import Weekday, WeekdayNum
from calendarbot_rrule.rrule_exceptions import RRuleValueError


class Frequency(str, Enum):
    """FREQ values, declared from finest to coarsest."""

    SECONDLY = "SECONDLY"
    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"

    @property
    def rank(self) -> int:
        """Position from finest (SECONDLY = 0) to coarsest (YEARLY = 6)."""
        return list(Frequency).index(self)

    def is_finer_than(self, other: Frequency) -> bool:
        return self.rank < other.rank


# Inclusive bounds per BY-list; signed lists also accept the negated range.
_BY_RANGES: dict[str, tuple[int, int, bool]] = {
    "by_second": (0, 59, False),
    "by_minute": (0, 59, False),
    "by_hour": (0, 23, False),
    "by_month_day": (1, 31, True),
    "by_year_day": (1, 366, True),
    "by_week_no": (1, 53, True),
    "by_month": (1, 12, False),
    "by_set_pos": (1, 366, True),
}


class Recurrence(BaseModel):
    """An immutable RRULE/EXRULE: frequency, bounds and BYxxx lists.

    COUNT and UNTIL are mutually exclusive by convention only; when both are
    present the iterator honours COUNT.
    """

    frequency: Frequency
    interval: int = Field(default=1, description="Frequency multiplier; non-positive values act as 1")
    count: Optional[int] = Field(default=None, description="Number of instances to produce")
    until: Optional[DateValue] = Field(default=None, description="Inclusive bound, UTC when timed")
    workweek_starts: Weekday = Weekday.MO

    by_second: tuple[int, ...] = ()
    by_minute: tuple[int, ...] = ()
    by_hour: tuple[int, ...] = ()
    by_day: tuple[WeekdayNum, ...] = ()
    by_month_day: tuple[int, ...] = ()
    by_year_day: tuple[int, ...] = ()
    by_week_no: tuple[int, ...] = ()
    by_month: tuple[int, ...] = ()
    by_set_pos: tuple[int, ...] = ()

    # Unrecognized X- parts as (name, values), in order of appearance
    x_rules: tuple[tuple[str, tuple[str, ...]], ...] = ()

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @field_validator(
        "by_second",
        "by_minute",
        "by_hour",
        "by_month_day",
        "by_year_day",
        "by_week_no",
        "by_month",
        "by_set_pos",
    )
    @classmethod
    def _check_range(cls, values: tuple[int, ...], info: ValidationInfo) -> tuple[int, ...]:
        low, high, signed = _BY_RANGES[info.field_name]
        for value in values:
            magnitude = abs(value) if signed else value
            if not low <= magnitude <= high:
                raise ValueError(f"{info.field_name} value out of range: {value}")
        return values

    @field_validator("count")
    @classmethod
    def _check_count(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError(f"count must not be negative: {value}")
        return value

    def get_x_rule(self, name: str) -> list[tuple[str, ...]]:
        """Value lists of each X- part named ``name`` (case-insensitive), in order."""
        wanted = name.upper()
        return [values for key, values in self.x_rules if key.upper() == wanted]

    def to_rrule_string(self) -> str:
        """Render as an RRULE value, e.g. ``FREQ=WEEKLY;COUNT=10;BYDAY=TU,TH``."""
        parts = [f"FREQ={self.frequency.value}"]
        if self.until is not None:
            parts.append(f"UNTIL={_format_until(self.until)}")
        if self.count is not None:
            parts.append(f"COUNT={self.count}")
        if self.interval != 1:
            parts.append(f"INTERVAL={self.interval}")

        int_lists = (
            ("BYSECOND", self.by_second),
            ("BYMINUTE", self.by_minute),
            ("BYHOUR", self.by_hour),
        )
        for key, values in int_lists:
            if values:
                parts.append(f"{key}={_join(values)}")
        if self.by_day:
            parts.append(f"BYDAY={_join(self.by_day)}")

        int_lists = (
            ("BYMONTHDAY", self.by_month_day),
            ("BYYEARDAY", self.by_year_day),
            ("BYWEEKNO", self.by_week_no),
            ("BYMONTH", self.by_month),
            ("BYSETPOS", self.by_set_pos),
        )
        for key, values in int_lists:
            if values:
                parts.append(f"{key}={_join(values)}")

        if self.workweek_starts != Weekday.MO:
            parts.append(f"WKST={self.workweek_starts.abbr}")
        for key, values in self.x_rules:
            parts.append(f"{key}={_join(values)}")
        return ";".join(parts)

    def __str__(self) -> str:
        return self.to_rrule_string()


def _join(values) -> str:
    return ",".join(str(v) for v in values)


def _format_until(until: DateValue) -> str:
    if isinstance(until, DateTimeValue):
        return f"{until}Z"
    return str(until)


class RecurrenceBuilder:
    """Fluent builder for :class:`Recurrence`.

    Example:
        >>> rule = (RecurrenceBuilder(Frequency.WEEKLY)
        ...         .interval(2).by_day(Weekday.TU, Weekday.TH).count(8).build())
        >>> rule.to_rrule_string()
        'FREQ=WEEKLY;COUNT=8;INTERVAL=2;BYDAY=TU,TH'
    """

    def __init__(self, frequency: Union[Frequency, str]) -> None:
        self._fields: dict[str, object] = {"frequency": frequency}
        self._x_rules: list[tuple[str, tuple[str, ...]]] = []

    def interval(self, interval: int) -> RecurrenceBuilder:
        self._fields["interval"] = interval
        return self

    def count(self, count: Optional[int]) -> RecurrenceBuilder:
        self._fields["count"] = count
        return self

    def until(self, until: Optional[DateValue]) -> RecurrenceBuilder:
        self._fields["until"] = until
        return self

    def workweek_starts(self, day: Weekday) -> RecurrenceBuilder:
        self._fields["workweek_starts"] = day
        return self

    def by_second(self, *seconds: int) -> RecurrenceBuilder:
        self._fields["by_second"] = seconds
        return self

    def by_minute(self, *minutes: int) -> RecurrenceBuilder:
        self._fields["by_minute"] = minutes
        return self

    def by_hour(self, *hours: int) -> RecurrenceBuilder:
        self._fields["by_hour"] = hours
        return self

    def by_day(self, *days: Union[Weekday, WeekdayNum]) -> RecurrenceBuilder:
        """Add weekdays; plain :class:`Weekday` values mean every such day."""
        entries = list(self._fields.get("by_day", ()))  # type: ignore[call-overload]
        for day in days:
            entries.append(day if isinstance(day, WeekdayNum) else WeekdayNum(0, Weekday(day)))
        self._fields["by_day"] = tuple(entries)
        return self

    def by_day_num(self, num: int, day: Weekday) -> RecurrenceBuilder:
        """Add an ordinal weekday, e.g. ``by_day_num(-1, Weekday.FR)`` for the last Friday."""
        return self.by_day(WeekdayNum(num, day))

    def by_month_day(self, *days: int) -> RecurrenceBuilder:
        self._fields["by_month_day"] = days
        return self

    def by_year_day(self, *days: int) -> RecurrenceBuilder:
        self._fields["by_year_day"] = days
        return self

    def by_week_no(self, *weeks: int) -> RecurrenceBuilder:
        self._fields["by_week_no"] = weeks
        return self

    def by_month(self, *months: int) -> RecurrenceBuilder:
        self._fields["by_month"] = months
        return self

    def by_set_pos(self, *positions: int) -> RecurrenceBuilder:
        self._fields["by_set_pos"] = positions
        return self

    def x_rule(self, name: str, *values: str) -> RecurrenceBuilder:
        self._x_rules.append((name.upper(), values))
        return self

    def build(self) -> Recurrence:
        """Create the immutable specification.

        Raises:
            RRuleValueError: If a value is out of range or of the wrong type
        """
        try:
            return Recurrence(**self._fields, x_rules=tuple(self._x_rules))
        except ValidationError as e:
            reasons = "; ".join(error["msg"] for error in e.errors())
            raise RRuleValueError(f"Invalid recurrence: {reasons}") from e
