"""Weekday types used by BYDAY and WKST."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from calendarbot_rrule.rrule_exceptions import RRuleValueError


class Weekday(IntEnum):
    """Day of the week, numbered like ``datetime.date.weekday()``."""

    MO = 0
    TU = 1
    WE = 2
    TH = 3
    FR = 4
    SA = 5
    SU = 6

    @property
    def abbr(self) -> str:
        """Two-letter iCalendar abbreviation (``MO`` ... ``SU``)."""
        return self.name

    @classmethod
    def from_abbr(cls, abbr: str) -> Weekday:
        """Look up a weekday by its two-letter abbreviation (case-insensitive).

        Raises:
            RRuleValueError: If the abbreviation is not a weekday
        """
        try:
            return cls[abbr.strip().upper()]
        except KeyError as e:
            raise RRuleValueError(f"Unknown weekday: {abbr!r}") from e


@dataclass(frozen=True)
class WeekdayNum:
    """A BYDAY entry: a weekday with an optional ordinal.

    ``num == 0`` means every matching weekday in the period, a positive
    ``num`` counts from the start of the period and a negative one from the end.
    """

    num: int
    wday: Weekday

    def __post_init__(self) -> None:
        if not -53 <= self.num <= 53:
            raise RRuleValueError(f"Weekday ordinal out of range: {self.num}")
        if not isinstance(self.wday, Weekday):
            object.__setattr__(self, "wday", Weekday(self.wday))

    def __str__(self) -> str:
        if self.num == 0:
            return self.wday.abbr
        return f"{self.num}{self.wday.abbr}"
