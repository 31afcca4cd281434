"""Calendar values, date arithmetic and timezone resolution."""

from .date_values import DateTimeValue, DateValue, comparable
from .dt_builder import DTBuilder
from .weekday import Weekday, WeekdayNum

__all__ = ["DTBuilder", "DateTimeValue", "DateValue", "Weekday", "WeekdayNum", "comparable"]
