"""Recurrence rule models, parsing and expansion iterators."""

from .compound_iterator import CompoundIterator
from .iterators import RecurrenceIterator
from .models import Frequency, Recurrence, RecurrenceBuilder
from .rdate_iterator import RDateIterator
from .rrule_iterator import RRuleIterator

__all__ = [
    "CompoundIterator",
    "Frequency",
    "RDateIterator",
    "RRuleIterator",
    "Recurrence",
    "RecurrenceBuilder",
    "RecurrenceIterator",
]
