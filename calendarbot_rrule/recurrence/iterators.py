"""Abstract base class for all recurrence iterators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from calendarbot_rrule.core.date_values import DateValue


class RecurrenceIterator(ABC):
    """Forward-only, strictly ascending stream of recurrence instances.

    Subclasses implement the pull interface; Python iteration is layered on top:

        while it.has_next():
            value = it.next()

    and ``for value in it`` are equivalent.
    """

    @abstractmethod
    def has_next(self) -> bool:
        """Whether another instance is available.

        Repeated calls without :meth:`next` do not advance the iterator.
        """

    @abstractmethod
    def next(self) -> Optional[DateValue]:
        """Return the next instance, or None once exhausted."""

    @abstractmethod
    def advance_to(self, target: DateValue) -> None:
        """Skip every instance strictly before ``target``.

        Args:
            target: Bound in UTC for timed instances, a plain date otherwise
        """

    def __iter__(self) -> RecurrenceIterator:
        return self

    def __next__(self) -> DateValue:
        value = self.next()
        if value is None:
            raise StopIteration
        return value
