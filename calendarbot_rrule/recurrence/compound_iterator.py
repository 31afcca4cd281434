"""Union of inclusion iterators minus the union of exclusion iterators."""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Sequence
from typing import Optional

from calendarbot_rrule.core.date_values import DateValue, comparable
from calendarbot_rrule.recurrence.iterators import RecurrenceIterator

# (comparable key, index of the source iterator, value)
_HeapEntry = tuple[int, int, DateValue]


def _pull(heap: list[_HeapEntry], index: int, iterator: RecurrenceIterator) -> None:
    """Push the next value of ``iterator`` onto ``heap``, if it has one."""
    value = iterator.next()
    if value is not None:
        heapq.heappush(heap, (comparable(value), index, value))


def _advance_heap(
    heap: list[_HeapEntry], iterators: Sequence[RecurrenceIterator], target: DateValue
) -> list[_HeapEntry]:
    target_key = comparable(target)
    rebuilt: list[_HeapEntry] = []
    for entry in heap:
        if entry[0] >= target_key:
            rebuilt.append(entry)
            continue
        iterator = iterators[entry[1]]
        iterator.advance_to(target)
        _pull(rebuilt, entry[1], iterator)
    heapq.heapify(rebuilt)
    return rebuilt


class CompoundIterator(RecurrenceIterator):
    """Merges inclusions in ascending order, drops duplicates and excluded values.

    Each source iterator contributes at most one buffered value to a heap, so
    infinite sources are consumed lazily. Exclusions are only advanced as far
    as the inclusion candidate being checked.
    """

    def __init__(
        self,
        inclusions: Iterable[RecurrenceIterator],
        exclusions: Iterable[RecurrenceIterator] = (),
    ) -> None:
        self._inclusions = list(inclusions)
        self._exclusions = list(exclusions)
        self._include_heap: list[_HeapEntry] = []
        self._exclude_heap: list[_HeapEntry] = []
        for i, iterator in enumerate(self._inclusions):
            _pull(self._include_heap, i, iterator)
        for i, iterator in enumerate(self._exclusions):
            _pull(self._exclude_heap, i, iterator)

        self._pending: Optional[DateValue] = None
        self._last_key: Optional[int] = None

    def _is_excluded(self, key: int, value: DateValue) -> bool:
        heap = self._exclude_heap
        while heap and heap[0][0] < key:
            _, i, _ = heapq.heappop(heap)
            iterator = self._exclusions[i]
            iterator.advance_to(value)
            _pull(heap, i, iterator)
        return bool(heap) and heap[0][0] == key

    def _fetch_next(self) -> Optional[DateValue]:
        while self._include_heap:
            key, i, value = heapq.heappop(self._include_heap)
            _pull(self._include_heap, i, self._inclusions[i])
            if self._last_key is not None and key <= self._last_key:
                continue
            self._last_key = key
            if self._is_excluded(key, value):
                continue
            return value
        return None

    def has_next(self) -> bool:
        if self._pending is None:
            self._pending = self._fetch_next()
        return self._pending is not None

    def next(self) -> Optional[DateValue]:
        if not self.has_next():
            return None
        value = self._pending
        self._pending = None
        return value

    def advance_to(self, target: DateValue) -> None:
        if self._pending is not None:
            if comparable(self._pending) >= comparable(target):
                return
            self._pending = None
        self._include_heap = _advance_heap(self._include_heap, self._inclusions, target)
        self._exclude_heap = _advance_heap(self._exclude_heap, self._exclusions, target)

    def __repr__(self) -> str:
        return f"CompoundIterator(inclusions={len(self._inclusions)}, exclusions={len(self._exclusions)})"
