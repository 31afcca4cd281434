"""Instance generators: drive the field generators to whole candidate instances."""

from __future__ import annotations

import logging
from typing import Optional

from calendarbot_rrule.core import time_utils
from calendarbot_rrule.core.dt_builder import DTBuilder
from calendarbot_rrule.core.weekday import Weekday
from calendarbot_rrule.recurrence.filters import Predicate
from calendarbot_rrule.recurrence.generators import Generator, GeneratorPlan
from calendarbot_rrule.recurrence.models import Frequency
from calendarbot_rrule.rrule_exceptions import GenerationStopped

logger = logging.getLogger(__name__)

# (year, month, day, hour, minute, second) copied out of the cursor
Snapshot = tuple[int, int, int, int, int, int]


class SerialInstanceGenerator:
    """Walks the generator chain from finest to coarsest field.

    A generator that succeeds hands over to the next finer one; one that is
    exhausted hands back to the next coarser one, which moves to the next
    period. A candidate exists once the finest generator succeeds. Candidates
    rejected by ``accept`` are skipped.

    When every time-of-day generator has exactly one value the chain stops at
    the day level and the fixed time is written afterwards.
    """

    def __init__(
        self,
        year: Generator,
        month: Generator,
        day: Generator,
        hour: Generator,
        minute: Generator,
        second: Generator,
        accept: Predicate,
    ) -> None:
        fixed = tuple(getattr(gen, "single_value", None) for gen in (hour, minute, second))
        if None in fixed:
            self._chain: tuple[Generator, ...] = (second, minute, hour, day, month, year)
            self._fixed_time: Optional[tuple[int, ...]] = None
        else:
            self._chain = (day, month, year)
            self._fixed_time = fixed
        self._day_level = self._chain.index(day)
        self._level = self._day_level
        self._accept = accept

    def restart_from_day_level(self) -> None:
        """Continue from the day generator after the month or year was moved externally."""
        self._level = self._day_level

    def generate(self, builder: DTBuilder) -> bool:
        """Advance ``builder`` to the next accepted candidate.

        Returns:
            False when the coarsest generator is exhausted
        """
        while True:
            level = self._level
            while True:
                if self._chain[level].generate(builder):
                    if level == 0:
                        break
                    level -= 1
                else:
                    level += 1
                    if level == len(self._chain):
                        return False
            self._level = 0

            if self._fixed_time is not None:
                builder.hour, builder.minute, builder.second = self._fixed_time
            if self._accept(builder.to_datetime()):
                return True


def snapshot(builder: DTBuilder) -> Snapshot:
    return (builder.year, builder.month, builder.day, builder.hour, builder.minute, builder.second)


def restore(builder: DTBuilder, fields: Snapshot) -> None:
    builder.year, builder.month, builder.day, builder.hour, builder.minute, builder.second = fields


def period_key(frequency: Frequency, wkst: Weekday, fields: Snapshot) -> tuple[int, ...]:
    """Identify the BYSETPOS period (year, month, week or day) a candidate belongs to."""
    year, month, day = fields[:3]
    if frequency == Frequency.YEARLY:
        return (year,)
    if frequency == Frequency.MONTHLY:
        return (year, month)
    if frequency == Frequency.WEEKLY:
        dow = time_utils.day_of_week(year, month, day)
        return (time_utils.to_ordinal(year, month, day) - time_utils.week_start_offset(dow, wkst),)
    return (year, month, day)


class BySetPosInstanceGenerator:
    """Collects each period's candidates and yields the ones at the BYSETPOS positions.

    Positions are 1-based from the start of the period or negative from its
    end. When every position is positive the rest of a period is skipped once
    the largest position has been reached.
    """

    def __init__(self, serial: SerialInstanceGenerator, plan: GeneratorPlan) -> None:
        self._serial = serial
        self._plan = plan
        self._positions = time_utils.uniquify(p for p in plan.by_set_pos if p != 0)
        self._all_positive = all(p > 0 for p in self._positions)
        self._max_position = max(self._positions, default=0)

        self._pushback: Optional[Snapshot] = None
        # Cursor position left by a period skip; selected values overwrite the cursor
        self._resume: Optional[Snapshot] = None
        self._selected: list[Snapshot] = []
        self._i = 0
        self._done = False

    def generate(self, builder: DTBuilder) -> bool:
        while self._i >= len(self._selected):
            if self._done:
                return False
            batch = self._next_batch(builder)
            if not batch:
                return False
            self._selected = self._select(batch)
            self._i = 0

        restore(builder, self._selected[self._i])
        self._i += 1
        return True

    def _key(self, fields: Snapshot) -> tuple[int, ...]:
        return period_key(self._plan.frequency, self._plan.wkst, fields)

    def _next_batch(self, builder: DTBuilder) -> list[Snapshot]:
        if self._pushback is not None:
            first = self._pushback
            self._pushback = None
            restore(builder, first)
        else:
            if self._resume is not None:
                restore(builder, self._resume)
                self._resume = None
            if not self._serial.generate(builder):
                self._done = True
                return []
            first = snapshot(builder)

        key = self._key(first)
        batch = [first]
        try:
            while True:
                if self._all_positive and len(batch) >= self._max_position:
                    self._skip_rest_of_period(builder, key)
                    break
                if not self._serial.generate(builder):
                    self._done = True
                    break
                fields = snapshot(builder)
                if self._key(fields) != key:
                    self._pushback = fields
                    break
                batch.append(fields)
        except GenerationStopped as e:
            logger.warning("BYSETPOS generation stopped after a partial period: %s", e)
            self._done = True
        return batch

    def _skip_rest_of_period(self, builder: DTBuilder, key: tuple[int, ...]) -> None:
        plan = self._plan
        if plan.frequency == Frequency.YEARLY:
            plan.year.generate(builder)
            while not plan.month.generate(builder):
                plan.year.generate(builder)
            self._serial.restart_from_day_level()
            self._resume = snapshot(builder)
        elif plan.frequency == Frequency.MONTHLY:
            while not plan.month.generate(builder):
                plan.year.generate(builder)
            self._serial.restart_from_day_level()
            self._resume = snapshot(builder)
        else:
            while self._serial.generate(builder):
                fields = snapshot(builder)
                if self._key(fields) != key:
                    self._pushback = fields
                    return
            self._done = True

    def _select(self, batch: list[Snapshot]) -> list[Snapshot]:
        size = len(batch)
        indices = set()
        for position in self._positions:
            index = position - 1 if position > 0 else size + position
            if 0 <= index < size:
                indices.add(index)
        return [batch[i] for i in sorted(indices)]
