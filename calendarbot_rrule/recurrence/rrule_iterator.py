"""Iterator over the instances of a single RRULE or EXRULE."""

from __future__ import annotations

import datetime
import logging
from typing import Optional, Union

from calendarbot_rrule.core import time_utils
from calendarbot_rrule.core.date_values import DateTimeValue, DateValue, comparable
from calendarbot_rrule.core.dt_builder import DTBuilder
from calendarbot_rrule.recurrence.conditions import create_condition
from calendarbot_rrule.recurrence.filters import all_of
from calendarbot_rrule.recurrence.generators import build_generator_plan
from calendarbot_rrule.recurrence.instance_generators import (
    BySetPosInstanceGenerator,
    SerialInstanceGenerator,
)
from calendarbot_rrule.recurrence.iterators import RecurrenceIterator
from calendarbot_rrule.recurrence.models import Recurrence
from calendarbot_rrule.rrule_config import RRuleEngineConfig
from calendarbot_rrule.rrule_exceptions import GenerationStopped

logger = logging.getLogger(__name__)


class RRuleIterator(RecurrenceIterator):
    """Lazily expands one recurrence rule from a start value.

    Candidates are produced in the start's local wall-clock time, filtered,
    grouped by BYSETPOS when present, bounded by COUNT or UNTIL and emitted
    in UTC for timed starts. Date-only starts yield date-only values.

    The first instance is computed at construction so that a rule that can
    never match is reported as exhausted straight away.
    """

    def __init__(
        self,
        recurrence: Recurrence,
        dtstart: DateValue,
        tzinfo: Optional[datetime.tzinfo] = None,
        config: Optional[RRuleEngineConfig] = None,
    ) -> None:
        self.recurrence = recurrence
        self.dtstart = dtstart
        self.config = config or RRuleEngineConfig()
        self._timed = isinstance(dtstart, DateTimeValue)
        self._tzinfo = tzinfo if self._timed else None

        self._plan = build_generator_plan(recurrence, dtstart, self.config.max_empty_year_rolls)
        self._condition = create_condition(recurrence, dtstart)
        self._builder = DTBuilder.from_value(dtstart)
        self._serial = SerialInstanceGenerator(
            self._plan.year,
            self._plan.month,
            self._plan.day,
            self._plan.hour,
            self._plan.minute,
            self._plan.second,
            all_of(self._plan.filters),
        )
        self._instances: Union[SerialInstanceGenerator, BySetPosInstanceGenerator] = (
            BySetPosInstanceGenerator(self._serial, self._plan) if self._plan.by_set_pos else self._serial
        )

        self._pending: Optional[DateValue] = None
        self._last_key: Optional[int] = None
        self._done = False

        try:
            self._plan.year.generate(self._builder)
            while not self._plan.month.generate(self._builder):
                self._plan.year.generate(self._builder)
            self._skip_before_start()
        except GenerationStopped as e:
            logger.warning("Rule %s produced no instances: %s", recurrence, e)
            self._done = True

    def _skip_before_start(self) -> None:
        start_key = comparable(time_utils.to_utc(self.dtstart, self._tzinfo))
        for _ in range(self.config.max_initial_skip):
            value = self._generate_instance()
            if value is None:
                self._done = True
                return
            if comparable(value) >= start_key:
                if self._condition(value):
                    self._pending = value
                else:
                    self._done = True
                return

        logger.warning(
            "Rule %s: gave up after skipping %d candidates before %s",
            self.recurrence,
            self.config.max_initial_skip,
            self.dtstart,
        )
        self._done = True

    def _generate_instance(self) -> Optional[DateValue]:
        """Next candidate in UTC, past the previous one; None when generation ends."""
        while True:
            if not self._instances.generate(self._builder):
                return None
            value: DateValue
            if self._timed:
                value = time_utils.to_utc(self._builder.to_datetime(), self._tzinfo)
            else:
                value = self._builder.to_date()

            # Local times skipped by a DST gap map onto the following instant
            key = comparable(value)
            if self._last_key is not None and key <= self._last_key:
                continue
            self._last_key = key
            self._plan.year.work_done()
            return value

    def _fetch_next(self) -> Optional[DateValue]:
        if self._done:
            return None
        try:
            value = self._generate_instance()
        except GenerationStopped as e:
            logger.warning("Rule %s exhausted: %s", self.recurrence, e)
            value = None
        if value is None or not self._condition(value):
            self._done = True
            return None
        return value

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
        if self._done:
            return

        if self._plan.can_shortcut_advance:
            try:
                self._skip_periods(time_utils.from_utc(target, self._tzinfo))
            except GenerationStopped as e:
                logger.warning("Rule %s exhausted while advancing: %s", self.recurrence, e)
                self._done = True
                return

        target_key = comparable(target)
        while True:
            value = self._fetch_next()
            if value is None:
                return
            if comparable(value) >= target_key:
                self._pending = value
                return

    def _skip_periods(self, local_target: DateValue) -> None:
        """Move the year and month generators up to the target without building instances."""
        builder = self._builder
        plan = self._plan
        moved = False
        if builder.year < local_target.year:
            while builder.year < local_target.year:
                plan.year.generate(builder)
                plan.year.work_done()
            while not plan.month.generate(builder):
                plan.year.generate(builder)
            moved = True
        while builder.year == local_target.year and builder.month < local_target.month:
            while not plan.month.generate(builder):
                plan.year.generate(builder)
            moved = True
        if moved:
            logger.debug("Rule %s: skipped ahead to %04d-%02d", self.recurrence, builder.year, builder.month)
            self._serial.restart_from_day_level()

    def __repr__(self) -> str:
        return f"RRuleIterator({self.recurrence}, start={self.dtstart})"
