"""Entry points that turn rules, date lists and content lines into iterators."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from typing import Optional, Union

from dateutil import tz

from calendarbot_rrule.core import time_utils
from calendarbot_rrule.core.date_values import DateTimeValue, DateValue, to_date_value
from calendarbot_rrule.core.timezone_utils import TimezoneLike, resolve_timezone
from calendarbot_rrule.recurrence.compound_iterator import CompoundIterator
from calendarbot_rrule.recurrence.iterators import RecurrenceIterator
from calendarbot_rrule.recurrence.models import Recurrence
from calendarbot_rrule.recurrence.rdate_iterator import RDateIterator
from calendarbot_rrule.recurrence.rrule_iterator import RRuleIterator
from calendarbot_rrule.recurrence.rrule_parser import (
    is_utc_text,
    parse_content_line,
    parse_date_list,
    parse_rrule,
)
from calendarbot_rrule.rrule_config import RRuleEngineConfig
from calendarbot_rrule.rrule_exceptions import RRuleParseError
from calendarbot_rrule.rrule_logging import rule_context

logger = logging.getLogger(__name__)

StartLike = Union[DateValue, datetime.date]
DateLike = Union[DateValue, datetime.date]


def _resolve_start(
    start: StartLike, tzid: TimezoneLike, config: RRuleEngineConfig
) -> tuple[DateValue, Optional[datetime.tzinfo]]:
    """Turn a start argument into a local wall-clock value and its zone.

    Aware datetimes carry their own zone unless ``tzid`` overrides it, in which
    case the instant is converted into ``tzid``. Date-only starts have no zone.
    """
    if isinstance(start, datetime.datetime):
        if start.tzinfo is not None:
            if tzid is None:
                return DateTimeValue.from_datetime(start), start.tzinfo
            zone = resolve_timezone(tzid, config.default_timezone)
            return DateTimeValue.from_datetime(start.astimezone(zone)), zone
        return DateTimeValue.from_datetime(start), resolve_timezone(tzid, config.default_timezone)
    if isinstance(start, datetime.date):
        return DateValue.from_date(start), None
    if isinstance(start, DateTimeValue):
        return start, resolve_timezone(tzid, config.default_timezone)
    return start, None


def create_recurrence_iterator(
    recurrence: Union[Recurrence, str],
    start: StartLike,
    tzid: TimezoneLike = None,
    config: Optional[RRuleEngineConfig] = None,
) -> RRuleIterator:
    """Create an iterator over the instances of one rule.

    Args:
        recurrence: Rule specification, or RRULE text to parse
        start: First instant of the series, in local time of ``tzid``
        tzid: Zone of a timed start (name, offset or tzinfo); the configured
            default applies when omitted
        config: Engine configuration (defaults when None)

    Returns:
        Iterator yielding UTC date-times for timed starts, dates otherwise

    Raises:
        RRuleParseError: If ``recurrence`` is text that cannot be parsed
        RRuleTimezoneError: If ``tzid`` cannot be resolved
    """
    config = config or RRuleEngineConfig()
    if isinstance(recurrence, str):
        recurrence = parse_rrule(recurrence, strict=config.strict_parsing)
    dtstart, zone = _resolve_start(start, tzid, config)

    with rule_context(str(recurrence)):
        logger.debug("Creating iterator for %s from %s (tz=%s)", recurrence, dtstart, zone)
        return RRuleIterator(recurrence, dtstart, zone, config)


def create_rdate_iterator(dates: Iterable[DateLike]) -> RDateIterator:
    """Create an iterator over explicit dates.

    Aware datetimes are converted to UTC; naive ones are taken as UTC already.
    """
    values = []
    for value in dates:
        if isinstance(value, DateValue):
            values.append(value)
            continue
        if isinstance(value, datetime.datetime) and value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc)
        values.append(to_date_value(value))
    return RDateIterator(values)


def join(*iterators: RecurrenceIterator) -> CompoundIterator:
    """Union of ``iterators`` in ascending order, without duplicates."""
    return CompoundIterator(iterators)


def except_(base: RecurrenceIterator, *exclusions: RecurrenceIterator) -> CompoundIterator:
    """Instances of ``base`` that none of ``exclusions`` produces."""
    return CompoundIterator([base], exclusions)


def _unfold(lines: Iterable[str]) -> list[str]:
    unfolded: list[str] = []
    for line in lines:
        if line[:1] in (" ", "\t") and unfolded:
            unfolded[-1] += line[1:]
        elif line.strip():
            unfolded.append(line.strip())
    return unfolded


def _parse_dates(
    value: str, params: dict[str, str], zone: Optional[datetime.tzinfo], config: RRuleEngineConfig
) -> list[DateValue]:
    """Parse an RDATE/EXDATE value into UTC (timed) or plain date values."""
    if "TZID" in params:
        zone = resolve_timezone(params["TZID"], config.default_timezone)
    elif zone is None:
        zone = resolve_timezone(None, config.default_timezone)

    items = [item for item in value.split(",") if item.strip()]
    dates = []
    for item, parsed in zip(items, parse_date_list(value)):
        if params.get("VALUE", "").upper() == "DATE":
            parsed = parsed.date_part()
        elif isinstance(parsed, DateTimeValue) and not is_utc_text(item.split("/", 1)[0]):
            parsed = time_utils.to_utc(parsed, zone)
        dates.append(parsed)
    return dates


def create_recurrence_iterator_from_lines(
    lines: Union[str, Iterable[str]],
    start: StartLike,
    tzid: TimezoneLike = None,
    config: Optional[RRuleEngineConfig] = None,
) -> CompoundIterator:
    """Expand RRULE, EXRULE, RDATE and EXDATE content lines into one iterator.

    The start value is always part of the result, as calendar expansion
    requires, unless an exclusion removes it.

    Example:
        >>> it = create_recurrence_iterator_from_lines(
        ...     "RRULE:FREQ=DAILY;COUNT=3\\nEXDATE:20060412", datetime.date(2006, 4, 11))
        >>> [str(v) for v in it]
        ['20060411', '20060413']

    Raises:
        RRuleParseError: If a line cannot be parsed (in lenient mode unknown
            property names are skipped instead)
        RRuleTimezoneError: If a zone cannot be resolved
    """
    config = config or RRuleEngineConfig()
    if isinstance(lines, str):
        lines = lines.splitlines()
    dtstart, zone = _resolve_start(start, tzid, config)

    inclusions: list[RecurrenceIterator] = [RDateIterator([time_utils.to_utc(dtstart, zone)])]
    exclusions: list[RecurrenceIterator] = []
    for line in _unfold(lines):
        name, params, value = parse_content_line(line)
        with rule_context(line):
            if name in ("RRULE", "EXRULE"):
                rule = parse_rrule(value, strict=config.strict_parsing)
                target = inclusions if name == "RRULE" else exclusions
                target.append(RRuleIterator(rule, dtstart, zone, config))
            elif name in ("RDATE", "EXDATE"):
                dates = _parse_dates(value, params, zone, config)
                target = inclusions if name == "RDATE" else exclusions
                target.append(RDateIterator(dates))
            elif config.strict_parsing:
                raise RRuleParseError(f"Unsupported recurrence property: {name}")
            else:
                logger.warning("Skipping unsupported recurrence property %s", name)

    logger.debug(
        "Created compound iterator from %d inclusion(s) and %d exclusion(s)", len(inclusions), len(exclusions)
    )
    return CompoundIterator(inclusions, exclusions)


def _to_engine_value(when: datetime.date) -> DateValue:
    """UTC engine value for a ``date`` or ``datetime``; midnight counts as a whole day."""
    if isinstance(when, datetime.datetime):
        if when.tzinfo is not None:
            when = when.astimezone(datetime.timezone.utc)
        if when.hour == 0 and when.minute == 0 and when.second == 0:
            return DateValue(when.year, when.month, when.day)
        return DateTimeValue.from_datetime(when)
    return DateValue.from_date(when)


def to_python(value: DateValue) -> datetime.date:
    """``datetime.date`` for date values, UTC-aware ``datetime`` for timed ones."""
    if isinstance(value, DateTimeValue):
        return value.to_datetime(tz.UTC)
    return value.to_date()


class DateTimeIterator:
    """Adapts a recurrence iterator to ``datetime.date`` / ``datetime.datetime`` values."""

    def __init__(self, iterator: RecurrenceIterator) -> None:
        self._iterator = iterator

    def __iter__(self) -> DateTimeIterator:
        return self

    def __next__(self) -> datetime.date:
        value = self._iterator.next()
        if value is None:
            raise StopIteration
        return to_python(value)

    def has_next(self) -> bool:
        return self._iterator.has_next()

    def advance_to(self, when: datetime.date) -> None:
        """Skip values before ``when``; naive datetimes are taken as UTC."""
        self._iterator.advance_to(_to_engine_value(when))


def create_datetime_iterator(
    lines: Union[str, Iterable[str]],
    start: StartLike,
    tzid: TimezoneLike = None,
    config: Optional[RRuleEngineConfig] = None,
) -> DateTimeIterator:
    """Like :func:`create_recurrence_iterator_from_lines`, yielding ``datetime`` objects."""
    return DateTimeIterator(create_recurrence_iterator_from_lines(lines, start, tzid, config))
