"""Text parsing for RRULE/EXRULE values, DATE/DATE-TIME values and content lines."""

from __future__ import annotations

import datetime
import logging
import re
from typing import Optional

from calendarbot_rrule.core.date_values import DateTimeValue, DateValue
from calendarbot_rrule.core.weekday import Weekday, WeekdayNum
from calendarbot_rrule.recurrence.models import Frequency, Recurrence, RecurrenceBuilder
from calendarbot_rrule.rrule_exceptions import RRuleEngineError, RRuleParseError, RRuleValueError

logger = logging.getLogger(__name__)

_RULE_PREFIXES = ("RRULE:", "EXRULE:")

_DATE_PATTERN = re.compile(
    r"^(\d{4})-?(\d{2})-?(\d{2})(?:[T ](\d{2}):?(\d{2})(?::?(\d{2}))?(Z)?)?$", re.IGNORECASE
)
_BYDAY_PATTERN = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$", re.IGNORECASE)

# RRULE part name -> RecurrenceBuilder method taking integer varargs
_INT_LIST_PARTS = {
    "BYSECOND": "by_second",
    "BYMINUTE": "by_minute",
    "BYHOUR": "by_hour",
    "BYMONTHDAY": "by_month_day",
    "BYYEARDAY": "by_year_day",
    "BYWEEKNO": "by_week_no",
    "BYMONTH": "by_month",
    "BYSETPOS": "by_set_pos",
}


def parse_date_value(text: str) -> DateValue:
    """Parse a DATE or DATE-TIME value.

    Accepts the iCalendar basic forms (``19970902``, ``19970902T090000``,
    ``19970902T090000Z``) and the dashed ISO forms (``1997-09-02T09:00:00``).
    A trailing ``Z`` only marks the value as UTC; the returned value carries
    the wall-clock fields as written.

    Raises:
        RRuleParseError: If the text is not a valid date or date-time
    """
    match = _DATE_PATTERN.match(text.strip()) if text else None
    if not match:
        raise RRuleParseError(f"Invalid DATE/DATE-TIME value: {text!r}")

    year, month, day, hour, minute, second, _utc = match.groups()
    try:
        if hour is None:
            parsed_date = datetime.date(int(year), int(month), int(day))
            return DateValue.from_date(parsed_date)
        parsed = datetime.datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second or 0)
        )
    except ValueError as e:
        raise RRuleParseError(f"Invalid DATE/DATE-TIME value: {text!r}") from e
    return DateTimeValue.from_datetime(parsed)


def parse_date_list(text: str) -> list[DateValue]:
    """Parse a comma separated RDATE/EXDATE value list.

    PERIOD entries (``start/end`` or ``start/duration``) contribute their start.

    Raises:
        RRuleParseError: If any entry is malformed
    """
    values = []
    for raw in text.split(","):
        item = raw.strip()
        if not item:
            continue
        if "/" in item:
            item = item.split("/", 1)[0]
        values.append(parse_date_value(item))
    return values


def is_utc_text(text: str) -> bool:
    """True when a DATE-TIME value is written in UTC (``Z`` suffix)."""
    return text.strip().upper().endswith("Z")


def parse_weekday_num(token: str) -> WeekdayNum:
    """Parse one BYDAY entry such as ``MO``, ``+2TU`` or ``-1FR``.

    Raises:
        RRuleParseError: If the token is not a weekday with an optional ordinal
    """
    match = _BYDAY_PATTERN.match(token.strip())
    if not match:
        raise RRuleParseError(f"Invalid BYDAY entry: {token!r}")
    num, day = match.groups()
    try:
        return WeekdayNum(int(num) if num else 0, Weekday.from_abbr(day))
    except RRuleEngineError as e:
        raise RRuleParseError(f"Invalid BYDAY entry: {token!r}") from e


def _parse_int_list(value: str) -> list[int]:
    return [int(item) for item in value.split(",") if item.strip()]


def parse_rrule(text: str, strict: bool = True) -> Recurrence:
    """Parse an RRULE or EXRULE value into a :class:`Recurrence`.

    Args:
        text: Rule text (e.g. "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE"), optionally
            prefixed with ``RRULE:`` or ``EXRULE:``
        strict: When False, malformed parts are logged and dropped instead of raising

    Returns:
        Parsed recurrence specification

    Raises:
        RRuleParseError: If the rule is empty, lacks FREQ, has a value outside
            its allowed range, or (in strict mode) contains a malformed part
    """
    if not text or not text.strip():
        raise RRuleParseError("Empty RRULE string")

    body = text.strip()
    for prefix in _RULE_PREFIXES:
        if body.upper().startswith(prefix):
            body = body[len(prefix):]
            break

    frequency: Optional[Frequency] = None
    pending: list[tuple[str, str]] = []
    for part in body.split(";"):
        if not part.strip():
            continue
        if "=" not in part:
            _reject(part, "missing '='", strict)
            continue
        key, value = part.split("=", 1)
        key = key.strip().upper()
        value = value.strip()
        if key == "FREQ":
            try:
                frequency = Frequency(value.upper())
            except ValueError as e:
                raise RRuleParseError(f"Unknown FREQ value: {value!r}") from e
        else:
            pending.append((key, value))

    if frequency is None:
        raise RRuleParseError(f"RRULE missing required FREQ parameter: {text!r}")

    builder = RecurrenceBuilder(frequency)
    for key, value in pending:
        try:
            _apply_part(builder, key, value)
        except (ValueError, RRuleEngineError) as e:
            if strict:
                raise RRuleParseError(f"Invalid RRULE part {key}={value!r} in {text!r}") from e
            logger.warning("Dropping invalid RRULE part %s=%r: %s", key, value, e)

    try:
        return builder.build()
    except RRuleValueError as e:
        raise RRuleParseError(f"Invalid RRULE {text!r}: {e}") from e


def _reject(part: str, reason: str, strict: bool) -> None:
    if strict:
        raise RRuleParseError(f"Invalid RRULE part {part!r}: {reason}")
    logger.warning("Dropping invalid RRULE part %r: %s", part, reason)


def _apply_part(builder: RecurrenceBuilder, key: str, value: str) -> None:
    if key == "INTERVAL":
        builder.interval(int(value))
    elif key == "COUNT":
        builder.count(int(value))
    elif key == "UNTIL":
        builder.until(parse_date_value(value))
    elif key == "WKST":
        builder.workweek_starts(Weekday.from_abbr(value))
    elif key == "BYDAY":
        builder.by_day(*(parse_weekday_num(token) for token in value.split(",") if token.strip()))
    elif key in _INT_LIST_PARTS:
        getattr(builder, _INT_LIST_PARTS[key])(*_parse_int_list(value))
    elif key.startswith("X-"):
        builder.x_rule(key, *value.split(","))
    else:
        raise RRuleParseError(f"Unknown RRULE part: {key}")


def parse_content_line(line: str) -> tuple[str, dict[str, str], str]:
    """Split a content line such as ``RDATE;TZID=Europe/Paris:19970714T083000``.

    Returns:
        Tuple of (upper-cased name, upper-cased parameter names -> values, value)

    Raises:
        RRuleParseError: If the line has no ``:`` separator
    """
    head, sep, value = line.strip().partition(":")
    if not sep:
        raise RRuleParseError(f"Invalid content line: {line!r}")

    name, *raw_params = head.split(";")
    params = {}
    for raw in raw_params:
        if "=" not in raw:
            raise RRuleParseError(f"Invalid parameter {raw!r} in content line {line!r}")
        param_name, param_value = raw.split("=", 1)
        params[param_name.strip().upper()] = param_value.strip().strip('"')
    return name.strip().upper(), params, value.strip()
