"""calendarbot_rrule - recurrence rule expansion for CalendarBot.

Expands RRULE, EXRULE, RDATE and EXDATE data into lazy, strictly ascending
streams of occurrence dates that support seeking ahead with ``advance_to``.
"""

__version__ = "0.1.0"

from typing import Optional

from calendarbot_rrule.core.date_values import DateTimeValue, DateValue, comparable
from calendarbot_rrule.core.weekday import Weekday, WeekdayNum
from calendarbot_rrule.recurrence.compound_iterator import CompoundIterator
from calendarbot_rrule.recurrence.factory import (
    DateTimeIterator,
    create_datetime_iterator,
    create_rdate_iterator,
    create_recurrence_iterator,
    create_recurrence_iterator_from_lines,
    except_,
    join,
)
from calendarbot_rrule.recurrence.iterators import RecurrenceIterator
from calendarbot_rrule.recurrence.models import Frequency, Recurrence, RecurrenceBuilder
from calendarbot_rrule.recurrence.rdate_iterator import RDateIterator
from calendarbot_rrule.recurrence.rrule_iterator import RRuleIterator
from calendarbot_rrule.recurrence.rrule_parser import parse_date_list, parse_date_value, parse_rrule
from calendarbot_rrule.rrule_config import RRuleEngineConfig
from calendarbot_rrule.rrule_exceptions import (
    RRuleEngineError,
    RRuleParseError,
    RRuleTimezoneError,
    RRuleValueError,
)

__all__ = [
    "CompoundIterator",
    "DateTimeIterator",
    "DateTimeValue",
    "DateValue",
    "Frequency",
    "RDateIterator",
    "RRuleEngineConfig",
    "RRuleEngineError",
    "RRuleIterator",
    "RRuleParseError",
    "RRuleTimezoneError",
    "RRuleValueError",
    "Recurrence",
    "RecurrenceBuilder",
    "RecurrenceIterator",
    "Weekday",
    "WeekdayNum",
    "comparable",
    "create_datetime_iterator",
    "create_rdate_iterator",
    "create_recurrence_iterator",
    "create_recurrence_iterator_from_lines",
    "except_",
    "join",
    "parse_date_list",
    "parse_date_value",
    "parse_rrule",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a console handler only when the root logger has none, so an
    embedding application's logging setup is left alone.

    Honors the CALENDARBOT_RRULE_DEBUG environment variable (truthy values:
    "1", "true", "yes", "on"), which forces DEBUG verbosity to surface
    generator plan decisions while troubleshooting a rule.
    """
    import logging
    import os
    import sys

    debug_env = os.environ.get("CALENDARBOT_RRULE_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # Prefer colorlog when the optional "color" extra is installed
        try:
            from colorlog import ColoredFormatter  # type: ignore[import-not-found]

            # HH:MM:SS  LEVEL   logger.name: message, only the level colorized
            fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
            log_colors = {
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            }
            formatter = ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors)
        except ImportError:
            fmt = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
            formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")

        handler.setFormatter(formatter)
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    logging.getLogger(__name__).debug("Logging initialized at level %s", logging.getLevelName(level))
