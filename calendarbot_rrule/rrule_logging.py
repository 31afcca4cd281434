"""
Central logging configuration for calendarbot_rrule.

Keeps the engine's own loggers quiet in production while allowing DEBUG output
(generator plans, exhaustion guard decisions) to be switched on from the
environment when a rule expands unexpectedly.
"""

import contextlib
import logging
import os
from collections.abc import Iterator
from contextvars import ContextVar
from typing import Optional

_current_rule: ContextVar[str] = ContextVar("calendarbot_rrule_rule", default="-")

RRULE_MODULES = [
    "calendarbot_rrule",
    "calendarbot_rrule.core.timezone_utils",
    "calendarbot_rrule.recurrence.rrule_parser",
    "calendarbot_rrule.recurrence.generators",
    "calendarbot_rrule.recurrence.rrule_iterator",
    "calendarbot_rrule.recurrence.instance_generators",
    "calendarbot_rrule.recurrence.factory",
]


class RuleContextFilter(logging.Filter):
    """Add the rule currently being built or expanded to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Stamp ``record.rule``; never drops records."""
        record.rule = _current_rule.get()
        return True


@contextlib.contextmanager
def rule_context(rule_text: str) -> Iterator[None]:
    """Attribute log records emitted inside the block to ``rule_text``."""
    token = _current_rule.set(rule_text or "-")
    try:
        yield
    finally:
        _current_rule.reset(token)


def configure_rrule_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for the calendarbot_rrule modules.

    Args:
        debug_mode: Whether to enable debug logging for calendarbot_rrule modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        CALENDARBOT_RRULE_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        CALENDARBOT_RRULE_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("CALENDARBOT_RRULE_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("CALENDARBOT_RRULE_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    # Don't use force=True; a colorized handler from __init__ must survive
    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    rule_filter = RuleContextFilter()

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        formatter = logging.Formatter("[%(asctime)s] [%(rule)s] %(levelname)s - %(name)s - %(message)s")
        handler.setFormatter(formatter)
        handler.addFilter(rule_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, RuleContextFilter) for f in existing_handler.filters):
                existing_handler.addFilter(rule_filter)

    module_level = logging.DEBUG if final_debug else logging.INFO
    for module in RRULE_MODULES:
        logging.getLogger(module).setLevel(module_level)

    if final_debug:
        root_logger.info("Debug logging enabled for calendarbot_rrule modules")
    else:
        root_logger.info("Production logging configuration applied to calendarbot_rrule")


def reset_logging_to_debug() -> None:
    """
    Reset the root logger and every calendarbot_rrule logger to DEBUG.

    Utility for troubleshooting a single misbehaving rule.
    """
    logging.getLogger().setLevel(logging.DEBUG)

    for logger_name in RRULE_MODULES:
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All calendarbot_rrule loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {}

    root_logger = logging.getLogger()
    status["root"] = logging.getLevelName(root_logger.level)

    key_loggers = [
        "calendarbot_rrule",
        "calendarbot_rrule.recurrence.generators",
        "calendarbot_rrule.recurrence.rrule_iterator",
    ]

    for logger_name in key_loggers:
        logger = logging.getLogger(logger_name)
        status[logger_name] = logging.getLevelName(logger.level)

    return status
