"""Unit tests for calendarbot_rrule logging configuration."""

import logging
import sys
from unittest.mock import patch

import pytest

import calendarbot_rrule
from calendarbot_rrule.rrule_logging import (
    RRULE_MODULES,
    RuleContextFilter,
    configure_rrule_logging,
    get_logging_status,
    reset_logging_to_debug,
    rule_context,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def isolated_logging(monkeypatch):
    """Give the root logger an empty handler list and restore all levels afterwards."""
    root = logging.getLogger()
    saved = {name: logging.getLogger(name).level for name in RRULE_MODULES}
    saved_root = root.level
    monkeypatch.setattr(root, "handlers", [])
    yield root
    root.setLevel(saved_root)
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def _make_record() -> logging.LogRecord:
    return logging.LogRecord("calendarbot_rrule.test", logging.INFO, __file__, 1, "message", None, None)


class TestInitLogging:
    """Tests for the package console bootstrap."""

    def test_installs_single_console_handler(self, isolated_logging):
        """Test a stderr handler is added once and reused."""
        # pytest attaches its capture handlers to the root for the test call
        with patch.object(isolated_logging, "handlers", []):
            calendarbot_rrule._init_logging("INFO")
            calendarbot_rrule._init_logging("INFO")
            handlers = list(isolated_logging.handlers)

        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr
        assert isinstance(handlers[0].formatter, logging.Formatter)

    def test_keeps_existing_handlers(self, isolated_logging):
        """Test an embedding application's handlers are left alone."""
        existing = logging.NullHandler()
        with patch.object(isolated_logging, "handlers", [existing]):
            calendarbot_rrule._init_logging("INFO")
            handlers = list(isolated_logging.handlers)

        assert handlers == [existing]

    def test_level_from_name(self, isolated_logging):
        """Test the named level is applied to the root logger."""
        calendarbot_rrule._init_logging("warning")

        assert isolated_logging.level == logging.WARNING

    @pytest.mark.parametrize("level_name", [None, "NOT_A_LEVEL"])
    def test_invalid_or_missing_level_defaults_to_info(self, isolated_logging, level_name):
        """Test unknown levels fall back to INFO."""
        calendarbot_rrule._init_logging(level_name)

        assert isolated_logging.level == logging.INFO

    def test_debug_env_forces_debug(self, isolated_logging, monkeypatch):
        """Test CALENDARBOT_RRULE_DEBUG overrides the requested level."""
        monkeypatch.setenv("CALENDARBOT_RRULE_DEBUG", "yes")
        calendarbot_rrule._init_logging("ERROR")

        assert isolated_logging.level == logging.DEBUG


class TestConfigureRRuleLogging:
    """Tests for configure_rrule_logging."""

    def test_production_defaults(self, isolated_logging):
        """Test INFO levels without debug."""
        configure_rrule_logging()

        assert isolated_logging.level == logging.INFO
        for name in RRULE_MODULES:
            assert logging.getLogger(name).level == logging.INFO

    def test_debug_mode(self, isolated_logging):
        """Test debug_mode enables DEBUG for every module logger."""
        configure_rrule_logging(debug_mode=True)

        assert isolated_logging.level == logging.DEBUG
        assert all(logging.getLogger(name).level == logging.DEBUG for name in RRULE_MODULES)

    @patch.dict("os.environ", {"CALENDARBOT_RRULE_DEBUG": "true"})
    def test_env_debug(self, isolated_logging):
        """Test the environment switch enables debug."""
        configure_rrule_logging()

        assert logging.getLogger("calendarbot_rrule.recurrence.generators").level == logging.DEBUG

    @patch.dict("os.environ", {"CALENDARBOT_RRULE_DEBUG": "1"})
    def test_force_debug_overrides_env(self, isolated_logging):
        """Test force_debug=False wins over the environment."""
        configure_rrule_logging(force_debug=False)

        assert logging.getLogger("calendarbot_rrule").level == logging.INFO

    @patch.dict("os.environ", {"CALENDARBOT_RRULE_LOG_LEVEL": "warning"})
    def test_env_log_level_sets_root_only(self, isolated_logging):
        """Test CALENDARBOT_RRULE_LOG_LEVEL changes the root level."""
        configure_rrule_logging()

        assert isolated_logging.level == logging.WARNING
        assert logging.getLogger("calendarbot_rrule").level == logging.INFO

    def test_handler_carries_rule_filter(self, isolated_logging):
        """Test the installed handler stamps rule context."""
        configure_rrule_logging()

        handler = isolated_logging.handlers[0]
        assert any(isinstance(f, RuleContextFilter) for f in handler.filters)

    def test_existing_handler_gets_filter_once(self, isolated_logging):
        """Test repeated configuration does not stack filters."""
        handler = logging.NullHandler()
        isolated_logging.handlers.append(handler)

        configure_rrule_logging()
        configure_rrule_logging()

        assert sum(isinstance(f, RuleContextFilter) for f in handler.filters) == 1

    def test_reset_logging_to_debug(self, isolated_logging):
        """Test every engine logger is reset to DEBUG."""
        configure_rrule_logging()
        reset_logging_to_debug()

        assert isolated_logging.level == logging.DEBUG
        assert all(logging.getLogger(name).level == logging.DEBUG for name in RRULE_MODULES)

    def test_get_logging_status(self, isolated_logging):
        """Test status reports root and key engine loggers."""
        configure_rrule_logging(debug_mode=True)

        status = get_logging_status()

        assert status["root"] == "DEBUG"
        assert status["calendarbot_rrule"] == "DEBUG"
        assert set(status) == {
            "root",
            "calendarbot_rrule",
            "calendarbot_rrule.recurrence.generators",
            "calendarbot_rrule.recurrence.rrule_iterator",
        }


class TestRuleContext:
    """Tests for rule context stamping."""

    def test_default_context(self):
        """Test records outside a rule get a placeholder."""
        record = _make_record()

        assert RuleContextFilter().filter(record)
        assert record.rule == "-"

    def test_nested_context(self):
        """Test contexts nest and restore."""
        rule_filter = RuleContextFilter()
        with rule_context("FREQ=DAILY"):
            with rule_context("FREQ=WEEKLY"):
                inner = _make_record()
                rule_filter.filter(inner)
            outer = _make_record()
            rule_filter.filter(outer)

        assert inner.rule == "FREQ=WEEKLY"
        assert outer.rule == "FREQ=DAILY"

    def test_empty_rule_text(self):
        """Test an empty rule text keeps the placeholder."""
        with rule_context(""):
            record = _make_record()
            RuleContextFilter().filter(record)

        assert record.rule == "-"
