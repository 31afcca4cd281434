import os
from collections.abc import Generator
from types import SimpleNamespace
from typing import Any

import pytest

from calendarbot_rrule.rrule_config import RRuleEngineConfig


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight settings object used across rrule tests.

    Fields:
      - max_empty_year_rolls: exhaustion guard for the year generator
      - max_initial_skip: bound on candidates skipped before the start value
      - default_timezone: zone applied to naive timed starts
      - strict_parsing: reject malformed rule parts instead of dropping them
    """
    return SimpleNamespace(
        max_empty_year_rolls=50,
        max_initial_skip=1000,
        default_timezone="America/Los_Angeles",
        strict_parsing=False,
    )


@pytest.fixture
def test_timezone() -> str:
    """Return a deterministic timezone identifier for tests.

    Using a fixed timezone string avoids host-local timezone differences
    which can make datetime-sensitive tests flaky.
    """
    return "America/Los_Angeles"


@pytest.fixture
def default_config() -> RRuleEngineConfig:
    return RRuleEngineConfig()


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure CALENDARBOT_RRULE_* variables never leak between tests."""
    names = [
        "CALENDARBOT_RRULE_DEBUG",
        "CALENDARBOT_RRULE_LOG_LEVEL",
        "CALENDARBOT_RRULE_MAX_EMPTY_YEAR_ROLLS",
        "CALENDARBOT_RRULE_MAX_INITIAL_SKIP",
        "CALENDARBOT_RRULE_DEFAULT_TIMEZONE",
        "CALENDARBOT_RRULE_STRICT_PARSING",
    ]
    for name in names:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_env_file writes to os.environ directly, outside monkeypatch's undo log
    for name in names:
        os.environ.pop(name, None)
