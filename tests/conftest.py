"""Shared test configuration for calendarbot_rrule."""

from typing import Any


def pytest_configure(config: Any) -> None:
    """Configure pytest with project markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "slow: Tests that expand long-running rules")
