"""Engine configuration for calendarbot_rrule."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "CALENDARBOT_RRULE_"

# The Gregorian calendar repeats every 400 years: a rule that yields nothing
# for that many consecutive year rolls never yields again.
DEFAULT_MAX_EMPTY_YEAR_ROLLS = 400
DEFAULT_MAX_INITIAL_SKIP = 100_000


def load_env_file(env_file_path: Optional[Path] = None) -> list[str]:
    """Load KEY=VALUE lines from a .env file into the environment.

    Only sets variables that are not already in the environment.

    Args:
        env_file_path: Path to the .env file (defaults to .env in current directory)

    Returns:
        List of environment variable keys that were loaded from the file
    """
    path = env_file_path or Path.cwd() / ".env"
    if not path.exists():
        logger.debug("No .env file found at %s", path)
        return []

    set_keys = []
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file for defaults (continuing): %s", path, exc_info=True)
        return []

    for raw_line in content.splitlines():
        line = raw_line.strip()

        # Skip empty lines and comments
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key and key not in os.environ:
            os.environ[key] = val
            set_keys.append(key)

    if set_keys:
        logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))
    return set_keys


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(ENV_PREFIX + name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s%s=%r; ignoring", ENV_PREFIX, name, raw)
        return default
    if value <= 0:
        logger.warning("Non-positive %s%s=%r; ignoring", ENV_PREFIX, name, raw)
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class RRuleEngineConfig:
    """Configuration for recurrence expansion.

    Consolidates the engine's guard limits and parsing policy with explicit defaults.
    """

    # Exhaustion guards
    max_empty_year_rolls: int = DEFAULT_MAX_EMPTY_YEAR_ROLLS
    max_initial_skip: int = DEFAULT_MAX_INITIAL_SKIP

    # Input handling
    default_timezone: str = "UTC"
    strict_parsing: bool = True

    @classmethod
    def from_settings(cls, settings: Any) -> RRuleEngineConfig:
        """Extract engine configuration from a settings object.

        Args:
            settings: Configuration object with rrule engine settings

        Returns:
            RRuleEngineConfig with values from settings or defaults
        """
        return cls(
            max_empty_year_rolls=getattr(settings, "max_empty_year_rolls", DEFAULT_MAX_EMPTY_YEAR_ROLLS),
            max_initial_skip=getattr(settings, "max_initial_skip", DEFAULT_MAX_INITIAL_SKIP),
            default_timezone=getattr(settings, "default_timezone", "UTC"),
            strict_parsing=getattr(settings, "strict_parsing", True),
        )

    @classmethod
    def from_env(cls, env_file_path: Optional[Path] = None) -> RRuleEngineConfig:
        """Build configuration from ``CALENDARBOT_RRULE_*`` environment variables.

        Recognizes:
        - CALENDARBOT_RRULE_MAX_EMPTY_YEAR_ROLLS -> 'max_empty_year_rolls' (int)
        - CALENDARBOT_RRULE_MAX_INITIAL_SKIP -> 'max_initial_skip' (int)
        - CALENDARBOT_RRULE_DEFAULT_TIMEZONE -> 'default_timezone'
        - CALENDARBOT_RRULE_STRICT_PARSING -> 'strict_parsing' (bool)

        A .env file is read first; variables already in the environment win.
        """
        load_env_file(env_file_path)
        return cls(
            max_empty_year_rolls=_env_int("MAX_EMPTY_YEAR_ROLLS", DEFAULT_MAX_EMPTY_YEAR_ROLLS),
            max_initial_skip=_env_int("MAX_INITIAL_SKIP", DEFAULT_MAX_INITIAL_SKIP),
            default_timezone=os.environ.get(ENV_PREFIX + "DEFAULT_TIMEZONE") or "UTC",
            strict_parsing=_env_bool("STRICT_PARSING", True),
        )
