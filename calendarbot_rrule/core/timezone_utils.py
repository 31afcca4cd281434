"""Timezone resolution for recurrence start instants.

A timed DTSTART arrives with a timezone identifier that may be an IANA name,
an obsolete alias, a Windows name exported by Outlook/Exchange, or a fixed UTC
offset. Everything is resolved to a ``datetime.tzinfo`` once, up front, so the
iterators only ever deal with tzinfo objects.
"""

from __future__ import annotations

import datetime
import logging
import re
import zoneinfo
from functools import lru_cache
from typing import ClassVar, Optional, Union

from dateutil import tz

from calendarbot_rrule.rrule_exceptions import RRuleTimezoneError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

TimezoneLike = Union[str, datetime.tzinfo, None]

# "+05:30", "-0800", "UTC+2", "GMT-03:00"
_OFFSET_PATTERN = re.compile(r"^(?:UTC|GMT)?\s*([+-])(\d{1,2})(?::?(\d{2}))?$", re.IGNORECASE)


class TimezoneNames:
    """Lookup tables mapping non-IANA timezone names onto IANA identifiers."""

    # Windows timezone names found in ICS files from Outlook/Exchange
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "Alaskan Standard Time": "America/Anchorage",
        "Hawaiian Standard Time": "Pacific/Honolulu",
        "US Mountain Standard Time": "America/Phoenix",
        "Atlantic Standard Time": "America/Halifax",
        "GMT Standard Time": "Europe/London",
        "W. Europe Standard Time": "Europe/Berlin",
        "Romance Standard Time": "Europe/Paris",
        "Central Europe Standard Time": "Europe/Budapest",
        "E. Europe Standard Time": "Europe/Bucharest",
        "FLE Standard Time": "Europe/Helsinki",
        "GTB Standard Time": "Europe/Athens",
        "Russian Standard Time": "Europe/Moscow",
        "China Standard Time": "Asia/Shanghai",
        "Tokyo Standard Time": "Asia/Tokyo",
        "Korea Standard Time": "Asia/Seoul",
        "Singapore Standard Time": "Asia/Singapore",
        "India Standard Time": "Asia/Kolkata",
        "Arabian Standard Time": "Asia/Dubai",
        "Israel Standard Time": "Asia/Jerusalem",
        "AUS Eastern Standard Time": "Australia/Sydney",
        "W. Australia Standard Time": "Australia/Perth",
        "New Zealand Standard Time": "Pacific/Auckland",
        "E. South America Standard Time": "America/Sao_Paulo",
        "South Africa Standard Time": "Africa/Johannesburg",
        "UTC": "UTC",
    }

    # Obsolete or alternate names still seen in legacy calendar data
    TZ_ALIAS_MAP: ClassVar[dict[str, str]] = {
        "US/Pacific": "America/Los_Angeles",
        "US/Mountain": "America/Denver",
        "US/Central": "America/Chicago",
        "US/Eastern": "America/New_York",
        "US/Alaska": "America/Anchorage",
        "US/Hawaii": "Pacific/Honolulu",
        "US/Arizona": "America/Phoenix",
        "GMT": "UTC",
        "Z": "UTC",
        "Etc/UTC": "UTC",
        "Etc/GMT": "UTC",
        "Etc/Universal": "UTC",
        "Universal": "UTC",
        "Zulu": "UTC",
        "Asia/Rangoon": "Asia/Yangon",
        "America/Godthab": "America/Nuuk",
    }


def windows_tz_to_iana(windows_tz: str) -> Optional[str]:
    """Convert a Windows timezone name (e.g. "Eastern Standard Time") to IANA."""
    return TimezoneNames.WINDOWS_TZ_MAP.get(windows_tz)


def resolve_timezone_alias(tz_name: str) -> str:
    """Resolve an alias to its canonical IANA name; other names pass through unchanged.

    Examples:
        >>> resolve_timezone_alias("US/Pacific")
        'America/Los_Angeles'
        >>> resolve_timezone_alias("Europe/Paris")
        'Europe/Paris'
    """
    return TimezoneNames.TZ_ALIAS_MAP.get(tz_name, tz_name)


def normalize_timezone_name(tz_str: str) -> Optional[str]:
    """Normalize a timezone string to a valid IANA identifier, or None.

    Windows names are tried first, then aliases, then the name itself; the
    result is validated against the zoneinfo database.
    """
    if not tz_str:
        return None

    candidate = windows_tz_to_iana(tz_str) or resolve_timezone_alias(tz_str)
    try:
        zoneinfo.ZoneInfo(candidate)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        logger.debug("Timezone %r did not resolve to an IANA zone", tz_str)
        return None
    return candidate


def parse_utc_offset(offset: str) -> Optional[datetime.tzinfo]:
    """Parse a fixed UTC offset such as ``+05:30`` or ``UTC-8``.

    Returns:
        A fixed-offset tzinfo, or None when ``offset`` is not offset-shaped

    Raises:
        RRuleTimezoneError: If the offset is offset-shaped but out of range
    """
    match = _OFFSET_PATTERN.match(offset.strip())
    if not match:
        return None
    sign, hours, minutes = match.groups()
    total = int(hours) * 3600 + int(minutes or 0) * 60
    if int(hours) > 18 or int(minutes or 0) > 59:
        raise RRuleTimezoneError(f"UTC offset out of range: {offset!r}")
    if sign == "-":
        total = -total
    if total == 0:
        return tz.UTC
    return tz.tzoffset(offset.strip(), total)


@lru_cache(maxsize=64)
def _resolve_named_timezone(tz_str: str) -> datetime.tzinfo:
    offset_tz = parse_utc_offset(tz_str)
    if offset_tz is not None:
        return offset_tz

    name = normalize_timezone_name(tz_str.strip())
    if name is None:
        raise RRuleTimezoneError(f"Unknown timezone: {tz_str!r}")
    if name == "UTC":
        return tz.UTC
    return zoneinfo.ZoneInfo(name)


def resolve_timezone(value: TimezoneLike, default: Optional[str] = DEFAULT_TIMEZONE) -> datetime.tzinfo:
    """Resolve a timezone argument to a tzinfo.

    Args:
        value: tzinfo (returned as-is), timezone name/offset string, or None
        default: Name used when ``value`` is None or empty

    Returns:
        Resolved tzinfo

    Raises:
        RRuleTimezoneError: If the value (or the default) cannot be resolved
    """
    if isinstance(value, datetime.tzinfo):
        return value
    if not value:
        if not default:
            raise RRuleTimezoneError("No timezone given and no default configured")
        value = default
    return _resolve_named_timezone(value)
