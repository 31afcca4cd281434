"""Custom exception hierarchy for the recurrence engine.

Parsing and value errors are raised at the edges (rule text, date text,
timezone identifiers). Iteration itself never raises: unsatisfiable rules
and exhausted iterators resolve to an empty sequence instead.
"""


class RRuleEngineError(Exception):
    """Base exception for all recurrence engine errors.

    All custom exceptions in calendarbot_rrule inherit from this base class
    so callers can catch engine failures in one place.
    """


class RRuleParseError(RRuleEngineError):
    """Recurrence rule or date text could not be parsed.

    Raised when:
    - The RRULE text is empty or has no FREQ part
    - FREQ or WKST names an unknown frequency or weekday
    - A numeric part (COUNT, INTERVAL, BYxxx) is not an integer
    - A BYDAY entry has an unknown weekday token
    - A DATE or DATE-TIME value does not match a supported format
    """


class RRuleValueError(RRuleEngineError, ValueError):
    """A recurrence value is structurally invalid.

    Raised when:
    - A BYDAY ordinal lies outside -53..53
    - A builder receives a non-integer BY value
    - A frequency or weekday name is unknown
    """


class RRuleTimezoneError(RRuleEngineError):
    """Timezone resolution failed.

    Raised when:
    - A timezone identifier is not a known IANA zone, alias or Windows name
    - A fixed UTC offset string is malformed or out of range
    """


class GenerationStopped(RRuleEngineError):
    """A generator gave up on a rule that can no longer produce instances.

    Raised by throttled generators when too many consecutive periods pass
    without an instance. The per-rule iterator catches it and becomes
    exhausted, so it never reaches callers.
    """
