"""Unit tests for calendarbot_rrule.recurrence.rrule_parser module.

Tests RRULE text parsing, DATE/DATE-TIME values and content line splitting.
"""

import logging

import pytest

from calendarbot_rrule.core.date_values import DateTimeValue, DateValue
from calendarbot_rrule.core.weekday import Weekday, WeekdayNum
from calendarbot_rrule.recurrence.models import Frequency
from calendarbot_rrule.recurrence.rrule_parser import (
    is_utc_text,
    parse_content_line,
    parse_date_list,
    parse_date_value,
    parse_rrule,
    parse_weekday_num,
)
from calendarbot_rrule.rrule_exceptions import RRuleParseError, RRuleValueError

pytestmark = pytest.mark.unit


class TestParseDateValue:
    """Tests for parse_date_value."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("19970902", DateValue(1997, 9, 2)),
            ("1997-09-02", DateValue(1997, 9, 2)),
            ("19970902T090000", DateTimeValue(1997, 9, 2, 9)),
            ("19970902T090000Z", DateTimeValue(1997, 9, 2, 9)),
            ("1997-09-02T09:30:15", DateTimeValue(1997, 9, 2, 9, 30, 15)),
            ("1997-09-02 09:30", DateTimeValue(1997, 9, 2, 9, 30)),
        ],
    )
    def test_supported_forms(self, text, expected):
        """Test basic and dashed forms parse to the right value type."""
        result = parse_date_value(text)

        assert result == expected
        assert type(result) is type(expected)

    @pytest.mark.parametrize("text", ["", "1997090", "19970230", "19970902T250000", "tomorrow"])
    def test_invalid_values(self, text):
        """Test malformed or impossible dates raise RRuleParseError."""
        with pytest.raises(RRuleParseError):
            parse_date_value(text)

    def test_parse_date_list(self):
        """Test comma separated lists and PERIOD starts."""
        values = parse_date_list("19970101,19970120T120000Z/PT1H, 19970217")

        assert values == [DateValue(1997, 1, 1), DateTimeValue(1997, 1, 20, 12), DateValue(1997, 2, 17)]

    def test_is_utc_text(self):
        """Test the Z suffix marks UTC."""
        assert is_utc_text("19970902T090000Z")
        assert is_utc_text("19970902t090000z")
        assert not is_utc_text("19970902T090000")


class TestParseWeekdayNum:
    """Tests for BYDAY entries."""

    @pytest.mark.parametrize(
        "token,expected",
        [
            ("MO", WeekdayNum(0, Weekday.MO)),
            ("+2TU", WeekdayNum(2, Weekday.TU)),
            ("-1FR", WeekdayNum(-1, Weekday.FR)),
            ("20mo", WeekdayNum(20, Weekday.MO)),
        ],
    )
    def test_valid_entries(self, token, expected):
        """Test weekday tokens with optional ordinals."""
        assert parse_weekday_num(token) == expected

    @pytest.mark.parametrize("token", ["XX", "1", "MOO", "100MO"])
    def test_invalid_entries(self, token):
        """Test malformed tokens raise RRuleParseError."""
        with pytest.raises(RRuleParseError):
            parse_weekday_num(token)

    def test_ordinal_out_of_range(self):
        """Test ordinals beyond 53 are parse errors."""
        with pytest.raises(RRuleParseError):
            parse_weekday_num("54MO")


class TestParseRRule:
    """Tests for parse_rrule."""

    def test_full_rule(self):
        """Test every part is mapped onto the recurrence."""
        recur = parse_rrule(
            "FREQ=MONTHLY;INTERVAL=2;COUNT=10;BYDAY=1SU,-1SU;BYMONTHDAY=1,-1;BYMONTH=1,6;"
            "BYHOUR=9;BYMINUTE=30;BYSECOND=0;BYYEARDAY=100;BYWEEKNO=20;BYSETPOS=-1;WKST=SU"
        )

        assert recur.frequency is Frequency.MONTHLY
        assert recur.interval == 2
        assert recur.count == 10
        assert recur.by_day == (WeekdayNum(1, Weekday.SU), WeekdayNum(-1, Weekday.SU))
        assert recur.by_month_day == (1, -1)
        assert recur.by_month == (1, 6)
        assert recur.by_hour == (9,)
        assert recur.by_minute == (30,)
        assert recur.by_second == (0,)
        assert recur.by_year_day == (100,)
        assert recur.by_week_no == (20,)
        assert recur.by_set_pos == (-1,)
        assert recur.workweek_starts is Weekday.SU

    def test_until(self):
        """Test UNTIL keeps its value type."""
        assert parse_rrule("FREQ=DAILY;UNTIL=19971224").until == DateValue(1997, 12, 24)
        assert parse_rrule("FREQ=DAILY;UNTIL=19971224T000000Z").until == DateTimeValue(1997, 12, 24)

    @pytest.mark.parametrize("prefix", ["RRULE:", "EXRULE:", "rrule:"])
    def test_property_prefix_is_stripped(self, prefix):
        """Test RRULE: and EXRULE: prefixes are accepted."""
        assert parse_rrule(f"{prefix}FREQ=WEEKLY;COUNT=2").count == 2

    def test_case_and_whitespace_are_tolerated(self):
        """Test lowercase names and blank parts."""
        recur = parse_rrule(" freq=daily; count=3;; ")

        assert recur.frequency is Frequency.DAILY
        assert recur.count == 3

    def test_x_parts_are_kept(self):
        """Test X- extension parts are preserved in order."""
        recur = parse_rrule("FREQ=DAILY;X-NAME=first;X-OTHER=2,3;X-NAME=second")

        assert recur.x_rules == (("X-NAME", ("first",)), ("X-OTHER", ("2", "3")), ("X-NAME", ("second",)))
        assert recur.get_x_rule("x-name") == [("first",), ("second",)]
        assert recur.get_x_rule("X-OTHER") == [("2", "3")]
        assert recur.get_x_rule("X-MISSING") == []

    def test_x_part_value_list_round_trip(self):
        """Test X- value lists are written back comma separated."""
        text = "FREQ=DAILY;X-TAGS=a,b,c"

        assert parse_rrule(text).to_rrule_string() == text

    @pytest.mark.parametrize("text", ["", "   ", "COUNT=10", "FREQ=FORTNIGHTLY"])
    def test_missing_or_unknown_freq(self, text):
        """Test rules without a valid FREQ always raise."""
        with pytest.raises(RRuleParseError):
            parse_rrule(text, strict=False)

    @pytest.mark.parametrize(
        "text",
        [
            "FREQ=DAILY;COUNT=ten",
            "FREQ=DAILY;BYDAY=XX",
            "FREQ=DAILY;WKST=XX",
            "FREQ=DAILY;FOO=1",
            "FREQ=DAILY;COUNT",
            "FREQ=DAILY;UNTIL=notadate",
        ],
    )
    def test_strict_mode_rejects_bad_parts(self, text):
        """Test malformed parts raise in strict mode."""
        with pytest.raises(RRuleParseError):
            parse_rrule(text)

    def test_lenient_mode_drops_bad_parts(self, caplog):
        """Test malformed parts are logged and skipped in lenient mode."""
        with caplog.at_level(logging.WARNING, logger="calendarbot_rrule.recurrence.rrule_parser"):
            recur = parse_rrule("FREQ=WEEKLY;COUNT=ten;BYDAY=TU,XX;FOO=1;INTERVAL=2", strict=False)

        assert recur.count is None
        assert recur.by_day == ()
        assert recur.interval == 2
        assert "Dropping invalid RRULE part" in caplog.text

    @pytest.mark.parametrize(
        ("text", "field"),
        [
            ("FREQ=YEARLY;BYMONTH=13", "by_month"),
            ("FREQ=MONTHLY;BYMONTHDAY=0", "by_month_day"),
            ("FREQ=MONTHLY;BYDAY=MO;BYSETPOS=0", "by_set_pos"),
        ],
    )
    @pytest.mark.parametrize("strict", [True, False])
    def test_out_of_range_values_raise_parse_error(self, text, field, strict):
        """Test values outside their range are reported as parse errors."""
        with pytest.raises(RRuleParseError, match=f"{field} value out of range") as exc_info:
            parse_rrule(text, strict=strict)

        assert isinstance(exc_info.value.__cause__, RRuleValueError)
        assert "pydantic" not in str(exc_info.value)

    def test_str_round_trip(self):
        """Test the canonical text form parses back to an equal rule."""
        text = "FREQ=WEEKLY;UNTIL=19971224T000000Z;INTERVAL=2;BYDAY=MO,WE,FR;WKST=SU"
        recur = parse_rrule(text)

        assert str(recur) == text
        assert parse_rrule(str(recur)) == recur


class TestParseContentLine:
    """Tests for parse_content_line."""

    def test_line_with_parameters(self):
        """Test name, parameters and value are separated."""
        name, params, value = parse_content_line('rdate;tzid="Europe/Paris";value=DATE-TIME:19970714T083000')

        assert name == "RDATE"
        assert params == {"TZID": "Europe/Paris", "VALUE": "DATE-TIME"}
        assert value == "19970714T083000"

    def test_line_without_parameters(self):
        """Test a bare property line."""
        assert parse_content_line("RRULE:FREQ=DAILY;COUNT=3") == ("RRULE", {}, "FREQ=DAILY;COUNT=3")

    def test_missing_separator(self):
        """Test a line without ':' raises."""
        with pytest.raises(RRuleParseError):
            parse_content_line("RRULE FREQ=DAILY")

    def test_malformed_parameter(self):
        """Test a parameter without '=' raises."""
        with pytest.raises(RRuleParseError):
            parse_content_line("RDATE;TZID:19970714T083000")
