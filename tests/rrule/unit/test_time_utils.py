"""Unit tests for calendarbot_rrule.core.time_utils module.

Covers calendar arithmetic, week numbering at year boundaries, weekday
ordinal resolution and wall-clock/UTC conversion.
"""

import datetime
import zoneinfo

import pytest

from calendarbot_rrule.core import time_utils
from calendarbot_rrule.core.date_values import DateTimeValue, DateValue
from calendarbot_rrule.core.weekday import Weekday

pytestmark = pytest.mark.unit


class TestCalendarArithmetic:
    """Tests for leap years, lengths and ordinals."""

    @pytest.mark.parametrize("year,leap", [(1900, False), (2000, True), (2004, True), (2100, False), (1999, False)])
    def test_is_leap_year(self, year, leap):
        """Test Gregorian leap year rule."""
        assert time_utils.is_leap_year(year) is leap
        assert time_utils.year_length(year) == (366 if leap else 365)

    def test_month_length(self):
        """Test February follows the leap year rule."""
        assert time_utils.month_length(2000, 2) == 29
        assert time_utils.month_length(1900, 2) == 28
        assert time_utils.month_length(1997, 9) == 30
        assert time_utils.month_length(1997, 12) == 31

    def test_day_of_year_is_zero_based(self):
        """Test day_of_year counts from 0."""
        assert time_utils.day_of_year(1997, 1, 1) == 0
        assert time_utils.day_of_year(1999, 3, 1) == 59
        assert time_utils.day_of_year(2000, 3, 1) == 60
        assert time_utils.day_of_year(2000, 12, 31) == 365

    @pytest.mark.parametrize(
        "value",
        [datetime.date(1, 1, 1), datetime.date(1900, 3, 1), datetime.date(1997, 9, 2), datetime.date(2400, 2, 29)],
    )
    def test_to_ordinal_matches_datetime(self, value):
        """Test ordinals agree with date.toordinal()."""
        assert time_utils.to_ordinal(value.year, value.month, value.day) == value.toordinal()

    def test_days_between(self):
        """Test signed day difference."""
        assert time_utils.days_between(DateValue(2000, 3, 1), DateValue(2000, 2, 1)) == 29
        assert time_utils.days_between(DateValue(1999, 12, 31), DateValue(2000, 1, 1)) == -1

    def test_day_of_week(self):
        """Test weekday computation."""
        assert time_utils.day_of_week(1997, 9, 2) is Weekday.TU
        assert time_utils.first_day_of_week_in_month(1997, 10) is Weekday.WE

    def test_week_start_offset(self):
        """Test distance back to the week start."""
        assert time_utils.week_start_offset(Weekday.WE, Weekday.MO) == 2
        assert time_utils.week_start_offset(Weekday.MO, Weekday.SU) == 1
        assert time_utils.week_start_offset(Weekday.SU, Weekday.SU) == 0


class TestAddDays:
    """Tests for add_days and week boundary helpers."""

    @pytest.mark.parametrize(
        "start,days,expected",
        [
            (DateValue(2000, 2, 28), 1, DateValue(2000, 2, 29)),
            (DateValue(2000, 2, 28), 2, DateValue(2000, 3, 1)),
            (DateValue(2000, 1, 1), -1, DateValue(1999, 12, 31)),
            (DateValue(1999, 12, 25), 10, DateValue(2000, 1, 4)),
            (DateValue(2000, 3, 1), -366, DateValue(1999, 3, 1)),
        ],
    )
    def test_add_days(self, start, days, expected):
        """Test carrying across month and year boundaries."""
        assert time_utils.add_days(start, days) == expected

    def test_add_days_keeps_time(self):
        """Test the time of day survives the shift."""
        assert time_utils.add_days(DateTimeValue(1997, 12, 31, 9, 30), 1) == DateTimeValue(1998, 1, 1, 9, 30)

    def test_next_week_start(self):
        """Test next_week_start returns the day itself when it starts a week."""
        assert time_utils.next_week_start(DateValue(1997, 9, 3), Weekday.MO) == DateValue(1997, 9, 8)
        assert time_utils.next_week_start(DateValue(1997, 9, 8), Weekday.MO) == DateValue(1997, 9, 8)

    def test_week_start_before(self):
        """Test week_start_before finds the containing week's start."""
        assert time_utils.week_start_before(DateValue(1997, 9, 3), Weekday.SU) == DateValue(1997, 8, 31)
        assert time_utils.week_start_before(DateValue(1997, 1, 1), Weekday.MO) == DateValue(1996, 12, 30)


class TestWeekNumbering:
    """Week numbers under ISO 8601 rules with a configurable week start."""

    @pytest.mark.parametrize(
        "year,weeks",
        [(1998, 53), (2004, 53), (2005, 52), (2009, 53), (2015, 53), (2016, 52)],
    )
    def test_week_count_iso(self, year, weeks):
        """Test weeks per year match ISO calendars for Monday starts."""
        assert time_utils.week_count(year, Weekday.MO) == weeks

    @pytest.mark.parametrize(
        "value,expected",
        [
            (datetime.date(2005, 1, 1), (2004, 53)),
            (datetime.date(2008, 12, 29), (2009, 1)),
            (datetime.date(2010, 1, 3), (2009, 53)),
            (datetime.date(2010, 1, 4), (2010, 1)),
            (datetime.date(1997, 5, 12), (1997, 20)),
        ],
    )
    def test_week_number_matches_isocalendar(self, value, expected):
        """Test days near the year boundary belong to the right week year."""
        assert time_utils.week_number(value.year, value.month, value.day, Weekday.MO) == expected
        assert tuple(value.isocalendar())[:2] == expected

    def test_first_week_start_with_sunday_weeks(self):
        """Test week 1 may begin in the previous year."""
        assert time_utils.first_week_start(1997, Weekday.SU) == datetime.date(1996, 12, 29).toordinal()

    def test_first_week_start_skips_short_week(self):
        """Test a first week with fewer than four days in the year is not week 1."""
        # 2005-01-01 is a Saturday, so week 1 starts on Monday the 3rd
        assert time_utils.first_week_start(2005, Weekday.MO) == datetime.date(2005, 1, 3).toordinal()

    @pytest.mark.parametrize(
        "week_no,weeks,expected",
        [(1, 52, 1), (-1, 52, 52), (-1, 53, 53), (53, 52, 0), (-53, 52, 0), (-52, 52, 1)],
    )
    def test_resolve_week_number(self, week_no, weeks, expected):
        """Test negative and out-of-range week numbers."""
        assert time_utils.resolve_week_number(week_no, weeks) == expected


class TestWeekdayOrdinals:
    """Tests for BYDAY ordinal helpers."""

    def test_count_in_period(self):
        """Test counting weekdays in a month."""
        # September 1997 starts on a Monday and has four Fridays
        assert time_utils.count_in_period(Weekday.FR, Weekday.MO, 30) == 4
        assert time_utils.count_in_period(Weekday.TU, Weekday.MO, 30) == 5
        assert time_utils.count_in_period(Weekday.SU, Weekday.WE, 31) == 4

    def test_invert_weekday_num(self):
        """Test -1FR of September 1997 is the 4th Friday."""
        assert time_utils.invert_weekday_num(-1, Weekday.FR, Weekday.MO, 30) == 4

    def test_day_num_to_date_in_month(self):
        """Test first Friday and last Sunday resolution."""
        assert time_utils.day_num_to_date(Weekday.MO, 30, 1, Weekday.FR, 0, 30) == 5
        # October 1997 starts on a Wednesday
        assert time_utils.day_num_to_date(Weekday.WE, 31, -1, Weekday.SU, 0, 31) == 26

    def test_day_num_to_date_in_year(self):
        """Test the 20th Monday of 1997 falls in May."""
        d0 = time_utils.day_of_year(1997, 5, 1)
        assert time_utils.day_num_to_date(Weekday.WE, 365, 20, Weekday.MO, d0, 31) == 19

    def test_day_num_to_date_outside_month(self):
        """Test ordinals landing in another month resolve to 0."""
        assert time_utils.day_num_to_date(Weekday.MO, 30, 5, Weekday.FR, 0, 30) == 0

    def test_uniquify(self):
        """Test sorting and de-duplication."""
        assert time_utils.uniquify([3, 1, 3, -1]) == (-1, 1, 3)


class TestUtcConversion:
    """Tests for to_utc and from_utc."""

    def test_to_utc(self):
        """Test local wall-clock time converts to UTC."""
        zone = zoneinfo.ZoneInfo("America/Los_Angeles")

        assert time_utils.to_utc(DateTimeValue(1997, 9, 3, 9), zone) == DateTimeValue(1997, 9, 3, 16)
        assert time_utils.to_utc(DateTimeValue(1997, 12, 3, 9), zone) == DateTimeValue(1997, 12, 3, 17)

    def test_from_utc(self):
        """Test UTC converts back to wall-clock time."""
        zone = zoneinfo.ZoneInfo("America/Los_Angeles")

        assert time_utils.from_utc(DateTimeValue(1997, 9, 3, 16), zone) == DateTimeValue(1997, 9, 3, 9)

    def test_dates_and_missing_zone_pass_through(self):
        """Test date-only values and None zones are returned unchanged."""
        zone = zoneinfo.ZoneInfo("Asia/Tokyo")

        assert time_utils.to_utc(DateValue(2000, 1, 1), zone) == DateValue(2000, 1, 1)
        assert time_utils.from_utc(DateTimeValue(2000, 1, 1, 5), None) == DateTimeValue(2000, 1, 1, 5)
