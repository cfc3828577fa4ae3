"""
Unit tests for YYYYMMDD parsing and range helpers.
Run: pytest tests/test_dates.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date, datetime

from app.exceptions import ValidationError
from app.utils.dates import (
    billable_days, booking_window, days_between, parse_yyyymmdd, query_window, span_days,
)


class TestParse:

    def test_valid_date(self):
        assert parse_yyyymmdd("20240601", "start_date") == date(2024, 6, 1)

    def test_missing_without_default(self):
        with pytest.raises(ValidationError, match="start_date is required"):
            parse_yyyymmdd("", "start_date")

    def test_missing_with_default(self):
        assert parse_yyyymmdd(None, "end_date", default=date(2024, 1, 1)) == date(2024, 1, 1)

    @pytest.mark.parametrize("value", ["2024-06-01", "240601", "2024060a", "202406011"])
    def test_wrong_shape(self, value):
        with pytest.raises(ValidationError, match="YYYYMMDD"):
            parse_yyyymmdd(value, "start_date")

    def test_impossible_calendar_date(self):
        with pytest.raises(ValidationError, match="not a valid calendar date"):
            parse_yyyymmdd("20240230", "start_date")


class TestBookingWindow:

    def test_day_boundaries(self):
        start, end = booking_window("20240601", "20240605")
        assert start == datetime(2024, 6, 1, 0, 0, 0)
        assert end == datetime(2024, 6, 5, 23, 59, 59)

    def test_single_day_is_valid(self):
        start, end = booking_window("20240601", "20240601")
        assert start < end

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            booking_window("20240605", "20240601")


class TestQueryWindow:

    def test_defaults_to_thirty_days(self):
        start, end = query_window(None, None, today=date(2024, 6, 1))
        assert start == datetime(2024, 6, 1)
        assert end.date() == date(2024, 7, 1)

    def test_end_only_defaults_start_to_today(self):
        start, _ = query_window(None, "20240610", today=date(2024, 6, 1))
        assert start.date() == date(2024, 6, 1)

    def test_same_day_allowed(self):
        start, end = query_window("20240601", "20240601")
        assert start.date() == end.date()

    def test_reversed_range_rejected(self):
        with pytest.raises(ValidationError, match="must not be before"):
            query_window("20240610", "20240601")

    def test_ninety_day_cap(self):
        query_window("20240101", "20240329")   # 88 days + the last day
        with pytest.raises(ValidationError, match="at most 90 days"):
            query_window("20240101", "20240501")


class TestDurations:

    def test_five_inclusive_days_bill_as_five(self):
        start, end = booking_window("20240601", "20240605")
        assert 4.99 < span_days(start, end) < 5
        assert billable_days(start, end) == 5

    def test_minimum_one_day(self):
        assert billable_days(datetime(2024, 6, 1, 10), datetime(2024, 6, 1, 11)) == 1

    def test_days_between_is_inclusive(self):
        start, end = booking_window("20240630", "20240702")
        assert list(days_between(start, end)) == [date(2024, 6, 30), date(2024, 7, 1), date(2024, 7, 2)]
