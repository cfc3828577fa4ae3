# app/utils/dates.py
"""
Date helpers for the YYYYMMDD boundary format.
A start date means 00:00:00 of that day, an end date means 23:59:59 of that
day, so a booking "20240601".."20240605" covers five whole calendar days.
"""

import math
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from app.config import settings
from app.exceptions import ValidationError

DATE_FORMAT = "%Y%m%d"
END_OF_DAY = time(23, 59, 59)


def parse_yyyymmdd(value: Optional[str], field: str, default: Optional[date] = None) -> date:
    """Parse an 8-digit calendar date. Empty input falls back to `default` when one is given."""
    if not value:
        if default is not None:
            return default
        raise ValidationError(f"{field} is required (format: YYYYMMDD)")
    if len(value) != 8 or not value.isdigit():
        raise ValidationError(f"{field} must use the YYYYMMDD format")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"{field} is not a valid calendar date: {value}")


def day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


def day_end(d: date) -> datetime:
    return datetime.combine(d, END_OF_DAY)


def format_yyyymmdd(value) -> str:
    return value.strftime(DATE_FORMAT)


def booking_window(start_date: str, end_date: str) -> Tuple[datetime, datetime]:
    """Turn a pair of YYYYMMDD strings into inclusive [start, end] timestamps for a booking."""
    start = day_start(parse_yyyymmdd(start_date, "start_date"))
    end = day_end(parse_yyyymmdd(end_date, "end_date"))
    if start >= end:
        raise ValidationError("start_date must be before end_date")
    return start, end


def query_window(start_date: Optional[str], end_date: Optional[str],
                 today: Optional[date] = None) -> Tuple[datetime, datetime]:
    """
    Range for availability/schedule queries. Missing dates default to today and
    today + DEFAULT_AVAILABILITY_DAYS. Spans over MAX_RANGE_DAYS are rejected.
    """
    today = today or date.today()
    start = day_start(parse_yyyymmdd(start_date, "start_date", default=today))
    end = day_end(parse_yyyymmdd(
        end_date, "end_date", default=today + timedelta(days=settings.DEFAULT_AVAILABILITY_DAYS)
    ))
    if end < start:
        raise ValidationError("end_date must not be before start_date")
    if span_days(start, end) > settings.MAX_RANGE_DAYS:
        raise ValidationError(f"Date range may span at most {settings.MAX_RANGE_DAYS} days")
    return start, end


def span_days(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 86400


def billable_days(start: datetime, end: datetime) -> int:
    """Whole days charged for a rental: partial days round up, minimum one day."""
    return max(1, math.ceil(span_days(start, end)))


def days_between(start: datetime, end: datetime):
    """Yield each calendar date touched by [start, end]."""
    current = start.date()
    while current <= end.date():
        yield current
        current += timedelta(days=1)
