"""
Unit tests for availability lookups.
Run: pytest tests/test_availability.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date

from app.exceptions import NotFound, ValidationError
from app.services import availability_service, booking_service
from app.utils.dates import booking_window, query_window


def _book(db, unit_id, start_date, end_date):
    start, end = booking_window(start_date, end_date)
    return booking_service.create_booking(db, unit_id, 42, start, end, today=date(2024, 5, 1))


class TestCheckAvailability:

    def test_free_unit(self, db, make_unit):
        unit = make_unit()
        start, end = query_window("20240601", "20240610")
        result = availability_service.check_availability(db, start, end, unit_id=unit.id)
        assert result.available
        assert result.conflicts == []

    def test_busy_unit_by_code(self, db, make_unit):
        unit = make_unit(code="CAR-7")
        booking = _book(db, unit.id, "20240605", "20240607")
        start, end = query_window("20240601", "20240605")

        result = availability_service.check_availability(db, start, end, unit_code="CAR-7")

        assert not result.available
        assert [b.id for b in result.conflicts] == [booking.id]

    def test_unknown_code(self, db):
        start, end = query_window("20240601", "20240605")
        with pytest.raises(NotFound):
            availability_service.check_availability(db, start, end, unit_code="NOPE")

    def test_unit_reference_required(self, db):
        with pytest.raises(ValidationError):
            availability_service.resolve_unit(db)


class TestAvailableUnits:

    def test_busy_units_excluded(self, db, make_unit):
        free, busy, later = make_unit(), make_unit(), make_unit()
        _book(db, busy.id, "20240603", "20240604")
        _book(db, later.id, "20240620", "20240625")
        start, end = query_window("20240601", "20240610")

        units = availability_service.available_units(db, start, end)

        assert [u.id for u in units] == [free.id, later.id]
