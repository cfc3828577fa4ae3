"""
Unit tests for the inclusive-interval conflict rule.
Run: pytest tests/test_conflict_detector.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import random
import pytest
from datetime import date, timedelta

from app.exceptions import ValidationError
from app.models.booking import Booking, BookingStatus
from app.services import booking_store
from app.services.conflict_detector import find_conflicts, overlaps
from app.utils.dates import booking_window, day_end, day_start


def _window(first: date, last: date):
    return day_start(first), day_end(last)


def _add(db, unit_id, start_date, end_date, status=BookingStatus.APPROVED):
    start, end = booking_window(start_date, end_date)
    return booking_store.insert_booking(db, Booking(
        unit_id=unit_id, requester_id=1, start_at=start, end_at=end, status=status,
    ))


class TestOverlaps:

    def test_boundary_touch_conflicts(self):
        a = booking_window("20240601", "20240605")
        b = booking_window("20240605", "20240610")
        assert overlaps(*a, *b)

    def test_adjacent_days_do_not_conflict(self):
        a = booking_window("20240601", "20240605")
        b = booking_window("20240606", "20240610")
        assert not overlaps(*a, *b)

    def test_containment(self):
        outer = booking_window("20240601", "20240630")
        inner = booking_window("20240610", "20240612")
        assert overlaps(*outer, *inner)
        assert overlaps(*inner, *outer)

    def test_matches_day_by_day_check(self):
        """Random windows: the interval rule agrees with comparing the sets of booked days."""
        rng = random.Random(20240601)
        base = date(2024, 6, 1)
        for _ in range(500):
            a0, b0 = rng.randint(0, 40), rng.randint(0, 40)
            a1, b1 = a0 + rng.randint(0, 10), b0 + rng.randint(0, 10)
            days_a = {base + timedelta(days=d) for d in range(a0, a1 + 1)}
            days_b = {base + timedelta(days=d) for d in range(b0, b1 + 1)}
            wa = _window(base + timedelta(days=a0), base + timedelta(days=a1))
            wb = _window(base + timedelta(days=b0), base + timedelta(days=b1))
            assert overlaps(*wa, *wb) == bool(days_a & days_b)
            assert overlaps(*wa, *wb) == overlaps(*wb, *wa)


class TestFindConflicts:

    def test_reports_overlapping_active_booking(self, db, make_unit):
        unit = make_unit()
        existing = _add(db, unit.id, "20240601", "20240605")
        start, end = booking_window("20240605", "20240610")
        assert [b.id for b in find_conflicts(db, unit.id, start, end)] == [existing.id]

    def test_ignores_other_units(self, db, make_unit):
        unit, other = make_unit(), make_unit()
        _add(db, other.id, "20240601", "20240605")
        start, end = booking_window("20240601", "20240605")
        assert find_conflicts(db, unit.id, start, end) == []

    @pytest.mark.parametrize("status", [BookingStatus.REJECTED, BookingStatus.DONE, BookingStatus.OVERTIME])
    def test_inactive_statuses_do_not_block(self, db, make_unit, status):
        unit = make_unit()
        _add(db, unit.id, "20240601", "20240605", status=status)
        start, end = booking_window("20240603", "20240604")
        assert find_conflicts(db, unit.id, start, end) == []

    @pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.ON_GOING])
    def test_active_statuses_block(self, db, make_unit, status):
        unit = make_unit()
        _add(db, unit.id, "20240601", "20240605", status=status)
        start, end = booking_window("20240603", "20240604")
        assert len(find_conflicts(db, unit.id, start, end)) == 1

    def test_exclude_self(self, db, make_unit):
        unit = make_unit()
        own = _add(db, unit.id, "20240601", "20240605")
        start, end = booking_window("20240602", "20240606")
        assert find_conflicts(db, unit.id, start, end, exclude_booking_id=own.id) == []

    def test_ordered_by_start(self, db, make_unit):
        unit = make_unit()
        late = _add(db, unit.id, "20240620", "20240625")
        early = _add(db, unit.id, "20240601", "20240605")
        start, end = booking_window("20240601", "20240630")
        assert [b.id for b in find_conflicts(db, unit.id, start, end)] == [early.id, late.id]

    def test_invalid_window(self, db, make_unit):
        unit = make_unit()
        start, end = booking_window("20240601", "20240605")
        with pytest.raises(ValidationError):
            find_conflicts(db, unit.id, end, start)
