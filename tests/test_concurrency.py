"""
Concurrent create requests against the same unit.
Each worker uses its own session, like separate API requests do.
Run: pytest tests/test_concurrency.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import threading
from datetime import date

from app.exceptions import ScheduleConflict
from app.models.booking import Booking
from app.models.payment import Payment
from app.services import booking_service, unit_lock
from app.utils.dates import booking_window

WORKERS = 8


def _race(session_factory, requests):
    """Run one create per (unit_id, start_date, end_date) tuple, all released at once."""
    barrier = threading.Barrier(len(requests))
    outcomes = []
    outcomes_lock = threading.Lock()

    def worker(requester_id, unit_id, start_date, end_date):
        session = session_factory()
        start, end = booking_window(start_date, end_date)
        try:
            barrier.wait()
            booking_service.create_booking(session, unit_id, requester_id, start, end, today=date(2024, 5, 1))
            outcome = "created"
        except ScheduleConflict:
            outcome = "conflict"
        finally:
            session.close()
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker, args=(i + 100, *req)) for i, req in enumerate(requests)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


class TestConcurrentCreate:

    def test_only_one_overlapping_create_wins(self, db, session_factory, make_unit):
        unit = make_unit()
        windows = [("20240601", "20240605"), ("20240603", "20240608"), ("20240605", "20240605")]
        requests = [(unit.id, *windows[i % len(windows)]) for i in range(WORKERS)]

        outcomes = _race(session_factory, requests)

        assert outcomes.count("created") == 1
        assert outcomes.count("conflict") == WORKERS - 1
        assert db.query(Booking).count() == 1
        assert db.query(Payment).count() == 1

    def test_different_units_do_not_block_each_other(self, db, session_factory, make_unit):
        units = [make_unit() for _ in range(4)]
        requests = [(u.id, "20240601", "20240605") for u in units]

        outcomes = _race(session_factory, requests)

        assert outcomes == ["created"] * len(units)
        assert db.query(Booking).count() == len(units)


class TestUnitLockRegistry:

    def test_same_unit_shares_one_lock(self):
        held = unit_lock._lock_for(5)
        assert unit_lock._lock_for(5) is held
        assert unit_lock._lock_for(6) is not held

    def test_unknown_unit_leaves_no_lock_behind(self, db):
        with unit_lock.unit_guard(db, 987654) as unit:
            assert unit is None
            assert 987654 in unit_lock._unit_locks
        assert 987654 not in unit_lock._unit_locks
