# app/services/unit_lock.py
"""
Serializes check-then-write sequences per vehicle unit.

Two guards are stacked:
  1. a process-local lock per unit id, held for the whole create/reschedule flow
  2. SELECT ... FOR UPDATE on the unit row (PostgreSQL; ignored by SQLite)
Across processes, the bookings_no_overlap_per_unit exclusion constraint is the
final word: an insert that slips past both guards fails with IntegrityError.

Locks are only referenced weakly by the registry; an entry disappears once no
request holds or waits on it, so unknown unit ids do not accumulate.
"""

import threading
import weakref
from contextlib import contextmanager

from sqlalchemy.orm import Session

from app.models.vehicle_unit import VehicleUnit

_registry_lock = threading.Lock()
_unit_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()


def _lock_for(unit_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _unit_locks.get(unit_id)
        if lock is None:
            lock = threading.Lock()
            _unit_locks[unit_id] = lock
        return lock


@contextmanager
def unit_guard(db: Session, unit_id: int):
    """Hold the unit's lock and yield its row (None if the unit does not exist)."""
    lock = _lock_for(unit_id)
    with lock:
        unit = db.query(VehicleUnit).filter(VehicleUnit.id == unit_id).with_for_update().first()
        yield unit
