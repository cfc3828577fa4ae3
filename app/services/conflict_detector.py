# app/services/conflict_detector.py
"""
Conflict detection for a unit's calendar.
Intervals are inclusive on both ends: [s1, e1] and [s2, e2] conflict iff
s1 <= e2 and s2 <= e1. A booking ending on day N therefore conflicts with one
starting on day N. Only pending, approved and on_going bookings block.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.exceptions import ValidationError
from app.models.booking import Booking, ACTIVE_STATUSES
from app.services import booking_store


def overlaps(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    return s1 <= e2 and s2 <= e1


def find_conflicts(db: Session, unit_id: int, start: datetime, end: datetime,
                   exclude_booking_id: Optional[int] = None) -> list[Booking]:
    """Active bookings of `unit_id` overlapping [start, end], oldest start first. Read-only."""
    if start >= end:
        raise ValidationError("start must be before end")

    candidates = booking_store.query_bookings_by_unit_and_range(
        db, unit_id, start, end, statuses=ACTIVE_STATUSES
    )
    return [
        b for b in candidates
        if b.id != exclude_booking_id and overlaps(b.start_at, b.end_at, start, end)
    ]
