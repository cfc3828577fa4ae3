# app/services/availability_service.py
"""
Availability lookups for customers and admins.
A unit is available for a window when no active booking overlaps it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.exceptions import NotFound, ValidationError
from app.models.booking import Booking, ACTIVE_STATUSES
from app.models.vehicle_unit import VehicleUnit
from app.services import booking_store
from app.services.conflict_detector import find_conflicts
from app.utils.dates import format_yyyymmdd
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Availability:
    unit: VehicleUnit
    start: datetime
    end: datetime
    conflicts: list[Booking]

    @property
    def available(self) -> bool:
        return not self.conflicts


def resolve_unit(db: Session, unit_id: Optional[int] = None, unit_code: Optional[str] = None) -> VehicleUnit:
    if unit_id is None and not unit_code:
        raise ValidationError("Either a unit id or a unit code is required")
    unit = booking_store.get_unit(db, unit_id) if unit_id is not None else booking_store.get_unit_by_code(db, unit_code)
    if not unit:
        raise NotFound(f"Vehicle unit {unit_id if unit_id is not None else unit_code} not found")
    return unit


def check_availability(db: Session, start: datetime, end: datetime,
                       unit_id: Optional[int] = None, unit_code: Optional[str] = None) -> Availability:
    unit = resolve_unit(db, unit_id, unit_code)
    conflicts = find_conflicts(db, unit.id, start, end)
    logger.debug(f"[AVAILABILITY] Unit {unit.code} {format_yyyymmdd(start)}..{format_yyyymmdd(end)}: "
                 f"{len(conflicts)} conflict(s)")
    return Availability(unit=unit, start=start, end=end, conflicts=conflicts)


def available_units(db: Session, start: datetime, end: datetime) -> list[VehicleUnit]:
    """Units with no active booking anywhere in [start, end]."""
    busy = {b.unit_id for b in booking_store.query_bookings_in_range(db, start, end, ACTIVE_STATUSES)}
    return [u for u in booking_store.list_units(db) if u.id not in busy]
