# app/services/schedule_block_service.py
"""
Admin schedule blocks (maintenance windows, admin holds).

A block is an ordinary bookings row with kind=admin_block, created approved
with a zero-amount paid payment, so it takes part in the same conflict checks
as customer bookings. Blocking several units is best effort: each unit is
tried on its own and reported separately.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    InvalidOperation, InvalidState, ScheduleConflict, SchedulerError, ValidationError,
)
from app.models.booking import Booking, BookingKind, TERMINAL_STATUSES
from app.services import booking_store
from app.services.booking_service import block_note, create_booking, require_booking
from app.services.conflict_detector import find_conflicts
from app.services.unit_lock import unit_guard
from app.utils.dates import days_between, format_yyyymmdd
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BlockResult:
    unit_id: int
    success: bool
    message: str
    booking_id: Optional[int] = None
    conflicts: list = field(default_factory=list)


@dataclass
class BlockReport:
    start: datetime
    end: datetime
    results: list[BlockResult]

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.success_count


def block_schedule(db: Session, unit_ids: list[int], start: datetime, end: datetime,
                   note: Optional[str], admin_id: int) -> BlockReport:
    if not unit_ids:
        raise ValidationError("At least one vehicle unit id is required")
    if start >= end:
        raise ValidationError("start must be before end")

    results = []
    for unit_id in unit_ids:
        results.append(_block_unit(db, unit_id, start, end, note, admin_id))

    report = BlockReport(start=start, end=end, results=results)
    logger.info(f"[BLOCK] Admin {admin_id} blocked {format_yyyymmdd(start)}..{format_yyyymmdd(end)}: "
                f"{report.success_count} ok, {report.failed_count} failed")
    return report


def _block_unit(db: Session, unit_id: int, start: datetime, end: datetime,
                note: Optional[str], admin_id: int) -> BlockResult:
    try:
        booking = create_booking(db, unit_id, admin_id, start, end, note=note, kind=BookingKind.ADMIN_BLOCK)
    except ScheduleConflict as exc:
        return BlockResult(unit_id=unit_id, success=False, message=exc.message, conflicts=exc.details)
    except SchedulerError as exc:
        return BlockResult(unit_id=unit_id, success=False, message=exc.message)
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"[BLOCK] Persistence failure while blocking unit {unit_id}", exc_info=True)
        return BlockResult(unit_id=unit_id, success=False, message="Could not create the schedule block")
    return BlockResult(unit_id=unit_id, success=True, message="Schedule blocked", booking_id=booking.id)


def unblock_schedule(db: Session, booking_id: int):
    """Delete an admin block and its zero-amount payment. Customer bookings are refused."""
    booking = require_booking(db, booking_id)
    if booking.kind != BookingKind.ADMIN_BLOCK:
        raise InvalidOperation(f"Booking {booking_id} is not an admin schedule block")

    unit_id, transaction_id = booking.unit_id, booking.transaction_id
    booking_store.delete_booking(db, booking_id)
    if transaction_id is not None:
        booking_store.delete_payment(db, transaction_id)
    logger.info(f"[BLOCK] Unblocked #{booking_id} unit={unit_id}")


def reschedule_block(db: Session, booking_id: int, start: datetime, end: datetime,
                     note: Optional[str], is_admin: bool) -> Booking:
    """
    Move a booking to [start, end]. Admin blocks can always be moved; customer
    bookings only by an admin. The booking's own interval never counts as a conflict.
    """
    if start >= end:
        raise ValidationError("start must be before end")

    booking = require_booking(db, booking_id)
    if booking.kind != BookingKind.ADMIN_BLOCK and not is_admin:
        raise InvalidOperation("Only admin schedule blocks can be rescheduled through this operation")
    if booking.status in TERMINAL_STATUSES:
        raise InvalidState(f"Booking {booking_id} is {booking.status.value} and cannot be rescheduled")

    with unit_guard(db, booking.unit_id):
        conflicts = find_conflicts(db, booking.unit_id, start, end, exclude_booking_id=booking_id)
        if conflicts:
            raise ScheduleConflict(
                f"Another booking conflicts with {format_yyyymmdd(start)}..{format_yyyymmdd(end)}", conflicts
            )

        booking.start_at = start
        booking.end_at = end
        if booking.kind == BookingKind.ADMIN_BLOCK:
            booking.status_note = block_note(note)
        elif note is not None:
            booking.status_note = note

        try:
            booking_store.update_booking(db, booking)
        except IntegrityError as exc:
            db.rollback()
            raise ScheduleConflict(
                f"Another booking conflicts with {format_yyyymmdd(start)}..{format_yyyymmdd(end)}",
                find_conflicts(db, booking.unit_id, start, end, exclude_booking_id=booking_id),
            ) from exc

    logger.info(f"[BLOCK] Rescheduled #{booking_id} to {format_yyyymmdd(start)}..{format_yyyymmdd(end)}")
    return booking


# ── Queries ──────────────────────────────────────────────────────────────────

def strip_marker(note: Optional[str]) -> Optional[str]:
    prefix = f"{settings.ADMIN_BLOCK_MARKER}: "
    if note and note.startswith(prefix):
        return note[len(prefix):]
    return note


def list_blocks(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None,
                unit_id: Optional[int] = None) -> list[Booking]:
    return booking_store.query_admin_blocks(db, start, end, unit_id)


def blocked_dates(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
    """One entry per calendar day with the blocks covering it, ordered by date."""
    units = {}
    by_day = defaultdict(list)
    for block in booking_store.query_admin_blocks(db, start, end):
        if block.unit_id not in units:
            units[block.unit_id] = booking_store.get_unit(db, block.unit_id)
        unit = units[block.unit_id]
        for day in days_between(block.start_at, block.end_at):
            if start is not None and day < start.date():
                continue
            if end is not None and day > end.date():
                continue
            by_day[day].append({
                "booking_id": block.id,
                "unit_id": block.unit_id,
                "unit_code": unit.code if unit else None,
                "vehicle_name": unit.vehicle_name if unit else None,
                "note": strip_marker(block.status_note),
            })

    return [
        {"date": format_yyyymmdd(day), "blocked_count": len(entries), "blocks": entries}
        for day, entries in sorted(by_day.items())
    ]


def describe_result(result: BlockResult) -> dict:
    return {
        "unit_id": result.unit_id,
        "success": result.success,
        "message": result.message,
        "booking_id": result.booking_id,
        "conflicts": result.conflicts,
    }
