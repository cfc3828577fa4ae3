# app/services/booking_service.py
"""
Booking state machine.

    pending  -> approved | rejected
    approved -> on_going
    on_going -> overtime | done
    overtime -> done

Create is the one multi-step write: the payment row is inserted first, then the
booking that references it. If the booking insert fails the payment is deleted
again; a failed delete leaves an orphaned payment, which is logged, not raised.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    InvalidOperation, InvalidState, InvalidTransition, NotFound, ScheduleConflict, ValidationError,
)
from app.models.booking import Booking, BookingKind, BookingStatus
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.vehicle_unit import VehicleUnit
from app.services import booking_store
from app.services.conflict_detector import find_conflicts
from app.services.unit_lock import unit_guard
from app.utils.dates import billable_days, format_yyyymmdd
from app.utils.logger import get_logger

logger = get_logger(__name__)

TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.APPROVED, BookingStatus.REJECTED},
    BookingStatus.APPROVED: {BookingStatus.ON_GOING},
    BookingStatus.ON_GOING: {BookingStatus.OVERTIME, BookingStatus.DONE},
    BookingStatus.OVERTIME: {BookingStatus.DONE},
    BookingStatus.REJECTED: set(),
    BookingStatus.DONE: set(),
}

# Moves driven by rental tracking rather than by an admin decision
TRACKING_TARGETS = {BookingStatus.ON_GOING, BookingStatus.OVERTIME, BookingStatus.DONE}

REJECTED_PAYMENT_NOTES = {
    PaymentStatus.UNPAID: "Payment set to unpaid. The customer must upload a valid proof of payment.",
    PaymentStatus.PENDING: "Payment set to pending, awaiting proof verification.",
    PaymentStatus.PAID: "Payment set to paid. The payment is verified but the booking stays rejected.",
}


def validate_transition(current: BookingStatus, target: BookingStatus):
    if target not in TRANSITIONS.get(current, set()):
        raise InvalidTransition(current, target)


def apply_transition(db: Session, booking: Booking, target: BookingStatus,
                     note: Optional[str] = None) -> Booking:
    validate_transition(booking.status, target)
    previous = booking.status
    booking.status = target
    if note is not None:
        booking.status_note = note
    booking_store.update_booking(db, booking, status_changed=True)
    logger.info(f"[BOOKING] #{booking.id} {previous.value} -> {target.value}")
    return booking


def require_booking(db: Session, booking_id: int) -> Booking:
    booking = booking_store.get_booking(db, booking_id)
    if not booking:
        raise NotFound(f"Booking {booking_id} not found")
    return booking


def quote_amount(price_per_day, start: datetime, end: datetime) -> Decimal:
    """price_per_day x ceil(duration in days), at least one day."""
    return Decimal(price_per_day) * billable_days(start, end)


def block_note(note: Optional[str]) -> str:
    return f"{settings.ADMIN_BLOCK_MARKER}: {note or settings.DEFAULT_BLOCK_NOTE}"


# ── Create ───────────────────────────────────────────────────────────────────

def create_booking(db: Session, unit_id: int, requester_id: int, start: datetime, end: datetime,
                   note: Optional[str] = None, kind: BookingKind = BookingKind.CUSTOMER,
                   today: Optional[date] = None) -> Booking:
    """
    Reserve `unit_id` for [start, end].
    Customer bookings start pending with a pending payment of the full price.
    Admin blocks start approved with a zero-amount paid payment and may lie in the past.
    Raises ValidationError, NotFound or ScheduleConflict.
    """
    if start >= end:
        raise ValidationError("start must be before end")
    is_block = kind == BookingKind.ADMIN_BLOCK
    if not is_block and start.date() < (today or date.today()):
        raise ValidationError("Bookings cannot start in the past")

    with unit_guard(db, unit_id) as unit:
        if unit is None:
            raise NotFound(f"Vehicle unit {unit_id} not found")

        conflicts = find_conflicts(db, unit_id, start, end)
        if conflicts:
            logger.info(f"[BOOKING] Unit {unit_id} busy for {format_yyyymmdd(start)}..{format_yyyymmdd(end)}: "
                        f"{[b.id for b in conflicts]}")
            raise ScheduleConflict(_conflict_message(unit_id, start, end), conflicts)

        payment = _create_payment(db, unit, start, end, is_block)
        booking = Booking(
            unit_id=unit_id,
            requester_id=requester_id,
            start_at=start,
            end_at=end,
            status=BookingStatus.APPROVED if is_block else BookingStatus.PENDING,
            kind=kind,
            status_note=block_note(note) if is_block else note,
            transaction_id=payment.id,
        )
        return _insert_booking_or_compensate(db, booking, payment.id)


def _conflict_message(unit_id: int, start: datetime, end: datetime) -> str:
    return f"Vehicle unit {unit_id} is not available between {format_yyyymmdd(start)} and {format_yyyymmdd(end)}"


def _create_payment(db: Session, unit: VehicleUnit, start: datetime, end: datetime, is_block: bool) -> Payment:
    payment = Payment(
        method=PaymentMethod.QRIS,
        amount=Decimal(0) if is_block else quote_amount(unit.price_per_day, start, end),
        payment_status=PaymentStatus.PAID if is_block else PaymentStatus.PENDING,
    )
    try:
        return booking_store.insert_payment(db, payment)
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"[BOOKING] Could not create payment for unit {unit.id}", exc_info=True)
        raise


def _insert_booking_or_compensate(db: Session, booking: Booking, payment_id: int) -> Booking:
    try:
        created = booking_store.insert_booking(db, booking)
    except IntegrityError as exc:
        db.rollback()
        _compensate_payment(db, payment_id)
        # Another process won the race; the exclusion constraint rejected our insert
        conflicts = find_conflicts(db, booking.unit_id, booking.start_at, booking.end_at)
        if conflicts:
            raise ScheduleConflict(_conflict_message(booking.unit_id, booking.start_at, booking.end_at),
                                   conflicts) from exc
        raise
    except SQLAlchemyError:
        db.rollback()
        _compensate_payment(db, payment_id)
        raise

    logger.info(f"[BOOKING] Created #{created.id} unit={created.unit_id} kind={created.kind.value} "
                f"{format_yyyymmdd(created.start_at)}..{format_yyyymmdd(created.end_at)} "
                f"status={created.status.value} payment=#{payment_id}")
    return created


def _compensate_payment(db: Session, payment_id: int):
    try:
        booking_store.delete_payment(db, payment_id)
        logger.warning(f"[BOOKING] Booking insert failed, payment #{payment_id} deleted")
    except SQLAlchemyError:
        db.rollback()
        logger.warning(f"[BOOKING] DATA INTEGRITY: orphaned payment #{payment_id} could not be deleted",
                       exc_info=True)


# ── Admin decisions ──────────────────────────────────────────────────────────

def approve_booking(db: Session, booking_id: int) -> Booking:
    booking = require_booking(db, booking_id)
    if booking.status != BookingStatus.PENDING:
        raise InvalidState(f"Booking {booking_id} is {booking.status.value}; only pending bookings can be approved")
    return apply_transition(db, booking, BookingStatus.APPROVED)


def reject_booking(db: Session, booking_id: int, reason: Optional[str],
                   payment_status: Optional[PaymentStatus] = None) -> Booking:
    """
    Reject a pending booking. An admin may also move the linked payment to
    `payment_status`; moving it to paid requires an uploaded proof of payment.
    All checks run before anything is written.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")
    if len(reason) < settings.MIN_REJECT_REASON_LENGTH:
        raise ValidationError(
            f"The rejection reason must be at least {settings.MIN_REJECT_REASON_LENGTH} characters"
        )

    booking = require_booking(db, booking_id)
    if booking.status != BookingStatus.PENDING:
        raise InvalidState(f"Booking {booking_id} is {booking.status.value}; only pending bookings can be rejected")

    payment = None
    if payment_status is not None:
        if booking.transaction_id is None:
            raise InvalidOperation(f"Booking {booking_id} has no payment to update")
        payment = booking_store.get_payment(db, booking.transaction_id)
        if not payment:
            raise NotFound(f"Payment {booking.transaction_id} not found")
        if payment_status == PaymentStatus.PAID and not payment.has_proof:
            raise InvalidOperation("Cannot mark the payment as paid: no proof of payment was uploaded")

    note = f"Booking rejected: {reason}"
    if payment is not None:
        note = f"{note}. {REJECTED_PAYMENT_NOTES[payment_status]}"

    apply_transition(db, booking, BookingStatus.REJECTED, note)
    if payment is not None:
        booking_store.update_payment_status(db, payment, payment_status)
        logger.info(f"[PAYMENT] #{payment.id} set to {payment_status.value} while rejecting booking #{booking_id}")
    return booking


def advance_booking(db: Session, booking_id: int, target: BookingStatus) -> Booking:
    """Tracking-driven progress: approved -> on_going -> overtime/done."""
    if target not in TRACKING_TARGETS:
        raise InvalidOperation(f"Use approve/reject to move a booking to {target.value}")
    booking = require_booking(db, booking_id)
    return apply_transition(db, booking, target)


def delete_booking(db: Session, booking_id: int):
    """Hard delete of the booking and, if present, its payment."""
    booking = require_booking(db, booking_id)
    transaction_id = booking.transaction_id
    booking_store.delete_booking(db, booking_id)
    if transaction_id is not None:
        booking_store.delete_payment(db, transaction_id)
    logger.info(f"[BOOKING] Deleted #{booking_id} (payment #{transaction_id})")


# ── Queries ──────────────────────────────────────────────────────────────────

def list_bookings_by_status(db: Session, status: BookingStatus) -> list[Booking]:
    return booking_store.query_bookings_by_status(db, status)


def unit_schedule(db: Session, unit_id: int) -> list[Booking]:
    if not booking_store.get_unit(db, unit_id):
        raise NotFound(f"Vehicle unit {unit_id} not found")
    return booking_store.query_unit_schedule(db, unit_id)


def price_details(db: Session, booking: Booking) -> dict:
    unit = booking_store.get_unit(db, booking.unit_id)
    price_per_day = Decimal(unit.price_per_day) if unit else Decimal(0)
    days = billable_days(booking.start_at, booking.end_at)
    return {"price_per_day": price_per_day, "duration_days": days, "total_price": price_per_day * days}
