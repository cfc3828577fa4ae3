# app/services/booking_store.py
"""
Persistence commands and queries for bookings, payments and unit lookups.
Every command commits on its own; callers that need a multi-step write
(create = payment then booking) order the calls and compensate on failure.
"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.models.booking import Booking, BookingKind, BookingStatus, TERMINAL_STATUSES
from app.models.payment import Payment, PaymentStatus
from app.models.vehicle_unit import VehicleUnit
from app.utils.logger import get_logger

logger = get_logger(__name__)


# ── Units ────────────────────────────────────────────────────────────────────

def get_unit(db: Session, unit_id: int) -> Optional[VehicleUnit]:
    return db.query(VehicleUnit).filter(VehicleUnit.id == unit_id).first()


def get_unit_by_code(db: Session, code: str) -> Optional[VehicleUnit]:
    return db.query(VehicleUnit).filter(VehicleUnit.code == code).first()


def list_units(db: Session) -> list[VehicleUnit]:
    return db.query(VehicleUnit).order_by(VehicleUnit.id).all()


# ── Bookings ─────────────────────────────────────────────────────────────────

def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
    return db.query(Booking).filter(Booking.id == booking_id).first()


def get_booking_by_transaction(db: Session, transaction_id: int) -> Optional[Booking]:
    return db.query(Booking).filter(Booking.transaction_id == transaction_id).first()


def insert_booking(db: Session, booking: Booking) -> Booking:
    now = datetime.utcnow()
    booking.created_at = now
    booking.status_updated_at = now
    booking.updated_at = now
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def update_booking(db: Session, booking: Booking, status_changed: bool = False) -> Booking:
    now = datetime.utcnow()
    booking.updated_at = now
    if status_changed:
        booking.status_updated_at = now
    db.commit()
    db.refresh(booking)
    return booking


def delete_booking(db: Session, booking_id: int) -> bool:
    deleted = db.query(Booking).filter(Booking.id == booking_id).delete(synchronize_session="fetch")
    db.commit()
    return deleted > 0


def query_bookings_by_unit_and_range(db: Session, unit_id: int, start: datetime, end: datetime,
                                     statuses: Optional[Iterable[BookingStatus]] = None) -> list[Booking]:
    """Bookings of one unit whose inclusive [start_at, end_at] touches [start, end]."""
    q = db.query(Booking).filter(
        Booking.unit_id == unit_id,
        Booking.start_at <= end,
        Booking.end_at >= start,
    )
    if statuses is not None:
        q = q.filter(Booking.status.in_(list(statuses)))
    return q.order_by(Booking.start_at.asc()).all()


def query_bookings_in_range(db: Session, start: datetime, end: datetime,
                            statuses: Iterable[BookingStatus]) -> list[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.start_at <= end, Booking.end_at >= start, Booking.status.in_(list(statuses)))
        .order_by(Booking.start_at.asc())
        .all()
    )


def query_bookings_by_status(db: Session, status: BookingStatus) -> list[Booking]:
    return db.query(Booking).filter(Booking.status == status).order_by(Booking.start_at.asc()).all()


def query_unit_schedule(db: Session, unit_id: int) -> list[Booking]:
    return db.query(Booking).filter(Booking.unit_id == unit_id).order_by(Booking.start_at.asc()).all()


def query_admin_blocks(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None,
                       unit_id: Optional[int] = None) -> list[Booking]:
    q = db.query(Booking).filter(Booking.kind == BookingKind.ADMIN_BLOCK)
    if start is not None:
        q = q.filter(Booking.end_at >= start)
    if end is not None:
        q = q.filter(Booking.start_at <= end)
    if unit_id is not None:
        q = q.filter(Booking.unit_id == unit_id)
    return q.order_by(Booking.start_at.asc()).all()


# ── Payments ─────────────────────────────────────────────────────────────────

def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.id == payment_id).first()


def insert_payment(db: Session, payment: Payment) -> Payment:
    now = datetime.utcnow()
    payment.created_at = now
    payment.updated_at = now
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return payment


def update_payment_status(db: Session, payment: Payment, status: PaymentStatus) -> Payment:
    payment.payment_status = status
    payment.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(payment)
    return payment


def store_payment_proof(db: Session, payment: Payment, image: bytes, content_type: str) -> Payment:
    payment.proof_image = image
    payment.proof_content_type = content_type
    payment.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(payment)
    return payment


def delete_payment(db: Session, payment_id: int) -> bool:
    deleted = db.query(Payment).filter(Payment.id == payment_id).delete(synchronize_session="fetch")
    db.commit()
    return deleted > 0


def query_unpaid_payments(db: Session, requester_id: Optional[int] = None) -> list[Payment]:
    """Payments not yet paid whose booking is still open, optionally for one requester."""
    q = (
        db.query(Payment)
        .join(Booking, Booking.transaction_id == Payment.id)
        .filter(
            Payment.payment_status != PaymentStatus.PAID,
            Booking.status.notin_(list(TERMINAL_STATUSES)),
        )
    )
    if requester_id is not None:
        q = q.filter(Booking.requester_id == requester_id)
    return q.order_by(Payment.id.asc()).all()
