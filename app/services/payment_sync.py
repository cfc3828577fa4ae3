# app/services/payment_sync.py
"""
Payment -> booking synchronization, plus the payment operations that trigger it.

Rules (booking found by payments.id == bookings.transaction_id):
  paid    + booking pending  -> booking approved
  pending                    -> booking stays pending, note says awaiting verification
  unpaid  + booking pending  -> booking stays pending, note asks for a new proof
  unpaid  + booking approved -> booking NOT downgraded, warning note for manual review
Rejected/done bookings are never touched.

Sync failures are logged and swallowed: the payment write has already been
committed by then and must not be reported as failed.
"""

from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import InvalidState, NotFound, ValidationError
from app.models.booking import Booking, BookingStatus, TERMINAL_STATUSES
from app.models.payment import Payment, PaymentStatus
from app.services import booking_store
from app.services.booking_service import apply_transition
from app.utils.logger import get_logger

logger = get_logger(__name__)

NOTE_PAYMENT_VERIFIED = "Payment verified, booking approved"
NOTE_AWAITING_VERIFICATION = "Payment proof uploaded, awaiting verification"
NOTE_REUPLOAD = "Payment proof rejected. Please upload a valid proof of payment."
NOTE_RETRACTED_AFTER_APPROVAL = (
    "WARNING: payment was set to unpaid after the booking was approved. "
    "Manual review by an admin is required."
)


def on_payment_status_changed(db: Session, transaction_id: int, new_status: PaymentStatus) -> Optional[Booking]:
    """Propagate a payment status change to its booking. Never raises."""
    try:
        return _sync(db, transaction_id, new_status)
    except Exception:
        db.rollback()
        logger.error(f"[PAYMENT] Sync failed for payment #{transaction_id} -> {new_status.value}", exc_info=True)
        return None


def _sync(db: Session, transaction_id: int, new_status: PaymentStatus) -> Optional[Booking]:
    booking = booking_store.get_booking_by_transaction(db, transaction_id)
    if not booking:
        logger.warning(f"[PAYMENT] No booking references payment #{transaction_id}, nothing to sync")
        return None

    if booking.status in TERMINAL_STATUSES:
        logger.info(f"[PAYMENT] Booking #{booking.id} is {booking.status.value}, sync skipped")
        return booking

    if new_status == PaymentStatus.PAID:
        if booking.status == BookingStatus.PENDING:
            apply_transition(db, booking, BookingStatus.APPROVED, NOTE_PAYMENT_VERIFIED)
        return booking

    if new_status == PaymentStatus.PENDING:
        if booking.status == BookingStatus.PENDING:
            _set_note(db, booking, NOTE_AWAITING_VERIFICATION)
        return booking

    if booking.status == BookingStatus.PENDING:
        _set_note(db, booking, NOTE_REUPLOAD)
    elif booking.status == BookingStatus.APPROVED:
        logger.warning(f"[PAYMENT] Payment #{transaction_id} retracted after booking #{booking.id} "
                       f"was approved, manual intervention required")
        _set_note(db, booking, NOTE_RETRACTED_AFTER_APPROVAL)
    return booking


def _set_note(db: Session, booking: Booking, note: str):
    booking.status_note = note
    booking_store.update_booking(db, booking, status_changed=True)


# ── Payment operations ───────────────────────────────────────────────────────

def require_payment(db: Session, payment_id: int) -> Payment:
    payment = booking_store.get_payment(db, payment_id)
    if not payment:
        raise NotFound(f"Payment {payment_id} not found")
    return payment


def get_payment_proof(db: Session, payment_id: int) -> Payment:
    payment = require_payment(db, payment_id)
    if not payment.has_proof:
        raise NotFound(f"Payment {payment_id} has no proof of payment")
    return payment


def list_unpaid_payments(db: Session, requester_id: Optional[int] = None) -> list[Payment]:
    return booking_store.query_unpaid_payments(db, requester_id)


def set_payment_status(db: Session, transaction_id: int, new_status: PaymentStatus) -> Payment:
    """Admin override of a payment's status, followed by booking sync."""
    payment = require_payment(db, transaction_id)
    booking_store.update_payment_status(db, payment, new_status)
    logger.info(f"[PAYMENT] #{transaction_id} set to {new_status.value}")
    on_payment_status_changed(db, transaction_id, new_status)
    return payment


def upload_payment_proof(db: Session, transaction_id: int, image: bytes, content_type: str) -> Payment:
    """Store a customer's proof of payment; the payment goes back to pending verification."""
    if not image:
        raise ValidationError("The proof of payment file is empty")
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type not in settings.ALLOWED_PROOF_TYPES:
        raise ValidationError("Unsupported file type, use JPG or PNG")
    if len(image) > settings.MAX_PROOF_BYTES:
        raise ValidationError(f"Proof of payment may not exceed {settings.MAX_PROOF_BYTES // (1024 * 1024)}MB")

    payment = require_payment(db, transaction_id)
    booking = booking_store.get_booking_by_transaction(db, transaction_id)
    if not booking:
        raise NotFound(f"No booking references payment {transaction_id}")
    if booking.status == BookingStatus.REJECTED:
        raise InvalidState(f"Booking {booking.id} was rejected; proof of payment can no longer be uploaded")
    if payment.payment_status == PaymentStatus.PAID:
        raise InvalidState(f"Payment {transaction_id} is already verified")

    booking_store.store_payment_proof(db, payment, image, content_type)
    booking_store.update_payment_status(db, payment, PaymentStatus.PENDING)
    logger.info(f"[PAYMENT] Proof uploaded for #{transaction_id} ({len(image)} bytes)")
    on_payment_status_changed(db, transaction_id, PaymentStatus.PENDING)
    return payment


def approve_payment(db: Session, transaction_id: int) -> Payment:
    """Verify an uploaded proof: pending -> paid, which approves a pending booking."""
    payment = require_payment(db, transaction_id)
    if payment.payment_status == PaymentStatus.PAID:
        raise InvalidState(f"Payment {transaction_id} is already verified")
    if payment.payment_status == PaymentStatus.UNPAID or not payment.has_proof:
        raise InvalidState(f"Payment {transaction_id} has no proof of payment to approve")
    booking_store.update_payment_status(db, payment, PaymentStatus.PAID)
    logger.info(f"[PAYMENT] #{transaction_id} verified")
    on_payment_status_changed(db, transaction_id, PaymentStatus.PAID)
    return payment
