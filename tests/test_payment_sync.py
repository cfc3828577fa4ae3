"""
Unit tests for payment -> booking synchronization and the payment operations.
Run: pytest tests/test_payment_sync.py -v
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging
import pytest
from datetime import date
from unittest.mock import MagicMock, patch

from app.exceptions import InvalidState, NotFound, ValidationError
from app.models.booking import BookingStatus
from app.models.payment import PaymentStatus
from app.services import booking_service, booking_store, payment_sync
from app.utils.dates import booking_window

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def booking(db, make_unit):
    start, end = booking_window("20240601", "20240605")
    return booking_service.create_booking(db, make_unit().id, 42, start, end, today=date(2024, 5, 1))


def _reload(db, booking):
    return booking_store.get_booking(db, booking.id)


class TestSync:

    def test_paid_approves_pending_booking(self, db, booking):
        payment_sync.set_payment_status(db, booking.transaction_id, PaymentStatus.PAID)
        synced = _reload(db, booking)
        assert synced.status == BookingStatus.APPROVED
        assert synced.status_note == payment_sync.NOTE_PAYMENT_VERIFIED

    def test_pending_only_annotates(self, db, booking):
        payment_sync.set_payment_status(db, booking.transaction_id, PaymentStatus.PENDING)
        synced = _reload(db, booking)
        assert synced.status == BookingStatus.PENDING
        assert synced.status_note == payment_sync.NOTE_AWAITING_VERIFICATION

    def test_unpaid_asks_for_new_proof(self, db, booking):
        payment_sync.set_payment_status(db, booking.transaction_id, PaymentStatus.UNPAID)
        synced = _reload(db, booking)
        assert synced.status == BookingStatus.PENDING
        assert synced.status_note == payment_sync.NOTE_REUPLOAD

    def test_unpaid_after_approval_is_not_downgraded(self, db, booking, caplog):
        booking_service.approve_booking(db, booking.id)
        with caplog.at_level(logging.WARNING):
            payment_sync.set_payment_status(db, booking.transaction_id, PaymentStatus.UNPAID)

        synced = _reload(db, booking)
        assert synced.status == BookingStatus.APPROVED
        assert synced.status_note.startswith("WARNING")
        assert "manual intervention" in caplog.text

    def test_rejected_booking_untouched(self, db, booking):
        booking_service.reject_booking(db, booking.id, "wrong dates")
        payment_sync.set_payment_status(db, booking.transaction_id, PaymentStatus.PAID)
        synced = _reload(db, booking)
        assert synced.status == BookingStatus.REJECTED
        assert synced.status_note == "Booking rejected: wrong dates"

    def test_payment_without_booking(self, db):
        assert payment_sync.on_payment_status_changed(db, 12345, PaymentStatus.PAID) is None

    def test_sync_errors_are_swallowed(self, db, booking, caplog):
        with patch("app.services.payment_sync.apply_transition", side_effect=RuntimeError("db gone")), \
             caplog.at_level(logging.ERROR):
            payment = payment_sync.set_payment_status(db, booking.transaction_id, PaymentStatus.PAID)

        assert payment.payment_status == PaymentStatus.PAID
        assert _reload(db, booking).status == BookingStatus.PENDING
        assert "Sync failed" in caplog.text

    def test_database_error_rolls_back(self):
        db = MagicMock()
        db.query.side_effect = RuntimeError("connection reset")

        assert payment_sync.on_payment_status_changed(db, 7, PaymentStatus.PAID) is None
        db.rollback.assert_called_once()

    def test_unknown_payment(self, db):
        with pytest.raises(NotFound):
            payment_sync.set_payment_status(db, 999, PaymentStatus.PAID)


class TestProofUpload:

    def test_upload_then_approve(self, db, booking):
        payment = payment_sync.upload_payment_proof(db, booking.transaction_id, PNG, "image/png")
        assert payment.has_proof
        assert payment.payment_status == PaymentStatus.PENDING
        assert _reload(db, booking).status_note == payment_sync.NOTE_AWAITING_VERIFICATION

        payment_sync.approve_payment(db, booking.transaction_id)
        assert _reload(db, booking).status == BookingStatus.APPROVED

    def test_content_type_parameters_ignored(self, db, booking):
        payment = payment_sync.upload_payment_proof(db, booking.transaction_id, PNG, "Image/JPEG; charset=binary")
        assert payment.proof_content_type == "image/jpeg"

    @pytest.mark.parametrize("image, content_type", [
        (b"", "image/png"),
        (PNG, "application/pdf"),
    ])
    def test_rejects_bad_files(self, db, booking, image, content_type):
        with pytest.raises(ValidationError):
            payment_sync.upload_payment_proof(db, booking.transaction_id, image, content_type)

    def test_rejects_oversized_file(self, db, booking):
        with patch("app.services.payment_sync.settings.MAX_PROOF_BYTES", 16):
            with pytest.raises(ValidationError, match="may not exceed"):
                payment_sync.upload_payment_proof(db, booking.transaction_id, PNG, "image/png")

    def test_no_upload_after_rejection(self, db, booking):
        booking_service.reject_booking(db, booking.id, "wrong dates")
        with pytest.raises(InvalidState):
            payment_sync.upload_payment_proof(db, booking.transaction_id, PNG, "image/png")

    def test_approve_without_proof(self, db, booking):
        with pytest.raises(InvalidState, match="no proof"):
            payment_sync.approve_payment(db, booking.transaction_id)

    def test_approve_twice(self, db, booking):
        payment_sync.upload_payment_proof(db, booking.transaction_id, PNG, "image/png")
        payment_sync.approve_payment(db, booking.transaction_id)
        with pytest.raises(InvalidState, match="already verified"):
            payment_sync.approve_payment(db, booking.transaction_id)
