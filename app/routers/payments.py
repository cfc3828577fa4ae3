# app/routers/payments.py
"""
Payment endpoints. Every status change is followed by booking synchronization
(app/services/payment_sync.py); a sync problem never fails these requests.
POST /payments/{id}/proof takes the raw image as the request body.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session
from app.database import get_db
from app.routers.actor import Actor, get_actor, require_admin
from app.schemas.payment import PaymentOut, PaymentStatusUpdate
from app.services import booking_store, payment_sync
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _check_owner(db: Session, payment_id: int, actor: Actor):
    if actor.is_admin:
        return
    booking = booking_store.get_booking_by_transaction(db, payment_id)
    if booking and booking.requester_id != actor.user_id:
        raise HTTPException(status_code=403, detail="Not your payment")


@router.get("/payments/unpaid", response_model=list[PaymentOut], summary="Payments awaiting payment or verification")
def list_unpaid(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Admins see every open payment; customers only those of their own bookings."""
    return payment_sync.list_unpaid_payments(db, None if actor.is_admin else actor.user_id)


@router.get("/payments/{payment_id}", response_model=PaymentOut, summary="Payment detail")
def get_payment(payment_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    payment = payment_sync.require_payment(db, payment_id)
    _check_owner(db, payment_id, actor)
    return payment


@router.put("/payments/{payment_id}/status", response_model=PaymentOut, summary="Admin — set payment status")
def set_payment_status(payment_id: int, body: PaymentStatusUpdate, _: Actor = Depends(require_admin),
                       db: Session = Depends(get_db)):
    return payment_sync.set_payment_status(db, payment_id, body.status)


@router.post("/payments/{payment_id}/proof", response_model=PaymentOut, summary="Upload proof of payment")
async def upload_proof(payment_id: int, request: Request, actor: Actor = Depends(get_actor),
                       db: Session = Depends(get_db)):
    """Body: the JPG/PNG image itself, with a matching Content-Type header."""
    raw_body = await request.body()
    content_type = request.headers.get("content-type", "")
    logger.info(f"Proof for payment #{payment_id} | {len(raw_body)} bytes | {content_type}")
    _check_owner(db, payment_id, actor)
    return payment_sync.upload_payment_proof(db, payment_id, raw_body, content_type)


@router.get("/payments/{payment_id}/proof", summary="Download the uploaded proof of payment")
def download_proof(payment_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    _check_owner(db, payment_id, actor)
    payment = payment_sync.get_payment_proof(db, payment_id)
    return Response(content=payment.proof_image, media_type=payment.proof_content_type)


@router.post("/payments/{payment_id}/approve", response_model=PaymentOut, summary="Admin — verify a payment")
def approve_payment(payment_id: int, _: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return payment_sync.approve_payment(db, payment_id)
