# app/routers/bookings.py
"""
Booking endpoints: create, read, admin approve/reject, tracking status, delete.
Handlers stay thin; rules live in app/services/booking_service.py.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.booking import BookingStatus
from app.routers.actor import Actor, get_actor, require_admin
from app.schemas.booking import BookingCreate, BookingReject, BookingStatusUpdate, BookingOut, BookingDetailOut
from app.services import booking_service, booking_store
from app.utils.dates import booking_window

router = APIRouter()


@router.post("/bookings", response_model=BookingOut, status_code=201, summary="Create a booking")
def create_booking(body: BookingCreate, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Reserve a unit for whole days. Responds 409 with the conflicting bookings if the unit is busy."""
    start, end = booking_window(body.start_date, body.end_date)
    return booking_service.create_booking(db, body.vehicle_unit_id, actor.user_id, start, end, note=body.note)


@router.get("/bookings", response_model=list[BookingOut], summary="List bookings by status")
def list_bookings(status: BookingStatus = BookingStatus.PENDING, actor: Actor = Depends(get_actor),
                  db: Session = Depends(get_db)):
    bookings = booking_service.list_bookings_by_status(db, status)
    if not actor.is_admin:
        bookings = [b for b in bookings if b.requester_id == actor.user_id]
    return bookings


@router.get("/bookings/unit/{unit_id}", response_model=list[BookingOut], summary="Full schedule of a unit")
def get_unit_schedule(unit_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    bookings = booking_service.unit_schedule(db, unit_id)
    if not actor.is_admin:
        bookings = [b for b in bookings if b.requester_id == actor.user_id]
    return bookings


@router.get("/bookings/{booking_id}", response_model=BookingDetailOut, summary="Booking detail with price")
def get_booking(booking_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    booking = booking_service.require_booking(db, booking_id)
    if not actor.is_admin and booking.requester_id != actor.user_id:
        raise HTTPException(status_code=403, detail="Not your booking")

    payment = booking_store.get_payment(db, booking.transaction_id) if booking.transaction_id else None
    detail = BookingOut.model_validate(booking).model_dump()
    detail.update(booking_service.price_details(db, booking))
    detail["payment_status"] = payment.payment_status if payment else None
    return detail


@router.put("/bookings/{booking_id}/approve", response_model=BookingOut, summary="Admin — approve a booking")
def approve_booking(booking_id: int, _: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return booking_service.approve_booking(db, booking_id)


@router.put("/bookings/{booking_id}/reject", response_model=BookingOut, summary="Admin — reject a booking")
def reject_booking(booking_id: int, body: BookingReject, _: Actor = Depends(require_admin),
                   db: Session = Depends(get_db)):
    """Reason is mandatory. Optionally sets the linked payment's status at the same time."""
    return booking_service.reject_booking(db, booking_id, body.reason, body.payment_status)


@router.put("/bookings/{booking_id}/status", response_model=BookingOut, summary="Admin — rental progress")
def update_booking_status(booking_id: int, body: BookingStatusUpdate, _: Actor = Depends(require_admin),
                          db: Session = Depends(get_db)):
    """Pickup/return tracking: approved -> on_going -> overtime/done."""
    return booking_service.advance_booking(db, booking_id, body.status)


@router.delete("/bookings/{booking_id}", summary="Admin — delete a booking and its payment")
def delete_booking(booking_id: int, _: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    booking_service.delete_booking(db, booking_id)
    return {"id": booking_id, "status": "deleted"}
