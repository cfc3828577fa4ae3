# app/schemas/booking.py
from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional

from app.models.booking import BookingKind, BookingStatus
from app.models.payment import PaymentStatus


class BookingCreate(BaseModel):
    vehicle_unit_id: int
    start_date: str          # YYYYMMDD
    end_date: str            # YYYYMMDD, inclusive
    note: Optional[str] = None


class BookingReject(BaseModel):
    reason: str = ""
    payment_status: Optional[PaymentStatus] = None   # None leaves the payment untouched


class BookingStatusUpdate(BaseModel):
    status: BookingStatus    # on_going | overtime | done


class ConflictOut(BaseModel):
    booking_id: int
    start_date: str
    end_date: str
    status: str


class BookingOut(BaseModel):
    id: int
    unit_id: int
    requester_id: int
    start_at: datetime
    end_at: datetime
    status: BookingStatus
    kind: BookingKind
    status_note: Optional[str]
    transaction_id: Optional[int]
    created_at: datetime
    status_updated_at: datetime

    class Config:
        from_attributes = True


class BookingDetailOut(BookingOut):
    payment_status: Optional[PaymentStatus] = None
    price_per_day: Decimal
    duration_days: int
    total_price: Decimal
