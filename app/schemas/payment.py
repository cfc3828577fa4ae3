# app/schemas/payment.py
from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal

from app.models.payment import PaymentMethod, PaymentStatus


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus


class PaymentOut(BaseModel):
    id: int
    method: PaymentMethod
    amount: Decimal
    payment_status: PaymentStatus
    has_proof: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
