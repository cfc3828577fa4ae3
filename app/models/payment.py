# app/models/payment.py
"""
Payments table. One row per booking, created just before the booking itself.
payment_status: unpaid (proof rejected) | pending (awaiting verification) | paid
Admin blocks get a zero-amount payment created directly as paid.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Numeric, LargeBinary, Enum
from app.database import Base


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, enum.Enum):
    QRIS = "qris"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    method = Column(Enum(PaymentMethod, native_enum=False, length=20, values_callable=_enum_values),
                    nullable=False, default=PaymentMethod.QRIS)
    amount = Column(Numeric(14, 2), nullable=False, default=0)
    payment_status = Column(Enum(PaymentStatus, native_enum=False, length=20, values_callable=_enum_values),
                            nullable=False, default=PaymentStatus.PENDING, index=True)
    proof_image = Column(LargeBinary)
    proof_content_type = Column(String(50))
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    @property
    def has_proof(self) -> bool:
        return bool(self.proof_image)

    def __repr__(self):
        return f"<Payment {self.id} amount={self.amount} status={self.payment_status}>"
