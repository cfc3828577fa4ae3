# app/models/booking.py
"""
Bookings table: the interval store for every unit's calendar.
Customer bookings and admin blackout blocks share this table so both take part
in the same overlap checks; `kind` tells them apart.

status lifecycle:
    pending  -> approved | rejected
    approved -> on_going
    on_going -> overtime | done
    overtime -> done
rejected and done are terminal.

On PostgreSQL an exclusion constraint (btree_gist) rejects two active bookings
of the same unit whose inclusive [start_at, end_at] ranges intersect.
"""

import enum

from sqlalchemy import Column, Integer, DateTime, Text, Enum, ForeignKey, DDL, Index, event
from app.database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ON_GOING = "on_going"
    OVERTIME = "overtime"
    DONE = "done"


class BookingKind(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN_BLOCK = "admin_block"


# Statuses that occupy a unit's calendar
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.ON_GOING)
TERMINAL_STATUSES = (BookingStatus.REJECTED, BookingStatus.DONE)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    unit_id = Column(Integer, ForeignKey("vehicle_units.id"), nullable=False, index=True)
    requester_id = Column(Integer, nullable=False, index=True)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    status = Column(Enum(BookingStatus, native_enum=False, length=20, values_callable=_enum_values),
                    nullable=False, default=BookingStatus.PENDING, index=True)
    kind = Column(Enum(BookingKind, native_enum=False, length=20, values_callable=_enum_values),
                  nullable=False, default=BookingKind.CUSTOMER, index=True)
    status_note = Column(Text)
    transaction_id = Column(Integer, ForeignKey("payments.id"), unique=True)
    created_at = Column(DateTime, nullable=False)
    status_updated_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_bookings_unit_range", "unit_id", "start_at", "end_at"),
    )

    @property
    def is_admin_block(self) -> bool:
        return self.kind == BookingKind.ADMIN_BLOCK

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self):
        return f"<Booking {self.id} unit={self.unit_id} {self.start_at}..{self.end_at} status={self.status}>"


NO_OVERLAP_CONSTRAINT = "bookings_no_overlap_per_unit"

event.listen(
    Booking.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE bookings ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (unit_id WITH =, tsrange(start_at, end_at, '[]') WITH &&) "
        "WHERE (status IN ('pending', 'approved', 'on_going'))"
    ).execute_if(dialect="postgresql"),
)
