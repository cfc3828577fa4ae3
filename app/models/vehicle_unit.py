# app/models/vehicle_unit.py
"""
Vehicle units table (read-mostly).
Each row is one physical car/motorbike that can be reserved. The scheduler only
reads it for price lookups and locks its row while checking a unit's calendar.
"""

from sqlalchemy import Column, Integer, String, Numeric, Text
from app.database import Base


class VehicleUnit(Base):
    __tablename__ = "vehicle_units"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    vehicle_name = Column(String(200), nullable=False)
    price_per_day = Column(Numeric(12, 2), nullable=False)
    description = Column(Text)

    def __repr__(self):
        return f"<VehicleUnit {self.code} price={self.price_per_day}>"
