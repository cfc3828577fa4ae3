# app/schemas/availability.py
from pydantic import BaseModel
from decimal import Decimal
from typing import Optional

from app.schemas.booking import ConflictOut


class AvailabilityOut(BaseModel):
    unit_id: int
    unit_code: str
    start_date: str
    end_date: str
    available: bool
    conflicts: list[ConflictOut]


class VehicleUnitOut(BaseModel):
    id: int
    code: str
    vehicle_name: str
    price_per_day: Decimal
    description: Optional[str]

    class Config:
        from_attributes = True


class AvailableUnitsOut(BaseModel):
    start_date: str
    end_date: str
    count: int
    units: list[VehicleUnitOut]
