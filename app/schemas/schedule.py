# app/schemas/schedule.py
from pydantic import BaseModel
from typing import Optional

from app.schemas.booking import ConflictOut


class ScheduleBlockRequest(BaseModel):
    vehicle_unit_ids: list[int]
    start_date: str          # YYYYMMDD
    end_date: str            # YYYYMMDD, inclusive
    note: Optional[str] = None


class ScheduleUpdateRequest(BaseModel):
    start_date: str
    end_date: str
    note: Optional[str] = None


class BlockResultOut(BaseModel):
    unit_id: int
    success: bool
    message: str
    booking_id: Optional[int] = None
    conflicts: list[ConflictOut] = []


class BlockReportOut(BaseModel):
    start_date: str
    end_date: str
    success_count: int
    failed_count: int
    details: list[BlockResultOut]


class BlockOut(BaseModel):
    block_id: int
    unit_id: int
    start_date: str
    end_date: str
    status: str
    note: Optional[str]


class BlockedDayEntry(BaseModel):
    booking_id: int
    unit_id: int
    unit_code: Optional[str]
    vehicle_name: Optional[str]
    note: Optional[str]


class BlockedDayOut(BaseModel):
    date: str
    blocked_count: int
    blocks: list[BlockedDayEntry]
