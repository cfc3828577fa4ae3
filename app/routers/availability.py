# app/routers/availability.py
"""
Availability checks by unit id or unit code, and the list of free units.
Dates are YYYYMMDD; missing dates default to today .. today + 30 days, max span 90 days.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.exceptions import describe_conflict
from app.schemas.availability import AvailabilityOut, AvailableUnitsOut
from app.services import availability_service
from app.utils.dates import format_yyyymmdd, query_window

router = APIRouter()


def _render(result: availability_service.Availability) -> dict:
    return {
        "unit_id": result.unit.id,
        "unit_code": result.unit.code,
        "start_date": format_yyyymmdd(result.start),
        "end_date": format_yyyymmdd(result.end),
        "available": result.available,
        "conflicts": [describe_conflict(b) for b in result.conflicts],
    }


@router.get("/availability", response_model=AvailableUnitsOut, summary="Units free for a whole period")
def list_available_units(start_date: Optional[str] = None, end_date: Optional[str] = None,
                         db: Session = Depends(get_db)):
    start, end = query_window(start_date, end_date)
    units = availability_service.available_units(db, start, end)
    return {
        "start_date": format_yyyymmdd(start),
        "end_date": format_yyyymmdd(end),
        "count": len(units),
        "units": units,
    }


@router.get("/availability/code/{unit_code}", response_model=AvailabilityOut, summary="Check a unit by code")
def check_by_code(unit_code: str, start_date: Optional[str] = None, end_date: Optional[str] = None,
                  db: Session = Depends(get_db)):
    start, end = query_window(start_date, end_date)
    return _render(availability_service.check_availability(db, start, end, unit_code=unit_code))


@router.get("/availability/{unit_id}", response_model=AvailabilityOut, summary="Check a unit by id")
def check_by_id(unit_id: int, start_date: Optional[str] = None, end_date: Optional[str] = None,
                db: Session = Depends(get_db)):
    start, end = query_window(start_date, end_date)
    return _render(availability_service.check_availability(db, start, end, unit_id=unit_id))
