# app/routers/schedule.py
"""Admin schedule blocks: block several units, unblock, move a block, list blocks and blocked days."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.routers.actor import Actor, require_admin
from app.schemas.booking import BookingOut
from app.schemas.schedule import (
    ScheduleBlockRequest, ScheduleUpdateRequest, BlockReportOut, BlockOut, BlockedDayOut,
)
from app.services import schedule_block_service
from app.utils.dates import booking_window, format_yyyymmdd, query_window

router = APIRouter()


@router.post("/schedule/block", response_model=BlockReportOut, summary="Admin — block units for a period")
def block_schedule(body: ScheduleBlockRequest, actor: Actor = Depends(require_admin),
                   db: Session = Depends(get_db)):
    """Best effort: every unit is reported separately, with conflicts where the unit was busy."""
    start, end = booking_window(body.start_date, body.end_date)
    report = schedule_block_service.block_schedule(db, body.vehicle_unit_ids, start, end, body.note, actor.user_id)
    return {
        "start_date": format_yyyymmdd(report.start),
        "end_date": format_yyyymmdd(report.end),
        "success_count": report.success_count,
        "failed_count": report.failed_count,
        "details": [schedule_block_service.describe_result(r) for r in report.results],
    }


@router.delete("/schedule/block/{booking_id}", summary="Admin — remove a schedule block")
def unblock_schedule(booking_id: int, _: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    schedule_block_service.unblock_schedule(db, booking_id)
    return {"id": booking_id, "status": "unblocked"}


@router.put("/schedule/block/{booking_id}", response_model=BookingOut, summary="Admin — move a booking or block")
def reschedule_block(booking_id: int, body: ScheduleUpdateRequest, actor: Actor = Depends(require_admin),
                     db: Session = Depends(get_db)):
    start, end = booking_window(body.start_date, body.end_date)
    return schedule_block_service.reschedule_block(db, booking_id, start, end, body.note, actor.is_admin)


@router.get("/schedule/blocks", response_model=list[BlockOut], summary="Admin — list schedule blocks")
def list_blocks(start_date: Optional[str] = None, end_date: Optional[str] = None,
                unit_id: Optional[int] = None, _: Actor = Depends(require_admin),
                db: Session = Depends(get_db)):
    """Without dates every block is returned; with dates, blocks touching that range."""
    start = end = None
    if start_date or end_date:
        start, end = query_window(start_date, end_date)
    return [
        {
            "block_id": b.id,
            "unit_id": b.unit_id,
            "start_date": format_yyyymmdd(b.start_at),
            "end_date": format_yyyymmdd(b.end_at),
            "status": b.status.value,
            "note": schedule_block_service.strip_marker(b.status_note),
        }
        for b in schedule_block_service.list_blocks(db, start, end, unit_id)
    ]


@router.get("/schedule/blocked-dates", response_model=list[BlockedDayOut], summary="Admin — blocked days")
def blocked_dates(start_date: Optional[str] = None, end_date: Optional[str] = None,
                  _: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    start, end = query_window(start_date, end_date)
    return schedule_block_service.blocked_dates(db, start, end)
