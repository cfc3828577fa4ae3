# app/exceptions.py
"""
Scheduler error taxonomy.
Services raise these; the FastAPI handler in app/main.py turns them into
JSON responses using each class's status_code. None of them are retried.
"""

from typing import Optional


def describe_conflict(booking) -> dict:
    return {
        "booking_id": booking.id,
        "start_date": booking.start_at.strftime("%Y%m%d"),
        "end_date": booking.end_at.strftime("%Y%m%d"),
        "status": booking.status.value,
    }


class SchedulerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class ValidationError(SchedulerError):
    """Malformed or missing input: bad date, empty unit list, missing reason."""
    status_code = 400


class NotFound(SchedulerError):
    status_code = 404


class ScheduleConflict(SchedulerError):
    """Requested window overlaps active bookings. Carries them so callers can pick another window."""
    status_code = 409

    def __init__(self, message: str, conflicts: Optional[list] = None):
        super().__init__(message)
        self.conflicts = list(conflicts or [])
        # Snapshot now; the session may be closed by the time the error is rendered
        self.details = [describe_conflict(b) for b in self.conflicts]

    def to_dict(self) -> dict:
        return {"detail": self.message, "conflicts": self.details}


class InvalidState(SchedulerError):
    """Operation is not allowed for the booking's current status."""
    status_code = 409


class InvalidTransition(InvalidState):
    def __init__(self, current, target):
        super().__init__(f"Invalid booking status transition: {current.value} -> {target.value}")
        self.current = current
        self.target = target


class InvalidOperation(SchedulerError):
    """E.g. unblocking a booking that is not an admin block."""
    status_code = 400
