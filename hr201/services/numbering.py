"""
Human-facing request numbers.

Leave: ``yymmddLV-NNN``, sequence restarts every day.
Travel: ``yymmddTR-NNN``, sequence restarts every month.
"""
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hr201.models.leave_request import LeaveRequest
from hr201.models.travel_request import TravelRequest


def _next_sequence(db: Session, column, pattern: str) -> int:
    existing = db.execute(select(func.count()).where(column.like(pattern))).scalar_one()
    return existing + 1


def next_leave_number(db: Session, today: Optional[date] = None) -> str:
    today = today or date.today()
    prefix = today.strftime("%y%m%d") + "LV-"
    seq = _next_sequence(db, LeaveRequest.leave_number, f"{prefix}%")
    return f"{prefix}{seq:03d}"


def next_travel_number(db: Session, today: Optional[date] = None) -> str:
    today = today or date.today()
    # Counted per month, stamped with the full creation day
    month_pattern = today.strftime("%y%m") + "__TR-%"
    seq = _next_sequence(db, TravelRequest.travel_number, month_pattern)
    return today.strftime("%y%m%d") + f"TR-{seq:03d}"
