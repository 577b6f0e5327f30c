"""
Who is already booked on which days.

Only Approved requests occupy a day. Leave and travel share the same
calendar: an employee on approved leave cannot be sent on travel and the
other way around.
"""
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import select

from hr201.core.dates import DateSet
from hr201.models.employee import Employee
from hr201.models.leave_request import LeaveRequest, LeaveRequestDate
from hr201.models.request_status import RequestStatus
from hr201.models.travel_request import TravelParticipant, TravelRequest, TravelRequestDate
from hr201.services.base import BaseService


class AvailabilityResolver(BaseService):

    def lock_employees(self, employee_ids: Iterable[int]) -> None:
        """
        Take row locks on the employees in ascending id order so two approvals
        touching the same people serialize instead of both passing the check.
        No-op on SQLite, which serializes writers anyway.
        """
        ids = sorted(set(employee_ids))
        if not ids:
            return
        self.db.execute(
            select(Employee.id).where(Employee.id.in_(ids)).order_by(Employee.id).with_for_update()
        ).all()

    def find_conflicts(
        self,
        employee_ids: Iterable[int],
        date_set: DateSet,
        exclude_request_id: Optional[str] = None,
        lock: bool = False,
    ) -> Dict[int, List[date]]:
        """Map employee id -> sorted days already taken by an Approved request."""
        ids = sorted(set(employee_ids))
        days = list(date_set)
        if not ids or not days:
            return {}
        if lock:
            self.lock_employees(ids)

        approved = RequestStatus.APPROVED.value
        taken: Dict[int, Set[date]] = {}

        leave_stmt = (
            select(LeaveRequest.employee_id, LeaveRequestDate.leave_date)
            .join(LeaveRequestDate, LeaveRequestDate.leave_request_id == LeaveRequest.id)
            .where(
                LeaveRequest.status == approved,
                LeaveRequest.employee_id.in_(ids),
                LeaveRequestDate.leave_date.in_(days),
            )
        )
        if exclude_request_id:
            leave_stmt = leave_stmt.where(LeaveRequest.id != exclude_request_id)
        for employee_id, day in self.db.execute(leave_stmt):
            taken.setdefault(employee_id, set()).add(day)

        travel_stmt = (
            select(TravelParticipant.employee_id, TravelRequestDate.travel_date)
            .join(TravelRequest, TravelRequest.id == TravelParticipant.travel_request_id)
            .join(TravelRequestDate, TravelRequestDate.travel_request_id == TravelRequest.id)
            .where(
                TravelRequest.status == approved,
                TravelParticipant.employee_id.in_(ids),
                TravelRequestDate.travel_date.in_(days),
            )
        )
        if exclude_request_id:
            travel_stmt = travel_stmt.where(TravelRequest.id != exclude_request_id)
        for employee_id, day in self.db.execute(travel_stmt):
            taken.setdefault(employee_id, set()).add(day)

        return {employee_id: sorted(taken[employee_id]) for employee_id in sorted(taken)}

    def find_unavailable(
        self,
        employee_ids: Iterable[int],
        date_set: DateSet,
        exclude_request_id: Optional[str] = None,
    ) -> Set[int]:
        return set(self.find_conflicts(employee_ids, date_set, exclude_request_id))
