"""
Single entry point for "may this request exist?".

Called once before submit (advisory, from the validate endpoints) and again
inside the lifecycle transaction, where it is authoritative. Never mutates.
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select

from hr201.core.dates import DateSet, to_ymd
from hr201.models.leave_request import LeaveRequest, derive_credit
from hr201.models.leave_type import LeaveType
from hr201.models.request_status import RequestStatus
from hr201.services.availability import AvailabilityResolver
from hr201.services.base import BaseService
from hr201.services.credit_ledger import CreditLedger, to_credit
from hr201.services.results import RejectionReason, ValidationResult

# Statuses that count against a leave type's annual entitlement
ENTITLEMENT_STATUSES = (
    RequestStatus.FOR_APPROVAL.value,
    RequestStatus.APPROVED.value,
    RequestStatus.RETURNED.value,
)


def _conflict_details(conflicts: Dict[int, list]) -> List[dict]:
    return [
        {"employeeId": employee_id, "dates": [to_ymd(d) for d in days]}
        for employee_id, days in conflicts.items()
    ]


class ValidationOrchestrator(BaseService):

    def __init__(self, db):
        super().__init__(db)
        self.availability = AvailabilityResolver(db)
        self.ledger = CreditLedger(db)

    def validate_leave(
        self,
        employee_id: int,
        leave_type_id: Optional[int],
        date_set: DateSet,
        amount=None,
        exclude_request_id: Optional[str] = None,
        question_answer: Optional[str] = None,
        lock: bool = False,
    ) -> ValidationResult:
        if date_set.is_empty():
            return ValidationResult.reject(RejectionReason.EMPTY_DATE_SET, "Select at least one leave date.")

        leave_type = self.db.get(LeaveType, leave_type_id) if leave_type_id is not None else None
        if leave_type is None:
            return ValidationResult.reject(
                RejectionReason.INVALID_CATEGORY,
                "Select a valid leave type.",
                leave_type_id=leave_type_id,
            )

        if leave_type.requires_question and not (question_answer or "").strip():
            return ValidationResult.reject(
                RejectionReason.MISSING_ANSWER,
                f"{leave_type.name} requires an answer to: {leave_type.question or 'the leave type question'}",
                leave_type_id=leave_type.id,
            )

        conflicts = self.availability.find_conflicts([employee_id], date_set, exclude_request_id, lock=lock)
        if conflicts:
            return self._date_conflict(conflicts)

        amount = to_credit(amount) if amount is not None else derive_credit(date_set)

        entitlement = self._check_entitlement(employee_id, leave_type, date_set, amount, exclude_request_id)
        if not entitlement.accepted:
            return entitlement

        category = leave_type.category
        if category is not None:
            sufficiency = self.ledger.check(employee_id, category, amount)
            if not sufficiency.accepted:
                return sufficiency

        return ValidationResult.accept(
            deducted_credit=str(amount),
            category=category.value if category else None,
        )

    def validate_travel(
        self,
        employee_ids: Iterable[int],
        date_set: DateSet,
        exclude_request_id: Optional[str] = None,
        lock: bool = False,
    ) -> ValidationResult:
        if date_set.is_empty():
            return ValidationResult.reject(RejectionReason.EMPTY_DATE_SET, "Select at least one travel date.")

        ids = sorted(set(employee_ids or []))
        if not ids:
            return ValidationResult.reject(RejectionReason.NO_EMPLOYEES, "Select at least one employee.")

        conflicts = self.availability.find_conflicts(ids, date_set, exclude_request_id, lock=lock)
        if conflicts:
            return self._date_conflict(conflicts)
        return ValidationResult.accept()

    def _date_conflict(self, conflicts: Dict[int, list]) -> ValidationResult:
        employee_ids = list(conflicts)
        days = sorted({d for taken in conflicts.values() for d in taken})
        self._logger.info(
            "Date conflict detected",
            extra={"conflicting_employees": employee_ids, "conflicting_dates": [to_ymd(d) for d in days]},
        )
        return ValidationResult.reject(
            RejectionReason.DATE_CONFLICT,
            "Employee(s) {} already have approved leave or travel on {}.".format(
                ", ".join(str(e) for e in employee_ids),
                ", ".join(to_ymd(d) for d in days),
            ),
            employee_ids=employee_ids,
            conflicts=_conflict_details(conflicts),
        )

    def _check_entitlement(
        self,
        employee_id: int,
        leave_type: LeaveType,
        date_set: DateSet,
        amount: Decimal,
        exclude_request_id: Optional[str],
    ) -> ValidationResult:
        if not leave_type.annual_entitlement or to_credit(leave_type.annual_entitlement) <= 0:
            return ValidationResult.accept()

        entitlement = to_credit(leave_type.annual_entitlement)
        year = date_set.first.year

        stmt = select(LeaveRequest).where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.leave_type_id == leave_type.id,
            LeaveRequest.status.in_(ENTITLEMENT_STATUSES),
        )
        if exclude_request_id:
            stmt = stmt.where(LeaveRequest.id != exclude_request_id)

        used = Decimal("0.000")
        for other in self.db.execute(stmt).scalars():
            days = other.leave_dates
            if days and days[0].year == year:
                used += to_credit(other.deducted_credit)

        if used + amount <= entitlement:
            return ValidationResult.accept()

        remaining = max(entitlement - used, Decimal("0.000"))
        shortfall = (used + amount - entitlement).quantize(Decimal("0.001"))
        return ValidationResult.reject(
            RejectionReason.INSUFFICIENT_CREDIT,
            f"{leave_type.name} is limited to {entitlement} day(s) per year; {remaining} remaining for {year}.",
            kind="annual_entitlement",
            employee_id=employee_id,
            category=leave_type.code,
            balance=str(remaining),
            requested=str(amount),
            shortfall=str(shortfall),
            year=year,
        )
