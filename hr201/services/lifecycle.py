"""
Request lifecycle: submit, edit/resubmit and status transitions for leave
and travel requests.

Each public operation is one transaction. It commits when the operation
succeeds and rolls back on any rejection, so a rejected call leaves no trace.
Status writes are compare-and-swap on the status value read at the start of
the call. Ledger mutations happen after the swap, in the same transaction.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from hr201.core.config import settings
from hr201.core.dates import DateSet, RawDate
from hr201.core.exceptions import NotFoundError
from hr201.models.employee import Employee
from hr201.models.leave_request import LeaveRequest
from hr201.models.leave_type import LeaveType
from hr201.models.request_status import RequestKind, RequestStatus
from hr201.models.travel_request import TravelRequest
from hr201.models.user import User
from hr201.services.audit import AuditService
from hr201.services.base import BaseService
from hr201.services.credit_ledger import CreditLedger
from hr201.services.notification import NotificationService
from hr201.services.numbering import next_leave_number, next_travel_number
from hr201.services.results import RejectionReason, TransitionResult, ValidationResult
from hr201.services.validation import ValidationOrchestrator

# Edges reachable through the status endpoint. Resubmission (Returned -> For Approval)
# only happens through an edit.
TRANSITIONS = {
    RequestKind.LEAVE: {
        RequestStatus.FOR_APPROVAL: {RequestStatus.APPROVED, RequestStatus.RETURNED, RequestStatus.CANCELLED},
        RequestStatus.APPROVED: {RequestStatus.CANCELLED},
    },
    RequestKind.TRAVEL: {
        RequestStatus.FOR_APPROVAL: {RequestStatus.APPROVED, RequestStatus.RETURNED, RequestStatus.CANCELLED},
    },
}

REMARK_REQUIRED = {RequestStatus.RETURNED, RequestStatus.CANCELLED}

AnyRequest = Union[LeaveRequest, TravelRequest]
Dates = Union[DateSet, Iterable[RawDate]]


def _reject(reason: RejectionReason, message: str, **details) -> TransitionResult:
    return TransitionResult.rejected(ValidationResult.reject(reason, message, **details))


def _as_date_set(dates: Optional[Dates]) -> DateSet:
    if isinstance(dates, DateSet):
        return dates
    return DateSet.from_raw(dates or [])


def leave_snapshot(request: LeaveRequest) -> dict:
    return {
        "status": request.status,
        "leave_type_id": request.leave_type_id,
        "dates": request.leave_dates,
        "deducted_credit": request.deducted_credit,
        "purpose": request.purpose,
        "remarks": request.remarks,
    }


def travel_snapshot(request: TravelRequest) -> dict:
    return {
        "status": request.status,
        "employee_ids": request.employee_ids,
        "dates": request.travel_dates,
        "purpose": request.purpose,
        "destination": request.destination,
        "remarks": request.remarks,
    }


class RequestLifecycleManager(BaseService):

    def __init__(self, db, restore_credit_on_cancel: Optional[bool] = None):
        super().__init__(db)
        self.validator = ValidationOrchestrator(db)
        self.ledger = CreditLedger(db)
        self.audit = AuditService(db)
        if restore_credit_on_cancel is None:
            restore_credit_on_cancel = settings.restore_credit_on_cancel
        self.restore_credit_on_cancel = restore_credit_on_cancel

    # ------------------------------------------------------------------
    # Leave
    # ------------------------------------------------------------------

    def submit_leave(
        self,
        actor: User,
        employee_id: int,
        leave_type_id: Optional[int],
        dates: Dates,
        purpose: Optional[str] = None,
        question_answer: Optional[str] = None,
    ) -> TransitionResult:
        date_set = _as_date_set(dates)
        return self._in_transaction(
            self._submit_leave, actor, employee_id, leave_type_id, date_set, purpose, question_answer
        )

    def _submit_leave(self, actor, employee_id, leave_type_id, date_set, purpose, question_answer):
        unknown = self._unknown_employees([employee_id])
        if unknown:
            return _reject(RejectionReason.UNKNOWN_EMPLOYEE, f"Unknown employee: {employee_id}", employee_ids=unknown)
        if actor.is_portal and actor.employee_id != employee_id:
            return _reject(RejectionReason.PERMISSION_DENIED, "Portal users may only file leave for themselves.")

        validation = self.validator.validate_leave(
            employee_id, leave_type_id, date_set, question_answer=question_answer
        )
        if not validation.accepted:
            return TransitionResult.rejected(validation)

        leave_type = self.db.get(LeaveType, leave_type_id)
        request = LeaveRequest(
            leave_number=next_leave_number(self.db),
            employee_id=employee_id,
            leave_type_id=leave_type.id,
            category=leave_type.credit_category,
            purpose=purpose,
            question_answer=question_answer if leave_type.requires_question else None,
            status=RequestStatus.FOR_APPROVAL.value,
            is_portal_origin=actor.is_portal,
            created_by=actor.id,
            updated_by=actor.id,
        )
        request.assign_dates(date_set)
        self.db.add(request)
        self.db.flush()

        self.audit.log_action(
            "leave_submitted", "leave_request", request.id, actor,
            details={"leave_number": request.leave_number},
            after_state=leave_snapshot(request),
        )
        NotificationService.notify_employee(
            self.db, employee_id,
            title="Leave request filed",
            message=f"Leave {request.leave_number} ({leave_type.code}) for {len(date_set)} day(s) is for approval.",
            link=f"/leave-requests/{request.id}",
        )
        self.log_info(f"Leave {request.leave_number} submitted", request_id_value=request.id, employee_id=employee_id)
        return TransitionResult.ok(request)

    def update_leave(
        self,
        actor: User,
        request_id: str,
        leave_type_id: Optional[int],
        dates: Dates,
        purpose: Optional[str] = None,
        question_answer: Optional[str] = None,
    ) -> TransitionResult:
        date_set = _as_date_set(dates)
        return self._in_transaction(
            self._update_leave, actor, request_id, leave_type_id, date_set, purpose, question_answer
        )

    def _update_leave(self, actor, request_id, leave_type_id, date_set, purpose, question_answer):
        request = self._load(LeaveRequest, request_id)
        observed, observed_version = request.status, request.version
        guard = self._edit_guard(actor, request, "leave request")
        if guard is not None:
            return guard
        resubmit = request.status_enum == RequestStatus.RETURNED

        validation = self.validator.validate_leave(
            request.employee_id, leave_type_id, date_set,
            exclude_request_id=request.id, question_answer=question_answer,
        )
        if not validation.accepted:
            return TransitionResult.rejected(validation, request)

        before = leave_snapshot(request)
        values = {"updated_by": actor.id}
        if resubmit:
            values["remarks"] = None
        if not self._compare_and_swap(LeaveRequest, request, observed, observed_version, RequestStatus.FOR_APPROVAL, **values):
            return self._lost_race(request, RequestStatus.FOR_APPROVAL, edit=True)

        leave_type = self.db.get(LeaveType, leave_type_id)
        request.leave_type_id = leave_type.id
        request.category = leave_type.credit_category
        request.purpose = purpose
        request.question_answer = question_answer if leave_type.requires_question else None
        request.updated_by = actor.id
        request.assign_dates(date_set)
        self.db.flush()

        action = "leave_resubmitted" if resubmit else "leave_updated"
        self.audit.log_action(
            action, "leave_request", request.id, actor,
            before_state=before, after_state=leave_snapshot(request),
        )
        if resubmit:
            NotificationService.notify_employee(
                self.db, request.employee_id,
                title="Leave request resubmitted",
                message=f"Leave {request.leave_number} is for approval again.",
                link=f"/leave-requests/{request.id}",
            )
        self.log_info(f"Leave {request.leave_number} {action.split('_')[1]}", request_id_value=request.id)
        return TransitionResult.ok(request)

    # ------------------------------------------------------------------
    # Travel
    # ------------------------------------------------------------------

    def submit_travel(
        self,
        actor: User,
        employee_ids: Iterable[int],
        dates: Dates,
        purpose: str,
        destination: str,
    ) -> TransitionResult:
        date_set = _as_date_set(dates)
        return self._in_transaction(
            self._submit_travel, actor, sorted(set(employee_ids or [])), date_set, purpose, destination
        )

    def _submit_travel(self, actor, employee_ids, date_set, purpose, destination):
        unknown = self._unknown_employees(employee_ids)
        if unknown:
            return _reject(
                RejectionReason.UNKNOWN_EMPLOYEE,
                "Unknown employee(s): " + ", ".join(str(e) for e in unknown),
                employee_ids=unknown,
            )
        denied = self._travel_liaison_guard(actor)
        if denied is not None:
            return denied

        validation = self.validator.validate_travel(employee_ids, date_set)
        if not validation.accepted:
            return TransitionResult.rejected(validation)

        request = TravelRequest(
            travel_number=next_travel_number(self.db),
            purpose=purpose,
            destination=destination,
            status=RequestStatus.FOR_APPROVAL.value,
            is_portal_origin=actor.is_portal,
            created_by=actor.id,
            updated_by=actor.id,
        )
        request.assign_participants(employee_ids)
        request.assign_dates(date_set)
        self.db.add(request)
        self.db.flush()

        self.audit.log_action(
            "travel_submitted", "travel_request", request.id, actor,
            details={"travel_number": request.travel_number},
            after_state=travel_snapshot(request),
        )
        NotificationService.notify_employees(
            self.db, employee_ids,
            title="Travel request filed",
            message=f"Travel {request.travel_number} to {destination} is for approval.",
            link=f"/travel-requests/{request.id}",
        )
        self.log_info(f"Travel {request.travel_number} submitted", request_id_value=request.id)
        return TransitionResult.ok(request)

    def update_travel(
        self,
        actor: User,
        request_id: str,
        employee_ids: Iterable[int],
        dates: Dates,
        purpose: str,
        destination: str,
    ) -> TransitionResult:
        date_set = _as_date_set(dates)
        return self._in_transaction(
            self._update_travel, actor, request_id, sorted(set(employee_ids or [])), date_set, purpose, destination
        )

    def _update_travel(self, actor, request_id, employee_ids, date_set, purpose, destination):
        request = self._load(TravelRequest, request_id)
        observed, observed_version = request.status, request.version
        denied = self._travel_liaison_guard(actor)
        if denied is not None:
            return denied
        guard = self._edit_guard(actor, request, "travel request")
        if guard is not None:
            return guard
        resubmit = request.status_enum == RequestStatus.RETURNED

        unknown = self._unknown_employees(employee_ids)
        if unknown:
            return _reject(
                RejectionReason.UNKNOWN_EMPLOYEE,
                "Unknown employee(s): " + ", ".join(str(e) for e in unknown),
                employee_ids=unknown,
            )
        validation = self.validator.validate_travel(employee_ids, date_set, exclude_request_id=request.id)
        if not validation.accepted:
            return TransitionResult.rejected(validation, request)

        before = travel_snapshot(request)
        values = {"updated_by": actor.id}
        if resubmit:
            values["remarks"] = None
        if not self._compare_and_swap(TravelRequest, request, observed, observed_version, RequestStatus.FOR_APPROVAL, **values):
            return self._lost_race(request, RequestStatus.FOR_APPROVAL, edit=True)

        request.purpose = purpose
        request.destination = destination
        request.updated_by = actor.id
        request.assign_participants(employee_ids)
        request.assign_dates(date_set)
        self.db.flush()

        action = "travel_resubmitted" if resubmit else "travel_updated"
        self.audit.log_action(
            action, "travel_request", request.id, actor,
            before_state=before, after_state=travel_snapshot(request),
        )
        self.log_info(f"Travel {request.travel_number} {action.split('_')[1]}", request_id_value=request.id)
        return TransitionResult.ok(request)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def change_status(
        self,
        kind: RequestKind,
        request_id: str,
        target,
        actor: User,
        remarks: Optional[str] = None,
        expected_status=None,
    ) -> TransitionResult:
        """
        Approve, return or cancel. Retrying a transition that already took
        effect succeeds with ``already_applied`` set and changes nothing.
        """
        kind = RequestKind(kind)
        return self._in_transaction(self._change_status, kind, request_id, target, actor, remarks, expected_status)

    def _change_status(self, kind, request_id, target, actor, remarks, expected_status):
        model = LeaveRequest if kind == RequestKind.LEAVE else TravelRequest
        request = self._load(model, request_id)
        observed, observed_version = request.status, request.version
        current = request.status_enum

        try:
            target = RequestStatus.normalize(target)
        except ValueError:
            return _reject(RejectionReason.INVALID_TRANSITION, f"Unknown status: {target!r}", target=str(target))

        if target == RequestStatus.FOR_APPROVAL:
            return _reject(
                RejectionReason.INVALID_TRANSITION,
                "A request goes back to For Approval only by resubmitting it.",
                current=current.value, target=target.value,
            )

        remarks = (remarks or "").strip() or None
        if target in REMARK_REQUIRED and remarks is None:
            return _reject(
                RejectionReason.MISSING_REMARK,
                f"A remark is required to set a request to {target.value}.",
                target=target.value,
            )

        if current == target:
            self.log_info(f"{kind.value} {request.id} already {target.value}", request_id_value=request.id)
            return TransitionResult.ok(request, already_applied=True)

        if expected_status is not None:
            try:
                expected = RequestStatus.normalize(expected_status)
            except ValueError:
                return _reject(RejectionReason.INVALID_TRANSITION, f"Unknown status: {expected_status!r}")
            if expected != current:
                return _reject(
                    RejectionReason.CONFLICT,
                    f"The request is now {current.value}, not {expected.value}. Reload and try again.",
                    current=current.value, expected=expected.value,
                )

        if target not in TRANSITIONS[kind].get(current, set()):
            return _reject(
                RejectionReason.INVALID_TRANSITION,
                f"Cannot move a {kind.value} request from {current.value} to {target.value}.",
                current=current.value, target=target.value,
            )
        if target == RequestStatus.RETURNED and not request.is_portal_origin:
            return _reject(
                RejectionReason.INVALID_TRANSITION,
                "Only portal-submitted requests can be returned.",
                current=current.value, target=target.value,
            )

        if target == RequestStatus.APPROVED:
            validation = self._revalidate_for_approval(kind, request)
            if not validation.accepted:
                return TransitionResult.rejected(validation, request)

        before = leave_snapshot(request) if kind == RequestKind.LEAVE else travel_snapshot(request)
        values = {"updated_by": actor.id}
        if remarks is not None:
            values["remarks"] = remarks
        if target == RequestStatus.APPROVED:
            values["approved_by"] = actor.id
            values["approved_at"] = datetime.now(timezone.utc)

        if not self._compare_and_swap(model, request, observed, observed_version, target, **values):
            return self._lost_race(request, target)

        if kind == RequestKind.LEAVE and request.category:
            if target == RequestStatus.APPROVED:
                reservation = self.ledger.reserve(request.employee_id, request.category, request.deducted_credit)
                if not reservation.accepted:
                    return TransitionResult.rejected(reservation, request)
            elif current == RequestStatus.APPROVED and target == RequestStatus.CANCELLED and self.restore_credit_on_cancel:
                self.ledger.release(request.employee_id, request.category, request.deducted_credit)

        after = leave_snapshot(request) if kind == RequestKind.LEAVE else travel_snapshot(request)
        self.audit.log_action(
            f"{kind.value}_status_changed", f"{kind.value}_request", request.id, actor,
            details={"from": current.value, "to": target.value, "remarks": remarks},
            before_state=before, after_state=after,
        )
        self._notify_transition(kind, request, target, remarks)
        self.log_info(
            f"{kind.value} {request.id} {current.value} -> {target.value}",
            request_id_value=request.id, actor_id=actor.id,
        )
        return TransitionResult.ok(request)

    def _revalidate_for_approval(self, kind: RequestKind, request: AnyRequest) -> ValidationResult:
        """Authoritative re-check, with the participants' rows locked until commit."""
        if kind == RequestKind.LEAVE:
            return self.validator.validate_leave(
                request.employee_id,
                request.leave_type_id,
                DateSet(request.leave_dates),
                amount=request.deducted_credit,
                exclude_request_id=request.id,
                question_answer=request.question_answer,
                lock=True,
            )
        return self.validator.validate_travel(
            request.employee_ids,
            DateSet(request.travel_dates),
            exclude_request_id=request.id,
            lock=True,
        )

    def _notify_transition(self, kind: RequestKind, request: AnyRequest, target: RequestStatus, remarks):
        if kind == RequestKind.LEAVE:
            employee_ids = [request.employee_id]
            label = f"Leave {request.leave_number}"
        else:
            employee_ids = request.employee_ids
            label = f"Travel {request.travel_number}"
        message = f"{label} was {target.value.lower()}."
        if remarks:
            message += f" Remarks: {remarks}"
        NotificationService.notify_employees(
            self.db, employee_ids,
            title=f"{label} {target.value}",
            message=message,
            type="success" if target == RequestStatus.APPROVED else "warning",
            link=f"/{kind.value}-requests/{request.id}",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _in_transaction(self, operation, *args) -> TransitionResult:
        try:
            result = operation(*args)
        except (StaleDataError, IntegrityError) as exc:
            self.db.rollback()
            self.log_warning(f"Concurrent update lost: {exc.__class__.__name__}")
            return _reject(RejectionReason.CONFLICT, "The record was changed by someone else. Reload and try again.")
        except Exception:
            self.db.rollback()
            raise

        if result.success and not result.already_applied:
            self.db.commit()
            self.db.refresh(result.request)
        else:
            self.db.rollback()
            if not result.success:
                self.log_warning(
                    f"Rejected: {result.reason.value} {result.rejection.message}",
                    reason=result.reason.value,
                )
        return result

    def _load(self, model, request_id: str) -> AnyRequest:
        request = self.db.get(model, request_id)
        if request is None:
            raise NotFoundError(model.__name__, request_id)
        return request

    def _unknown_employees(self, employee_ids: Iterable[int]) -> List[int]:
        ids = set(employee_ids)
        if not ids:
            return []
        found = set(self.db.execute(select(Employee.id).where(Employee.id.in_(ids))).scalars())
        return sorted(ids - found)

    def _edit_guard(self, actor: User, request: AnyRequest, label: str) -> Optional[TransitionResult]:
        status = request.status_enum
        if status == RequestStatus.FOR_APPROVAL:
            if actor.is_portal and request.created_by != actor.id:
                return _reject(RejectionReason.PERMISSION_DENIED, f"You can only edit your own {label}.")
            return None
        if status == RequestStatus.RETURNED:
            if request.created_by != actor.id:
                return _reject(
                    RejectionReason.PERMISSION_DENIED,
                    f"Only the original submitter can resubmit a returned {label}.",
                )
            return None
        return _reject(
            RejectionReason.INVALID_TRANSITION,
            f"A {status.value} {label} can no longer be edited.",
            current=status.value,
        )

    def _travel_liaison_guard(self, actor: User) -> Optional[TransitionResult]:
        if not actor.is_portal:
            return None
        if actor.employee is None or not actor.employee.can_create_travel:
            return _reject(RejectionReason.PERMISSION_DENIED, "Only travel liaisons can file travel requests.")
        return None

    def _compare_and_swap(
        self, model, request: AnyRequest, observed: str, observed_version: int, target: RequestStatus, **values
    ) -> bool:
        """
        Write the new status only if neither the status nor the row version moved
        since the request was loaded. The bumped version is synced back into the
        session so later flushes of the same object stay consistent.
        """
        stmt = (
            update(model)
            .where(model.id == request.id, model.status == observed, model.version == observed_version)
            .values(status=target.value, version=observed_version + 1, **values)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount == 1

    def _lost_race(self, request: AnyRequest, target: RequestStatus, edit: bool = False) -> TransitionResult:
        self.db.refresh(request)
        current = request.status_enum
        # An edit cannot be "already applied": the other writer changed the content
        if current == target and not edit:
            return TransitionResult.ok(request, already_applied=True)
        return _reject(
            RejectionReason.CONFLICT,
            f"The request changed to {current.value} while this action was in progress.",
            current=current.value, target=target.value,
        )
