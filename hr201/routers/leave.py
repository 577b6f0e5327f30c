from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from hr201.core.dates import DateSet, normalize
from hr201.core.exceptions import AccessDeniedError, NotFoundError
from hr201.database import get_db
from hr201.models.leave_request import LeaveRequest, LeaveRequestDate
from hr201.models.request_status import RequestKind, RequestStatus
from hr201.models.user import User
from hr201.routers.auth_deps import ensure_own_employee, require_permission
from hr201.schemas.availability import ValidationResponse
from hr201.schemas.leave import (
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveRequestUpdate,
    LeaveValidateRequest,
    StatusChangeRequest,
)
from hr201.services.lifecycle import RequestLifecycleManager
from hr201.services.permissions import LEAVE_COMPONENT
from hr201.services.validation import ValidationOrchestrator

router = APIRouter(prefix="/leave-requests", tags=["Leave"])


def status_filter(column, raw: str):
    """Match a normalized status, including legacy spellings of For Approval."""
    try:
        wanted = RequestStatus.normalize(raw)
    except ValueError:
        return column == raw
    if wanted == RequestStatus.FOR_APPROVAL:
        return or_(column == wanted.value, column == "Pending", column == "", column.is_(None))
    return column == wanted.value


@router.post("/validate", response_model=ValidationResponse)
def validate_leave(
    payload: LeaveValidateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(LEAVE_COMPONENT, "read", allow_portal=True)),
):
    """Advisory pre-check; the same rules run again when the request is submitted and approved."""
    ensure_own_employee(current_user, payload.employee_id)
    result = ValidationOrchestrator(db).validate_leave(
        payload.employee_id,
        payload.category_id,
        DateSet.from_raw(payload.dates),
        exclude_request_id=payload.exclude_request_id,
        question_answer=payload.question_answer,
    )
    return ValidationResponse(**result.to_dict())


@router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_leave(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(LEAVE_COMPONENT, "create", allow_portal=True)),
):
    result = RequestLifecycleManager(db).submit_leave(
        current_user,
        payload.employee_id,
        payload.category_id,
        DateSet.from_raw(payload.dates),
        purpose=payload.purpose,
        question_answer=payload.question_answer,
    )
    return LeaveRequestResponse.from_request(result.unwrap())


@router.get("", response_model=List[LeaveRequestResponse])
def list_leave_requests(
    status_value: Optional[str] = Query(default=None, alias="status"),
    employee_id: Optional[int] = Query(default=None, alias="employeeId"),
    leave_type_id: Optional[int] = Query(default=None, alias="leaveTypeId"),
    date_from: Optional[str] = Query(default=None, alias="dateFrom"),
    date_to: Optional[str] = Query(default=None, alias="dateTo"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(LEAVE_COMPONENT, "read", allow_portal=True)),
):
    query = db.query(LeaveRequest)
    if current_user.is_portal:
        query = query.filter(LeaveRequest.employee_id == current_user.employee_id)
    elif employee_id is not None:
        query = query.filter(LeaveRequest.employee_id == employee_id)
    if status_value:
        query = query.filter(status_filter(LeaveRequest.status, status_value))
    if leave_type_id is not None:
        query = query.filter(LeaveRequest.leave_type_id == leave_type_id)
    if date_from or date_to:
        conditions = []
        if date_from:
            conditions.append(LeaveRequestDate.leave_date >= normalize(date_from))
        if date_to:
            conditions.append(LeaveRequestDate.leave_date <= normalize(date_to))
        query = query.filter(LeaveRequest.dates.any(and_(*conditions)))

    requests = query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.leave_number.desc()).all()
    return [LeaveRequestResponse.from_request(r) for r in requests]


@router.get("/{request_id}", response_model=LeaveRequestResponse)
def get_leave_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(LEAVE_COMPONENT, "read", allow_portal=True)),
):
    request = db.get(LeaveRequest, request_id)
    if request is None:
        raise NotFoundError("LeaveRequest", request_id)
    if current_user.is_portal and request.employee_id != current_user.employee_id:
        raise AccessDeniedError("You can only view your own leave requests")
    return LeaveRequestResponse.from_request(request)


@router.put("/{request_id}", response_model=LeaveRequestResponse)
def update_leave_request(
    request_id: str,
    payload: LeaveRequestUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(LEAVE_COMPONENT, "update", allow_portal=True)),
):
    """Staff edit while For Approval, or resubmission of a Returned request by its submitter."""
    result = RequestLifecycleManager(db).update_leave(
        current_user,
        request_id,
        payload.category_id,
        DateSet.from_raw(payload.dates),
        purpose=payload.purpose,
        question_answer=payload.question_answer,
    )
    return LeaveRequestResponse.from_request(result.unwrap())


@router.put("/{request_id}/status", response_model=LeaveRequestResponse)
def change_leave_status(
    request_id: str,
    payload: StatusChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(LEAVE_COMPONENT, "update")),
):
    result = RequestLifecycleManager(db).change_status(
        RequestKind.LEAVE,
        request_id,
        payload.status,
        current_user,
        remarks=payload.remarks,
        expected_status=payload.expected_status,
    )
    return LeaveRequestResponse.from_request(result.unwrap(), already_applied=result.already_applied)
