from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from hr201.core.dates import DateSet, normalize
from hr201.core.exceptions import AccessDeniedError, NotFoundError
from hr201.database import get_db
from hr201.models.request_status import RequestKind
from hr201.models.travel_request import TravelParticipant, TravelRequest, TravelRequestDate
from hr201.models.user import User
from hr201.routers.auth_deps import get_current_user, require_permission
from hr201.routers.leave import status_filter
from hr201.schemas.availability import ValidationResponse
from hr201.schemas.leave import StatusChangeRequest
from hr201.schemas.travel import (
    TravelRequestCreate,
    TravelRequestResponse,
    TravelRequestUpdate,
    TravelValidateRequest,
)
from hr201.services.lifecycle import RequestLifecycleManager
from hr201.services.permissions import TRAVEL_COMPONENT
from hr201.services.validation import ValidationOrchestrator

router = APIRouter(prefix="/travel-requests", tags=["Travel"])


def _visible_to(user: User, request: TravelRequest) -> bool:
    return request.created_by == user.id or user.employee_id in request.employee_ids


@router.post("/validate", response_model=ValidationResponse)
def validate_travel(
    payload: TravelValidateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(TRAVEL_COMPONENT, "read", allow_portal=True)),
):
    result = ValidationOrchestrator(db).validate_travel(
        payload.employee_ids,
        DateSet.from_raw(payload.dates),
        exclude_request_id=payload.exclude_request_id,
    )
    return ValidationResponse(**result.to_dict())


@router.post("", response_model=TravelRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_travel(
    payload: TravelRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(TRAVEL_COMPONENT, "create", allow_portal=True)),
):
    result = RequestLifecycleManager(db).submit_travel(
        current_user,
        payload.employee_ids,
        DateSet.from_raw(payload.dates),
        purpose=payload.purpose,
        destination=payload.destination,
    )
    return TravelRequestResponse.from_request(result.unwrap())


@router.get("", response_model=List[TravelRequestResponse])
def list_travel_requests(
    status_value: Optional[str] = Query(default=None, alias="status"),
    participant: Optional[int] = None,
    created_by: Optional[int] = Query(default=None, alias="createdBy"),
    date_from: Optional[str] = Query(default=None, alias="dateFrom"),
    date_to: Optional[str] = Query(default=None, alias="dateTo"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(TRAVEL_COMPONENT, "read")),
):
    query = db.query(TravelRequest)
    if status_value:
        query = query.filter(status_filter(TravelRequest.status, status_value))
    if participant is not None:
        query = query.filter(TravelRequest.participants.any(TravelParticipant.employee_id == participant))
    if created_by is not None:
        query = query.filter(TravelRequest.created_by == created_by)
    if date_from or date_to:
        conditions = []
        if date_from:
            conditions.append(TravelRequestDate.travel_date >= normalize(date_from))
        if date_to:
            conditions.append(TravelRequestDate.travel_date <= normalize(date_to))
        query = query.filter(TravelRequest.dates.any(and_(*conditions)))

    requests = query.order_by(TravelRequest.created_at.desc(), TravelRequest.travel_number.desc()).all()
    return [TravelRequestResponse.from_request(r) for r in requests]


@router.get("/mine", response_model=List[TravelRequestResponse])
def list_my_travel_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Requests the caller filed or travels on."""
    conditions = [TravelRequest.created_by == current_user.id]
    if current_user.employee_id is not None:
        conditions.append(TravelRequest.participants.any(TravelParticipant.employee_id == current_user.employee_id))
    requests = (
        db.query(TravelRequest)
        .filter(or_(*conditions))
        .order_by(TravelRequest.created_at.desc(), TravelRequest.travel_number.desc())
        .all()
    )
    return [TravelRequestResponse.from_request(r) for r in requests]


@router.get("/{request_id}", response_model=TravelRequestResponse)
def get_travel_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(TRAVEL_COMPONENT, "read", allow_portal=True)),
):
    request = db.get(TravelRequest, request_id)
    if request is None:
        raise NotFoundError("TravelRequest", request_id)
    if current_user.is_portal and not _visible_to(current_user, request):
        raise AccessDeniedError("You can only view travel requests you filed or travel on")
    return TravelRequestResponse.from_request(request)


@router.put("/{request_id}", response_model=TravelRequestResponse)
def update_travel_request(
    request_id: str,
    payload: TravelRequestUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(TRAVEL_COMPONENT, "update", allow_portal=True)),
):
    result = RequestLifecycleManager(db).update_travel(
        current_user,
        request_id,
        payload.employee_ids,
        DateSet.from_raw(payload.dates),
        purpose=payload.purpose,
        destination=payload.destination,
    )
    return TravelRequestResponse.from_request(result.unwrap())


@router.put("/{request_id}/status", response_model=TravelRequestResponse)
def change_travel_status(
    request_id: str,
    payload: StatusChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(TRAVEL_COMPONENT, "update")),
):
    result = RequestLifecycleManager(db).change_status(
        RequestKind.TRAVEL,
        request_id,
        payload.status,
        current_user,
        remarks=payload.remarks,
        expected_status=payload.expected_status,
    )
    return TravelRequestResponse.from_request(result.unwrap(), already_applied=result.already_applied)
