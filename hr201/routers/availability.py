from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hr201.core.dates import DateSet, to_ymd
from hr201.core.exceptions import InvalidEmployeeIdError
from hr201.database import get_db
from hr201.models.user import User
from hr201.routers.auth_deps import get_current_user
from hr201.schemas.availability import AvailabilityResponse, EmployeeConflict
from hr201.services.availability import AvailabilityResolver

router = APIRouter(prefix="/availability", tags=["Availability"])


def _employee_ids(values: List[str]) -> List[int]:
    ids = []
    for raw in _split(values):
        if not raw.isdigit():
            raise InvalidEmployeeIdError(raw)
        ids.append(int(raw))
    return ids


def _split(values: List[str]) -> List[str]:
    """Accept both repeated params and comma-separated lists."""
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


@router.get("", response_model=AvailabilityResponse)
def get_availability(
    employee_ids: List[str] = Query(default=[], alias="employeeIds"),
    dates: List[str] = Query(default=[]),
    exclude_request_id: Optional[str] = Query(default=None, alias="excludeRequestId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Advisory: which of the candidates already have approved leave or travel
    on any of the dates. Submissions and approvals re-check authoritatively.
    """
    ids = _employee_ids(employee_ids)
    conflicts = AvailabilityResolver(db).find_conflicts(ids, DateSet.from_raw(_split(dates)), exclude_request_id)
    return AvailabilityResponse(
        unavailable=sorted(conflicts),
        conflicts=[
            EmployeeConflict(employee_id=employee_id, dates=[to_ymd(d) for d in days])
            for employee_id, days in conflicts.items()
        ],
    )
