from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hr201.database import get_db
from hr201.models.leave_type import LeaveType
from hr201.models.user import User
from hr201.routers.auth_deps import get_current_user
from hr201.schemas.leave import LeaveTypeResponse

router = APIRouter(prefix="/leave-types", tags=["Leave Types"])


@router.get("", response_model=List[LeaveTypeResponse])
def list_leave_types(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(LeaveType).order_by(LeaveType.code).all()
