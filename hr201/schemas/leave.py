from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field

from hr201.core.schemas import CamelModel
from hr201.models.leave_request import LeaveRequest


class LeaveRequestCreate(CamelModel):
    employee_id: int
    category_id: Optional[int] = None  # leave type id
    dates: List[str] = Field(default_factory=list)  # raw, normalized by the engine
    purpose: Optional[str] = Field(default=None, max_length=100)
    question_answer: Optional[str] = Field(default=None, max_length=255)


class LeaveRequestUpdate(CamelModel):
    category_id: Optional[int] = None
    dates: List[str] = Field(default_factory=list)
    purpose: Optional[str] = Field(default=None, max_length=100)
    question_answer: Optional[str] = Field(default=None, max_length=255)


class LeaveValidateRequest(LeaveRequestCreate):
    exclude_request_id: Optional[str] = None


class StatusChangeRequest(CamelModel):
    status: str
    remarks: Optional[str] = None
    expected_status: Optional[str] = None


class LeaveRequestResponse(CamelModel):
    id: str
    leave_number: str
    employee_id: int
    employee_name: Optional[str] = None
    leave_type_id: int
    leave_type_code: Optional[str] = None
    category: Optional[str] = None
    dates: List[date]
    purpose: Optional[str] = None
    question_answer: Optional[str] = None
    deducted_credit: Decimal
    status: str
    remarks: Optional[str] = None
    is_portal_origin: bool
    created_by: Optional[int] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    already_applied: bool = False

    @classmethod
    def from_request(cls, request: LeaveRequest, already_applied: bool = False) -> "LeaveRequestResponse":
        return cls(
            id=request.id,
            leave_number=request.leave_number,
            employee_id=request.employee_id,
            employee_name=request.employee.display_name if request.employee else None,
            leave_type_id=request.leave_type_id,
            leave_type_code=request.leave_type.code if request.leave_type else None,
            category=request.category,
            dates=request.leave_dates,
            purpose=request.purpose,
            question_answer=request.question_answer,
            deducted_credit=request.deducted_credit,
            status=request.status_enum.value,
            remarks=request.remarks,
            is_portal_origin=request.is_portal_origin,
            created_by=request.created_by,
            approved_by=request.approved_by,
            approved_at=request.approved_at,
            created_at=request.created_at,
            already_applied=already_applied,
        )


class LeaveTypeResponse(CamelModel):
    id: int
    code: str
    name: str
    credit_category: Optional[str] = None
    annual_entitlement: Optional[Decimal] = None
    requires_question: bool
    question: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
