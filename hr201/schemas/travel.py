from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from hr201.core.schemas import CamelModel
from hr201.models.travel_request import TravelRequest


class TravelRequestCreate(CamelModel):
    employee_ids: List[int] = Field(default_factory=list)
    dates: List[str] = Field(default_factory=list)
    purpose: str = Field(min_length=1)
    destination: str = Field(min_length=1, max_length=255)


class TravelRequestUpdate(TravelRequestCreate):
    pass


class TravelValidateRequest(CamelModel):
    employee_ids: List[int] = Field(default_factory=list)
    dates: List[str] = Field(default_factory=list)
    exclude_request_id: Optional[str] = None


class TravelRequestResponse(CamelModel):
    id: str
    travel_number: str
    employee_ids: List[int]
    dates: List[date]
    purpose: str
    destination: str
    status: str
    remarks: Optional[str] = None
    is_portal_origin: bool
    created_by: Optional[int] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    already_applied: bool = False

    @classmethod
    def from_request(cls, request: TravelRequest, already_applied: bool = False) -> "TravelRequestResponse":
        return cls(
            id=request.id,
            travel_number=request.travel_number,
            employee_ids=request.employee_ids,
            dates=request.travel_dates,
            purpose=request.purpose,
            destination=request.destination,
            status=request.status_enum.value,
            remarks=request.remarks,
            is_portal_origin=request.is_portal_origin,
            created_by=request.created_by,
            approved_by=request.approved_by,
            approved_at=request.approved_at,
            created_at=request.created_at,
            already_applied=already_applied,
        )
