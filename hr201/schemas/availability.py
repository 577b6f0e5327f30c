from typing import Any, Dict, List, Optional

from hr201.core.schemas import CamelModel


class EmployeeConflict(CamelModel):
    employee_id: int
    dates: List[str]


class AvailabilityResponse(CamelModel):
    unavailable: List[int]
    conflicts: List[EmployeeConflict]


class ValidationResponse(CamelModel):
    """Advisory outcome of validateLeave / validateTravel."""
    accepted: bool
    reason: Optional[str] = None
    message: str = ""
    details: Dict[str, Any] = {}
