from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from hr201.core.schemas import CamelModel


class EmployeeDirectoryEntry(CamelModel):
    id: int
    id_no: Optional[str] = None
    name: str
    department: Optional[str] = None
    can_create_travel: bool


class TravelLiaisonUpdate(CamelModel):
    employee_ids: List[int] = Field(default_factory=list)
    can_create_travel: bool = True


class BalanceAdjustment(CamelModel):
    amount: Decimal = Field(ge=0, decimal_places=3)


class BalancesResponse(CamelModel):
    employee_id: int
    balances: Dict[str, Decimal]
