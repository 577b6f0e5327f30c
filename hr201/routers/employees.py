from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hr201.core.exceptions import AppException, NotFoundError
from hr201.database import get_db
from hr201.models.employee import Employee
from hr201.models.leave_type import CreditCategory
from hr201.models.user import User
from hr201.routers.auth_deps import ensure_own_employee, require_permission
from hr201.schemas.employee import BalanceAdjustment, BalancesResponse, EmployeeDirectoryEntry, TravelLiaisonUpdate
from hr201.services.audit import AuditService
from hr201.services.credit_ledger import CreditLedger
from hr201.services.permissions import EMPLOYEES_COMPONENT, LEAVE_COMPONENT, TRAVEL_COMPONENT

router = APIRouter(prefix="/employees", tags=["Employees"])


def _entry(employee: Employee) -> EmployeeDirectoryEntry:
    return EmployeeDirectoryEntry(
        id=employee.id,
        id_no=employee.id_no,
        name=employee.display_name,
        department=employee.department,
        can_create_travel=employee.can_create_travel,
    )


@router.get("", response_model=List[EmployeeDirectoryEntry])
def list_employees(
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EMPLOYEES_COMPONENT, "read", allow_portal=True)),
):
    query = db.query(Employee)
    if department:
        query = query.filter(Employee.department == department)
    return [_entry(e) for e in query.order_by(Employee.surname, Employee.first_name).all()]


@router.put("/travel-liaisons", response_model=List[EmployeeDirectoryEntry])
def set_travel_liaisons(
    payload: TravelLiaisonUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(TRAVEL_COMPONENT, "update")),
):
    employees = db.query(Employee).filter(Employee.id.in_(payload.employee_ids)).all()
    missing = sorted(set(payload.employee_ids) - {e.id for e in employees})
    if missing:
        raise NotFoundError("Employee", ", ".join(str(m) for m in missing))

    for employee in employees:
        employee.can_create_travel = payload.can_create_travel
    AuditService(db).log_action(
        "travel_liaisons_updated", "employee", None, current_user,
        details={"employee_ids": sorted(e.id for e in employees), "can_create_travel": payload.can_create_travel},
    )
    db.commit()
    return [_entry(e) for e in sorted(employees, key=lambda e: e.id)]


@router.get("/{employee_id}/balances", response_model=BalancesResponse)
def get_balances(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(LEAVE_COMPONENT, "read", allow_portal=True)),
):
    ensure_own_employee(current_user, employee_id)
    if db.get(Employee, employee_id) is None:
        raise NotFoundError("Employee", employee_id)
    return BalancesResponse(employee_id=employee_id, balances=CreditLedger(db).get_balances(employee_id))


@router.put("/{employee_id}/balances/{category}", response_model=BalancesResponse)
def adjust_balance(
    employee_id: int,
    category: str,
    payload: BalanceAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(LEAVE_COMPONENT, "update")),
):
    """Manual HR adjustment, e.g. monthly accrual or re-crediting a cancelled leave."""
    if db.get(Employee, employee_id) is None:
        raise NotFoundError("Employee", employee_id)
    try:
        credit_category = CreditCategory(category.capitalize())
    except ValueError:
        raise AppException(
            f"Unknown credit category: {category}",
            status_code=422,
            error_code="INVALID_CATEGORY",
            details={"allowed": [c.value for c in CreditCategory]},
        ) from None

    ledger = CreditLedger(db)
    before = ledger.get_balance(employee_id, credit_category)
    after = ledger.set_balance(employee_id, credit_category, payload.amount)
    AuditService(db).log_action(
        "balance_adjusted", "credit_balance", f"{employee_id}:{credit_category.value}", current_user,
        before_state={"amount": before}, after_state={"amount": after},
    )
    db.commit()
    return BalancesResponse(employee_id=employee_id, balances=ledger.get_balances(employee_id))
