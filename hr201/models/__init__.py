# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    employee, user, leave_type, credit_balance,
    leave_request, travel_request, audit_log, notification
)

# Explicit class exports for cleaner imports
from .employee import Employee
from .user import User, UserRole, RolePermission
from .leave_type import LeaveType, CreditCategory
from .credit_balance import CreditBalance
from .leave_request import LeaveRequest, LeaveRequestDate
from .travel_request import TravelRequest, TravelParticipant, TravelRequestDate
from .request_status import RequestStatus, RequestKind
from .audit_log import AuditLog
from .notification import Notification

__all__ = [
    "Employee",
    "User",
    "UserRole",
    "RolePermission",
    "LeaveType",
    "CreditCategory",
    "CreditBalance",
    "LeaveRequest",
    "LeaveRequestDate",
    "TravelRequest",
    "TravelParticipant",
    "TravelRequestDate",
    "RequestStatus",
    "RequestKind",
    "AuditLog",
    "Notification",
]
