"""
Caller identity and permission dependencies.
The upstream gateway authenticates the session and forwards the user id in
the identity header; these dependencies only resolve it and consult
PermissionService at each decision point.
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from hr201.core.config import settings
from hr201.core.exceptions import AccessDeniedError, AuthenticationError
from hr201.database import get_db
from hr201.models.user import User
from hr201.services.permissions import PermissionService

logger = logging.getLogger(__name__)


def get_current_user(
    user_id: Optional[str] = Header(default=None, alias=settings.identity_header),
    db: Session = Depends(get_db),
) -> User:
    if not user_id or not user_id.strip().isdigit():
        logger.warning("Authentication failed: missing or malformed identity header")
        raise AuthenticationError()

    user = db.get(User, int(user_id))
    if user is None:
        logger.warning(f"Authentication failed: user {user_id} not found")
        raise AuthenticationError("User not found")
    if not user.is_active:
        logger.warning(f"Authentication failed: user {user.username} is inactive")
        raise AccessDeniedError("User is inactive")
    return user


def require_permission(component: str, action: str, allow_portal: bool = False) -> Callable:
    """
    Dependency factory: the caller must hold `action` on `component`.
    With allow_portal, EMPLOYEE users pass too; the endpoint then narrows
    what they can see or touch to their own records.

    Usage:
        @router.post("/leave-requests")
        def submit(user: User = Depends(require_permission("201-leave", "create", allow_portal=True))):
            ...
    """
    def permission_checker(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        if allow_portal and current_user.is_portal:
            return current_user
        if not PermissionService(db).can(current_user, component, action):
            raise AccessDeniedError(f"You do not have {action} access to {component}")
        return current_user

    return permission_checker


def ensure_own_employee(user: User, employee_id: int) -> None:
    """Portal users may only act on their own employee record."""
    if user.is_portal and user.employee_id != employee_id:
        raise AccessDeniedError("You can only access your own records")
