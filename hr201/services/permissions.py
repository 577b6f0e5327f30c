from sqlalchemy import select

from hr201.models.user import RolePermission, User, UserRole
from hr201.services.base import BaseService

LEAVE_COMPONENT = "201-leave"
TRAVEL_COMPONENT = "201-travel"
EMPLOYEES_COMPONENT = "201-employees"

ACTIONS = ("read", "create", "update", "delete")


class PermissionService(BaseService):
    """Answers can(component, action) from the role_permissions table."""

    def can(self, user: User, component: str, action: str) -> bool:
        if action not in ACTIONS:
            raise ValueError(f"Unknown permission action: {action}")
        if user is None or not user.is_active:
            return False
        if user.role == UserRole.ROOT_ADMIN:
            return True

        permission = self.db.execute(
            select(RolePermission).where(
                RolePermission.role == user.role,
                RolePermission.component == component,
            )
        ).scalar_one_or_none()
        allowed = permission is not None and permission.allows(action)
        if not allowed:
            self.log_warning(
                f"Permission denied: {user.username} {action} {component}",
                user_id=user.id,
            )
        return allowed
