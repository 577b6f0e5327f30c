"""
System users and role permissions.
Identity is established by the upstream auth layer; these tables only back
the permission decision points.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from hr201.database import Base


class UserRole(str, enum.Enum):
    """
    - ROOT_ADMIN: bypasses every permission check
    - HR_STAFF: permissions come from the role_permissions table
    - EMPLOYEE: self-service portal user, always linked to an employee record
    """
    ROOT_ADMIN = "ROOT_ADMIN"
    HR_STAFF = "HR_STAFF"
    EMPLOYEE = "EMPLOYEE"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=True)
    role = Column(Enum(UserRole), default=UserRole.HR_STAFF, nullable=False)

    # Portal users act on behalf of this employee
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee")

    def __repr__(self):
        return f"<User {self.username} ({self.role.value})>"

    @property
    def is_portal(self) -> bool:
        return self.role == UserRole.EMPLOYEE


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (UniqueConstraint("role", "component", name="uq_role_component"),)

    id = Column(Integer, primary_key=True, index=True)
    role = Column(Enum(UserRole), nullable=False, index=True)
    component = Column(String(50), nullable=False)  # e.g. "201-leave", "201-travel"
    can_read = Column(Boolean, default=False, nullable=False)
    can_create = Column(Boolean, default=False, nullable=False)
    can_update = Column(Boolean, default=False, nullable=False)
    can_delete = Column(Boolean, default=False, nullable=False)

    def allows(self, action: str) -> bool:
        return bool(getattr(self, f"can_{action}", False))
