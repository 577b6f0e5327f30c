import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from hr201.core.config import settings
from hr201.database import SessionLocal
from hr201.models.leave_type import CreditCategory, LeaveType
from hr201.models.user import RolePermission, User, UserRole
from hr201.services.permissions import EMPLOYEES_COMPONENT, LEAVE_COMPONENT, TRAVEL_COMPONENT

logger = logging.getLogger(__name__)

DEFAULT_LEAVE_TYPES = [
    {"code": "VL", "name": "Vacation Leave", "credit_category": CreditCategory.VACATION.value},
    {"code": "SL", "name": "Sick Leave", "credit_category": CreditCategory.SICK.value},
    {"code": "SPL", "name": "Special Privilege Leave", "credit_category": None, "annual_entitlement": Decimal("3.000")},
    {"code": "FL", "name": "Forced Leave", "credit_category": CreditCategory.VACATION.value, "annual_entitlement": Decimal("5.000")},
]

# HR staff run the whole workflow but cannot delete records
HR_STAFF_PERMISSIONS = [
    {"component": LEAVE_COMPONENT, "can_read": True, "can_create": True, "can_update": True},
    {"component": TRAVEL_COMPONENT, "can_read": True, "can_create": True, "can_update": True},
    {"component": EMPLOYEES_COMPONENT, "can_read": True},
]


def seed_defaults(db: Session) -> bool:
    """Populate an empty database. Returns False when it already holds data."""
    if db.query(LeaveType).count() or db.query(User).count():
        return False

    for data in DEFAULT_LEAVE_TYPES:
        db.add(LeaveType(**data))
    for data in HR_STAFF_PERMISSIONS:
        db.add(RolePermission(role=UserRole.HR_STAFF, **data))
    db.add(User(username="admin", full_name="System Administrator", role=UserRole.ROOT_ADMIN))
    db.commit()
    return True


def init_system_data(db: Optional[Session] = None):
    """
    Seeds default leave types, the root admin and HR staff permissions
    when the database is empty.
    """
    if not settings.seed_defaults:
        logger.info("Default seeding disabled (SEED_DEFAULTS=false)")
        return

    owns_session = db is None
    db = db or SessionLocal()
    try:
        if seed_defaults(db):
            logger.info("✓ Seeded default leave types, admin user and permissions")
        else:
            logger.info("System initialization check: existing data found, skipping seed")
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization: {str(e)}", exc_info=True)
        raise
    finally:
        if owns_session:
            db.close()
