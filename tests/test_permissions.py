from datetime import date

import pytest

from hr201.models.user import RolePermission, User, UserRole
from hr201.services.numbering import next_leave_number, next_travel_number
from hr201.services.permissions import EMPLOYEES_COMPONENT, LEAVE_COMPONENT, TRAVEL_COMPONENT, PermissionService


def test_root_admin_passes_every_check(db_session, admin_user):
    service = PermissionService(db_session)
    assert service.can(admin_user, LEAVE_COMPONENT, "delete")
    assert service.can(admin_user, "anything", "update")


def test_hr_staff_uses_seeded_permissions(db_session, hr_user):
    service = PermissionService(db_session)
    assert service.can(hr_user, LEAVE_COMPONENT, "update")
    assert service.can(hr_user, TRAVEL_COMPONENT, "create")
    assert service.can(hr_user, EMPLOYEES_COMPONENT, "read")
    assert not service.can(hr_user, EMPLOYEES_COMPONENT, "update")
    assert not service.can(hr_user, LEAVE_COMPONENT, "delete")


def test_portal_users_hold_no_staff_permissions(db_session, portal_user):
    assert not PermissionService(db_session).can(portal_user, LEAVE_COMPONENT, "read")


def test_inactive_user_is_denied(db_session):
    user = User(username="former", role=UserRole.ROOT_ADMIN, is_active=False)
    db_session.add(user)
    db_session.commit()
    assert not PermissionService(db_session).can(user, LEAVE_COMPONENT, "read")


def test_unknown_action_is_a_programming_error(db_session, hr_user):
    with pytest.raises(ValueError):
        PermissionService(db_session).can(hr_user, LEAVE_COMPONENT, "approve")


def test_role_permission_allows():
    permission = RolePermission(role=UserRole.HR_STAFF, component=LEAVE_COMPONENT, can_read=True, can_update=False)
    assert permission.allows("read")
    assert not permission.allows("update")


def test_request_numbers(db_session, lifecycle, admin_user, employee_a, leave_types):
    today = date.today()
    assert next_leave_number(db_session, date(2025, 3, 10)) == "250310LV-001"
    assert next_travel_number(db_session, date(2025, 3, 10)) == "250310TR-001"

    lifecycle.submit_travel(admin_user, [employee_a.id], ["2025-05-02"], purpose="Audit", destination="Cebu").unwrap()
    # Travel sequence runs per month, leave sequence per day
    assert next_travel_number(db_session, today).endswith("TR-002")
    assert next_leave_number(db_session, today).endswith("LV-001")
