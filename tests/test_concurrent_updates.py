"""
Edits and status changes racing from two sessions against one file database.

SQLite only takes a write lock on the first UPDATE, so the second session can
commit while the first is still between its read and its write.
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from hr201.core.init_system import seed_defaults
from hr201.database import Base
from hr201.models.employee import Employee
from hr201.models.leave_request import LeaveRequest
from hr201.models.leave_type import LeaveType
from hr201.models.request_status import RequestKind, RequestStatus
from hr201.models.user import User, UserRole
from hr201.services.credit_ledger import CreditLedger
from hr201.services.lifecycle import RequestLifecycleManager
from hr201.services.results import RejectionReason


@pytest.fixture
def sessions(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'concurrent.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    first, second = factory(), factory()
    yield first, second
    first.close()
    second.close()
    engine.dispose()


@pytest.fixture
def seeded(sessions):
    first, _ = sessions
    seed_defaults(first)
    employee = Employee(id_no="2019-001", surname="Dela Cruz", first_name="Juan", department="Finance")
    first.add(employee)
    first.commit()
    CreditLedger(first).set_balance(employee.id, "Vacation", Decimal("5.000"))
    first.commit()
    admin = first.query(User).filter(User.role == UserRole.ROOT_ADMIN).first()
    vacation = first.query(LeaveType).filter(LeaveType.code == "VL").first()
    return employee, admin, vacation


def test_edit_loses_to_approval_committed_mid_edit(sessions, seeded, monkeypatch):
    first, second = sessions
    employee, admin, vacation = seeded
    editor = RequestLifecycleManager(first, restore_credit_on_cancel=True)
    request = editor.submit_leave(admin, employee.id, vacation.id, ["2025-03-10"]).unwrap()
    request_id = request.id

    original = editor.validator.validate_leave

    def validate_then_approve_elsewhere(*args, **kwargs):
        result = original(*args, **kwargs)
        approver = RequestLifecycleManager(second, restore_credit_on_cancel=True)
        approver.change_status(RequestKind.LEAVE, request_id, "Approved", second.get(User, admin.id)).unwrap()
        return result

    monkeypatch.setattr(editor.validator, "validate_leave", validate_then_approve_elsewhere)

    result = editor.update_leave(
        admin, request_id, vacation.id, ["2025-03-10", "2025-03-11", "2025-03-12"], purpose="longer trip"
    )

    assert result.reason == RejectionReason.CONFLICT
    first.expire_all()
    stored = first.get(LeaveRequest, request_id)
    assert stored.status == RequestStatus.APPROVED.value
    assert stored.deducted_credit == Decimal("1.000")
    assert stored.leave_dates == [date(2025, 3, 10)]
    assert CreditLedger(first).get_balance(employee.id, "Vacation") == Decimal("4.000")


def test_approval_loses_to_edit_committed_mid_approval(sessions, seeded, monkeypatch):
    first, second = sessions
    employee, admin, vacation = seeded
    approver = RequestLifecycleManager(first, restore_credit_on_cancel=True)
    request = approver.submit_leave(admin, employee.id, vacation.id, ["2025-03-10"]).unwrap()
    request_id = request.id

    original = approver.validator.validate_leave
    edits = []

    def validate_then_edit_elsewhere(*args, **kwargs):
        result = original(*args, **kwargs)
        if not edits:
            editor = RequestLifecycleManager(second, restore_credit_on_cancel=True)
            edits.append(
                editor.update_leave(
                    second.get(User, admin.id), request_id, vacation.id,
                    ["2025-03-10", "2025-03-11", "2025-03-12"], purpose="longer trip",
                ).unwrap()
            )
        return result

    monkeypatch.setattr(approver.validator, "validate_leave", validate_then_edit_elsewhere)

    result = approver.change_status(RequestKind.LEAVE, request_id, "Approved", admin)

    assert result.reason == RejectionReason.CONFLICT
    assert len(edits) == 1
    assert CreditLedger(first).get_balance(employee.id, "Vacation") == Decimal("5.000")

    # A fresh attempt sees the edited days and charges for all of them
    approved = approver.change_status(RequestKind.LEAVE, request_id, "Approved", admin).unwrap()
    assert approved.status == RequestStatus.APPROVED.value
    assert approved.deducted_credit == Decimal("3.000")
    assert CreditLedger(first).get_balance(employee.id, "Vacation") == Decimal("2.000")
