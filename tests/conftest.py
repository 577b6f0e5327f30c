import pytest
import os
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from hr201.database import Base, get_db
from hr201.main import app
from hr201.core.init_system import seed_defaults
from hr201.models.employee import Employee
from hr201.models.leave_type import LeaveType
from hr201.models.user import User, UserRole
from hr201.services.credit_ledger import CreditLedger
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory database per test. The engine commits and rolls back on
    its own, so an outer rollback-only transaction cannot isolate tests.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    seed_defaults(session)
    yield session
    session.close()


@pytest.fixture
def leave_types(db_session):
    """Seeded catalogue keyed by code: VL, SL, SPL, FL."""
    return {lt.code: lt for lt in db_session.query(LeaveType).all()}


@pytest.fixture
def employee_a(db_session):
    employee = Employee(id_no="2019-001", surname="Dela Cruz", first_name="Juan", middle_name="Santos", department="Finance")
    db_session.add(employee)
    db_session.commit()
    CreditLedger(db_session).set_balance(employee.id, "Vacation", Decimal("5.000"))
    CreditLedger(db_session).set_balance(employee.id, "Sick", Decimal("2.000"))
    db_session.commit()
    return employee


@pytest.fixture
def employee_b(db_session):
    employee = Employee(id_no="2020-014", surname="Reyes", first_name="Maria", department="Finance")
    db_session.add(employee)
    db_session.commit()
    return employee


@pytest.fixture
def admin_user(db_session):
    """ROOT_ADMIN created by the default seed."""
    return db_session.query(User).filter(User.role == UserRole.ROOT_ADMIN).first()


@pytest.fixture
def hr_user(db_session):
    user = User(username="hr.staff", full_name="HR Staff", role=UserRole.HR_STAFF)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def portal_user(db_session, employee_a):
    """Self-service user for employee A."""
    user = User(username="juan", full_name="Juan Dela Cruz", role=UserRole.EMPLOYEE, employee_id=employee_a.id)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def headers():
    def _headers(user):
        return {"X-User-Id": str(user.id)}
    return _headers


@pytest.fixture(scope="function")
def client(db_session):
    """TestClient sharing the test session through a get_db override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def lifecycle(db_session):
    from hr201.services.lifecycle import RequestLifecycleManager
    return RequestLifecycleManager(db_session, restore_credit_on_cancel=True)


@pytest.fixture
def approved_leave(lifecycle, leave_types, admin_user):
    """Submit and approve a leave as staff; returns the request."""
    from hr201.models.request_status import RequestKind

    def _approved_leave(employee, dates, code="VL"):
        request = lifecycle.submit_leave(admin_user, employee.id, leave_types[code].id, dates).unwrap()
        return lifecycle.change_status(RequestKind.LEAVE, request.id, "Approved", admin_user).unwrap()
    return _approved_leave


@pytest.fixture
def approved_travel(lifecycle, admin_user):
    from hr201.models.request_status import RequestKind

    def _approved_travel(employees, dates, destination="Cebu City"):
        request = lifecycle.submit_travel(
            admin_user, [e.id for e in employees], dates, purpose="Audit", destination=destination
        ).unwrap()
        return lifecycle.change_status(RequestKind.TRAVEL, request.id, "Approved", admin_user).unwrap()
    return _approved_travel
