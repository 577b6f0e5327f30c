import uuid
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Date, Numeric, Boolean, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr201.database import Base
from hr201.models.request_status import RequestStatus

CREDIT_PER_DAY = Decimal("1.000")


def derive_credit(date_set) -> Decimal:
    """Deducted credit is always the number of days at 1.000 each."""
    return (CREDIT_PER_DAY * len(date_set)).quantize(CREDIT_PER_DAY)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    leave_number = Column(String(20), unique=True, index=True, nullable=False)  # yymmddLV-NNN
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    # Copied from the leave type at submit time so later catalogue edits don't move charged credit
    category = Column(String(20), nullable=True)
    purpose = Column(String(100), nullable=True)
    question_answer = Column(String(255), nullable=True)
    deducted_credit = Column(Numeric(12, 3), nullable=False, default=Decimal("0.000"))
    status = Column(String(20), default=RequestStatus.FOR_APPROVAL.value, nullable=False, index=True)  # String, not Enum, for SQLite
    remarks = Column(Text, nullable=True)
    is_portal_origin = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee", back_populates="leave_requests")
    leave_type = relationship("LeaveType")
    dates = relationship(
        "LeaveRequestDate",
        back_populates="leave_request",
        cascade="all, delete-orphan",
        order_by="LeaveRequestDate.leave_date",
    )

    # Edits and status changes both bump it; a writer holding an old version loses
    __mapper_args__ = {"version_id_col": version}

    @property
    def leave_dates(self):
        return sorted(d.leave_date for d in self.dates)

    @property
    def status_enum(self) -> RequestStatus:
        return RequestStatus.normalize(self.status)

    def assign_dates(self, date_set) -> None:
        """
        Replace the request's days and recompute deducted_credit.
        Rows for days that stay are kept: the unit of work inserts before it
        deletes, so re-inserting an existing day would trip the unique key.
        """
        wanted = set(date_set)
        self.dates = [row for row in self.dates if row.leave_date in wanted]
        kept = {row.leave_date for row in self.dates}
        for day in sorted(wanted - kept):
            self.dates.append(LeaveRequestDate(leave_date=day, credit=CREDIT_PER_DAY))
        self.deducted_credit = derive_credit(wanted)


class LeaveRequestDate(Base):
    __tablename__ = "leave_request_dates"
    __table_args__ = (UniqueConstraint("leave_request_id", "leave_date", name="uq_leave_request_date"),)

    id = Column(Integer, primary_key=True, index=True)
    leave_request_id = Column(String(36), ForeignKey("leave_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_date = Column(Date, nullable=False, index=True)
    credit = Column(Numeric(12, 3), nullable=False, default=CREDIT_PER_DAY)

    leave_request = relationship("LeaveRequest", back_populates="dates")
