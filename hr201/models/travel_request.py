import uuid
from sqlalchemy import Column, Integer, String, Date, Boolean, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr201.database import Base
from hr201.models.request_status import RequestStatus


class TravelRequest(Base):
    __tablename__ = "travel_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    travel_number = Column(String(20), unique=True, index=True, nullable=False)  # yymmddTR-NNN
    purpose = Column(Text, nullable=False)
    destination = Column(String(255), nullable=False)
    status = Column(String(20), default=RequestStatus.FOR_APPROVAL.value, nullable=False, index=True)
    remarks = Column(Text, nullable=True)
    is_portal_origin = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    participants = relationship(
        "TravelParticipant",
        back_populates="travel_request",
        cascade="all, delete-orphan",
        order_by="TravelParticipant.employee_id",
    )
    dates = relationship(
        "TravelRequestDate",
        back_populates="travel_request",
        cascade="all, delete-orphan",
        order_by="TravelRequestDate.travel_date",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def employee_ids(self):
        return sorted(p.employee_id for p in self.participants)

    @property
    def travel_dates(self):
        return sorted(d.travel_date for d in self.dates)

    @property
    def status_enum(self) -> RequestStatus:
        return RequestStatus.normalize(self.status)

    def assign_participants(self, employee_ids) -> None:
        wanted = set(employee_ids)
        self.participants = [p for p in self.participants if p.employee_id in wanted]
        kept = {p.employee_id for p in self.participants}
        for employee_id in sorted(wanted - kept):
            self.participants.append(TravelParticipant(employee_id=employee_id))

    def assign_dates(self, date_set) -> None:
        wanted = set(date_set)
        self.dates = [row for row in self.dates if row.travel_date in wanted]
        kept = {row.travel_date for row in self.dates}
        for day in sorted(wanted - kept):
            self.dates.append(TravelRequestDate(travel_date=day))


class TravelParticipant(Base):
    __tablename__ = "travel_participants"
    __table_args__ = (UniqueConstraint("travel_request_id", "employee_id", name="uq_travel_participant"),)

    id = Column(Integer, primary_key=True, index=True)
    travel_request_id = Column(String(36), ForeignKey("travel_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)

    travel_request = relationship("TravelRequest", back_populates="participants")
    employee = relationship("Employee")


class TravelRequestDate(Base):
    __tablename__ = "travel_request_dates"
    __table_args__ = (UniqueConstraint("travel_request_id", "travel_date", name="uq_travel_request_date"),)

    id = Column(Integer, primary_key=True, index=True)
    travel_request_id = Column(String(36), ForeignKey("travel_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    travel_date = Column(Date, nullable=False, index=True)

    travel_request = relationship("TravelRequest", back_populates="dates")
