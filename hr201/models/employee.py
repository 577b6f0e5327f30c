"""
Employee master record.
Owned by the employee-master module; the leave/travel engine only reads it,
apart from the travel liaison flag.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr201.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    id_no = Column(String(30), unique=True, index=True, nullable=True)
    surname = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    extension = Column(String(10), nullable=True)  # Jr., III
    department = Column(String(100), nullable=True, index=True)

    # Travel liaison: may file travel requests from the portal
    can_create_travel = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    credit_balances = relationship("CreditBalance", back_populates="employee", cascade="all, delete-orphan")
    leave_requests = relationship("LeaveRequest", back_populates="employee")

    def __repr__(self):
        return f"<Employee {self.id}: {self.display_name}>"

    @property
    def display_name(self) -> str:
        """SURNAME, First M. Ext, as printed on forms."""
        name = f"{self.surname}, {self.first_name}"
        if self.middle_name:
            name += f" {self.middle_name.strip()[0]}."
        if self.extension:
            name += f" {self.extension}"
        return name
