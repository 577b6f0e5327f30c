from sqlalchemy import Column, Integer, String, Numeric, Boolean
from hr201.database import Base
import enum


class CreditCategory(str, enum.Enum):
    """Balances a leave can be charged against."""
    VACATION = "Vacation"
    SICK = "Sick"


class LeaveType(Base):
    __tablename__ = "leave_types"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(10), unique=True, index=True, nullable=False)  # e.g. "VL", "SL", "SPL"
    name = Column(String(100), nullable=False)
    # NULL: never charged to a balance
    credit_category = Column(String(20), nullable=True)
    annual_entitlement = Column(Numeric(12, 3), nullable=True)  # days per calendar year
    requires_question = Column(Boolean, default=False, nullable=False)
    question = Column(String(255), nullable=True)

    @property
    def category(self):
        return CreditCategory(self.credit_category) if self.credit_category else None
