from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr201.database import Base


class CreditBalance(Base):
    __tablename__ = "credit_balances"
    __table_args__ = (
        UniqueConstraint("employee_id", "category", name="uq_balance_employee_category"),
        CheckConstraint("amount >= 0", name="ck_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(20), nullable=False)  # CreditCategory value
    amount = Column(Numeric(12, 3), nullable=False, default=Decimal("0.000"))
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    employee = relationship("Employee", back_populates="credit_balances")

    # UPDATE ... WHERE version = :seen, StaleDataError when another transaction got there first
    __mapper_args__ = {"version_id_col": version}
