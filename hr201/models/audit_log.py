from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from hr201.database import Base


class AuditLog(Base):
    """Append-only trail of submissions, edits and status transitions."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(50), nullable=False, index=True)  # e.g. "leave_submitted", "travel_status_changed"
    entity_type = Column(String(30), nullable=False, index=True)
    entity_id = Column(String(36), nullable=True, index=True)
    user_id = Column(Integer, nullable=True)
    user_role = Column(String(20), nullable=True)
    details = Column(JSON, nullable=True)
    before_state = Column(JSON, nullable=True)
    after_state = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
