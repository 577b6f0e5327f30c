from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from hr201.models.audit_log import AuditLog
from hr201.services.base import BaseService


def _sanitize(obj: Any) -> Any:
    """Make pydantic models, Decimals and dates JSON-column safe."""
    if hasattr(obj, "model_dump"):
        return _sanitize(obj.model_dump())
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [_sanitize(i) for i in obj]
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if hasattr(obj, "value") and not isinstance(obj, (str, int, float, bool)):
        return obj.value
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[str],
        user=None,
        details: Optional[dict] = None,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> AuditLog:
        """
        Append an audit entry to the caller's transaction.
        Flushes only: the entry commits or rolls back with the action it records.
        """
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            user_id=user.id if user is not None else None,
            user_role=user.role.value if user is not None else None,
            details=_sanitize(details or {}),
            before_state=_sanitize(before_state),
            after_state=_sanitize(after_state),
        )
        self.db.add(entry)
        self.db.flush()
        return entry
