"""
Typed outcomes returned by the engine.

Expected failures (bad input, business rule violations, lost races) travel
back to the caller as values; nothing here is raised.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from hr201.core.exceptions import RequestRejectedError


class RejectionReason(str, Enum):
    EMPTY_DATE_SET = "EMPTY_DATE_SET"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    MISSING_ANSWER = "MISSING_ANSWER"
    NO_EMPLOYEES = "NO_EMPLOYEES"
    UNKNOWN_EMPLOYEE = "UNKNOWN_EMPLOYEE"
    INSUFFICIENT_CREDIT = "INSUFFICIENT_CREDIT"
    DATE_CONFLICT = "DATE_CONFLICT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    MISSING_REMARK = "MISSING_REMARK"
    CONFLICT = "CONFLICT"
    PERMISSION_DENIED = "PERMISSION_DENIED"


@dataclass
class ValidationResult:
    accepted: bool
    reason: Optional[RejectionReason] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def accept(cls, **details) -> "ValidationResult":
        return cls(accepted=True, details=details)

    @classmethod
    def reject(cls, reason: RejectionReason, message: str, **details) -> "ValidationResult":
        return cls(accepted=False, reason=reason, message=message, details=details)

    @property
    def retryable(self) -> bool:
        return self.reason == RejectionReason.CONFLICT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "details": self.details,
        }

    def raise_if_rejected(self) -> None:
        if not self.accepted:
            raise RequestRejectedError(self.reason.value, self.message, self.details or None)


@dataclass
class TransitionResult:
    """Outcome of a submit, edit or status change."""
    success: bool
    request: Any = None
    rejection: Optional[ValidationResult] = None
    already_applied: bool = False

    @classmethod
    def ok(cls, request, already_applied: bool = False) -> "TransitionResult":
        return cls(success=True, request=request, already_applied=already_applied)

    @classmethod
    def rejected(cls, rejection: ValidationResult, request=None) -> "TransitionResult":
        return cls(success=False, request=request, rejection=rejection)

    @property
    def reason(self) -> Optional[RejectionReason]:
        return self.rejection.reason if self.rejection else None

    def unwrap(self):
        """Return the request or raise RequestRejectedError for the HTTP layer."""
        if not self.success:
            self.rejection.raise_if_rejected()
        return self.request
