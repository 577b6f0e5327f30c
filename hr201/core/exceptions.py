from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )


class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )


class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} {entity_id} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": str(entity_id)}
        )


class InvalidDateFormatError(AppException):
    """Raised by the date-set utility for input it cannot read as a calendar day."""
    def __init__(self, raw: Any):
        self.raw = raw
        super().__init__(
            message=f"Unrecognized date: {raw!r}. Use YYYY-MM-DD, MM/DD/YYYY or an ISO timestamp.",
            status_code=422,
            error_code="INVALID_DATE_FORMAT",
            details={"value": str(raw)}
        )


class InvalidEmployeeIdError(AppException):
    def __init__(self, raw: Any):
        super().__init__(
            message=f"Employee ids must be whole numbers, got {raw!r}.",
            status_code=422,
            error_code="INVALID_EMPLOYEE_ID",
            details={"value": str(raw)}
        )


# Reason code -> HTTP status for rejections coming out of the engine
REJECTION_STATUS_CODES = {
    "EMPTY_DATE_SET": 422,
    "INVALID_CATEGORY": 422,
    "MISSING_ANSWER": 422,
    "NO_EMPLOYEES": 422,
    "UNKNOWN_EMPLOYEE": 422,
    "MISSING_REMARK": 422,
    "INSUFFICIENT_CREDIT": 400,
    "DATE_CONFLICT": 409,
    "INVALID_TRANSITION": 409,
    "CONFLICT": 409,
    "PERMISSION_DENIED": 403,
}


class RequestRejectedError(AppException):
    """
    Raised by routers when the engine rejects a submission or transition.
    The engine itself returns rejections as values; only the HTTP layer raises.
    """
    def __init__(self, reason: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        super().__init__(
            message=message,
            status_code=REJECTION_STATUS_CODES.get(reason, 400),
            error_code=reason,
            details=details
        )
