import enum
from typing import Optional


class RequestStatus(str, enum.Enum):
    """Workflow status shared by leave and travel requests."""
    FOR_APPROVAL = "For Approval"
    APPROVED = "Approved"
    RETURNED = "Returned"
    CANCELLED = "Cancelled"

    @classmethod
    def normalize(cls, value: Optional[str]) -> "RequestStatus":
        """
        Map stored or client-supplied spellings onto the enum.
        Blank and legacy "Pending" mean For Approval. Raises ValueError otherwise.
        """
        if isinstance(value, cls):
            return value
        text = (value or "").strip()
        if not text or text.upper() == "PENDING":
            return cls.FOR_APPROVAL
        key = text.replace(" ", "").replace("_", "").lower()
        for member in cls:
            if member.value.replace(" ", "").lower() == key:
                return member
        raise ValueError(f"Unknown request status: {value!r}")


class RequestKind(str, enum.Enum):
    LEAVE = "leave"
    TRAVEL = "travel"
