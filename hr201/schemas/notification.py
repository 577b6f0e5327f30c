from datetime import datetime
from typing import Optional

from pydantic import ConfigDict

from hr201.core.schemas import CamelModel


class NotificationResponse(CamelModel):
    id: int
    title: str
    message: str
    type: str
    link: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
