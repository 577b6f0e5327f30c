from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hr201.core.exceptions import NotFoundError
from hr201.database import get_db
from hr201.models.notification import Notification
from hr201.models.user import User
from hr201.routers.auth_deps import get_current_user
from hr201.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if current_user.employee_id is None:
        return []
    query = db.query(Notification).filter(Notification.employee_id == current_user.employee_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(50).all()


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.employee_id == current_user.employee_id
    ).first()

    if not notification:
        raise NotFoundError("Notification", notification_id)

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
