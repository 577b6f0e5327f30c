from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from hr201.models.notification import Notification


class NotificationService:
    @staticmethod
    def notify_employee(
        db: Session,
        employee_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ) -> Notification:
        """
        Queue a notification in the current transaction.
        Does not commit; it is written together with the change it announces.
        """
        notification = Notification(
            employee_id=employee_id,
            title=title,
            message=message,
            type=type,
            link=link
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def notify_employees(
        db: Session,
        employee_ids: Iterable[int],
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ) -> List[Notification]:
        return [
            NotificationService.notify_employee(db, employee_id, title, message, type, link)
            for employee_id in sorted(set(employee_ids))
        ]
