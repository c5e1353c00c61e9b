"""Staff notification endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from coffee_orders.core.security import require_staff
from coffee_orders.db.session import get_db
from coffee_orders.models.user import User
from coffee_orders.schemas.notification import NotificationRead
from coffee_orders.schemas.order import MessageResponse
from coffee_orders.services.notification_service import clear_notifications, list_notifications, mark_read

router: APIRouter = APIRouter()


@router.get("", response_model=list[NotificationRead])
def read_notifications(
    is_read: int | None = Query(default=None, ge=0, le=1),
    db: Session = Depends(get_db),
    _: User = Depends(require_staff),
) -> list[NotificationRead]:
    read_filter = None if is_read is None else bool(is_read)
    return [NotificationRead.model_validate(row) for row in list_notifications(db, is_read=read_filter)]


@router.put("/clear", response_model=MessageResponse)
def clear(db: Session = Depends(get_db), _: User = Depends(require_staff)) -> MessageResponse:
    clear_notifications(db)
    return MessageResponse(message="Notifications cleared")


@router.put("/{notification_id}/read", response_model=MessageResponse)
def read(notification_id: int, db: Session = Depends(get_db), _: User = Depends(require_staff)) -> MessageResponse:
    mark_read(db, notification_id)
    return MessageResponse(message="Notification marked as read")
