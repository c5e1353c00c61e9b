"""Persisted staff notification queries and read-state updates."""

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from coffee_orders.models import Notification
from coffee_orders.services.errors import ResourceNotFoundError

logger = logging.getLogger(__name__)


def list_notifications(db: Session, is_read: bool | None = None) -> list[Notification]:
    stmt = select(Notification).where(Notification.type == "order")
    if is_read is not None:
        stmt = stmt.where(Notification.is_read.is_(is_read))
    return list(db.scalars(stmt.order_by(Notification.created_at.desc(), Notification.id.desc())).all())


def mark_read(db: Session, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise ResourceNotFoundError("Notification not found")
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    logger.info("Notification marked as read notification_id=%s", notification_id)
    return notification


def clear_notifications(db: Session) -> int:
    """Mark every unread order notification as read; returns how many changed."""
    result = db.execute(
        update(Notification)
        .where(Notification.is_read.is_(False), Notification.type == "order")
        .values(is_read=True)
    )
    db.commit()
    logger.info("Notifications cleared count=%s", result.rowcount)
    return result.rowcount or 0
