"""Order approval, cancellation and status progression."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from coffee_orders.models import Order
from coffee_orders.models.order import ORDER_STATUSES
from coffee_orders.schemas.order import OrderRead
from coffee_orders.services.errors import (
    AlreadyApprovedError,
    AlreadyCancelledError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
    OrderValidationError,
)
from coffee_orders.services.events import (
    EventBus,
    announce_order_approved,
    announce_order_cancelled,
    announce_status_changed,
    event_bus,
)
from coffee_orders.services.order_queries import get_order
from coffee_orders.services.stock_ledger import deduct_for_order, has_transaction, restore_for_order

logger = logging.getLogger(__name__)

# Pending orders reach "preparing" only through approval; cancellation has its own operation.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": set(),
    "preparing": {"ready"},
    "ready": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def _lock_order(db: Session, order_id: int) -> Order:
    order = db.scalar(select(Order).where(Order.id == order_id).with_for_update())
    if order is None:
        logger.warning("Order not found order_id=%s", order_id)
        raise OrderNotFoundError(order_id)
    return order


def approve_order(db: Session, order_id: int, *, bus: EventBus = event_bus) -> OrderRead:
    """Deduct stock for the order and move it to preparing, at most once."""
    try:
        order = _lock_order(db, order_id)
        if order.status == "cancelled":
            raise AlreadyCancelledError()
        if order.approved:
            raise AlreadyApprovedError()
        deduct_for_order(db, order)
        order.approved = True
        order.status = "preparing"
        db.commit()
    except Exception:
        db.rollback()
        raise

    order_read = get_order(db, order_id)
    logger.info("Order approved order_id=%s", order_id)
    announce_order_approved(bus, order_read)
    return order_read


def cancel_order(db: Session, order_id: int, restore_stock: bool = False, *, bus: EventBus = event_bus) -> OrderRead:
    """Cancel the order, restoring deducted stock when requested.

    A failed restoration guard aborts the cancellation.
    """
    try:
        order = _lock_order(db, order_id)
        if order.status == "cancelled":
            raise AlreadyCancelledError()
        if restore_stock and order.approved:
            if has_transaction(db, order.id, "deduction"):
                restore_for_order(db, order)
            else:
                logger.warning("No stock deduction recorded; skipping restoration order_id=%s", order.id)
        order.status = "cancelled"
        order.approved = False
        db.commit()
    except Exception:
        db.rollback()
        raise

    order_read = get_order(db, order_id)
    logger.info("Order cancelled order_id=%s restore_stock=%s", order_id, restore_stock)
    announce_order_cancelled(bus, order_read)
    return order_read


def set_order_status(db: Session, order_id: int, new_status: str, *, bus: EventBus = event_bus) -> OrderRead:
    """Advance an approved order through preparing, ready and delivered."""
    normalized = (new_status or "").strip().lower()
    if normalized not in ORDER_STATUSES:
        raise OrderValidationError(f"Unsupported order status: {new_status}")
    try:
        order = _lock_order(db, order_id)
        if not can_transition(order.status, normalized):
            raise InvalidStatusTransitionError(order.status, normalized)
        order.status = normalized
        db.commit()
    except Exception:
        db.rollback()
        raise

    order_read = get_order(db, order_id)
    logger.info("Order status changed order_id=%s status=%s", order_id, normalized)
    announce_status_changed(bus, order_read)
    return order_read
