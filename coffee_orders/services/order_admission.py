"""Order admission: validation, rate limiting, pricing and the single write transaction."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from coffee_orders.models import BreakfastOrderOption, DiningTable, Notification, Order, OrderItem, User
from coffee_orders.schemas.order import OrderCreateRequest, OrderRead
from coffee_orders.services.duplicate_guard import DuplicateSubmissionGuard, duplicate_guard, submission_key
from coffee_orders.services.errors import OrderValidationError, StaffAccessRequiredError
from coffee_orders.services.events import EventBus, announce_new_order, announce_order_approved, event_bus
from coffee_orders.services.order_queries import get_order
from coffee_orders.services.pricing import PricedCart, verify_cart
from coffee_orders.services.rate_limiter import ClientFingerprint, check_rate_limit, fingerprint_client, record_order
from coffee_orders.services.stock_ledger import deduct_for_order
from coffee_orders.utils.time import utc_now

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]{1,128}$")


@dataclass
class ClientContext:
    """Request-derived identity of whoever submits the cart."""

    session_id: str | None = None
    device_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    user: User | None = None


@dataclass
class AdmissionResult:
    order: OrderRead
    notification_id: int
    auto_approved: bool
    occupied_table_id: int | None = None


def resolve_session_id(header_value: str | None, body_value: str | None) -> str:
    session_id = (header_value or body_value or "").strip()
    if not SESSION_ID_PATTERN.match(session_id):
        logger.warning("Invalid or missing session id session_id=%r", session_id)
        raise OrderValidationError("Valid session ID required")
    return session_id


def validate_order_shape(payload: OrderCreateRequest) -> None:
    if payload.order_type == "local" and payload.table_id is None:
        raise OrderValidationError("Table ID required for local orders")
    if payload.order_type == "delivery" and not (payload.delivery_address or "").strip():
        raise OrderValidationError("Delivery address required for delivery orders")


def _claim_table(db: Session, payload: OrderCreateRequest) -> tuple[DiningTable | None, bool]:
    """Lock the order's table; returns it with whether it changes to occupied."""
    if payload.order_type != "local" or payload.table_id is None:
        return None, False
    table = db.scalar(select(DiningTable).where(DiningTable.id == payload.table_id).with_for_update())
    if table is None:
        logger.warning("Invalid table table_id=%s", payload.table_id)
        raise OrderValidationError("Table does not exist")
    if table.status == "reserved":
        logger.warning("Table reserved table_id=%s", payload.table_id)
        raise OrderValidationError("Table is reserved")
    if table.status == "occupied":
        return table, False
    table.status = "occupied"
    return table, True


def _add_order_lines(db: Session, order: Order, priced: PricedCart) -> None:
    for line in priced.menu_lines:
        db.add(
            OrderItem(
                order_id=order.id,
                item_id=line.item_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                supplement_id=line.primary_supplement_id,
            )
        )
    for line in priced.coalesced_breakfasts:
        order_item = OrderItem(
            order_id=order.id,
            breakfast_id=line.breakfast_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )
        db.add(order_item)
        db.flush()
        for option_id in line.option_ids:
            db.add(BreakfastOrderOption(order_item_id=order_item.id, breakfast_option_id=option_id))
    db.flush()


def notification_message(order: Order, table: DiningTable | None) -> str:
    if order.order_type == "local":
        return f"New order #{order.id} for Table {table.table_number if table else 'N/A'}"
    if order.order_type == "delivery":
        return f"New delivery order #{order.id} for {order.delivery_address}"
    return f"New {order.order_type} order #{order.id}"


def create_order(
    db: Session,
    payload: OrderCreateRequest,
    client: ClientContext,
    *,
    guard: DuplicateSubmissionGuard = duplicate_guard,
    bus: EventBus = event_bus,
    now: datetime | None = None,
) -> AdmissionResult:
    """Admit a cart as an order; staff-console orders are approved in the same transaction.

    Nothing is written unless every check passes. Events are published only
    after the commit.
    """
    staff_console = payload.is_staff_console
    if staff_console and (client.user is None or not client.user.is_staff):
        logger.warning("Staff-console order without staff credentials")
        raise StaffAccessRequiredError("Admin or server access required")

    session_id = resolve_session_id(client.session_id, payload.session_id)
    validate_order_shape(payload)
    current = now or utc_now()

    fingerprint: ClientFingerprint | None = None
    try:
        if not staff_console:
            fingerprint = fingerprint_client(client.device_id, client.ip_address, client.user_agent)
            check_rate_limit(db, fingerprint, current)
        guard.claim(submission_key(payload, session_id))

        priced = verify_cart(db, payload, current)
        table, occupied = _claim_table(db, payload)

        order = Order(
            total_price=priced.total,
            order_type=payload.order_type,
            delivery_address=payload.delivery_address if payload.order_type == "delivery" else None,
            promotion_id=priced.promotion_id,
            table_id=table.id if table else None,
            session_id=session_id,
            notes=payload.notes,
            status="pending",
            approved=False,
            created_at=current,
        )
        db.add(order)
        db.flush()

        if fingerprint is not None:
            record_order(db, fingerprint, current)
        _add_order_lines(db, order, priced)

        if staff_console:
            deduct_for_order(db, order)
            order.approved = True
            order.status = "preparing"

        notification = Notification(
            type="order",
            reference_id=order.id,
            message=notification_message(order, table),
            is_read=False,
            created_at=current,
        )
        db.add(notification)
        db.commit()
    except Exception:
        db.rollback()
        raise

    order_read = get_order(db, order.id)
    logger.info(
        "Order created order_id=%s session_id=%s items=%s breakfasts=%s total=%s auto_approved=%s",
        order.id,
        session_id,
        len(priced.menu_lines),
        len(priced.coalesced_breakfasts),
        priced.total,
        staff_console,
    )

    occupied_table_id = table.id if table is not None and occupied else None
    announce_new_order(bus, order_read, notification, occupied_table_id)
    if staff_console:
        announce_order_approved(bus, order_read)

    return AdmissionResult(
        order=order_read,
        notification_id=notification.id,
        auto_approved=staff_console,
        occupied_table_id=occupied_table_id,
    )
