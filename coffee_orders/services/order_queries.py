"""Read projections of orders for staff listings, guest tracking and events."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from coffee_orders.models import MenuItemSupplement, Order, OrderItem
from coffee_orders.models.order import BreakfastOrderOption
from coffee_orders.schemas.order import (
    OrderBreakfastLineRead,
    OrderMenuLineRead,
    OrderOptionRead,
    OrderRead,
    OrderSupplementRead,
)
from coffee_orders.services.errors import OrderNotFoundError
from coffee_orders.utils.time import time_range_window

_ORDER_LOAD_OPTIONS = (
    selectinload(Order.table),
    selectinload(Order.items).selectinload(OrderItem.menu_item),
    selectinload(Order.items).selectinload(OrderItem.breakfast),
    selectinload(Order.items).selectinload(OrderItem.options).selectinload(BreakfastOrderOption.option),
)


def _supplement_read(db: Session, item: OrderItem) -> OrderSupplementRead | None:
    if item.supplement_id is None:
        return None
    offer = db.scalar(
        select(MenuItemSupplement).where(
            MenuItemSupplement.menu_item_id == item.item_id,
            MenuItemSupplement.supplement_id == item.supplement_id,
        )
    )
    return OrderSupplementRead(
        supplement_id=item.supplement_id,
        name=offer.name if offer else None,
        additional_price=offer.additional_price if offer else None,
    )


def build_order_read(db: Session, order: Order) -> OrderRead:
    menu_lines: list[OrderMenuLineRead] = []
    breakfast_lines: list[OrderBreakfastLineRead] = []
    for item in sorted(order.items, key=lambda line: line.id):
        if item.item_id is not None:
            menu_lines.append(
                OrderMenuLineRead(
                    order_item_id=item.id,
                    item_id=item.item_id,
                    name=item.menu_item.name if item.menu_item else None,
                    image_url=item.menu_item.image_url if item.menu_item else None,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    supplement=_supplement_read(db, item),
                )
            )
            continue
        breakfast_lines.append(
            OrderBreakfastLineRead(
                order_item_id=item.id,
                breakfast_id=item.breakfast_id,
                name=item.breakfast.name if item.breakfast else None,
                image_url=item.breakfast.image_url if item.breakfast else None,
                quantity=item.quantity,
                unit_price=item.unit_price,
                options=[
                    OrderOptionRead(
                        breakfast_option_id=selected.breakfast_option_id,
                        option_name=selected.option.option_name if selected.option else None,
                        additional_price=selected.option.additional_price if selected.option else None,
                    )
                    for selected in sorted(item.options, key=lambda row: row.id)
                ],
            )
        )

    return OrderRead(
        id=order.id,
        total_price=order.total_price,
        order_type=order.order_type,
        delivery_address=order.delivery_address,
        promotion_id=order.promotion_id,
        table_id=order.table_id,
        table_number=order.table.table_number if order.table else None,
        session_id=order.session_id,
        notes=order.notes,
        status=order.status or "pending",
        approved=int(bool(order.approved)),
        created_at=order.created_at,
        items=menu_lines,
        breakfast_items=breakfast_lines,
    )


def get_order(db: Session, order_id: int) -> OrderRead:
    order = db.scalar(select(Order).where(Order.id == order_id).options(*_ORDER_LOAD_OPTIONS))
    if order is None:
        raise OrderNotFoundError(order_id)
    return build_order_read(db, order)


def list_orders(
    db: Session,
    time_range: str | None = None,
    approved: bool | None = None,
    now: datetime | None = None,
) -> list[OrderRead]:
    """Return orders newest first, optionally bounded by a named time range."""
    stmt = select(Order).options(*_ORDER_LOAD_OPTIONS)
    if time_range:
        start, end = time_range_window(time_range, now)
        stmt = stmt.where(Order.created_at >= start)
        if end is not None:
            stmt = stmt.where(Order.created_at < end)
    if approved is not None:
        stmt = stmt.where(Order.approved.is_(approved))
    stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())
    return [build_order_read(db, order) for order in db.scalars(stmt).all()]
