"""Order models for guest and staff-console orders."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coffee_orders.db.base import Base

ORDER_TYPES: tuple[str, ...] = ("local", "delivery", "takeaway", "imported")
ORDER_STATUSES: tuple[str, ...] = ("pending", "preparing", "ready", "delivered", "cancelled")


class Order(Base):
    """Customer order; ``approved`` is set once stock has been deducted."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    order_type: Mapped[str] = mapped_column(String(16), nullable=False)
    delivery_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    promotion_id: Mapped[int | None] = mapped_column(ForeignKey("promotions.id", ondelete="SET NULL"), nullable=True)
    table_id: Mapped[int | None] = mapped_column(ForeignKey("tables.id", ondelete="SET NULL"), nullable=True)
    session_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    items: Mapped[list["OrderItem"]] = relationship(back_populates="order", cascade="all, delete-orphan")
    table: Mapped["DiningTable | None"] = relationship()

    __table_args__ = (
        Index("ix_orders_created_at", "created_at"),
        Index("ix_orders_status", "status"),
    )


class OrderItem(Base):
    """Order line for exactly one menu item or one breakfast."""

    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint(
            "(item_id IS NULL) <> (breakfast_id IS NULL)",
            name="ck_order_items_single_product",
        ),
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id: Mapped[int | None] = mapped_column(ForeignKey("menu_items.id"), nullable=True)
    breakfast_id: Mapped[int | None] = mapped_column(ForeignKey("breakfasts.id"), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    supplement_id: Mapped[int | None] = mapped_column(ForeignKey("supplements.id"), nullable=True)

    order: Mapped[Order] = relationship(back_populates="items")
    menu_item: Mapped["MenuItem | None"] = relationship()
    breakfast: Mapped["Breakfast | None"] = relationship()
    options: Mapped[list["BreakfastOrderOption"]] = relationship(back_populates="order_item", cascade="all, delete-orphan")


class BreakfastOrderOption(Base):
    """Option selected for a breakfast order line."""

    __tablename__ = "breakfast_order_options"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_item_id: Mapped[int] = mapped_column(ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    breakfast_option_id: Mapped[int] = mapped_column(ForeignKey("breakfast_options.id"), nullable=False)

    order_item: Mapped[OrderItem] = relationship(back_populates="options")
    option: Mapped["BreakfastOption"] = relationship()
