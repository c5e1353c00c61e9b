"""Ingredient stock, consumption mappings and the stock transaction ledger."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coffee_orders.db.base import Base

TRANSACTION_TYPES: tuple[str, ...] = ("addition", "deduction")

REASON_ORDER_APPROVAL = "Order approval"
REASON_ORDER_RESTORATION = "Order cancellation stock restoration"
REASON_INITIAL_STOCK = "Initial stock addition"
REASON_STOCK_ADJUSTMENT = "Stock adjustment"


class Ingredient(Base):
    """Stocked ingredient; quantity is only changed together with a ledger row."""

    __tablename__ = "ingredients"
    __table_args__ = (
        CheckConstraint("quantity_in_stock >= 0", name="ck_ingredients_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    quantity_in_stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    low_stock_threshold: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))


class StockTransaction(Base):
    """Audit and idempotency ledger for every stock movement."""

    __tablename__ = "stock_transactions"
    __table_args__ = (
        Index(
            "uq_stock_transactions_order_ingredient_type_reason",
            "order_id",
            "ingredient_id",
            "transaction_type",
            "reason",
            unique=True,
        ),
        Index("ix_stock_transactions_order_type", "order_id", "transaction_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    ingredient_id: Mapped[int] = mapped_column(ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    transaction_type: Mapped[str] = mapped_column(Enum(*TRANSACTION_TYPES, name="stock_transaction_type"), nullable=False)
    order_id: Mapped[int | None] = mapped_column(ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    ingredient: Mapped[Ingredient] = relationship()


class MenuItemIngredient(Base):
    """Ingredient quantity consumed per unit of a menu item."""

    __tablename__ = "menu_item_ingredients"
    __table_args__ = (UniqueConstraint("menu_item_id", "ingredient_id", name="uq_menu_item_ingredient"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id: Mapped[int] = mapped_column(ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)


class SupplementIngredient(Base):
    """Ingredient quantity consumed per unit of a supplement."""

    __tablename__ = "supplement_ingredients"
    __table_args__ = (UniqueConstraint("supplement_id", "ingredient_id", name="uq_supplement_ingredient"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    supplement_id: Mapped[int] = mapped_column(ForeignKey("supplements.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id: Mapped[int] = mapped_column(ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)


class BreakfastIngredient(Base):
    """Ingredient quantity consumed per unit of a breakfast."""

    __tablename__ = "breakfast_ingredients"
    __table_args__ = (UniqueConstraint("breakfast_id", "ingredient_id", name="uq_breakfast_ingredient"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    breakfast_id: Mapped[int] = mapped_column(ForeignKey("breakfasts.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id: Mapped[int] = mapped_column(ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)


class BreakfastOptionIngredient(Base):
    """Ingredient quantity consumed each time a breakfast option is selected."""

    __tablename__ = "breakfast_option_ingredients"
    __table_args__ = (UniqueConstraint("breakfast_option_id", "ingredient_id", name="uq_breakfast_option_ingredient"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    breakfast_option_id: Mapped[int] = mapped_column(ForeignKey("breakfast_options.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id: Mapped[int] = mapped_column(ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
