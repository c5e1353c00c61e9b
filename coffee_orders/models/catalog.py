"""Catalog ORM models read by pricing and stock mapping."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coffee_orders.db.base import Base


class MenuItem(Base):
    """Orderable menu entry with regular and optional sale price."""

    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    regular_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    sale_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    availability: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    supplements: Mapped[list["MenuItemSupplement"]] = relationship(back_populates="menu_item")

    @property
    def effective_price(self) -> Decimal:
        return self.sale_price if self.sale_price is not None else self.regular_price


class Supplement(Base):
    """Reusable add-on (extra shot, syrup) that can be attached to menu items."""

    __tablename__ = "supplements"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))


class MenuItemSupplement(Base):
    """Per-menu-item supplement offer with its own additional price."""

    __tablename__ = "menu_item_supplements"
    __table_args__ = (
        UniqueConstraint("menu_item_id", "supplement_id", name="uq_menu_item_supplement"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True)
    supplement_id: Mapped[int] = mapped_column(ForeignKey("supplements.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    additional_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    menu_item: Mapped[MenuItem] = relationship(back_populates="supplements")


class Breakfast(Base):
    """Configurable breakfast set priced from a base plus selected options."""

    __tablename__ = "breakfasts"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    availability: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)


class BreakfastOptionGroup(Base):
    """Option group owned by one breakfast, or reusable when breakfast_id is null."""

    __tablename__ = "breakfast_option_groups"

    id: Mapped[int] = mapped_column(primary_key=True)
    breakfast_id: Mapped[int | None] = mapped_column(ForeignKey("breakfasts.id", ondelete="CASCADE"), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_selections: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    options: Mapped[list["BreakfastOption"]] = relationship(back_populates="group")


class BreakfastOptionGroupMapping(Base):
    """Attaches a reusable option group to a breakfast."""

    __tablename__ = "breakfast_option_group_mappings"
    __table_args__ = (
        UniqueConstraint("breakfast_id", "option_group_id", name="uq_breakfast_option_group_mapping"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    breakfast_id: Mapped[int] = mapped_column(ForeignKey("breakfasts.id", ondelete="CASCADE"), nullable=False)
    option_group_id: Mapped[int] = mapped_column(ForeignKey("breakfast_option_groups.id", ondelete="CASCADE"), nullable=False)


class BreakfastOption(Base):
    """Selectable option inside a group."""

    __tablename__ = "breakfast_options"

    id: Mapped[int] = mapped_column(primary_key=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("breakfast_option_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    breakfast_id: Mapped[int | None] = mapped_column(ForeignKey("breakfasts.id", ondelete="CASCADE"), nullable=True)
    option_type: Mapped[str] = mapped_column(String(100), nullable=False)
    option_name: Mapped[str] = mapped_column(String(255), nullable=False)
    additional_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    group: Mapped[BreakfastOptionGroup] = relationship(back_populates="options")


class Promotion(Base):
    """Percentage discount, store-wide when item_id is null."""

    __tablename__ = "promotions"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    discount_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    item_id: Mapped[int | None] = mapped_column(ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
