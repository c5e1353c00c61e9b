"""Cart price verification against current catalog prices.

Every query here is read-only; the verifier runs to completion before the
admission transaction writes anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from coffee_orders.core.config import settings
from coffee_orders.models import (
    Breakfast,
    BreakfastOption,
    BreakfastOptionGroup,
    BreakfastOptionGroupMapping,
    MenuItem,
    MenuItemSupplement,
    Promotion,
)
from coffee_orders.schemas.order import CartBreakfastItem, CartMenuItem, OrderCreateRequest
from coffee_orders.services.errors import (
    InvalidOptionError,
    InvalidSupplementError,
    ItemUnavailableError,
    MissingRequiredGroupError,
    OrderValidationError,
    PriceMismatchError,
    TotalPriceMismatchError,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass
class PricedMenuLine:
    item_id: int
    quantity: int
    unit_price: Decimal
    supplement_ids: list[int] = field(default_factory=list)

    @property
    def primary_supplement_id(self) -> int | None:
        return self.supplement_ids[0] if self.supplement_ids else None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class PricedBreakfastLine:
    breakfast_id: int
    quantity: int
    unit_price: Decimal
    option_ids: list[int] = field(default_factory=list)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class OptionGroupInfo:
    id: int
    title: str
    is_required: bool

    @property
    def label(self) -> str:
        return self.title or f"Group {self.id}"


@dataclass
class PricedCart:
    """Verified cart: per-line prices, coalesced breakfast lines and final total."""

    menu_lines: list[PricedMenuLine]
    breakfast_lines: list[PricedBreakfastLine]
    coalesced_breakfasts: list[PricedBreakfastLine]
    total: Decimal
    promotion_id: int | None = None


def _differs(provided: Decimal, expected: Decimal) -> bool:
    return abs(provided - expected) > settings.price_tolerance


def price_menu_line(db: Session, line: CartMenuItem) -> PricedMenuLine:
    """Verify one menu item line and return it with the authoritative unit price."""
    menu_item = db.get(MenuItem, line.item_id)
    if menu_item is None or not menu_item.availability:
        logger.warning("Item unavailable item_id=%s", line.item_id)
        raise ItemUnavailableError(f"Item {line.item_id} is unavailable")

    expected = Decimal(menu_item.effective_price)
    supplement_ids = line.requested_supplement_ids()
    if supplement_ids:
        rows = db.scalars(
            select(MenuItemSupplement).where(
                MenuItemSupplement.menu_item_id == line.item_id,
                MenuItemSupplement.supplement_id.in_(supplement_ids),
            )
        ).all()
        found = {row.supplement_id for row in rows}
        if found != set(supplement_ids):
            missing = sorted(set(supplement_ids) - found)
            logger.warning("Invalid supplements item_id=%s requested=%s missing=%s", line.item_id, supplement_ids, missing)
            raise InvalidSupplementError(
                f"Invalid supplement ID(s) {', '.join(str(sid) for sid in missing)} for item {line.item_id}"
            )
        expected += sum((Decimal(row.additional_price) for row in rows), Decimal("0"))

    if _differs(line.unit_price, expected):
        logger.warning("Price mismatch item_id=%s provided=%s expected=%s", line.item_id, line.unit_price, expected)
        raise PriceMismatchError(f"item {line.item_id}", expected, line.unit_price)

    return PricedMenuLine(item_id=line.item_id, quantity=line.quantity, unit_price=expected, supplement_ids=supplement_ids)


def load_option_groups(db: Session, breakfast_id: int) -> list[OptionGroupInfo]:
    """Return option groups with at least one option, owned or mapped to the breakfast."""
    has_options = exists(select(BreakfastOption.id).where(BreakfastOption.group_id == BreakfastOptionGroup.id))
    owned = db.scalars(
        select(BreakfastOptionGroup).where(BreakfastOptionGroup.breakfast_id == breakfast_id, has_options)
    ).all()
    mapped = db.scalars(
        select(BreakfastOptionGroup)
        .join(BreakfastOptionGroupMapping, BreakfastOptionGroupMapping.option_group_id == BreakfastOptionGroup.id)
        .where(
            BreakfastOptionGroupMapping.breakfast_id == breakfast_id,
            BreakfastOptionGroup.breakfast_id.is_(None),
            has_options,
        )
    ).all()

    groups: dict[int, OptionGroupInfo] = {}
    for group in [*owned, *mapped]:
        groups.setdefault(group.id, OptionGroupInfo(id=group.id, title=group.title, is_required=group.is_required))
    return [groups[group_id] for group_id in sorted(groups)]


def price_breakfast_line(db: Session, line: CartBreakfastItem) -> PricedBreakfastLine:
    """Verify one breakfast line including required option-group coverage."""
    breakfast = db.get(Breakfast, line.breakfast_id)
    if breakfast is None or not breakfast.availability:
        logger.warning("Breakfast unavailable breakfast_id=%s", line.breakfast_id)
        raise ItemUnavailableError(f"Breakfast {line.breakfast_id} is unavailable")

    expected = Decimal(breakfast.price)
    groups = load_option_groups(db, line.breakfast_id)
    required = [group for group in groups if group.is_required]
    option_ids = list(dict.fromkeys(line.option_ids))

    if option_ids:
        group_ids = [group.id for group in groups]
        options = db.scalars(
            select(BreakfastOption).where(
                BreakfastOption.id.in_(option_ids),
                BreakfastOption.group_id.in_(group_ids),
                (BreakfastOption.breakfast_id == line.breakfast_id) | BreakfastOption.breakfast_id.is_(None),
            )
        ).all()
        found = {option.id for option in options}
        if found != set(option_ids):
            logger.warning(
                "Invalid breakfast options breakfast_id=%s provided=%s found=%s",
                line.breakfast_id,
                option_ids,
                sorted(found),
            )
            raise InvalidOptionError(
                f"Invalid option IDs for breakfast {line.breakfast_id}. "
                f"Provided: [{', '.join(map(str, option_ids))}], Found: [{', '.join(map(str, sorted(found)))}]"
            )
        touched = {option.group_id for option in options}
        missing = [group.label for group in required if group.id not in touched]
        if missing:
            logger.warning("Missing required option groups breakfast_id=%s missing=%s", line.breakfast_id, missing)
            raise MissingRequiredGroupError(line.breakfast_id, missing)
        expected += sum((Decimal(option.additional_price) for option in options), Decimal("0"))
    elif required:
        logger.warning("No options provided but required groups exist breakfast_id=%s", line.breakfast_id)
        raise MissingRequiredGroupError(line.breakfast_id, [group.label for group in required])

    # Clients may quote above the computed price; only undercharging is rejected.
    if line.unit_price < expected - settings.price_tolerance:
        logger.warning(
            "Price mismatch breakfast_id=%s provided=%s expected=%s", line.breakfast_id, line.unit_price, expected
        )
        raise PriceMismatchError(f"breakfast {line.breakfast_id}", expected, line.unit_price)

    return PricedBreakfastLine(
        breakfast_id=line.breakfast_id,
        quantity=line.quantity,
        unit_price=expected,
        option_ids=option_ids,
    )


def coalesce_breakfasts(lines: list[PricedBreakfastLine]) -> list[PricedBreakfastLine]:
    """Merge lines per breakfast: summed quantity, unioned options, first line's unit price."""
    merged: dict[int, PricedBreakfastLine] = {}
    for line in lines:
        entry = merged.get(line.breakfast_id)
        if entry is None:
            merged[line.breakfast_id] = PricedBreakfastLine(
                breakfast_id=line.breakfast_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                option_ids=list(line.option_ids),
            )
            continue
        entry.quantity += line.quantity
        entry.option_ids.extend(option_id for option_id in line.option_ids if option_id not in entry.option_ids)
    return list(merged.values())


def find_active_promotion(db: Session, promotion_id: int, now: datetime) -> Promotion | None:
    return db.scalar(
        select(Promotion).where(
            Promotion.id == promotion_id,
            Promotion.active.is_(True),
            Promotion.start_date <= now,
            Promotion.end_date >= now,
        )
    )


def apply_promotion(
    promotion: Promotion,
    menu_lines: list[PricedMenuLine],
    breakfast_lines: list[PricedBreakfastLine],
) -> Decimal:
    """Return the cart total with the promotion discount applied to matching lines."""
    factor = Decimal("1") - Decimal(promotion.discount_percentage) / HUNDRED
    total = Decimal("0")
    for line in menu_lines:
        matches = promotion.item_id is None or promotion.item_id == line.item_id
        total += line.line_total * factor if matches else line.line_total
    for line in breakfast_lines:
        total += line.line_total * factor if promotion.item_id is None else line.line_total
    return total


def verify_cart(db: Session, payload: OrderCreateRequest, now: datetime | None = None) -> PricedCart:
    """Recompute the cart total from catalog prices and reject any mismatch."""
    if not payload.items and not payload.breakfast_items:
        raise OrderValidationError("Items or breakfast items array is required and non-empty")

    menu_lines = [price_menu_line(db, line) for line in payload.items]
    breakfast_lines = [price_breakfast_line(db, line) for line in payload.breakfast_items]
    total = sum((line.line_total for line in [*menu_lines, *breakfast_lines]), Decimal("0"))

    promotion_id: int | None = None
    if payload.promotion_id is not None:
        promotion = find_active_promotion(db, payload.promotion_id, now or datetime.now(timezone.utc))
        if promotion is not None:
            promotion_id = promotion.id
            total = apply_promotion(promotion, menu_lines, breakfast_lines)
        else:
            logger.info("Promotion %s inactive or unknown; no discount applied", payload.promotion_id)

    if _differs(payload.total_price, total):
        logger.warning("Total price mismatch provided=%s computed=%s", payload.total_price, total)
        raise TotalPriceMismatchError(total, payload.total_price)

    return PricedCart(
        menu_lines=menu_lines,
        breakfast_lines=breakfast_lines,
        coalesced_breakfasts=coalesce_breakfasts(breakfast_lines),
        total=total.quantize(CENT, rounding=ROUND_HALF_UP),
        promotion_id=promotion_id,
    )
