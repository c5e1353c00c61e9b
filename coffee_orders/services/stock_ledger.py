"""Ingredient deduction on approval and compensating restoration on cancellation.

Ledger rows in ``stock_transactions`` are the record of whether a side effect
already happened for an order. Every function here works inside the caller's
transaction and never commits.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from coffee_orders.models import (
    BreakfastIngredient,
    BreakfastOptionIngredient,
    Ingredient,
    MenuItemIngredient,
    Order,
    OrderItem,
    StockTransaction,
    SupplementIngredient,
)
from coffee_orders.models.stock import REASON_ORDER_APPROVAL, REASON_ORDER_RESTORATION
from coffee_orders.services.errors import (
    AlreadyDeductedError,
    AlreadyRestoredError,
    IngredientNotFoundError,
    InsufficientStockError,
)

logger = logging.getLogger(__name__)


def _mapped_quantities(db: Session, model, key_column, key: int) -> list[tuple[int, Decimal]]:
    rows = db.execute(select(model.ingredient_id, model.quantity).where(key_column == key)).all()
    return [(ingredient_id, Decimal(quantity)) for ingredient_id, quantity in rows]


def compute_ingredient_usage(db: Session, order_id: int) -> dict[int, Decimal]:
    """Return ingredient_id -> total quantity the order consumes."""
    items = db.scalars(
        select(OrderItem).where(OrderItem.order_id == order_id).options(selectinload(OrderItem.options))
    ).all()
    usage: dict[int, Decimal] = defaultdict(Decimal)
    for item in items:
        if item.item_id is not None:
            for ingredient_id, quantity in _mapped_quantities(db, MenuItemIngredient, MenuItemIngredient.menu_item_id, item.item_id):
                usage[ingredient_id] += quantity * item.quantity
        if item.supplement_id is not None:
            for ingredient_id, quantity in _mapped_quantities(db, SupplementIngredient, SupplementIngredient.supplement_id, item.supplement_id):
                usage[ingredient_id] += quantity * item.quantity
        if item.breakfast_id is not None:
            for ingredient_id, quantity in _mapped_quantities(db, BreakfastIngredient, BreakfastIngredient.breakfast_id, item.breakfast_id):
                usage[ingredient_id] += quantity * item.quantity
            # Options are counted once per order line regardless of quantity.
            for selected in item.options:
                for ingredient_id, quantity in _mapped_quantities(
                    db,
                    BreakfastOptionIngredient,
                    BreakfastOptionIngredient.breakfast_option_id,
                    selected.breakfast_option_id,
                ):
                    usage[ingredient_id] += quantity
    return {ingredient_id: quantity for ingredient_id, quantity in usage.items() if quantity > 0}


def has_transaction(db: Session, order_id: int, transaction_type: str, reason: str | None = None) -> bool:
    stmt = select(StockTransaction.id).where(
        StockTransaction.order_id == order_id,
        StockTransaction.transaction_type == transaction_type,
    )
    if reason is not None:
        stmt = stmt.where(StockTransaction.reason == reason)
    return db.scalar(stmt.limit(1)) is not None


def lock_ingredient(db: Session, ingredient_id: int) -> Ingredient:
    ingredient = db.scalar(select(Ingredient).where(Ingredient.id == ingredient_id).with_for_update())
    if ingredient is None:
        raise IngredientNotFoundError(ingredient_id)
    return ingredient


def deduct_for_order(db: Session, order: Order) -> list[StockTransaction]:
    """Subtract the order's ingredient usage and record one deduction row per ingredient.

    Ingredients are locked in ascending id order. Any failure leaves the caller's
    transaction to be rolled back as a whole.
    """
    if has_transaction(db, order.id, "deduction"):
        raise AlreadyDeductedError()

    usage = compute_ingredient_usage(db, order.id)
    transactions: list[StockTransaction] = []
    for ingredient_id in sorted(usage):
        required = usage[ingredient_id]
        ingredient = lock_ingredient(db, ingredient_id)
        available = Decimal(ingredient.quantity_in_stock)
        if available < required:
            logger.warning(
                "Insufficient stock order_id=%s ingredient=%s required=%s available=%s",
                order.id,
                ingredient.name,
                required,
                available,
            )
            raise InsufficientStockError(ingredient.name, required, available)
        ingredient.quantity_in_stock = available - required
        transaction = StockTransaction(
            ingredient_id=ingredient_id,
            quantity=-required,
            transaction_type="deduction",
            order_id=order.id,
            reason=REASON_ORDER_APPROVAL,
        )
        db.add(transaction)
        transactions.append(transaction)

    db.flush()
    logger.info("Stock deducted order_id=%s ingredients=%s", order.id, len(transactions))
    return transactions


def restore_for_order(db: Session, order: Order) -> list[StockTransaction]:
    """Re-add exactly what the order's deduction rows removed.

    Returns an empty list when nothing was deducted for the order.
    """
    if has_transaction(db, order.id, "addition", REASON_ORDER_RESTORATION):
        raise AlreadyRestoredError()

    deductions = db.execute(
        select(StockTransaction.ingredient_id, StockTransaction.quantity).where(
            StockTransaction.order_id == order.id,
            StockTransaction.transaction_type == "deduction",
        )
    ).all()
    deducted: dict[int, Decimal] = defaultdict(Decimal)
    for ingredient_id, quantity in deductions:
        deducted[ingredient_id] += abs(Decimal(quantity))

    transactions: list[StockTransaction] = []
    for ingredient_id in sorted(deducted):
        amount = deducted[ingredient_id]
        ingredient = lock_ingredient(db, ingredient_id)
        ingredient.quantity_in_stock = Decimal(ingredient.quantity_in_stock) + amount
        transaction = StockTransaction(
            ingredient_id=ingredient_id,
            quantity=amount,
            transaction_type="addition",
            order_id=order.id,
            reason=REASON_ORDER_RESTORATION,
        )
        db.add(transaction)
        transactions.append(transaction)

    db.flush()
    if transactions:
        logger.info("Stock restored order_id=%s ingredients=%s", order.id, len(transactions))
    return transactions
