"""Ingredient administration, consumption mappings and the stock dashboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from coffee_orders.core.config import settings
from coffee_orders.models import (
    Breakfast,
    BreakfastIngredient,
    BreakfastOption,
    BreakfastOptionIngredient,
    Ingredient,
    MenuItem,
    MenuItemIngredient,
    StockTransaction,
    Supplement,
    SupplementIngredient,
)
from coffee_orders.models.stock import REASON_INITIAL_STOCK, REASON_STOCK_ADJUSTMENT
from coffee_orders.schemas.stock import (
    IngredientAssociationRead,
    IngredientCreate,
    IngredientRead,
    IngredientUpdate,
    StockAssociations,
    StockDashboardResponse,
    StockTransactionRead,
)
from coffee_orders.services.errors import OrderValidationError, ResourceNotFoundError

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS_LIMIT = 50


@dataclass(frozen=True)
class MappingKind:
    """One entity type whose units consume ingredients."""

    label: str
    mapping_model: Any
    owner_model: Any
    owner_column: str
    owner_name_column: str


MAPPING_KINDS: dict[str, MappingKind] = {
    "menu-items": MappingKind("Menu item", MenuItemIngredient, MenuItem, "menu_item_id", "name"),
    "breakfasts": MappingKind("Breakfast", BreakfastIngredient, Breakfast, "breakfast_id", "name"),
    "supplements": MappingKind("Supplement", SupplementIngredient, Supplement, "supplement_id", "name"),
    "breakfast-options": MappingKind("Breakfast option", BreakfastOptionIngredient, BreakfastOption, "breakfast_option_id", "option_name"),
}


def get_mapping_kind(kind: str) -> MappingKind:
    mapping_kind = MAPPING_KINDS.get(kind)
    if mapping_kind is None:
        raise ResourceNotFoundError(f"Unknown ingredient mapping kind: {kind}")
    return mapping_kind


def list_ingredients(db: Session) -> list[Ingredient]:
    return list(db.scalars(select(Ingredient).order_by(Ingredient.id.asc())).all())


def _get_ingredient_for_update(db: Session, ingredient_id: int) -> Ingredient:
    ingredient = db.scalar(select(Ingredient).where(Ingredient.id == ingredient_id).with_for_update())
    if ingredient is None:
        raise ResourceNotFoundError("Ingredient not found")
    return ingredient


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    stmt = select(Ingredient.id).where(Ingredient.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Ingredient.id != exclude_id)
    if db.scalar(stmt.limit(1)) is not None:
        raise OrderValidationError("Ingredient name already exists")


def create_ingredient(db: Session, payload: IngredientCreate) -> Ingredient:
    """Create an ingredient and record its opening stock as an addition."""
    try:
        name = payload.name.strip()
        _ensure_unique_name(db, name)
        ingredient = Ingredient(
            name=name,
            unit=payload.unit.strip(),
            quantity_in_stock=payload.quantity_in_stock,
            low_stock_threshold=payload.low_stock_threshold,
        )
        db.add(ingredient)
        db.flush()
        db.add(
            StockTransaction(
                ingredient_id=ingredient.id,
                quantity=payload.quantity_in_stock,
                transaction_type="addition",
                reason=REASON_INITIAL_STOCK,
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(ingredient)
    logger.info("Ingredient created id=%s name=%s quantity=%s", ingredient.id, ingredient.name, ingredient.quantity_in_stock)
    return ingredient


def update_ingredient(db: Session, ingredient_id: int, payload: IngredientUpdate) -> Ingredient:
    """Apply the fields present in the payload; a stock change is recorded as an adjustment."""
    changes: dict[str, Any] = payload.model_dump(exclude_unset=True)
    try:
        ingredient = _get_ingredient_for_update(db, ingredient_id)
        for field, value in changes.items():
            if value is None:
                raise OrderValidationError(f"{field} cannot be empty")
        for field in ("name", "unit"):
            if field in changes:
                changes[field] = changes[field].strip()
        if "name" in changes:
            _ensure_unique_name(db, changes["name"], exclude_id=ingredient.id)

        if "quantity_in_stock" in changes:
            delta = Decimal(changes["quantity_in_stock"]) - Decimal(ingredient.quantity_in_stock)
            if delta != 0:
                db.add(
                    StockTransaction(
                        ingredient_id=ingredient.id,
                        quantity=delta,
                        transaction_type="addition" if delta > 0 else "deduction",
                        reason=REASON_STOCK_ADJUSTMENT,
                    )
                )
        for field, value in changes.items():
            setattr(ingredient, field, value)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(ingredient)
    logger.info("Ingredient updated id=%s fields=%s", ingredient.id, sorted(changes))
    return ingredient


def delete_ingredient(db: Session, ingredient_id: int) -> None:
    try:
        ingredient = _get_ingredient_for_update(db, ingredient_id)
        db.delete(ingredient)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Ingredient deleted id=%s", ingredient_id)


def _find_mapping(db: Session, mapping_kind: MappingKind, owner_id: int, ingredient_id: int):
    model = mapping_kind.mapping_model
    return db.scalar(
        select(model).where(
            getattr(model, mapping_kind.owner_column) == owner_id,
            model.ingredient_id == ingredient_id,
        )
    )


def assign_ingredient(db: Session, kind: str, owner_id: int, ingredient_id: int, quantity: Decimal) -> int:
    """Attach an ingredient to an entity with a per-unit quantity; returns the mapping id."""
    mapping_kind = get_mapping_kind(kind)
    try:
        if db.get(mapping_kind.owner_model, owner_id) is None:
            raise ResourceNotFoundError(f"{mapping_kind.label} not found")
        if db.get(Ingredient, ingredient_id) is None:
            raise ResourceNotFoundError("Ingredient not found")
        if _find_mapping(db, mapping_kind, owner_id, ingredient_id) is not None:
            raise OrderValidationError(f"Ingredient already assigned to this {mapping_kind.label.lower()}")
        mapping = mapping_kind.mapping_model(
            **{mapping_kind.owner_column: owner_id, "ingredient_id": ingredient_id, "quantity": quantity}
        )
        db.add(mapping)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Ingredient assigned kind=%s owner_id=%s ingredient_id=%s quantity=%s", kind, owner_id, ingredient_id, quantity)
    return mapping.id


def update_assignment(db: Session, kind: str, owner_id: int, ingredient_id: int, quantity: Decimal) -> None:
    mapping_kind = get_mapping_kind(kind)
    try:
        mapping = _find_mapping(db, mapping_kind, owner_id, ingredient_id)
        if mapping is None:
            raise ResourceNotFoundError("Ingredient assignment not found")
        mapping.quantity = quantity
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Ingredient assignment updated kind=%s owner_id=%s ingredient_id=%s", kind, owner_id, ingredient_id)


def remove_assignment(db: Session, kind: str, owner_id: int, ingredient_id: int) -> None:
    mapping_kind = get_mapping_kind(kind)
    try:
        mapping = _find_mapping(db, mapping_kind, owner_id, ingredient_id)
        if mapping is None:
            raise ResourceNotFoundError("Ingredient assignment not found")
        db.delete(mapping)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Ingredient assignment removed kind=%s owner_id=%s ingredient_id=%s", kind, owner_id, ingredient_id)


def _associations(db: Session, mapping_kind: MappingKind) -> list[IngredientAssociationRead]:
    model = mapping_kind.mapping_model
    owner = mapping_kind.owner_model
    rows = db.execute(
        select(
            owner.id,
            getattr(owner, mapping_kind.owner_name_column),
            model.ingredient_id,
            Ingredient.name,
            model.quantity,
            Ingredient.unit,
        )
        .join(owner, getattr(model, mapping_kind.owner_column) == owner.id)
        .join(Ingredient, model.ingredient_id == Ingredient.id)
        .order_by(owner.id.asc(), model.ingredient_id.asc())
    ).all()
    return [
        IngredientAssociationRead(
            id=owner_id,
            name=owner_name,
            ingredient_id=ingredient_id,
            ingredient_name=ingredient_name,
            quantity=quantity,
            unit=unit,
        )
        for owner_id, owner_name, ingredient_id, ingredient_name, quantity, unit in rows
    ]


def stock_dashboard(db: Session) -> StockDashboardResponse:
    """Ingredients, low-stock warnings, recent ledger rows and every consumption mapping."""
    ingredients = list_ingredients(db)
    multiplier = settings.low_stock_multiplier
    low_stock = [
        ingredient
        for ingredient in ingredients
        if Decimal(ingredient.quantity_in_stock) <= Decimal(ingredient.low_stock_threshold) * multiplier
    ]
    transaction_rows = db.execute(
        select(StockTransaction, Ingredient.name)
        .join(Ingredient, StockTransaction.ingredient_id == Ingredient.id)
        .order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc())
        .limit(RECENT_TRANSACTIONS_LIMIT)
    ).all()
    return StockDashboardResponse(
        ingredients=[IngredientRead.model_validate(ingredient) for ingredient in ingredients],
        lowStock=[IngredientRead.model_validate(ingredient) for ingredient in low_stock],
        transactions=[
            StockTransactionRead(
                id=transaction.id,
                ingredient_id=transaction.ingredient_id,
                name=name,
                quantity=transaction.quantity,
                transaction_type=transaction.transaction_type,
                order_id=transaction.order_id,
                reason=transaction.reason,
                created_at=transaction.created_at,
            )
            for transaction, name in transaction_rows
        ],
        associations=StockAssociations(
            menuItems=_associations(db, MAPPING_KINDS["menu-items"]),
            breakfasts=_associations(db, MAPPING_KINDS["breakfasts"]),
            supplements=_associations(db, MAPPING_KINDS["supplements"]),
            breakfastOptions=_associations(db, MAPPING_KINDS["breakfast-options"]),
        ),
    )
