"""Ingredient stock administration endpoints (admin only)."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from coffee_orders.core.security import require_admin
from coffee_orders.db.session import get_db
from coffee_orders.models.user import User
from coffee_orders.schemas.order import MessageResponse
from coffee_orders.schemas.stock import (
    CreatedResponse,
    IngredientAssignment,
    IngredientAssignmentUpdate,
    IngredientCreate,
    IngredientRead,
    IngredientUpdate,
    StockDashboardResponse,
)
from coffee_orders.services import stock_service

router: APIRouter = APIRouter()


@router.get("/ingredients", response_model=list[IngredientRead])
def read_ingredients(db: Session = Depends(get_db), _: User = Depends(require_admin)) -> list[IngredientRead]:
    return [IngredientRead.model_validate(row) for row in stock_service.list_ingredients(db)]


@router.post("/ingredients", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def create_ingredient(
    payload: IngredientCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> CreatedResponse:
    ingredient = stock_service.create_ingredient(db, payload)
    return CreatedResponse(message="Ingredient created", id=ingredient.id)


@router.put("/ingredients/{ingredient_id}", response_model=IngredientRead)
def update_ingredient(
    ingredient_id: int,
    payload: IngredientUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> IngredientRead:
    return IngredientRead.model_validate(stock_service.update_ingredient(db, ingredient_id, payload))


@router.delete("/ingredients/{ingredient_id}", response_model=MessageResponse)
def delete_ingredient(ingredient_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)) -> MessageResponse:
    stock_service.delete_ingredient(db, ingredient_id)
    return MessageResponse(message="Ingredient deleted")


@router.get("/stock-dashboard", response_model=StockDashboardResponse)
def dashboard(db: Session = Depends(get_db), _: User = Depends(require_admin)) -> StockDashboardResponse:
    return stock_service.stock_dashboard(db)


@router.post("/{kind}/{owner_id}/ingredients", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def assign_ingredient(
    kind: str,
    owner_id: int,
    payload: IngredientAssignment,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> CreatedResponse:
    mapping_id = stock_service.assign_ingredient(db, kind, owner_id, payload.ingredient_id, payload.quantity)
    return CreatedResponse(message="Ingredient assigned", id=mapping_id)


@router.put("/{kind}/{owner_id}/ingredients/{ingredient_id}", response_model=MessageResponse)
def update_assignment(
    kind: str,
    owner_id: int,
    ingredient_id: int,
    payload: IngredientAssignmentUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> MessageResponse:
    stock_service.update_assignment(db, kind, owner_id, ingredient_id, payload.quantity)
    return MessageResponse(message="Ingredient assignment updated")


@router.delete("/{kind}/{owner_id}/ingredients/{ingredient_id}", response_model=MessageResponse)
def remove_assignment(
    kind: str,
    owner_id: int,
    ingredient_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> MessageResponse:
    stock_service.remove_assignment(db, kind, owner_id, ingredient_id)
    return MessageResponse(message="Ingredient assignment removed")
