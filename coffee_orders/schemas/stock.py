"""Ingredient stock API schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class IngredientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    unit: str = Field(min_length=1, max_length=32)
    quantity_in_stock: Decimal = Field(default=Decimal("0"), ge=0)
    low_stock_threshold: Decimal = Field(default=Decimal("0"), ge=0)


class IngredientUpdate(BaseModel):
    """Partial ingredient update; only fields present in the request are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    unit: str | None = Field(default=None, min_length=1, max_length=32)
    quantity_in_stock: Decimal | None = Field(default=None, ge=0)
    low_stock_threshold: Decimal | None = Field(default=None, ge=0)


class IngredientRead(BaseModel):
    id: int
    name: str
    unit: str
    quantity_in_stock: Decimal
    low_stock_threshold: Decimal

    model_config = ConfigDict(from_attributes=True)


class IngredientAssignment(BaseModel):
    ingredient_id: int = Field(gt=0)
    quantity: Decimal = Field(gt=0)


class IngredientAssignmentUpdate(BaseModel):
    quantity: Decimal = Field(gt=0)


class CreatedResponse(BaseModel):
    message: str
    id: int


class StockTransactionRead(BaseModel):
    id: int
    ingredient_id: int
    name: str
    quantity: Decimal
    transaction_type: str
    order_id: int | None
    reason: str
    created_at: datetime


class IngredientAssociationRead(BaseModel):
    """Ingredient consumed by a menu item, breakfast, supplement or breakfast option."""

    id: int
    name: str
    ingredient_id: int
    ingredient_name: str
    quantity: Decimal
    unit: str


class StockAssociations(BaseModel):
    menuItems: list[IngredientAssociationRead]
    breakfasts: list[IngredientAssociationRead]
    supplements: list[IngredientAssociationRead]
    breakfastOptions: list[IngredientAssociationRead]


class StockDashboardResponse(BaseModel):
    ingredients: list[IngredientRead]
    lowStock: list[IngredientRead]
    transactions: list[StockTransactionRead]
    associations: StockAssociations
