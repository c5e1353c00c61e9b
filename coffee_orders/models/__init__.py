"""Application models package."""

from coffee_orders.models.catalog import (
    Breakfast,
    BreakfastOption,
    BreakfastOptionGroup,
    BreakfastOptionGroupMapping,
    MenuItem,
    MenuItemSupplement,
    Promotion,
    Supplement,
)
from coffee_orders.models.notification import Notification
from coffee_orders.models.order import BreakfastOrderOption, Order, OrderItem
from coffee_orders.models.rate_limit import DeviceOrderLimit
from coffee_orders.models.stock import (
    BreakfastIngredient,
    BreakfastOptionIngredient,
    Ingredient,
    MenuItemIngredient,
    StockTransaction,
    SupplementIngredient,
)
from coffee_orders.models.table import DiningTable
from coffee_orders.models.user import User

__all__ = [
    "User", "MenuItem", "Supplement", "MenuItemSupplement", "Breakfast", "BreakfastOption", "BreakfastOptionGroup",
    "BreakfastOptionGroupMapping", "Promotion", "DiningTable", "Order", "OrderItem", "BreakfastOrderOption",
    "Ingredient", "StockTransaction", "MenuItemIngredient", "SupplementIngredient", "BreakfastIngredient",
    "BreakfastOptionIngredient", "DeviceOrderLimit", "Notification",
]
