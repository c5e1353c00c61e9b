"""Schema exports."""

from coffee_orders.schemas.auth import AuthUserResponse, LoginRequest, TokenResponse
from coffee_orders.schemas.notification import NotificationRead
from coffee_orders.schemas.order import (
    CartBreakfastItem,
    CartMenuItem,
    OrderCancelRequest,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderListResponse,
    OrderRead,
    OrderStatusUpdateRequest,
    SessionResponse,
)
from coffee_orders.schemas.stock import (
    IngredientAssignment,
    IngredientCreate,
    IngredientRead,
    IngredientUpdate,
    StockDashboardResponse,
)

__all__ = [
    "AuthUserResponse",
    "LoginRequest",
    "TokenResponse",
    "NotificationRead",
    "CartBreakfastItem",
    "CartMenuItem",
    "OrderCancelRequest",
    "OrderCreateRequest",
    "OrderCreateResponse",
    "OrderListResponse",
    "OrderRead",
    "OrderStatusUpdateRequest",
    "SessionResponse",
    "IngredientAssignment",
    "IngredientCreate",
    "IngredientRead",
    "IngredientUpdate",
    "StockDashboardResponse",
]
