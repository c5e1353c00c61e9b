"""API v1 router composition."""

from fastapi import APIRouter

from coffee_orders.api.v1.endpoints import auth, notifications, orders, stock

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(stock.router, prefix="/stock", tags=["stock"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
