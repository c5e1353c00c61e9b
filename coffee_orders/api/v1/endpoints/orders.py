"""Order endpoints: guest and staff-console submission, tracking, approval and cancellation."""

from typing import Literal
from uuid import uuid4

from fastapi import APIRouter, Body, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session

from coffee_orders.core.security import get_optional_user, require_staff
from coffee_orders.db.session import get_db
from coffee_orders.models.user import User
from coffee_orders.schemas.order import (
    MessageResponse,
    OrderCancelRequest,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderListResponse,
    OrderRead,
    OrderStatusUpdateRequest,
    SessionResponse,
)
from coffee_orders.services.order_admission import ClientContext, create_order
from coffee_orders.services.order_lifecycle import approve_order, cancel_order, set_order_status
from coffee_orders.services.order_queries import get_order, list_orders

router: APIRouter = APIRouter()


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("", response_model=OrderCreateResponse, status_code=status.HTTP_201_CREATED)
def submit_order(
    payload: OrderCreateRequest,
    request: Request,
    x_session_id: str | None = Header(default=None),
    x_device_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> OrderCreateResponse:
    client = ClientContext(
        session_id=x_session_id,
        device_id=x_device_id,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        user=current_user,
    )
    result = create_order(db, payload, client)
    return OrderCreateResponse(message="Order created", orderId=result.order.id)


@router.get("/session", response_model=SessionResponse)
def session_info(
    x_session_id: str | None = Header(default=None),
    x_device_id: str | None = Header(default=None),
) -> SessionResponse:
    return SessionResponse(sessionId=x_session_id, deviceId=x_device_id or str(uuid4()))


@router.get("", response_model=OrderListResponse)
def read_orders(
    time_range: Literal["hour", "day", "yesterday", "week", "month"] | None = Query(default=None),
    approved: int | None = Query(default=None, ge=0, le=1),
    db: Session = Depends(get_db),
    _: User = Depends(require_staff),
) -> OrderListResponse:
    approved_filter = None if approved is None else bool(approved)
    return OrderListResponse(data=list_orders(db, time_range=time_range, approved=approved_filter))


@router.get("/{order_id}", response_model=OrderRead)
def read_order(order_id: int, db: Session = Depends(get_db)) -> OrderRead:
    return get_order(db, order_id)


@router.post("/{order_id}/approve", response_model=MessageResponse)
def approve(order_id: int, db: Session = Depends(get_db), _: User = Depends(require_staff)) -> MessageResponse:
    approve_order(db, order_id)
    return MessageResponse(message="Order approved")


@router.post("/{order_id}/cancel", response_model=MessageResponse)
def cancel(
    order_id: int,
    payload: OrderCancelRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_staff),
) -> MessageResponse:
    restore_stock = payload.restoreStock if payload is not None else False
    cancel_order(db, order_id, restore_stock=restore_stock)
    return MessageResponse(message="Order cancelled")


@router.post("/{order_id}/status", response_model=OrderRead)
def update_status(
    order_id: int,
    payload: OrderStatusUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_staff),
) -> OrderRead:
    return set_order_status(db, order_id, payload.status)
