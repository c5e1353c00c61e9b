"""Order API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

OrderType = Literal["local", "delivery", "takeaway", "imported"]


class CartMenuItem(BaseModel):
    """Menu item cart line with the unit price the client displayed."""

    item_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(gt=0)
    supplement_id: int | None = Field(default=None, gt=0)
    supplement_ids: list[int] = Field(default_factory=list)

    def requested_supplement_ids(self) -> list[int]:
        """Return supplement ids in request order, legacy single id first."""
        ordered: list[int] = []
        for supplement_id in ([self.supplement_id] if self.supplement_id else []) + list(self.supplement_ids):
            if supplement_id not in ordered:
                ordered.append(supplement_id)
        return ordered


class CartBreakfastItem(BaseModel):
    """Breakfast cart line with selected option ids."""

    breakfast_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(gt=0)
    option_ids: list[int] = Field(default_factory=list)


class OrderCreateRequest(BaseModel):
    """Cart submitted by a guest device or the staff console."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[CartMenuItem] = Field(default_factory=list)
    breakfast_items: list[CartBreakfastItem] = Field(default_factory=list, alias="breakfastItems")
    total_price: Decimal
    order_type: OrderType
    delivery_address: str | None = None
    promotion_id: int | None = None
    table_id: int | None = None
    session_id: str | None = None
    notes: str | None = Field(default=None, max_length=1000)
    source: str | None = None

    @property
    def is_staff_console(self) -> bool:
        return (self.source or "").strip().lower() == "staff"


class OrderCreateResponse(BaseModel):
    message: str
    orderId: int


class OrderCancelRequest(BaseModel):
    restoreStock: bool = False


class OrderStatusUpdateRequest(BaseModel):
    status: str


class MessageResponse(BaseModel):
    message: str


class SessionResponse(BaseModel):
    sessionId: str | None
    deviceId: str


class OrderSupplementRead(BaseModel):
    supplement_id: int
    name: str | None = None
    additional_price: Decimal | None = None


class OrderMenuLineRead(BaseModel):
    order_item_id: int
    item_id: int
    name: str | None = None
    image_url: str | None = None
    quantity: int
    unit_price: Decimal
    supplement: OrderSupplementRead | None = None


class OrderOptionRead(BaseModel):
    breakfast_option_id: int
    option_name: str | None = None
    additional_price: Decimal | None = None


class OrderBreakfastLineRead(BaseModel):
    order_item_id: int
    breakfast_id: int
    name: str | None = None
    image_url: str | None = None
    quantity: int
    unit_price: Decimal
    options: list[OrderOptionRead] = Field(default_factory=list)


class OrderRead(BaseModel):
    """Order snapshot returned by read endpoints and pushed with lifecycle events."""

    id: int
    total_price: Decimal
    order_type: str
    delivery_address: str | None
    promotion_id: int | None
    table_id: int | None
    table_number: int | None
    session_id: str
    notes: str | None
    status: str
    approved: int
    created_at: datetime
    items: list[OrderMenuLineRead]
    breakfast_items: list[OrderBreakfastLineRead]


class OrderListResponse(BaseModel):
    data: list[OrderRead]
