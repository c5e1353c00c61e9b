"""In-process publish/subscribe fan-out for staff and guest notifications."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from coffee_orders.models import Notification
from coffee_orders.schemas.order import OrderRead

logger = logging.getLogger(__name__)

STAFF_CHANNEL = "staff-notifications"

EventHandler = Callable[[str, dict[str, Any]], None]


def guest_channel(session_id: str) -> str:
    return f"guest-{session_id}"


class EventBus:
    """Channel-addressed event delivery; handler failures are logged and dropped."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, channel: str, handler: EventHandler) -> Callable[[], None]:
        """Register a handler and return a callable that removes it."""
        with self._lock:
            self._handlers[channel].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(channel, [])
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> int:
        """Deliver an event to every handler on the channel; returns successful deliveries."""
        with self._lock:
            handlers = list(self._handlers.get(channel, []))
        delivered = 0
        for handler in handlers:
            try:
                handler(event, payload)
            except Exception:
                logger.exception("Event handler failed channel=%s event=%s", channel, event)
                continue
            delivered += 1
        return delivered


event_bus = EventBus()


def notification_payload(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "type": notification.type,
        "reference_id": notification.reference_id,
        "message": notification.message,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat(),
    }


def _lifecycle_payload(order: OrderRead) -> dict[str, Any]:
    return {"orderId": str(order.id), "status": order.status, "orderDetails": order.model_dump(mode="json")}


def announce_new_order(
    bus: EventBus,
    order: OrderRead,
    notification: Notification,
    occupied_table_id: int | None = None,
) -> None:
    details = order.model_dump(mode="json")
    bus.publish(STAFF_CHANNEL, "newOrder", details)
    bus.publish(guest_channel(order.session_id), "newOrder", details)
    if occupied_table_id is not None:
        bus.publish(STAFF_CHANNEL, "tableStatusUpdate", {"id": occupied_table_id, "status": "occupied"})
    bus.publish(STAFF_CHANNEL, "newNotification", notification_payload(notification))


def announce_order_approved(bus: EventBus, order: OrderRead) -> None:
    payload = _lifecycle_payload(order)
    bus.publish(guest_channel(order.session_id), "orderApproved", payload)
    bus.publish(STAFF_CHANNEL, "orderApproved", payload)


def announce_order_cancelled(bus: EventBus, order: OrderRead) -> None:
    payload = _lifecycle_payload(order)
    bus.publish(guest_channel(order.session_id), "orderCancelled", payload)
    bus.publish(STAFF_CHANNEL, "orderCancelled", payload)


def announce_status_changed(bus: EventBus, order: OrderRead) -> None:
    payload = _lifecycle_payload(order)
    bus.publish(guest_channel(order.session_id), "orderStatusUpdate", payload)
    bus.publish(STAFF_CHANNEL, "orderStatusUpdate", payload)
