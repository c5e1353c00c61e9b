from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from coffee_orders.main import app
from coffee_orders.models import DeviceOrderLimit, DiningTable, Ingredient, Notification, Order, OrderItem, StockTransaction
from coffee_orders.services.events import STAFF_CHANNEL, event_bus, guest_channel

from conftest import GUEST_DEVICE_ID, GUEST_SESSION_ID, guest_headers


@pytest.fixture
def captured_events():
    received: list[tuple[str, str, dict]] = []
    unsubscribers = [
        event_bus.subscribe(STAFF_CHANNEL, lambda event, payload: received.append(("staff", event, payload))),
        event_bus.subscribe(guest_channel(GUEST_SESSION_ID), lambda event, payload: received.append(("guest", event, payload))),
    ]
    yield received
    for unsubscribe in unsubscribers:
        unsubscribe()


def _latte_cart(catalog, **overrides) -> dict:
    payload = {
        "items": [{"item_id": catalog.latte_id, "quantity": 2, "unit_price": "4.00"}],
        "total_price": "8.00",
        "order_type": "takeaway",
    }
    payload.update(overrides)
    return payload


def _breakfast_cart(catalog, quantity: int = 1, **overrides) -> dict:
    payload = {
        "breakfastItems": [
            {
                "breakfast_id": catalog.breakfast_id,
                "quantity": quantity,
                "unit_price": "8.00",
                "option_ids": [catalog.scrambled_id, catalog.coffee_option_id],
            }
        ],
        "total_price": str(Decimal("8.00") * quantity),
        "order_type": "takeaway",
    }
    payload.update(overrides)
    return payload


def _count(session_local, column) -> int:
    with session_local() as db:
        return db.scalar(select(func.count(column)))


def test_guest_order_is_created_pending_with_lines_and_notification(session_local, catalog, captured_events) -> None:
    client = TestClient(app)

    response = client.post("/api/v1/orders", json=_latte_cart(catalog), headers=guest_headers())

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Order created"
    order_id = body["orderId"]

    with session_local() as db:
        order = db.get(Order, order_id)
        assert order.status == "pending"
        assert order.approved is False
        assert order.total_price == Decimal("8.00")
        assert order.session_id == GUEST_SESSION_ID
        lines = db.scalars(select(OrderItem).where(OrderItem.order_id == order_id)).all()
        assert [(line.item_id, line.quantity, line.unit_price) for line in lines] == [(catalog.latte_id, 2, Decimal("4.00"))]
        notification = db.scalar(select(Notification).where(Notification.reference_id == order_id))
        assert notification.message == f"New takeaway order #{order_id}"
        assert notification.is_read is False
        assert db.scalar(select(func.count(DeviceOrderLimit.id))) == 2

    assert [(channel, event) for channel, event, _ in captured_events] == [
        ("staff", "newOrder"),
        ("guest", "newOrder"),
        ("staff", "newNotification"),
    ]
    assert captured_events[0][2]["id"] == order_id
    assert captured_events[2][2]["reference_id"] == order_id
    assert _count(session_local, StockTransaction.id) == 0


def test_session_id_may_come_from_body(session_local, catalog) -> None:
    client = TestClient(app)

    response = client.post(
        "/api/v1/orders",
        json=_latte_cart(catalog, session_id="body-session"),
        headers={"X-Device-Id": GUEST_DEVICE_ID},
    )

    assert response.status_code == 201
    with session_local() as db:
        assert db.get(Order, response.json()["orderId"]).session_id == "body-session"


def test_local_order_occupies_table(session_local, catalog, captured_events) -> None:
    client = TestClient(app)

    response = client.post(
        "/api/v1/orders",
        json=_latte_cart(catalog, order_type="local", table_id=catalog.table_id),
        headers=guest_headers(),
    )

    assert response.status_code == 201
    order_id = response.json()["orderId"]
    with session_local() as db:
        assert db.get(DiningTable, catalog.table_id).status == "occupied"
        notification = db.scalar(select(Notification).where(Notification.reference_id == order_id))
        assert notification.message == f"New order #{order_id} for Table 1"
    assert ("staff", "tableStatusUpdate", {"id": catalog.table_id, "status": "occupied"}) in captured_events


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"order_type": "local"}, "Table ID required for local orders"),
        ({"order_type": "delivery"}, "Delivery address required for delivery orders"),
        ({"order_type": "local", "table_id": 9999}, "Table does not exist"),
    ],
)
def test_order_shape_errors_are_rejected(session_local, catalog, overrides, message) -> None:
    client = TestClient(app)

    response = client.post("/api/v1/orders", json=_latte_cart(catalog, **overrides), headers=guest_headers())

    assert response.status_code == 400
    assert response.json() == {"error": message, "code": "ValidationError"}
    assert _count(session_local, Order.id) == 0


def test_reserved_table_is_rejected_without_side_effects(session_local, catalog) -> None:
    client = TestClient(app)

    response = client.post(
        "/api/v1/orders",
        json=_latte_cart(catalog, order_type="local", table_id=catalog.reserved_table_id),
        headers=guest_headers(),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Table is reserved"
    assert _count(session_local, Order.id) == 0
    assert _count(session_local, DeviceOrderLimit.id) == 0


def test_delivery_order_notification_names_address(session_local, catalog) -> None:
    client = TestClient(app)

    response = client.post(
        "/api/v1/orders",
        json=_latte_cart(catalog, order_type="delivery", delivery_address="12 Harbour Road"),
        headers=guest_headers(),
    )

    assert response.status_code == 201
    order_id = response.json()["orderId"]
    with session_local() as db:
        notification = db.scalar(select(Notification).where(Notification.reference_id == order_id))
        assert notification.message == f"New delivery order #{order_id} for 12 Harbour Road"


@pytest.mark.parametrize("session_id", [None, "", "has spaces", "x" * 129])
def test_missing_or_malformed_session_is_rejected(session_local, catalog, session_id) -> None:
    client = TestClient(app)
    headers = {"X-Device-Id": GUEST_DEVICE_ID}
    if session_id is not None:
        headers["X-Session-Id"] = session_id

    response = client.post("/api/v1/orders", json=_latte_cart(catalog), headers=headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Valid session ID required", "code": "ValidationError"}


def test_invalid_device_id_is_rejected(session_local, catalog) -> None:
    client = TestClient(app)

    response = client.post("/api/v1/orders", json=_latte_cart(catalog), headers=guest_headers(device_id="not-a-uuid"))

    assert response.status_code == 400
    assert response.json() == {"error": "Valid device ID required", "code": "ValidationError"}


def test_malformed_body_uses_error_envelope(session_local, catalog) -> None:
    client = TestClient(app)

    response = client.post(
        "/api/v1/orders",
        json={"items": [{"item_id": catalog.latte_id, "quantity": 0, "unit_price": "4.00"}], "total_price": "0"},
        headers=guest_headers(),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "ValidationError"
    assert set(response.json()) == {"error", "code"}


def test_price_mismatch_writes_nothing(session_local, catalog) -> None:
    client = TestClient(app)
    cart = {
        "items": [{"item_id": catalog.espresso_id, "quantity": 2, "unit_price": "9.50"}],
        "total_price": "19.00",
        "order_type": "takeaway",
    }

    response = client.post("/api/v1/orders", json=cart, headers=guest_headers())

    assert response.status_code == 400
    assert response.json() == {
        "error": f"Invalid unit_price for item {catalog.espresso_id}. Expected 9.00, got 9.50",
        "code": "PriceMismatch",
    }
    assert _count(session_local, Order.id) == 0
    assert _count(session_local, DeviceOrderLimit.id) == 0


def test_fourth_order_in_an_hour_is_rate_limited(session_local, catalog) -> None:
    client = TestClient(app)

    for note in ("first", "second", "third"):
        response = client.post("/api/v1/orders", json=_latte_cart(catalog, notes=note), headers=guest_headers())
        assert response.status_code == 201

    response = client.post("/api/v1/orders", json=_latte_cart(catalog, notes="fourth"), headers=guest_headers())

    assert response.status_code == 429
    assert response.json() == {"error": "Order limit reached. Please try again later.", "code": "RateLimitExceeded"}
    assert _count(session_local, Order.id) == 3


def test_identical_submission_is_rejected_as_duplicate(session_local, catalog) -> None:
    client = TestClient(app)

    first = client.post("/api/v1/orders", json=_latte_cart(catalog), headers=guest_headers())
    second = client.post("/api/v1/orders", json=_latte_cart(catalog), headers=guest_headers())

    assert first.status_code == 201
    assert second.status_code == 429
    assert second.json()["code"] == "DuplicateOrder"
    assert _count(session_local, Order.id) == 1


def test_staff_source_requires_staff_token(session_local, catalog) -> None:
    client = TestClient(app)

    response = client.post("/api/v1/orders", json=_latte_cart(catalog, source="staff"), headers=guest_headers())

    assert response.status_code == 403
    assert response.json() == {"error": "Admin or server access required", "code": "Forbidden"}
    assert _count(session_local, Order.id) == 0


def test_staff_order_is_approved_and_deducted_in_one_step(session_local, catalog, server_headers, captured_events) -> None:
    client = TestClient(app)
    headers = {**server_headers, "X-Session-Id": GUEST_SESSION_ID}

    response = client.post("/api/v1/orders", json=_breakfast_cart(catalog, source="staff"), headers=headers)

    assert response.status_code == 201
    order_id = response.json()["orderId"]
    with session_local() as db:
        order = db.get(Order, order_id)
        assert order.approved is True
        assert order.status == "preparing"
        assert db.get(Ingredient, catalog.eggs_id).quantity_in_stock == Decimal("3")
        assert db.get(Ingredient, catalog.beans_id).quantity_in_stock == Decimal("482")
        assert db.scalar(select(func.count(DeviceOrderLimit.id))) == 0
    assert ("staff", "orderApproved") in [(channel, event) for channel, event, _ in captured_events]


def test_staff_orders_are_not_rate_limited(session_local, catalog, admin_headers) -> None:
    client = TestClient(app)
    headers = {**admin_headers, "X-Session-Id": "console"}
    espresso = [{"item_id": catalog.espresso_id, "quantity": 1, "unit_price": "9.00"}]

    for note in ("a", "b", "c", "d"):
        response = client.post("/api/v1/orders", json=_latte_cart(catalog, items=espresso, total_price="9.00", source="staff", notes=note), headers=headers)
        assert response.status_code == 201

    assert _count(session_local, Order.id) == 4


def test_staff_order_short_on_stock_leaves_no_order(session_local, catalog, server_headers, captured_events) -> None:
    client = TestClient(app)
    headers = {**server_headers, "X-Session-Id": GUEST_SESSION_ID}

    response = client.post(
        "/api/v1/orders",
        json=_breakfast_cart(catalog, quantity=3, source="staff", order_type="local", table_id=catalog.table_id),
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Insufficient stock for Eggs. Required: 6, Available: 5",
        "code": "InsufficientStock",
    }
    assert _count(session_local, Order.id) == 0
    assert _count(session_local, Notification.id) == 0
    assert _count(session_local, StockTransaction.id) == 0
    with session_local() as db:
        assert db.get(DiningTable, catalog.table_id).status == "available"
        assert db.get(Ingredient, catalog.beans_id).quantity_in_stock == Decimal("500")
    assert captured_events == []
