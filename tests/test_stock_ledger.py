"""Stock deduction, restoration and approval state machine tests."""

import threading
from decimal import Decimal

import pytest
from sqlalchemy import select

from coffee_orders.models import Ingredient, Order, StockTransaction
from coffee_orders.models.stock import REASON_ORDER_APPROVAL, REASON_ORDER_RESTORATION
from coffee_orders.schemas.order import OrderCreateRequest
from coffee_orders.services.errors import (
    AlreadyApprovedError,
    AlreadyCancelledError,
    AlreadyDeductedError,
    AlreadyRestoredError,
    IngredientNotFoundError,
    InsufficientStockError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
)
from coffee_orders.services.events import STAFF_CHANNEL, EventBus, guest_channel
from coffee_orders.services.order_admission import ClientContext, create_order
from coffee_orders.services.order_lifecycle import approve_order, cancel_order, set_order_status
from coffee_orders.services.stock_ledger import compute_ingredient_usage, deduct_for_order, lock_ingredient

from conftest import GUEST_DEVICE_ID, GUEST_SESSION_ID


def _breakfast_order(session_local, catalog, quantity: int = 1, notes: str | None = None) -> int:
    payload = OrderCreateRequest.model_validate(
        {
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
            "notes": notes,
        }
    )
    client = ClientContext(session_id=GUEST_SESSION_ID, device_id=GUEST_DEVICE_ID, ip_address="127.0.0.1", user_agent="pytest")
    with session_local() as db:
        return create_order(db, payload, client, bus=EventBus()).order.id


def _stock(session_local, ingredient_id: int) -> Decimal:
    with session_local() as db:
        return db.get(Ingredient, ingredient_id).quantity_in_stock


def _transactions(session_local, order_id: int) -> list[tuple[int, Decimal, str, str]]:
    with session_local() as db:
        rows = db.scalars(
            select(StockTransaction).where(StockTransaction.order_id == order_id).order_by(StockTransaction.id)
        ).all()
        return [(row.ingredient_id, row.quantity, row.transaction_type, row.reason) for row in rows]


def test_usage_counts_breakfast_per_unit_and_options_once(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog, quantity=2)

    with session_local() as db:
        usage = compute_ingredient_usage(db, order_id)

    assert usage == {catalog.eggs_id: Decimal("4"), catalog.beans_id: Decimal("18")}


def test_approve_then_cancel_with_restore_returns_stock(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog)

    with session_local() as db:
        approved = approve_order(db, order_id, bus=EventBus())

    assert approved.status == "preparing"
    assert approved.approved == 1
    assert _stock(session_local, catalog.eggs_id) == Decimal("3")
    deductions = [row for row in _transactions(session_local, order_id) if row[0] == catalog.eggs_id]
    assert deductions == [(catalog.eggs_id, Decimal("-2"), "deduction", REASON_ORDER_APPROVAL)]

    with session_local() as db:
        cancelled = cancel_order(db, order_id, restore_stock=True, bus=EventBus())

    assert cancelled.status == "cancelled"
    assert cancelled.approved == 0
    assert _stock(session_local, catalog.eggs_id) == Decimal("5")
    assert _stock(session_local, catalog.beans_id) == Decimal("500")
    additions = [row for row in _transactions(session_local, order_id) if row[2] == "addition" and row[0] == catalog.eggs_id]
    assert additions == [(catalog.eggs_id, Decimal("2"), "addition", REASON_ORDER_RESTORATION)]

    with session_local() as db, pytest.raises(AlreadyCancelledError):
        cancel_order(db, order_id, restore_stock=True, bus=EventBus())

    assert _stock(session_local, catalog.eggs_id) == Decimal("5")


def test_second_approval_is_rejected_without_touching_stock(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog)

    with session_local() as db:
        approve_order(db, order_id, bus=EventBus())
    with session_local() as db, pytest.raises(AlreadyApprovedError):
        approve_order(db, order_id, bus=EventBus())

    assert _stock(session_local, catalog.eggs_id) == Decimal("3")
    assert len([row for row in _transactions(session_local, order_id) if row[2] == "deduction"]) == 2


def test_existing_deduction_blocks_approval(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog)
    with session_local() as db:
        order = db.get(Order, order_id)
        deduct_for_order(db, order)
        db.commit()

    with session_local() as db, pytest.raises(AlreadyDeductedError):
        approve_order(db, order_id, bus=EventBus())

    with session_local() as db:
        assert db.get(Order, order_id).approved is False


def test_insufficient_stock_deducts_nothing(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog, quantity=3)

    with session_local() as db, pytest.raises(InsufficientStockError) as exc_info:
        approve_order(db, order_id, bus=EventBus())

    assert exc_info.value.ingredient_name == "Eggs"
    assert exc_info.value.required == Decimal("6")
    assert exc_info.value.available == Decimal("5")
    assert _stock(session_local, catalog.eggs_id) == Decimal("5")
    assert _stock(session_local, catalog.beans_id) == Decimal("500")
    assert _transactions(session_local, order_id) == []
    with session_local() as db:
        order = db.get(Order, order_id)
        assert order.approved is False
        assert order.status == "pending"


def test_locking_unknown_ingredient_is_reported(session_local, catalog) -> None:
    with session_local() as db, pytest.raises(IngredientNotFoundError) as exc_info:
        lock_ingredient(db, 9999)

    assert exc_info.value.message == "Ingredient ID 9999 not found"


def test_restoration_guard_aborts_cancellation(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog)
    with session_local() as db:
        approve_order(db, order_id, bus=EventBus())
    with session_local() as db:
        db.add(
            StockTransaction(
                ingredient_id=catalog.eggs_id,
                quantity=Decimal("2"),
                transaction_type="addition",
                order_id=order_id,
                reason=REASON_ORDER_RESTORATION,
            )
        )
        db.commit()

    with session_local() as db, pytest.raises(AlreadyRestoredError):
        cancel_order(db, order_id, restore_stock=True, bus=EventBus())

    with session_local() as db:
        order = db.get(Order, order_id)
        assert order.status == "preparing"
        assert order.approved is True
    assert _stock(session_local, catalog.eggs_id) == Decimal("3")


def test_cancel_without_restore_keeps_stock_deducted(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog)
    with session_local() as db:
        approve_order(db, order_id, bus=EventBus())
    with session_local() as db:
        cancel_order(db, order_id, restore_stock=False, bus=EventBus())

    assert _stock(session_local, catalog.eggs_id) == Decimal("3")


def test_cancelled_order_cannot_be_approved(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog)
    with session_local() as db:
        cancel_order(db, order_id, bus=EventBus())

    with session_local() as db, pytest.raises(AlreadyCancelledError):
        approve_order(db, order_id, bus=EventBus())


def test_unknown_order_is_not_found(session_local, catalog) -> None:
    with session_local() as db, pytest.raises(OrderNotFoundError):
        approve_order(db, 4242, bus=EventBus())
    with session_local() as db, pytest.raises(OrderNotFoundError):
        cancel_order(db, 4242, bus=EventBus())


def test_concurrent_approvals_deduct_once(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog, quantity=2)
    barrier = threading.Barrier(2)
    outcomes: list[str] = []
    lock = threading.Lock()

    def approve() -> None:
        barrier.wait()
        with session_local() as db:
            try:
                approve_order(db, order_id, bus=EventBus())
            except (AlreadyApprovedError, AlreadyDeductedError, InsufficientStockError) as exc:
                result = exc.code
            else:
                result = "ok"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=approve) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ["AlreadyApproved", "ok"]
    assert _stock(session_local, catalog.eggs_id) == Decimal("1")
    eggs_deductions = [
        row for row in _transactions(session_local, order_id) if row[0] == catalog.eggs_id and row[2] == "deduction"
    ]
    assert len(eggs_deductions) == 1


def test_approval_publishes_to_staff_and_guest_channels(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog)
    bus = EventBus()
    received: list[tuple[str, str, dict]] = []
    bus.subscribe(STAFF_CHANNEL, lambda event, payload: received.append((STAFF_CHANNEL, event, payload)))
    bus.subscribe(guest_channel(GUEST_SESSION_ID), lambda event, payload: received.append(("guest", event, payload)))

    with session_local() as db:
        approve_order(db, order_id, bus=bus)

    assert [(channel, event) for channel, event, _ in received] == [("guest", "orderApproved"), (STAFF_CHANNEL, "orderApproved")]
    payload = received[0][2]
    assert payload["orderId"] == str(order_id)
    assert payload["status"] == "preparing"
    assert payload["orderDetails"]["approved"] == 1


def test_status_progression_follows_allowed_transitions(session_local, catalog) -> None:
    order_id = _breakfast_order(session_local, catalog)

    with session_local() as db, pytest.raises(InvalidStatusTransitionError):
        set_order_status(db, order_id, "ready", bus=EventBus())

    with session_local() as db:
        approve_order(db, order_id, bus=EventBus())
    with session_local() as db:
        assert set_order_status(db, order_id, "ready", bus=EventBus()).status == "ready"
    with session_local() as db:
        assert set_order_status(db, order_id, "delivered", bus=EventBus()).status == "delivered"
    with session_local() as db, pytest.raises(InvalidStatusTransitionError):
        set_order_status(db, order_id, "preparing", bus=EventBus())
