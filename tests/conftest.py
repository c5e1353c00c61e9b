"""Shared fixtures: per-test SQLite database, seeded catalog and staff tokens."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

from coffee_orders import main as main_module
from coffee_orders.core.config import settings
from coffee_orders.core.security import create_access_token
from coffee_orders.db import session as db_session
from coffee_orders.db.base import Base
from coffee_orders.db.session import build_engine
from coffee_orders.models import (
    Breakfast,
    BreakfastIngredient,
    BreakfastOption,
    BreakfastOptionGroup,
    BreakfastOptionGroupMapping,
    BreakfastOptionIngredient,
    DiningTable,
    Ingredient,
    MenuItem,
    MenuItemIngredient,
    MenuItemSupplement,
    Promotion,
    Supplement,
    SupplementIngredient,
    User,
)
from coffee_orders.services.duplicate_guard import duplicate_guard

GUEST_DEVICE_ID = "3f2c7b1e-8a4d-4c2b-9e6f-1a2b3c4d5e6f"
GUEST_SESSION_ID = "guest-session-1"


@dataclass
class Catalog:
    latte_id: int
    cappuccino_id: int
    espresso_id: int
    extra_shot_id: int
    vanilla_id: int
    breakfast_id: int
    scrambled_id: int
    fried_id: int
    coffee_option_id: int
    juice_option_id: int
    bacon_option_id: int
    table_id: int
    reserved_table_id: int
    milk_id: int
    beans_id: int
    eggs_id: int
    store_promotion_id: int
    latte_promotion_id: int
    expired_promotion_id: int
    admin_id: int
    server_id: int


@pytest.fixture
def session_local(tmp_path: Path, monkeypatch):
    engine = build_engine(f"sqlite:///{tmp_path / 'coffee_orders_test.db'}")
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(main_module, "engine", engine)
    monkeypatch.setattr(main_module, "SessionLocal", testing_session_local)
    monkeypatch.setattr(settings, "app_env", "test")
    duplicate_guard.clear()

    yield testing_session_local

    duplicate_guard.clear()
    engine.dispose()


@pytest.fixture
def catalog(session_local) -> Catalog:
    now = datetime.now(timezone.utc)
    with session_local() as db:
        latte = MenuItem(name="Latte", regular_price=Decimal("4.00"), availability=True)
        cappuccino = MenuItem(name="Cappuccino", regular_price=Decimal("5.00"), sale_price=Decimal("4.50"), availability=True)
        espresso = MenuItem(name="Espresso", regular_price=Decimal("9.00"), availability=True)
        db.add_all([latte, cappuccino, espresso])
        extra_shot = Supplement(name="Extra shot", price=Decimal("1.00"))
        vanilla = Supplement(name="Vanilla syrup", price=Decimal("0.50"))
        db.add_all([extra_shot, vanilla])
        db.flush()
        db.add_all(
            [
                MenuItemSupplement(menu_item_id=latte.id, supplement_id=extra_shot.id, name="Extra shot", additional_price=Decimal("1.00")),
                MenuItemSupplement(menu_item_id=latte.id, supplement_id=vanilla.id, name="Vanilla syrup", additional_price=Decimal("0.50")),
            ]
        )

        breakfast = Breakfast(name="Full breakfast", price=Decimal("8.00"), availability=True)
        db.add(breakfast)
        db.flush()
        eggs_group = BreakfastOptionGroup(breakfast_id=breakfast.id, title="Eggs", is_required=True, max_selections=1)
        extras_group = BreakfastOptionGroup(breakfast_id=breakfast.id, title="Extras", is_required=False, max_selections=2)
        drink_group = BreakfastOptionGroup(breakfast_id=None, title="Drink", is_required=True, max_selections=1)
        empty_group = BreakfastOptionGroup(breakfast_id=breakfast.id, title="Bread", is_required=True, max_selections=1)
        db.add_all([eggs_group, extras_group, drink_group, empty_group])
        db.flush()
        db.add(BreakfastOptionGroupMapping(breakfast_id=breakfast.id, option_group_id=drink_group.id))
        scrambled = BreakfastOption(group_id=eggs_group.id, breakfast_id=breakfast.id, option_type="eggs", option_name="Scrambled", additional_price=Decimal("0.00"))
        fried = BreakfastOption(group_id=eggs_group.id, breakfast_id=breakfast.id, option_type="eggs", option_name="Fried", additional_price=Decimal("0.50"))
        bacon = BreakfastOption(group_id=extras_group.id, breakfast_id=breakfast.id, option_type="extra", option_name="Bacon", additional_price=Decimal("2.00"))
        coffee_option = BreakfastOption(group_id=drink_group.id, breakfast_id=None, option_type="drink", option_name="Coffee", additional_price=Decimal("0.00"))
        juice_option = BreakfastOption(group_id=drink_group.id, breakfast_id=None, option_type="drink", option_name="Juice", additional_price=Decimal("1.00"))
        db.add_all([scrambled, fried, bacon, coffee_option, juice_option])

        table = DiningTable(table_number=1, capacity=4, status="available")
        reserved_table = DiningTable(table_number=2, capacity=2, status="reserved")
        db.add_all([table, reserved_table])

        milk = Ingredient(name="Milk", unit="ml", quantity_in_stock=Decimal("1000"), low_stock_threshold=Decimal("200"))
        beans = Ingredient(name="Coffee beans", unit="g", quantity_in_stock=Decimal("500"), low_stock_threshold=Decimal("100"))
        eggs = Ingredient(name="Eggs", unit="pcs", quantity_in_stock=Decimal("5"), low_stock_threshold=Decimal("6"))
        db.add_all([milk, beans, eggs])
        db.flush()
        db.add_all(
            [
                MenuItemIngredient(menu_item_id=latte.id, ingredient_id=milk.id, quantity=Decimal("200")),
                MenuItemIngredient(menu_item_id=latte.id, ingredient_id=beans.id, quantity=Decimal("18")),
                SupplementIngredient(supplement_id=extra_shot.id, ingredient_id=beans.id, quantity=Decimal("9")),
                BreakfastIngredient(breakfast_id=breakfast.id, ingredient_id=eggs.id, quantity=Decimal("2")),
                BreakfastOptionIngredient(breakfast_option_id=coffee_option.id, ingredient_id=beans.id, quantity=Decimal("18")),
            ]
        )

        store_promotion = Promotion(
            name="Happy hour",
            discount_percentage=Decimal("10.00"),
            item_id=None,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=1),
            active=True,
        )
        latte_promotion = Promotion(
            name="Latte week",
            discount_percentage=Decimal("50.00"),
            item_id=latte.id,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=1),
            active=True,
        )
        expired_promotion = Promotion(
            name="Last month",
            discount_percentage=Decimal("20.00"),
            item_id=None,
            start_date=now - timedelta(days=40),
            end_date=now - timedelta(days=10),
            active=True,
        )
        db.add_all([store_promotion, latte_promotion, expired_promotion])

        admin = User(email="admin@example.com", password_hash="unused", role="admin", is_active=True)
        server = User(email="server@example.com", password_hash="unused", role="server", is_active=True)
        db.add_all([admin, server])
        db.commit()

        return Catalog(
            latte_id=latte.id,
            cappuccino_id=cappuccino.id,
            espresso_id=espresso.id,
            extra_shot_id=extra_shot.id,
            vanilla_id=vanilla.id,
            breakfast_id=breakfast.id,
            scrambled_id=scrambled.id,
            fried_id=fried.id,
            coffee_option_id=coffee_option.id,
            juice_option_id=juice_option.id,
            bacon_option_id=bacon.id,
            table_id=table.id,
            reserved_table_id=reserved_table.id,
            milk_id=milk.id,
            beans_id=beans.id,
            eggs_id=eggs.id,
            store_promotion_id=store_promotion.id,
            latte_promotion_id=latte_promotion.id,
            expired_promotion_id=expired_promotion.id,
            admin_id=admin.id,
            server_id=server.id,
        )


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user_id)})}"}


def guest_headers(session_id: str = GUEST_SESSION_ID, device_id: str = GUEST_DEVICE_ID) -> dict[str, str]:
    return {"X-Session-Id": session_id, "X-Device-Id": device_id}


@pytest.fixture
def admin_headers(catalog: Catalog) -> dict[str, str]:
    return auth_headers(catalog.admin_id)


@pytest.fixture
def server_headers(catalog: Catalog) -> dict[str, str]:
    return auth_headers(catalog.server_id)
