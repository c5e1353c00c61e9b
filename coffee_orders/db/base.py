"""Shared SQLAlchemy base declarative class and model imports."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


# Import model modules so metadata is populated before create_all.
from coffee_orders.models import catalog as _catalog  # noqa: E402,F401
from coffee_orders.models import notification as _notification  # noqa: E402,F401
from coffee_orders.models import order as _order  # noqa: E402,F401
from coffee_orders.models import rate_limit as _rate_limit  # noqa: E402,F401
from coffee_orders.models import stock as _stock  # noqa: E402,F401
from coffee_orders.models import table as _table  # noqa: E402,F401
from coffee_orders.models import user as _user  # noqa: E402,F401
