"""Dining table ORM model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from coffee_orders.db.base import Base

TABLE_STATUSES: tuple[str, ...] = ("available", "occupied", "reserved")


class DiningTable(Base):
    """Physical table that local orders are attached to."""

    __tablename__ = "tables"

    id: Mapped[int] = mapped_column(primary_key=True)
    table_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="available")
