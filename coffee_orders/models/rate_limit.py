"""Rolling-window order rate-limit records."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from coffee_orders.db.base import Base


class DeviceOrderLimit(Base):
    """One row per fingerprint per accepted order."""

    __tablename__ = "device_order_limits"
    __table_args__ = (
        Index("ix_device_order_limits_fingerprint_ts", "device_fingerprint", "order_timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    device_fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    order_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    device_id: Mapped[str] = mapped_column(String(64), nullable=False)
