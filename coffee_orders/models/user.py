"""Staff user ORM model."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from coffee_orders.db.base import Base

USER_ROLES = ("admin", "server")
STAFF_ROLES: frozenset[str] = frozenset(USER_ROLES)


def normalize_user_role(role: str | None) -> str:
    """Return canonical lowercase role or raise for unknown values."""
    normalized = str(role or "").strip().lower()
    if normalized not in USER_ROLES:
        raise ValueError(f"Unsupported role: {role!r}")
    return normalized


class User(Base):
    """Staff account allowed to approve, cancel and enter orders."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(*USER_ROLES, name="user_role"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    @property
    def is_staff(self) -> bool:
        return self.is_active and self.role in STAFF_ROLES
