"""Database seeding helpers."""

import logging

from sqlalchemy.orm import Session

from coffee_orders.core.config import settings
from coffee_orders.core.security import get_password_hash
from coffee_orders.services.user_service import create_user, get_user_by_email

logger = logging.getLogger(__name__)


def ensure_admin_user(session: Session) -> bool:
    """Ensure a default admin user exists in development only; returns whether one was created."""
    if settings.app_env != "dev":
        return False

    if get_user_by_email(db=session, email=settings.admin_email) is not None:
        return False

    create_user(
        db=session,
        email=settings.admin_email,
        hashed_password=get_password_hash(settings.admin_password),
        role="admin",
    )
    logger.info("[BOOTSTRAP] default admin created email=%s", settings.admin_email)
    return True
