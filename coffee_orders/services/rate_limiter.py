"""Rolling-window order rate limiting per device and per network fingerprint."""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from coffee_orders.core.config import settings
from coffee_orders.models import DeviceOrderLimit
from coffee_orders.services.errors import OrderValidationError, RateLimitExceededError
from coffee_orders.utils.time import utc_now

logger = logging.getLogger(__name__)

DEVICE_ID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def _sha256(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ClientFingerprint:
    """Hashed identities an order submission is counted against."""

    device_id: str
    device: str
    network: str

    @property
    def fingerprints(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys((self.device, self.network)))


def fingerprint_client(device_id: str | None, ip_address: str | None, user_agent: str | None) -> ClientFingerprint:
    """Validate the device id and derive device and network fingerprints."""
    if not device_id or not DEVICE_ID_PATTERN.match(device_id):
        logger.warning("Invalid or missing device id device_id=%r", device_id)
        raise OrderValidationError("Valid device ID required")
    network_source = f"{ip_address or 'unknown'}|{user_agent or 'unknown'}"
    return ClientFingerprint(device_id=device_id, device=_sha256(device_id), network=_sha256(network_source))


def purge_expired(db: Session, now: datetime | None = None) -> int:
    """Delete rate-limit rows older than the window; returns the number removed."""
    cutoff = (now or utc_now()) - timedelta(minutes=settings.order_rate_limit_window_minutes)
    result = db.execute(delete(DeviceOrderLimit).where(DeviceOrderLimit.order_timestamp < cutoff))
    return result.rowcount or 0


def recent_order_count(db: Session, client: ClientFingerprint, now: datetime | None = None) -> int:
    """Return the largest per-fingerprint order count within the window."""
    cutoff = (now or utc_now()) - timedelta(minutes=settings.order_rate_limit_window_minutes)
    counts = [
        db.scalar(
            select(func.count(DeviceOrderLimit.id)).where(
                DeviceOrderLimit.device_fingerprint == fingerprint,
                DeviceOrderLimit.order_timestamp >= cutoff,
            )
        )
        or 0
        for fingerprint in client.fingerprints
    ]
    return max(counts, default=0)


def check_rate_limit(db: Session, client: ClientFingerprint, now: datetime | None = None) -> None:
    """Purge stale rows and reject the submission once the window is full."""
    current = now or utc_now()
    purge_expired(db, current)
    count = recent_order_count(db, client, current)
    if count >= settings.order_rate_limit_max_orders:
        logger.warning("Order rate limit exceeded device_id=%s count=%s", client.device_id, count)
        raise RateLimitExceededError("Order limit reached. Please try again later.")


def record_order(db: Session, client: ClientFingerprint, now: datetime | None = None) -> None:
    """Add one rate-limit row per distinct fingerprint; committed by the caller."""
    current = now or utc_now()
    for fingerprint in client.fingerprints:
        db.add(DeviceOrderLimit(device_fingerprint=fingerprint, order_timestamp=current, device_id=client.device_id))
