"""Process-local guard against double-submitted carts.

Entries live only in this process, so several API instances each keep their
own window.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections.abc import Callable

from coffee_orders.core.config import settings
from coffee_orders.schemas.order import OrderCreateRequest
from coffee_orders.services.errors import DuplicateOrderError

logger = logging.getLogger(__name__)


def submission_key(payload: OrderCreateRequest, session_id: str) -> str:
    """Hash the fields that identify a cart submission."""
    canonical = {
        "items": [line.model_dump(mode="json") for line in payload.items],
        "breakfastItems": [line.model_dump(mode="json") for line in payload.breakfast_items],
        "table_id": payload.table_id,
        "order_type": payload.order_type,
        "total_price": str(payload.total_price),
        "sessionId": session_id,
        "notes": payload.notes,
    }
    encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class DuplicateSubmissionGuard:
    """TTL map of recent submission keys; ``claim`` rejects repeats within the window."""

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = settings.duplicate_order_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        expired = [key for key, expires_at in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    def claim(self, key: str) -> None:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            if key in self._entries:
                logger.warning("Duplicate order submission key=%s", key[:12])
                raise DuplicateOrderError()
            self._entries[key] = now + self.ttl_seconds

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._sweep(self._clock())
            return len(self._entries)


duplicate_guard = DuplicateSubmissionGuard()
