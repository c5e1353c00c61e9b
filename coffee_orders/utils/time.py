"""Time helpers shared by rate limiting and order listing."""

from datetime import datetime, time, timedelta, timezone

TIME_RANGES: tuple[str, ...] = ("hour", "day", "yesterday", "week", "month")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def time_range_window(time_range: str, now: datetime | None = None) -> tuple[datetime, datetime | None]:
    """Return ``(start, end)`` bounds for an order listing range; ``end`` is open when None.

    ``day`` starts at today's midnight, ``week`` and ``month`` count back 7 and 30
    days from that midnight, ``hour`` is a rolling hour.
    """
    current = now or utc_now()
    midnight = datetime.combine(current.date(), time.min, tzinfo=current.tzinfo)
    if time_range == "hour":
        return current - timedelta(hours=1), None
    if time_range == "day":
        return midnight, None
    if time_range == "yesterday":
        return midnight - timedelta(days=1), midnight
    if time_range == "week":
        return midnight - timedelta(days=7), None
    if time_range == "month":
        return midnight - timedelta(days=30), None
    raise ValueError(f"Unsupported time range: {time_range!r}")
