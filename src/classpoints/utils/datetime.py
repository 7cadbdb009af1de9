"""Date-time helpers shared by the engines."""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive timestamp, matching stored columns."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def window_start(hours: float, now: datetime | None = None) -> datetime:
    """Return the start of a trailing window of ``hours`` ending at ``now``."""

    current = now or utcnow()
    return current - timedelta(hours=hours)


def period_start(days: int, now: datetime | None = None) -> datetime:
    """Return the start of a trailing period of ``days`` ending at ``now``."""

    current = now or utcnow()
    return current - timedelta(days=days)
