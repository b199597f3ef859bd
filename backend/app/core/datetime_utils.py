from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now_naive() -> datetime:
    """Return current UTC time as naive datetime for DATETIME columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def last_24_hours_cutoff(now: datetime | None = None) -> datetime:
    return (now or utc_now_naive()) - timedelta(hours=24)
