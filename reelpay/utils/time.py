"""Time utilities (UTC now, tz normalisation)."""
from __future__ import annotations
from datetime import datetime, timezone, timedelta

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def ensure_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes even for timezone=True columns."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def days_from(start: datetime, days: int) -> datetime:
    return start + timedelta(days=days)

__all__ = ["utc_now", "ensure_utc", "days_from"]
