"""Verification cycle calculator (pure).

A campaign's timeline is cut into fixed windows of ``cycle_hours`` starting at
``start_at``. The raw index is negative before the campaign starts; the
displayed index is floored at 0. Verification and re-verification reject a
negative raw index.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from reelpay.config import VERIFICATION_SETTINGS
from reelpay.exceptions import CampaignNotStarted
from reelpay.utils.time import ensure_utc


@dataclass(frozen=True)
class CycleWindow:
    raw_index: int
    cycle_index: int
    next_window_at: datetime


def cycle_duration(cycle_hours: int | None) -> timedelta:
    hours = cycle_hours or int(VERIFICATION_SETTINGS["default_cycle_hours"])
    return timedelta(hours=hours)


def cycle_index(start_at: datetime | None, now: datetime, cycle_hours: int | None = None) -> int:
    """floor((now - start_at) / cycle duration); ``start_at`` None means now."""
    now = ensure_utc(now)
    start = ensure_utc(start_at) if start_at is not None else now
    return (now - start) // cycle_duration(cycle_hours)


def cycle_window(start_at: datetime | None, now: datetime, cycle_hours: int | None = None) -> CycleWindow:
    now = ensure_utc(now)
    start = ensure_utc(start_at) if start_at is not None else now
    duration = cycle_duration(cycle_hours)
    raw = (now - start) // duration
    return CycleWindow(
        raw_index=raw,
        cycle_index=max(0, raw),
        next_window_at=start + (raw + 1) * duration,
    )


def require_started_cycle(start_at: datetime | None, now: datetime, cycle_hours: int | None = None) -> int:
    raw = cycle_index(start_at, now, cycle_hours)
    if raw < 0:
        raise CampaignNotStarted(
            "Campaign has not started yet",
            {"start_at": start_at.isoformat() if start_at else None},
        )
    return raw


__all__ = ["CycleWindow", "cycle_duration", "cycle_index", "cycle_window", "require_started_cycle"]
