"""
Timestamp helpers.

Location fixes carry timezone-aware timestamps so staleness checks never mix naive and
aware datetimes (fixes arrive from the API, the CLI, and in-process sensor adapters).
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_tz(dt: datetime) -> datetime:
    """Ensure `dt` has tzinfo; naive values are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def age_seconds(ts: datetime, *, now: datetime | None = None) -> float:
    """Seconds elapsed since `ts` (negative if `ts` lies in the future)."""
    now = ensure_tz(now) if now is not None else utc_now()
    return (now - ensure_tz(ts)).total_seconds()
