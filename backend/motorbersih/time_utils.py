# backend/motorbersih/time_utils.py
"""
Clock helpers.

Timestamps are stored as naive UTC. Attendance works on the business's local
clock (BUSINESS_TIMEZONE); conversion happens only at that edge.
"""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def _as_utc(dt: datetime) -> datetime:
    # Naive values are already UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_business_time(dt: datetime, tz_name: str) -> datetime:
    """Naive wall-clock time at the business for a stored UTC timestamp."""
    return _as_utc(dt).astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def parse_clock(value: str) -> time:
    """"08:15" -> time(8, 15)."""
    return time.fromisoformat(value.strip())


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 text to naive UTC; blank input gives None.

    Offsets ("+07:00", "Z") are converted; a value without one is taken as UTC.
    """
    text = str(value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    return _as_utc(datetime.fromisoformat(text)).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Second-precision ISO-8601 with a trailing Z, e.g. 2026-10-19T08:10:00Z."""
    if dt is None:
        return None
    return _as_utc(dt).replace(microsecond=0, tzinfo=None).isoformat() + "Z"
