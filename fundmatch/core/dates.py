"""Date arithmetic shared by the gate and the scorer.

All functions take "now" explicitly; nothing in the engine reads the clock.
"""

import math
from datetime import date, datetime, timezone
from typing import Optional


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC so aware and naive values compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(deadline: datetime, now: datetime) -> int:
    """Whole days until the deadline, rounded up (negative once it has passed)."""
    delta = ensure_utc(deadline) - ensure_utc(now)
    return math.ceil(delta.total_seconds() / 86400)


def business_age_years(established: Optional[date], now: datetime) -> Optional[int]:
    """Completed years since establishment, or None if unknown or in the future."""
    if established is None:
        return None
    if isinstance(established, datetime):
        established = ensure_utc(established).date()
    today = ensure_utc(now).date()
    years = today.year - established.year
    if (today.month, today.day) < (established.month, established.day):
        years -= 1
    if years < 0:
        return None
    return years
