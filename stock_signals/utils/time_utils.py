"""
Time and date utilities.

Prefer these helpers over bare ``datetime`` calls so timestamps are always
timezone-aware UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def age_hours(generated_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """Hours elapsed since ``generated_at``, or ``None`` if unknown.

    Naive datetimes are assumed to be UTC.
    """
    if generated_at is None:
        return None
    if generated_at.tzinfo is None:
        generated_at = generated_at.replace(tzinfo=timezone.utc)
    now = now or utcnow()
    return max(0.0, (now - generated_at).total_seconds() / 3600.0)

