from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def _aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def is_fresh(published_at: Optional[datetime], window: timedelta, now: datetime) -> bool:
    """
    True when the item was published no more than `window` before `now`.

    Items without a timestamp are never fresh. Naive datetimes are read as UTC.
    """
    if published_at is None:
        return False
    return _aware(now) - _aware(published_at) <= window
