"""Timezone normalization shared by ingestion, models, and clocks."""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo


def to_local_naive(value: datetime, timezone: Optional[str] = None) -> datetime:
    """
    Convert an aware datetime to naive wall-clock time.

    Aware values are shifted into `timezone` (host local time when None)
    before the tz info is dropped. Naive values are returned unchanged.
    """
    if value.tzinfo is None:
        return value
    if timezone:
        value = value.astimezone(ZoneInfo(timezone))
    else:
        value = value.astimezone()
    return value.replace(tzinfo=None)
