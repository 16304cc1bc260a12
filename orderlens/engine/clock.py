"""
Injectable reference clock.

Every relative range ("today", "last 30 days") is resolved against a Clock
so tests can pin time. Production callers use SystemClock.
"""

from datetime import datetime
from typing import Optional, Protocol

from orderlens.config import get_settings
from orderlens.utils.dates import to_local_naive


class Clock(Protocol):
    """Anything with a now() returning a naive local datetime."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in the configured timezone (host local time by default)."""

    def __init__(self, timezone: Optional[str] = None):
        self.timezone = timezone if timezone is not None else get_settings().timezone

    def now(self) -> datetime:
        return to_local_naive(datetime.now().astimezone(), self.timezone)


class FixedClock:
    """
    Clock pinned to a single instant.

    An aware instant is converted to the configured timezone, the same way
    ingested timestamps are, so "today" and the data share one calendar.
    """

    def __init__(self, instant: datetime, timezone: Optional[str] = None):
        if instant.tzinfo is not None:
            zone = timezone if timezone is not None else get_settings().timezone
            instant = to_local_naive(instant, zone)
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
