"""
Period, bucket, and forecast models produced by the engine.

Periods are closed intervals [start, end]; buckets are half-open
[start, end) so that consecutive buckets tile a period without gaps or
overlaps.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .enums import Granularity, RangeToken

PERIOD_MIN = datetime.min
PERIOD_MAX = datetime.max


class Period(BaseModel):
    """Closed time interval; start is never after end."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_order(self) -> "Period":
        if self.end < self.start:
            raise ValueError("Period end must not be before its start")
        return self

    @classmethod
    def for_days(cls, first_day: date, last_day: date) -> "Period":
        """Whole calendar days, from first_day 00:00 to last_day 23:59:59.999999."""
        return cls(
            start=datetime.combine(first_day, time.min),
            end=datetime.combine(last_day, time.max),
        )

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        return self.end.date()

    def contains(self, ts: Optional[datetime]) -> bool:
        """Inclusive membership test; a missing timestamp is never contained."""
        return ts is not None and self.start <= ts <= self.end


class Selection(BaseModel):
    """
    Presentation-layer selection state: a named range, or an explicit
    calendar day that overrides it.
    """

    range_token: RangeToken = Field(default=RangeToken.ALL_TIME)
    explicit_date: Optional[date] = Field(default=None)

    @property
    def is_explicit(self) -> bool:
        return self.explicit_date is not None

    @property
    def label(self) -> str:
        if self.explicit_date is not None:
            d = self.explicit_date
            return f"{d.strftime('%b')} {d.day}, {d.year}"
        return self.range_token.label


class ResolvedRange(BaseModel):
    """Concrete boundaries for a selection, plus the comparison period."""

    selection: Selection
    period: Period
    previous: Optional[Period] = None

    @property
    def period_start(self) -> datetime:
        return self.period.start

    @property
    def period_end(self) -> datetime:
        return self.period.end

    @property
    def prev_period_start(self) -> Optional[datetime]:
        return self.previous.start if self.previous else None

    @property
    def prev_period_end(self) -> Optional[datetime]:
        return self.previous.end if self.previous else None


class Bucket(BaseModel):
    """One labeled half-open time slice [start, end) with its aggregate."""

    label: str
    start: datetime
    end: datetime
    value: float = 0.0

    @model_validator(mode="after")
    def validate_order(self) -> "Bucket":
        if self.end <= self.start:
            raise ValueError("Bucket end must be after its start")
        return self

    def contains(self, ts: Optional[datetime]) -> bool:
        return ts is not None and self.start <= ts < self.end


class BucketSeries(BaseModel):
    """
    Ordered buckets for one request, all sharing one granularity.

    last_actual_index marks the last bucket that has started as of "now";
    later buckets are future placeholders (always zero for well-formed data).
    """

    selection: Selection
    granularity: Granularity
    buckets: list[Bucket] = Field(default_factory=list)
    last_actual_index: Optional[int] = None

    @property
    def labels(self) -> list[str]:
        return [b.label for b in self.buckets]

    @property
    def values(self) -> list[float]:
        return [b.value for b in self.buckets]

    @property
    def total(self) -> float:
        return sum(b.value for b in self.buckets)


class ForecastResult(BaseModel):
    """Historical series plus its least-squares projection."""

    granularity: Granularity
    history_labels: list[str] = Field(default_factory=list)
    history_values: list[float] = Field(default_factory=list)
    forecast_labels: list[str] = Field(default_factory=list)
    forecast_values: list[float] = Field(default_factory=list)
    slope: Optional[float] = None
    intercept: Optional[float] = None
    r_squared: Optional[float] = None

    @model_validator(mode="after")
    def validate_alignment(self) -> "ForecastResult":
        if len(self.history_labels) != len(self.history_values):
            raise ValueError("History labels and values must align")
        if len(self.forecast_labels) != len(self.forecast_values):
            raise ValueError("Forecast labels and values must align")
        if any(v < 0 for v in self.forecast_values):
            raise ValueError("Forecast values must be non-negative")
        return self

    @property
    def horizon(self) -> int:
        return len(self.forecast_values)
