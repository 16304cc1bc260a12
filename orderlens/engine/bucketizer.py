"""
Bucketizer: ordered time buckets for chart series.

Granularity follows from the resolved range:
- single day / explicit date: 24 hourly buckets "00:00".."23:00"
- week tokens, last 7/14/30 days, calendar-month tokens: one bucket per
  day, "Jan 5"
- last 60/90 days: 7-day blocks ending today, working backward; the oldest
  block may be shorter; "Jan 5 - Jan 11"
- quarters (3) and years (12): monthly, "Jan 2024"
- allTime: one monthly bucket per month that holds at least one dated
  transaction; empty months are omitted

Buckets are half-open [start, end) and chronologically ordered. For every
range except allTime they tile the resolved period exactly, so the series
total equals the projection over the filtered transactions.
"""

from bisect import bisect_right
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import structlog

from orderlens.engine import calendar_math as cm
from orderlens.engine.range_resolver import (
    QUARTER_TOKENS,
    ROLLING_DAYS,
    SINGLE_DAY_TOKENS,
    YEAR_TOKENS,
    DateRangeResolver,
    SelectionLike,
)
from orderlens.models.enums import Granularity, Projection, RangeToken
from orderlens.models.series import Bucket, BucketSeries, Period, Selection
from orderlens.models.transactions import Transaction

WEEKLY_TOKENS = frozenset({RangeToken.LAST_60_DAYS, RangeToken.LAST_90_DAYS})


def granularity_for(selection: Selection) -> Granularity:
    """Natural bucket width for a selection."""
    if selection.is_explicit or selection.range_token in SINGLE_DAY_TOKENS:
        return Granularity.HOUR
    token = selection.range_token
    if token in WEEKLY_TOKENS:
        return Granularity.WEEK
    if token in QUARTER_TOKENS or token in YEAR_TOKENS or token == RangeToken.ALL_TIME:
        return Granularity.MONTH
    return Granularity.DAY


def _hour_bucket(start: datetime) -> Bucket:
    return Bucket(label=cm.hour_label(start.hour), start=start, end=start + timedelta(hours=1))


def _day_bucket(day: date) -> Bucket:
    start = cm.start_of_day(day)
    return Bucket(label=cm.day_label(day), start=start, end=start + timedelta(days=1))


def _week_bucket(first_day: date, last_day: date) -> Bucket:
    return Bucket(
        label=f"{cm.day_label(first_day)} - {cm.day_label(last_day)}",
        start=cm.start_of_day(first_day),
        end=cm.start_of_day(last_day + timedelta(days=1)),
    )


def _month_bucket(first_day: date) -> Bucket:
    return Bucket(
        label=cm.month_label(first_day),
        start=cm.start_of_day(first_day),
        end=cm.start_of_day(cm.add_months(first_day, 1)),
    )


def hourly_buckets(day: date) -> list[Bucket]:
    start = cm.start_of_day(day)
    return [_hour_bucket(start + timedelta(hours=h)) for h in range(24)]


def daily_buckets(first_day: date, last_day: date) -> list[Bucket]:
    n = (last_day - first_day).days + 1
    return [_day_bucket(first_day + timedelta(days=i)) for i in range(n)]


def weekly_buckets(first_day: date, last_day: date) -> list[Bucket]:
    """7-day blocks anchored so the last block ends on last_day."""
    buckets = []
    end_day = last_day
    while end_day >= first_day:
        start_day = max(first_day, end_day - timedelta(days=6))
        buckets.append(_week_bucket(start_day, end_day))
        end_day = start_day - timedelta(days=1)
    buckets.reverse()
    return buckets


def monthly_buckets(first_day: date, last_day: date) -> list[Bucket]:
    buckets = []
    month = cm.start_of_month(first_day)
    while month <= last_day:
        buckets.append(_month_bucket(month))
        month = cm.add_months(month, 1)
    return buckets


def populated_month_buckets(transactions: Iterable[Transaction]) -> list[Bucket]:
    """One bucket per calendar month containing at least one dated transaction."""
    months = sorted(
        {cm.start_of_month(t.timestamp) for t in transactions if t.timestamp is not None}
    )
    return [_month_bucket(m) for m in months]


def following_buckets(granularity: Granularity, anchor: datetime, horizon: int) -> list[Bucket]:
    """
    The next `horizon` buckets starting at `anchor`, labeled the same way as
    historical buckets of that granularity.
    """
    buckets: list[Bucket] = []
    if granularity == Granularity.HOUR:
        start = anchor.replace(minute=0, second=0, microsecond=0)
        for i in range(horizon):
            buckets.append(_hour_bucket(start + timedelta(hours=i)))
    elif granularity == Granularity.DAY:
        for i in range(horizon):
            buckets.append(_day_bucket(anchor.date() + timedelta(days=i)))
    elif granularity == Granularity.WEEK:
        for i in range(horizon):
            first = anchor.date() + timedelta(days=7 * i)
            buckets.append(_week_bucket(first, first + timedelta(days=6)))
    else:
        month = cm.start_of_month(anchor)
        for i in range(horizon):
            buckets.append(_month_bucket(cm.add_months(month, i)))
    return buckets


def next_bucket_start(granularity: Granularity, now: datetime) -> datetime:
    """Start of the bucket following the one that contains `now`."""
    if granularity == Granularity.HOUR:
        return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    if granularity in (Granularity.DAY, Granularity.WEEK):
        return cm.start_of_day(now.date() + timedelta(days=1))
    return cm.start_of_day(cm.add_months(now, 1))


def aggregate(
    buckets: list[Bucket], transactions: Iterable[Transaction], projection: Projection
) -> list[Bucket]:
    """Fill bucket values with the projection over contained transactions."""
    if not buckets:
        return []
    starts = [b.start for b in buckets]
    totals = [0.0] * len(buckets)
    for t in transactions:
        if t.timestamp is None:
            continue
        idx = bisect_right(starts, t.timestamp) - 1
        if idx < 0 or not buckets[idx].contains(t.timestamp):
            continue
        totals[idx] += 1 if projection == Projection.COUNT else t.amount
    return [b.model_copy(update={"value": v}) for b, v in zip(buckets, totals)]


class Bucketizer:
    """
    Builds bucket series for a selection.

    Attributes:
        resolver: Range resolver supplying the period and the clock

    Example:
        >>> series = Bucketizer(resolver).build_series("thisMonth", transactions)
        >>> series.labels[:2], series.values[:2]
        (['Jan 1', 'Jan 2'], [0.0, 0.0])
    """

    def __init__(self, resolver: Optional[DateRangeResolver] = None):
        self.resolver = resolver or DateRangeResolver()
        self.logger = structlog.get_logger()

    def plan(
        self,
        selection: Selection,
        period: Period,
        transactions: Iterable[Transaction] = (),
    ) -> tuple[Granularity, list[Bucket]]:
        """Empty buckets covering the period at its natural granularity."""
        granularity = granularity_for(selection)
        if selection.range_token == RangeToken.ALL_TIME and not selection.is_explicit:
            return granularity, populated_month_buckets(transactions)
        first, last = period.first_day, period.last_day
        if granularity == Granularity.HOUR:
            return granularity, hourly_buckets(first)
        if granularity == Granularity.WEEK:
            return granularity, weekly_buckets(first, last)
        if granularity == Granularity.MONTH:
            return granularity, monthly_buckets(first, last)
        return granularity, daily_buckets(first, last)

    def build_series(
        self,
        selection: SelectionLike,
        transactions: list[Transaction],
        projection: Projection = Projection.SUM_AMOUNT,
        now: Optional[datetime] = None,
    ) -> BucketSeries:
        """
        Bucket transactions for a selection.

        Args:
            selection: Selection, token, token string, or explicit date
            transactions: Full transaction collection (filtered by bucket bounds)
            projection: Sum of amount or count

        Returns:
            BucketSeries with chronologically ordered buckets
        """
        now = now or self.resolver.now()
        resolved = self.resolver.resolve(selection, now=now)
        granularity, buckets = self.plan(resolved.selection, resolved.period, transactions)
        buckets = aggregate(buckets, transactions, Projection(projection))

        last_actual = None
        for i, b in enumerate(buckets):
            if b.start <= now:
                last_actual = i

        self.logger.debug(
            "series_built",
            token=resolved.selection.range_token.value,
            granularity=granularity.value,
            bucket_count=len(buckets),
            last_actual_index=last_actual,
        )
        return BucketSeries(
            selection=resolved.selection,
            granularity=granularity,
            buckets=buckets,
            last_actual_index=last_actual,
        )
