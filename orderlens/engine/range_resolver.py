"""
Date Range Resolver: named periods to concrete boundaries.

This is the single place that knows how a range token maps onto the
calendar. Bucketing, metrics, and forecasting all ask the resolver for
boundaries instead of re-deriving them, so every caller slices the data
identically.

Boundary rules:
- today / yesterday: that single calendar day; comparison is the day before
- thisWeek: Monday of the current week through today (partial week);
  lastWeek: the full Monday-Sunday week before
- lastNDays: today - N days through today; comparison is the preceding
  N-day block [start - N days, start - 1 day]
- thisMonth / lastMonth / last2Months: one full calendar month
  (last2Months is the single month two months before the current one)
- thisQuarter / lastQuarter: full quarter, wrapping the year from Q1
- thisYear / lastYear: full calendar year
- allTime: unbounded; comparison is unbounded start through now - 1µs
- explicit date: that single day, overriding any token

All periods are closed intervals ending at 23:59:59.999999 of their last
day (or the sentinel maximum for allTime).
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

import structlog

from orderlens.config import Settings, get_settings
from orderlens.engine import calendar_math as cm
from orderlens.engine.clock import Clock, SystemClock
from orderlens.models.enums import GrowthPeriod, RangeToken
from orderlens.models.errors import UnknownRangeError
from orderlens.models.series import PERIOD_MAX, PERIOD_MIN, Period, ResolvedRange, Selection
from orderlens.models.transactions import Transaction

logger = structlog.get_logger()

SelectionLike = Union[Selection, RangeToken, str, date, None]

ROLLING_DAYS = {
    RangeToken.LAST_7_DAYS: 7,
    RangeToken.LAST_14_DAYS: 14,
    RangeToken.LAST_30_DAYS: 30,
    RangeToken.LAST_60_DAYS: 60,
    RangeToken.LAST_90_DAYS: 90,
}

SINGLE_DAY_TOKENS = frozenset({RangeToken.TODAY, RangeToken.YESTERDAY})
WEEK_TOKENS = frozenset({RangeToken.THIS_WEEK, RangeToken.LAST_WEEK})
MONTH_TOKENS = frozenset(
    {RangeToken.THIS_MONTH, RangeToken.LAST_MONTH, RangeToken.LAST_2_MONTHS}
)
QUARTER_TOKENS = frozenset({RangeToken.THIS_QUARTER, RangeToken.LAST_QUARTER})
YEAR_TOKENS = frozenset({RangeToken.THIS_YEAR, RangeToken.LAST_YEAR})

ONE_MICROSECOND = timedelta(microseconds=1)


def coerce_range_token(value: Union[RangeToken, str], policy: Optional[str] = None) -> RangeToken:
    """
    Map a raw token onto RangeToken, applying the unknown-token policy.

    Args:
        value: RangeToken or its string value (e.g. "last30Days")
        policy: "reject" or "all_time"; defaults to the configured policy

    Raises:
        UnknownRangeError: If the token is unknown and the policy is "reject"
    """
    if isinstance(value, RangeToken):
        return value
    try:
        return RangeToken(value)
    except ValueError:
        policy = policy or get_settings().unknown_range_policy
        if policy == "all_time":
            logger.warning("unknown_range_token_defaulted", token=value, fallback="allTime")
            return RangeToken.ALL_TIME
        raise UnknownRangeError(value) from None


class DateRangeResolver:
    """
    Resolves selections into Periods against an injectable clock.

    Attributes:
        clock: Reference clock for relative ranges
        settings: Settings supplying the unknown-token policy

    Example:
        >>> resolver = DateRangeResolver(clock=FixedClock(datetime(2024, 1, 20, 9)))
        >>> rng = resolver.resolve("last7Days", include_previous=True)
        >>> rng.period.first_day, rng.period.last_day
        (datetime.date(2024, 1, 13), datetime.date(2024, 1, 20))
    """

    def __init__(self, clock: Optional[Clock] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock(self.settings.timezone)
        self.logger = structlog.get_logger()

    def now(self) -> datetime:
        return self.clock.now()

    def selection_for(self, value: SelectionLike = None) -> Selection:
        """Normalize any accepted selection form into a Selection."""
        if isinstance(value, Selection):
            return value
        if value is None:
            return Selection()
        if isinstance(value, datetime):
            return Selection(explicit_date=value.date())
        if isinstance(value, date):
            return Selection(explicit_date=value)
        return Selection(
            range_token=coerce_range_token(value, self.settings.unknown_range_policy)
        )

    def resolve(
        self,
        selection: SelectionLike = None,
        include_previous: bool = False,
        now: Optional[datetime] = None,
    ) -> ResolvedRange:
        """
        Resolve a selection into concrete boundaries.

        Args:
            selection: Selection, RangeToken, token string, or explicit date
            include_previous: Also compute the comparison period
            now: Override the clock for this call

        Returns:
            ResolvedRange with period and, if requested, previous period
        """
        selection = self.selection_for(selection)
        now = now or self.now()

        if selection.explicit_date is not None:
            day = selection.explicit_date
            period = Period.for_days(day, day)
            previous = Period.for_days(day - timedelta(days=1), day - timedelta(days=1))
        else:
            period, previous = self._resolve_token(selection.range_token, now)

        resolved = ResolvedRange(
            selection=selection,
            period=period,
            previous=previous if include_previous else None,
        )
        self.logger.debug(
            "range_resolved",
            token=selection.range_token.value,
            explicit_date=str(selection.explicit_date) if selection.explicit_date else None,
            period_start=period.start.isoformat(),
            period_end=period.end.isoformat(),
        )
        return resolved

    def resolve_growth(self, period: GrowthPeriod, now: Optional[datetime] = None) -> ResolvedRange:
        """Current calendar month or year with its predecessor."""
        token = RangeToken.THIS_YEAR if GrowthPeriod(period) == GrowthPeriod.YEAR else RangeToken.THIS_MONTH
        return self.resolve(token, include_previous=True, now=now)

    def filter(self, transactions: Iterable[Transaction], period: Period) -> list[Transaction]:
        """Transactions whose effective timestamp lies within [start, end]."""
        return [t for t in transactions if period.contains(t.timestamp)]

    def filter_selection(
        self,
        transactions: Iterable[Transaction],
        selection: SelectionLike = None,
        now: Optional[datetime] = None,
    ) -> list[Transaction]:
        return self.filter(transactions, self.resolve(selection, now=now).period)

    def _resolve_token(self, token: RangeToken, now: datetime) -> tuple[Period, Period]:
        today = now.date()
        one_day = timedelta(days=1)

        if token == RangeToken.TODAY:
            return Period.for_days(today, today), Period.for_days(today - one_day, today - one_day)

        if token == RangeToken.YESTERDAY:
            y = today - one_day
            return Period.for_days(y, y), Period.for_days(y - one_day, y - one_day)

        if token == RangeToken.THIS_WEEK:
            monday = cm.monday_of(today).date()
            prev_monday = monday - timedelta(days=7)
            return (
                Period.for_days(monday, today),
                Period.for_days(prev_monday, monday - one_day),
            )

        if token == RangeToken.LAST_WEEK:
            monday = cm.monday_of(today).date() - timedelta(days=7)
            prev_monday = monday - timedelta(days=7)
            return (
                Period.for_days(monday, monday + timedelta(days=6)),
                Period.for_days(prev_monday, monday - one_day),
            )

        if token in ROLLING_DAYS:
            n = ROLLING_DAYS[token]
            start = today - timedelta(days=n)
            return (
                Period.for_days(start, today),
                Period.for_days(start - timedelta(days=n), start - one_day),
            )

        if token in MONTH_TOKENS:
            offset = {
                RangeToken.THIS_MONTH: 0,
                RangeToken.LAST_MONTH: -1,
                RangeToken.LAST_2_MONTHS: -2,
            }[token]
            first = cm.add_months(today, offset)
            prev_first = cm.add_months(first, -1)
            return (
                Period.for_days(first, cm.end_of_month(first)),
                Period.for_days(prev_first, cm.end_of_month(prev_first)),
            )

        if token in QUARTER_TOKENS:
            first = cm.start_of_quarter(today)
            if token == RangeToken.LAST_QUARTER:
                first = cm.add_months(first, -3)
            prev_first = cm.add_months(first, -3)
            return (
                Period.for_days(first, cm.end_of_quarter(first)),
                Period.for_days(prev_first, cm.end_of_quarter(prev_first)),
            )

        if token in YEAR_TOKENS:
            first = cm.start_of_year(today)
            if token == RangeToken.LAST_YEAR:
                first = cm.add_months(first, -12)
            prev_first = cm.add_months(first, -12)
            return (
                Period.for_days(first, cm.end_of_year(first)),
                Period.for_days(prev_first, cm.end_of_year(prev_first)),
            )

        if token == RangeToken.ALL_TIME:
            return (
                Period(start=PERIOD_MIN, end=PERIOD_MAX),
                Period(start=PERIOD_MIN, end=max(PERIOD_MIN, now - ONE_MICROSECOND)),
            )

        raise UnknownRangeError(token)
