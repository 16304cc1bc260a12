"""
Metrics Calculator: scalar and grouped metrics over a selection.

Every public method filters the collection through the DateRangeResolver
(start <= timestamp <= end) and then applies one of the pure functions
below to the filtered subset. The pure functions are exposed so callers
that need many metrics for one selection can filter once and reuse the
subset.

Empty-input conventions:
- totals, averages, and rates are 0 on an empty subset
- growth percentages are None when the baseline is 0
- retention is 0 when the previous period had no customers
- busiest day/hour/month are None on an empty subset
"""

import calendar
from collections import defaultdict
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

import structlog

from orderlens.config import Settings, get_settings
from orderlens.engine import calendar_math as cm
from orderlens.engine.range_resolver import DateRangeResolver, SelectionLike
from orderlens.models.enums import (
    DeliveryMethod,
    GroupBy,
    GrowthMetric,
    GrowthPeriod,
    Projection,
)
from orderlens.models.metrics import (
    DeliverySplit,
    GroupTotal,
    GrowthComparison,
    ItemTotal,
    NamedValue,
    RevenueSplit,
)
from orderlens.models.series import Period
from orderlens.models.transactions import Transaction
from orderlens.utils.numbers import percent, round_half_up

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_NAMES = list(calendar.month_name)[1:]
UNKNOWN_GROUP = "Unknown"


# ---------------------------------------------------------------------------
# Pure functions over an already-filtered subset
# ---------------------------------------------------------------------------


def project(transactions: Sequence[Transaction], projection: Projection) -> float:
    if Projection(projection) == Projection.COUNT:
        return float(len(transactions))
    return sum(t.amount for t in transactions)


def total_revenue_of(transactions: Sequence[Transaction]) -> float:
    return sum(t.amount for t in transactions)


def average_order_value_of(transactions: Sequence[Transaction]) -> float:
    if not transactions:
        return 0.0
    return total_revenue_of(transactions) / len(transactions)


def rate_of(transactions: Sequence[Transaction], predicate: Callable[[Transaction], bool]) -> int:
    """Whole-percent share of transactions matching predicate; 0 when empty."""
    if not transactions:
        return 0
    return percent(sum(1 for t in transactions if predicate(t)), len(transactions))


def customer_keys_of(transactions: Iterable[Transaction]) -> set[str]:
    return {t.customer_key for t in transactions if t.customer_key}


def percent_change(current: float, previous: float) -> Optional[int]:
    """Whole-percent change; None when the baseline is exactly 0."""
    if previous == 0:
        return None
    return round_half_up((current - previous) / previous * 100)


def histogram(transactions: Iterable[Transaction], field: str) -> list[int]:
    """
    Counts per calendar field value.

    field: "hour" (0-23), "day" (0=Sunday..6=Saturday), "month" (0=January..11)
    """
    sizes = {"hour": 24, "day": 7, "month": 12}
    counts = [0] * sizes[field]
    for t in transactions:
        ts = t.timestamp
        if ts is None:
            continue
        if field == "hour":
            counts[ts.hour] += 1
        elif field == "day":
            counts[cm.day_of_week_sunday_first(ts)] += 1
        else:
            counts[ts.month - 1] += 1
    return counts


def busiest_index(counts: Sequence[int]) -> Optional[int]:
    """First index holding the maximum; None when every count is 0."""
    best = None
    for i, c in enumerate(counts):
        if c > 0 and (best is None or c > counts[best]):
            best = i
    return best


def busiest_day_of(transactions: Iterable[Transaction]) -> Optional[str]:
    idx = busiest_index(histogram(transactions, "day"))
    return DAY_NAMES[idx] if idx is not None else None


def busiest_hour_of(transactions: Iterable[Transaction]) -> Optional[str]:
    idx = busiest_index(histogram(transactions, "hour"))
    return cm.hour_label(idx) if idx is not None else None


def busiest_month_of(transactions: Iterable[Transaction]) -> Optional[str]:
    idx = busiest_index(histogram(transactions, "month"))
    return MONTH_NAMES[idx] if idx is not None else None


def _group_key(t: Transaction, group_by: GroupBy) -> Optional[tuple[str, str]]:
    if group_by == GroupBy.CUSTOMER:
        if not t.customer_key:
            return None
        return t.customer_key, t.customer_name or t.customer_key
    if group_by == GroupBy.PAYMENT_METHOD:
        name = t.payment_method or UNKNOWN_GROUP
    else:
        name = t.delivery_method or UNKNOWN_GROUP
    return name, name


def group_totals(
    transactions: Iterable[Transaction],
    group_by: GroupBy,
    projection: Projection = Projection.SUM_AMOUNT,
) -> list[GroupTotal]:
    """
    Per-group projection totals sorted descending; ties keep first-seen order.
    Transactions without a customer key are skipped for customer grouping.
    """
    group_by = GroupBy(group_by)
    names: dict[str, str] = {}
    totals: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for t in transactions:
        key = _group_key(t, group_by)
        if key is None:
            continue
        k, name = key
        names.setdefault(k, name)
        totals[k] += 1 if Projection(projection) == Projection.COUNT else t.amount
        counts[k] += 1
    groups = [
        GroupTotal(key=k, name=names[k], total=totals[k], count=counts[k]) for k in names
    ]
    groups.sort(key=lambda g: g.total, reverse=True)
    return groups


def top_customers_of(transactions: Iterable[Transaction], limit: int) -> list[GroupTotal]:
    """Top customers by revenue; non-positive totals are excluded."""
    groups = group_totals(transactions, GroupBy.CUSTOMER)
    return [g for g in groups if g.total > 0][:limit]


def breakdown_of(
    transactions: Iterable[Transaction],
    group_by: GroupBy,
    limit: Optional[int] = None,
) -> list[GroupTotal]:
    """Revenue per payment/delivery method; non-positive totals are kept."""
    groups = group_totals(transactions, group_by)
    return groups[:limit] if limit is not None else groups


def delivery_split_of(transactions: Sequence[Transaction]) -> DeliverySplit:
    if not transactions:
        return DeliverySplit()
    n = len(transactions)
    delivery = sum(1 for t in transactions if t.delivery_method == DeliveryMethod.DELIVERY.value)
    pickup = sum(1 for t in transactions if t.delivery_method == DeliveryMethod.PICKUP.value)
    return DeliverySplit(delivery=percent(delivery, n), pickup=percent(pickup, n))


def first_purchase_times(transactions: Iterable[Transaction]) -> dict[str, datetime]:
    """Earliest effective timestamp per customer across the given history."""
    first: dict[str, datetime] = {}
    for t in transactions:
        if not t.customer_key or t.timestamp is None:
            continue
        seen = first.get(t.customer_key)
        if seen is None or t.timestamp < seen:
            first[t.customer_key] = t.timestamp
    return first


def revenue_split_of(
    window: Iterable[Transaction], first_purchases: dict[str, datetime]
) -> RevenueSplit:
    """
    Attribute in-window revenue to first-time vs. repeat purchases.

    A transaction is first-time when its timestamp equals its customer's
    global first purchase; everything else in the window is repeat.
    """
    first_time = 0.0
    repeat = 0.0
    for t in window:
        key = t.customer_key
        if key and t.timestamp is not None and first_purchases.get(key) == t.timestamp:
            first_time += t.amount
        else:
            repeat += t.amount
    total = first_time + repeat
    return RevenueSplit(
        first_time_revenue=first_time,
        repeat_revenue=repeat,
        first_time_percent=percent(first_time, total),
        repeat_percent=percent(repeat, total),
    )


def time_of_day_of(transactions: Iterable[Transaction]) -> list[NamedValue]:
    """Morning 06-11, Afternoon 12-17, Evening otherwise."""
    slots = {"Morning": 0, "Afternoon": 0, "Evening": 0}
    for t in transactions:
        if t.timestamp is None:
            continue
        hour = t.timestamp.hour
        if 6 <= hour < 12:
            slots["Morning"] += 1
        elif 12 <= hour < 18:
            slots["Afternoon"] += 1
        else:
            slots["Evening"] += 1
    return [NamedValue(name=k, value=v) for k, v in slots.items()]


def week_of_month_of(transactions: Iterable[Transaction]) -> list[NamedValue]:
    """Week 1 = days 1-7, Week 2 = 8-14, Week 3 = 15-21, Week 4 = 22+."""
    weeks = {"Week 1": 0, "Week 2": 0, "Week 3": 0, "Week 4": 0}
    for t in transactions:
        if t.timestamp is None:
            continue
        day = t.timestamp.day
        index = 1 if day <= 7 else 2 if day <= 14 else 3 if day <= 21 else 4
        weeks[f"Week {index}"] += 1
    return [NamedValue(name=k, value=v) for k, v in weeks.items()]


def popular_items_of(transactions: Iterable[Transaction], limit: int) -> list[ItemTotal]:
    quantities: dict[str, float] = defaultdict(float)
    revenue: dict[str, float] = defaultdict(float)
    for t in transactions:
        for item in t.items:
            if not item.name:
                continue
            quantities[item.name] += item.quantity
            revenue[item.name] += item.revenue
    items = [ItemTotal(name=n, quantity=quantities[n], revenue=revenue[n]) for n in quantities]
    items.sort(key=lambda i: i.revenue, reverse=True)
    return items[:limit]


# ---------------------------------------------------------------------------
# Selection-aware calculator
# ---------------------------------------------------------------------------


class MetricsCalculator:
    """
    Computes dashboard metrics for a selection.

    Attributes:
        resolver: Range resolver (owns the clock)
        settings: Settings supplying the completed payment status

    Example:
        >>> calc = MetricsCalculator(resolver)
        >>> calc.retention_rate(transactions, "thisMonth")
        67
    """

    def __init__(
        self,
        resolver: Optional[DateRangeResolver] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.resolver = resolver or DateRangeResolver(settings=self.settings)
        self.logger = structlog.get_logger()

    def filter(
        self,
        transactions: Iterable[Transaction],
        selection: SelectionLike = None,
        now: Optional[datetime] = None,
    ) -> list[Transaction]:
        return self.resolver.filter_selection(transactions, selection, now=now)

    def is_completed(self, t: Transaction) -> bool:
        return t.payment_status == self.settings.completed_payment_status

    # Totals ---------------------------------------------------------------

    def total_revenue(self, transactions, selection: SelectionLike = None) -> float:
        return total_revenue_of(self.filter(transactions, selection))

    def total_orders(self, transactions, selection: SelectionLike = None) -> int:
        return len(self.filter(transactions, selection))

    def unique_customers(self, transactions, selection: SelectionLike = None) -> int:
        return len(customer_keys_of(self.filter(transactions, selection)))

    def average_order_value(self, transactions, selection: SelectionLike = None) -> float:
        return average_order_value_of(self.filter(transactions, selection))

    # Rates ----------------------------------------------------------------

    def success_rate(self, transactions, selection: SelectionLike = None) -> int:
        """Share of orders whose payment status is the completed status."""
        return rate_of(self.filter(transactions, selection), self.is_completed)

    def completion_rate(self, transactions, selection: SelectionLike = None) -> int:
        """Share of orders that have been closed out."""
        return rate_of(self.filter(transactions, selection), lambda t: t.is_closed)

    def discount_utilization(self, transactions, selection: SelectionLike = None) -> int:
        """Share of orders that used a discount."""
        return rate_of(self.filter(transactions, selection), lambda t: t.discount > 0)

    def completed_orders(self, transactions, selection: SelectionLike = None) -> int:
        return sum(1 for t in self.filter(transactions, selection) if self.is_completed(t))

    def pending_orders(self, transactions, selection: SelectionLike = None) -> int:
        return sum(1 for t in self.filter(transactions, selection) if not self.is_completed(t))

    # Growth and retention -------------------------------------------------

    def growth_rate(
        self,
        transactions: Sequence[Transaction],
        period: GrowthPeriod = GrowthPeriod.MONTH,
        projection: Projection = Projection.SUM_AMOUNT,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        """
        Month-over-month or year-over-year growth of the projection.

        Returns:
            round((current - previous) / previous * 100), or None when the
            previous total is 0
        """
        resolved = self.resolver.resolve_growth(GrowthPeriod(period), now=now)
        current = project(self.resolver.filter(transactions, resolved.period), projection)
        previous = project(self.resolver.filter(transactions, resolved.previous), projection)
        rate = percent_change(current, previous)
        self.logger.debug(
            "growth_rate_computed",
            period=GrowthPeriod(period).value,
            current=current,
            previous=previous,
            rate=rate,
        )
        return rate

    def metric_growth(
        self,
        transactions: Sequence[Transaction],
        selection: SelectionLike = None,
        metric: GrowthMetric = GrowthMetric.REVENUE,
        now: Optional[datetime] = None,
    ) -> GrowthComparison:
        """Compare a metric in the selection against its previous period."""
        resolved = self.resolver.resolve(selection, include_previous=True, now=now)
        current = self._metric_value(self.resolver.filter(transactions, resolved.period), metric)
        previous = self._metric_value(
            self.resolver.filter(transactions, resolved.previous), metric
        )
        return GrowthComparison(
            current=current,
            previous=previous,
            percent_change=percent_change(current, previous),
        )

    def retention_rate(
        self,
        transactions: Sequence[Transaction],
        selection: SelectionLike = None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Share of previous-period customers who are active again in the
        current period. 0 when the previous period had no customers.
        """
        resolved = self.resolver.resolve(selection, include_previous=True, now=now)
        return self._retention(transactions, resolved.period, resolved.previous)

    def _retention(
        self, transactions: Sequence[Transaction], current: Period, previous: Period
    ) -> int:
        previous_keys = customer_keys_of(self.resolver.filter(transactions, previous))
        if not previous_keys:
            return 0
        current_keys = customer_keys_of(self.resolver.filter(transactions, current))
        return percent(len(previous_keys & current_keys), len(previous_keys))

    @staticmethod
    def _metric_value(transactions: Sequence[Transaction], metric: GrowthMetric) -> float:
        metric = GrowthMetric(metric)
        if metric == GrowthMetric.REVENUE:
            return total_revenue_of(transactions)
        if metric == GrowthMetric.ORDERS:
            return float(len(transactions))
        return average_order_value_of(transactions)

    # Calendar distributions -----------------------------------------------

    def busiest_day(self, transactions, selection: SelectionLike = None) -> Optional[str]:
        return busiest_day_of(self.filter(transactions, selection))

    def busiest_hour(self, transactions, selection: SelectionLike = None) -> Optional[str]:
        return busiest_hour_of(self.filter(transactions, selection))

    def busiest_month(self, transactions, selection: SelectionLike = None) -> Optional[str]:
        return busiest_month_of(self.filter(transactions, selection))

    def orders_by_hour(self, transactions, selection: SelectionLike = None) -> list[int]:
        return histogram(self.filter(transactions, selection), "hour")

    def orders_by_day_of_week(self, transactions, selection: SelectionLike = None) -> list[int]:
        return histogram(self.filter(transactions, selection), "day")

    def orders_by_time_of_day(
        self, transactions, selection: SelectionLike = None
    ) -> list[NamedValue]:
        return time_of_day_of(self.filter(transactions, selection))

    def orders_by_week_of_month(
        self, transactions, selection: SelectionLike = None
    ) -> list[NamedValue]:
        return week_of_month_of(self.filter(transactions, selection))

    # Grouping ---------------------------------------------------------------

    def top_customers(
        self, transactions, selection: SelectionLike = None, limit: Optional[int] = None
    ) -> list[GroupTotal]:
        limit = limit if limit is not None else self.settings.top_n_limit
        return top_customers_of(self.filter(transactions, selection), limit)

    def breakdown(
        self,
        transactions,
        selection: SelectionLike = None,
        group_by: GroupBy = GroupBy.PAYMENT_METHOD,
        limit: Optional[int] = None,
    ) -> list[GroupTotal]:
        return breakdown_of(self.filter(transactions, selection), group_by, limit)

    def top_groups(
        self,
        transactions,
        selection: SelectionLike = None,
        group_by: GroupBy = GroupBy.CUSTOMER,
        limit: Optional[int] = None,
    ) -> list[GroupTotal]:
        """Top-N by caller-chosen key, with the per-key inclusion rule."""
        limit = limit if limit is not None else self.settings.top_n_limit
        if GroupBy(group_by) == GroupBy.CUSTOMER:
            return self.top_customers(transactions, selection, limit)
        return self.breakdown(transactions, selection, group_by, limit)

    def delivery_split(self, transactions, selection: SelectionLike = None) -> DeliverySplit:
        return delivery_split_of(self.filter(transactions, selection))

    def popular_items(
        self, transactions, selection: SelectionLike = None, limit: Optional[int] = None
    ) -> list[ItemTotal]:
        limit = limit if limit is not None else self.settings.top_n_limit
        return popular_items_of(self.filter(transactions, selection), limit)

    def first_time_vs_repeat(
        self, transactions: Sequence[Transaction], selection: SelectionLike = None
    ) -> RevenueSplit:
        """First purchases are judged against the full, unfiltered history."""
        return revenue_split_of(
            self.filter(transactions, selection), first_purchase_times(transactions)
        )
