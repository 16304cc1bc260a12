"""
Enumeration types for the order analytics core.

All enums inherit from str so values serialize directly to JSON and
compare equal to the raw tokens the presentation layer sends.
"""

from enum import Enum


class RangeToken(str, Enum):
    """
    Named reporting periods resolved against a reference clock.

    Values match the tokens used by the dashboard's range selector.
    """

    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "thisWeek"
    LAST_WEEK = "lastWeek"
    LAST_7_DAYS = "last7Days"
    LAST_14_DAYS = "last14Days"
    LAST_30_DAYS = "last30Days"
    LAST_60_DAYS = "last60Days"
    LAST_90_DAYS = "last90Days"
    LAST_2_MONTHS = "last2Months"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    THIS_QUARTER = "thisQuarter"
    LAST_QUARTER = "lastQuarter"
    THIS_YEAR = "thisYear"
    LAST_YEAR = "lastYear"
    ALL_TIME = "allTime"

    @property
    def label(self) -> str:
        """Human display name, e.g. 'Last 30 Days'."""
        return RANGE_LABELS[self]


RANGE_LABELS = {
    RangeToken.TODAY: "Today",
    RangeToken.YESTERDAY: "Yesterday",
    RangeToken.THIS_WEEK: "This Week",
    RangeToken.LAST_WEEK: "Last Week",
    RangeToken.LAST_7_DAYS: "Last 7 Days",
    RangeToken.LAST_14_DAYS: "Last 14 Days",
    RangeToken.LAST_30_DAYS: "Last 30 Days",
    RangeToken.LAST_60_DAYS: "Last 60 Days",
    RangeToken.LAST_90_DAYS: "Last 90 Days",
    RangeToken.LAST_2_MONTHS: "Last 2 Months",
    RangeToken.THIS_MONTH: "This Month",
    RangeToken.LAST_MONTH: "Last Month",
    RangeToken.THIS_QUARTER: "This Quarter",
    RangeToken.LAST_QUARTER: "Last Quarter",
    RangeToken.THIS_YEAR: "This Year",
    RangeToken.LAST_YEAR: "Last Year",
    RangeToken.ALL_TIME: "All Time",
}


class Granularity(str, Enum):
    """Bucket width chosen from the resolved range."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Projection(str, Enum):
    """Numeric projection aggregated per bucket or group."""

    SUM_AMOUNT = "sum_amount"
    COUNT = "count"


class GrowthPeriod(str, Enum):
    """Calendar comparison used by the headline growth rate."""

    MONTH = "month"
    YEAR = "year"


class GrowthMetric(str, Enum):
    """Metrics supported by period-over-period comparison."""

    REVENUE = "revenue"
    ORDERS = "orders"
    AOV = "aov"


class GroupBy(str, Enum):
    """Caller-selectable grouping keys for top-N views and breakdowns."""

    CUSTOMER = "customer"
    PAYMENT_METHOD = "payment_method"
    DELIVERY_METHOD = "delivery_method"


class DeliveryMethod(str, Enum):
    """Fulfilment channels recognised by the delivery/pickup split."""

    DELIVERY = "Delivery"
    PICKUP = "Pickup"
