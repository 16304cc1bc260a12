"""
Pydantic v2 data models for the order analytics core.

Model Organization:
    - enums: Range tokens, granularities, projections, grouping keys
    - errors: Exception hierarchy
    - transactions: Immutable Transaction records and customer identity
    - series: Period, Selection, ResolvedRange, Bucket, BucketSeries, ForecastResult
    - metrics: Growth, grouping, split, and dashboard snapshot results
    - quality: Ingestion data quality report

Usage:
    >>> from orderlens.models import RangeToken, Selection
    >>> Selection(range_token=RangeToken.LAST_30_DAYS).label
    'Last 30 Days'
"""

from .enums import (
    DeliveryMethod,
    Granularity,
    GroupBy,
    GrowthMetric,
    GrowthPeriod,
    Projection,
    RANGE_LABELS,
    RangeToken,
)
from .errors import IngestionError, OrderLensError, UnknownRangeError
from .metrics import (
    DashboardSnapshot,
    DeliverySplit,
    GroupTotal,
    GrowthComparison,
    ItemTotal,
    NamedValue,
    RevenueSplit,
)
from .quality import DataQualityReport, QualityIssue
from .series import (
    PERIOD_MAX,
    PERIOD_MIN,
    Bucket,
    BucketSeries,
    ForecastResult,
    Period,
    ResolvedRange,
    Selection,
)
from .transactions import CustomerIdentity, LineItem, Transaction

__all__ = [
    # Enums
    "DeliveryMethod",
    "Granularity",
    "GroupBy",
    "GrowthMetric",
    "GrowthPeriod",
    "Projection",
    "RANGE_LABELS",
    "RangeToken",
    # Errors
    "IngestionError",
    "OrderLensError",
    "UnknownRangeError",
    # Metrics
    "DashboardSnapshot",
    "DeliverySplit",
    "GroupTotal",
    "GrowthComparison",
    "ItemTotal",
    "NamedValue",
    "RevenueSplit",
    # Quality
    "DataQualityReport",
    "QualityIssue",
    # Series
    "PERIOD_MAX",
    "PERIOD_MIN",
    "Bucket",
    "BucketSeries",
    "ForecastResult",
    "Period",
    "ResolvedRange",
    "Selection",
    # Transactions
    "CustomerIdentity",
    "LineItem",
    "Transaction",
]
