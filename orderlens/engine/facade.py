"""
Analytics Facade: the entry points a presentation layer calls.

Stateless apart from its collaborators: every call receives the full
transaction collection and the current selection (range token or explicit
date). One clock instant is read per call so all parts of a composite
result agree on "now".
"""

from datetime import datetime
from typing import Optional, Sequence

import pandas as pd
import structlog

from orderlens.config import Settings, get_settings
from orderlens.engine.bucketizer import Bucketizer
from orderlens.engine.clock import Clock
from orderlens.engine.forecast import ForecastEngine
from orderlens.engine.metrics_calculator import (
    MetricsCalculator,
    average_order_value_of,
    breakdown_of,
    busiest_day_of,
    busiest_hour_of,
    busiest_month_of,
    customer_keys_of,
    delivery_split_of,
    first_purchase_times,
    rate_of,
    revenue_split_of,
    top_customers_of,
    total_revenue_of,
)
from orderlens.engine.range_resolver import DateRangeResolver, SelectionLike
from orderlens.models.enums import GroupBy, GrowthMetric, GrowthPeriod, Projection
from orderlens.models.metrics import DashboardSnapshot, GrowthComparison
from orderlens.models.series import BucketSeries, ForecastResult, ResolvedRange, Selection
from orderlens.models.transactions import Transaction
from orderlens.utils.logging import bind_selection

FRAME_COLUMNS = [
    "id",
    "timestamp",
    "amount",
    "payment_status",
    "payment_method",
    "delivery_method",
    "discount",
    "customer_key",
    "customer_name",
    "is_closed",
]


class AnalyticsFacade:
    """
    Orchestrates range resolution, bucketing, metrics, and forecasting.

    Attributes:
        resolver: Shared DateRangeResolver (owns the clock)
        bucketizer: Series builder
        metrics: Scalar/grouped metric calculator
        forecaster: Least-squares projection engine

    Example:
        >>> facade = AnalyticsFacade(clock=FixedClock(datetime(2024, 1, 20)))
        >>> facade.forecast(transactions, "thisMonth").forecast_labels
        ['Jan 21', 'Jan 22', 'Jan 23']
    """

    def __init__(self, clock: Optional[Clock] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.resolver = DateRangeResolver(clock=clock, settings=self.settings)
        self.bucketizer = Bucketizer(self.resolver)
        self.metrics = MetricsCalculator(self.resolver, self.settings)
        self.forecaster = ForecastEngine()
        self.logger = structlog.get_logger()

    # Ranges and filtering ---------------------------------------------------

    def selection(self, value: SelectionLike = None) -> Selection:
        return self.resolver.selection_for(value)

    def resolve(self, selection: SelectionLike = None, include_previous: bool = False) -> ResolvedRange:
        return self.resolver.resolve(selection, include_previous=include_previous)

    def range_label(self, selection: SelectionLike = None) -> str:
        return self.selection(selection).label

    def filter_transactions(
        self, transactions: Sequence[Transaction], selection: SelectionLike = None
    ) -> list[Transaction]:
        """Transactions inside the selection, for exporters and drill-downs."""
        return self.resolver.filter_selection(transactions, selection)

    def to_frame(
        self, transactions: Sequence[Transaction], selection: SelectionLike = None
    ) -> pd.DataFrame:
        """Filtered transactions as a DataFrame, one row per transaction."""
        rows = [
            t.model_dump(include=set(FRAME_COLUMNS))
            for t in self.filter_transactions(transactions, selection)
        ]
        frame = pd.DataFrame(rows, columns=FRAME_COLUMNS)
        if not frame.empty:
            frame = frame.sort_values("timestamp", kind="stable").reset_index(drop=True)
        return frame

    # Series -----------------------------------------------------------------

    def series(
        self,
        transactions: Sequence[Transaction],
        selection: SelectionLike = None,
        projection: Projection = Projection.SUM_AMOUNT,
    ) -> BucketSeries:
        return self.bucketizer.build_series(selection, list(transactions), projection)

    def revenue_over_time(
        self, transactions: Sequence[Transaction], selection: SelectionLike = None
    ) -> BucketSeries:
        return self.series(transactions, selection, Projection.SUM_AMOUNT)

    def orders_over_time(
        self, transactions: Sequence[Transaction], selection: SelectionLike = None
    ) -> BucketSeries:
        return self.series(transactions, selection, Projection.COUNT)

    def forecast(
        self,
        transactions: Sequence[Transaction],
        selection: SelectionLike = None,
        horizon: Optional[int] = None,
        projection: Projection = Projection.SUM_AMOUNT,
    ) -> ForecastResult:
        """Actual series for the selection plus its projected continuation."""
        now = self.resolver.now()
        horizon = horizon if horizon is not None else self.settings.forecast_horizon
        with bind_selection(self.range_label(selection)):
            series = self.bucketizer.build_series(
                selection, list(transactions), projection, now=now
            )
            return self.forecaster.forecast_series(series, horizon, now)

    # Metrics ------------------------------------------------------------------

    def growth_rate(
        self,
        transactions: Sequence[Transaction],
        period: GrowthPeriod = GrowthPeriod.MONTH,
        projection: Projection = Projection.SUM_AMOUNT,
    ) -> Optional[int]:
        return self.metrics.growth_rate(transactions, period, projection)

    def metric_growth(
        self,
        transactions: Sequence[Transaction],
        selection: SelectionLike = None,
        metric: GrowthMetric = GrowthMetric.REVENUE,
    ) -> GrowthComparison:
        return self.metrics.metric_growth(transactions, selection, metric)

    def retention_rate(
        self, transactions: Sequence[Transaction], selection: SelectionLike = None
    ) -> int:
        return self.metrics.retention_rate(transactions, selection)

    def dashboard_snapshot(
        self,
        transactions: Sequence[Transaction],
        selection: SelectionLike = None,
        top_n: Optional[int] = None,
    ) -> DashboardSnapshot:
        """
        Every summary figure for one selection.

        The collection is filtered once and the subset shared across all
        metrics; comparison-period metrics filter their own periods.
        """
        now = self.resolver.now()
        top_n = top_n if top_n is not None else self.settings.top_n_limit
        resolved = self.resolver.resolve(selection, include_previous=True, now=now)
        with bind_selection(resolved.selection.label):
            window = self.resolver.filter(transactions, resolved.period)
            is_completed = self.metrics.is_completed

            snapshot = DashboardSnapshot(
                selection=resolved.selection,
                range_label=resolved.selection.label,
                total_revenue=total_revenue_of(window),
                total_orders=len(window),
                unique_customers=len(customer_keys_of(window)),
                average_order_value=average_order_value_of(window),
                success_rate=rate_of(window, is_completed),
                completion_rate=rate_of(window, lambda t: t.is_closed),
                discount_utilization=rate_of(window, lambda t: t.discount > 0),
                pending_orders=sum(1 for t in window if not is_completed(t)),
                completed_orders=sum(1 for t in window if is_completed(t)),
                retention_rate=self.metrics.retention_rate(
                    transactions, resolved.selection, now=now
                ),
                revenue_growth=self.metrics.metric_growth(
                    transactions, resolved.selection, GrowthMetric.REVENUE, now=now
                ),
                busiest_day=busiest_day_of(window),
                busiest_hour=busiest_hour_of(window),
                busiest_month=busiest_month_of(window),
                delivery_split=delivery_split_of(window),
                revenue_split=revenue_split_of(window, first_purchase_times(transactions)),
                top_customers=top_customers_of(window, top_n),
                payment_methods=breakdown_of(window, GroupBy.PAYMENT_METHOD),
                delivery_methods=breakdown_of(window, GroupBy.DELIVERY_METHOD),
            )
            self.logger.info(
                "dashboard_snapshot_built",
                transactions_total=len(transactions),
                transactions_in_window=len(window),
            )
            return snapshot

    def now(self) -> datetime:
        return self.resolver.now()
