"""Unit tests for AnalyticsFacade."""

from datetime import date, datetime

import pandas as pd
import pytest
import structlog
from structlog.testing import LogCapture

from orderlens.engine.facade import FRAME_COLUMNS
from orderlens.models.enums import GrowthMetric, GrowthPeriod, RangeToken
from orderlens.models.errors import UnknownRangeError
from tests.conftest import make_transaction


class TestSelectionsAndLabels:
    def test_range_label_for_token(self, facade):
        assert facade.range_label("last30Days") == "Last 30 Days"
        assert facade.range_label(None) == "All Time"

    def test_range_label_for_explicit_date(self, facade):
        assert facade.range_label(date(2024, 1, 5)) == "Jan 5, 2024"

    def test_selection_normalizes_tokens(self, facade):
        assert facade.selection("thisQuarter").range_token == RangeToken.THIS_QUARTER

    def test_unknown_token_rejected(self, facade, january_orders):
        with pytest.raises(UnknownRangeError):
            facade.revenue_over_time(january_orders, "lastDecade")

    def test_now_comes_from_clock(self, facade):
        assert facade.now() == datetime(2024, 1, 20, 12, 0)


class TestFiltering:
    def test_filter_transactions(self, facade, january_orders):
        assert facade.filter_transactions(january_orders, "lastWeek") == [january_orders[1]]

    def test_to_frame_sorted_by_timestamp(self, facade, january_orders):
        frame = facade.to_frame(list(reversed(january_orders)), "thisMonth")
        assert list(frame.columns) == FRAME_COLUMNS
        assert list(frame["amount"]) == [100.0, 200.0, 150.0]
        assert frame["timestamp"].is_monotonic_increasing

    def test_to_frame_empty(self, facade):
        frame = facade.to_frame([], "today")
        assert isinstance(frame, pd.DataFrame)
        assert frame.empty
        assert list(frame.columns) == FRAME_COLUMNS


class TestSeries:
    def test_revenue_and_orders_over_time(self, facade, january_orders):
        revenue = facade.revenue_over_time(january_orders, "thisMonth")
        orders = facade.orders_over_time(january_orders, "thisMonth")
        assert revenue.total == 450.0
        assert orders.total == 3
        assert revenue.labels == orders.labels

    def test_series_total_matches_filtered_revenue(self, facade, january_orders):
        for token in ("thisWeek", "last14Days", "last60Days", "thisQuarter", "thisYear"):
            series = facade.revenue_over_time(january_orders, token)
            expected = sum(t.amount for t in facade.filter_transactions(january_orders, token))
            assert series.total == pytest.approx(expected)

    def test_explicit_date_series_and_forecast(self, facade):
        orders = [
            make_transaction(datetime(2024, 1, 9, 23, 59), 40.0),
            make_transaction(datetime(2024, 1, 10, 0, 0), 100.0),
            make_transaction(datetime(2024, 1, 10, 13, 30), 250.0),
            make_transaction(datetime(2024, 1, 11, 0, 0), 70.0),
        ]
        revenue = facade.revenue_over_time(orders, date(2024, 1, 10))
        assert len(revenue.buckets) == 24
        assert revenue.total == 350.0
        assert facade.orders_over_time(orders, date(2024, 1, 10)).total == 2

        result = facade.forecast(orders, date(2024, 1, 10))
        assert len(result.history_values) == 24
        assert result.history_values[0] == 100.0
        assert result.history_values[13] == 250.0
        assert result.forecast_labels == ["00:00", "01:00", "02:00"]
        assert all(v >= 0 for v in result.forecast_values)

    def test_forecast_uses_configured_horizon(self, facade, january_orders):
        assert facade.forecast(january_orders, "thisMonth").horizon == 3
        assert facade.forecast(january_orders, "thisMonth", horizon=5).horizon == 5


class TestMetrics:
    def test_growth_and_retention_delegate(self, facade, january_orders):
        orders = january_orders + [
            make_transaction(datetime(2023, 12, 20), 300.0, customer_key="ada@example.com")
        ]
        assert facade.growth_rate(orders, GrowthPeriod.MONTH) == 50
        assert facade.retention_rate(orders, "thisMonth") == 100
        growth = facade.metric_growth(orders, "thisMonth", GrowthMetric.AOV)
        assert growth.current == 150.0
        assert growth.previous == 300.0
        assert growth.percent_change == -50


class TestDashboardSnapshot:
    def test_snapshot_for_this_month(self, facade, january_orders):
        snap = facade.dashboard_snapshot(january_orders, "thisMonth")
        assert snap.range_label == "This Month"
        assert snap.total_revenue == 450.0
        assert snap.total_orders == 3
        assert snap.unique_customers == 2
        assert snap.average_order_value == 150.0
        assert snap.success_rate == 100
        assert snap.completion_rate == 100
        assert snap.discount_utilization == 0
        assert (snap.completed_orders, snap.pending_orders) == (3, 0)
        assert snap.retention_rate == 0
        assert snap.revenue_growth.percent_change is None
        assert snap.busiest_day == "Friday"
        assert snap.busiest_hour == "10:00"
        assert snap.busiest_month == "January"
        assert (snap.delivery_split.delivery, snap.delivery_split.pickup) == (100, 0)
        assert (snap.revenue_split.first_time_percent, snap.revenue_split.repeat_percent) == (67, 33)
        assert [c.key for c in snap.top_customers] == ["ada@example.com", "ben@example.com"]
        assert [(m.name, m.total) for m in snap.payment_methods] == [("Card", 450.0)]

    def test_snapshot_of_empty_window(self, facade):
        snap = facade.dashboard_snapshot([], "yesterday")
        assert snap.total_revenue == 0
        assert snap.average_order_value == 0.0
        assert snap.busiest_day is None
        assert snap.top_customers == []

    def test_snapshot_respects_top_n(self, facade, january_orders):
        snap = facade.dashboard_snapshot(january_orders, "thisMonth", top_n=1)
        assert len(snap.top_customers) == 1

    def test_snapshot_with_zero_top_n(self, facade, january_orders):
        snap = facade.dashboard_snapshot(january_orders, "thisMonth", top_n=0)
        assert snap.top_customers == []
        assert snap.total_orders == 3

    def test_snapshot_events_carry_selection(self, facade, january_orders):
        capture = LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
        try:
            facade.dashboard_snapshot(january_orders, "thisMonth")
        finally:
            structlog.reset_defaults()
        built = [e for e in capture.entries if e["event"] == "dashboard_snapshot_built"]
        assert built[0]["selection"] == "This Month"
        assert "selection" not in structlog.contextvars.get_contextvars()


def test_components_log_through_instance_loggers(facade):
    for component in (facade, facade.resolver, facade.bucketizer, facade.metrics, facade.forecaster):
        assert component.logger is not None
