"""Unit tests for the least-squares forecast."""

from datetime import datetime

import pytest

from orderlens.engine.forecast import (
    ForecastEngine,
    fit_line,
    r_squared,
    zero_edge_bounds,
)
from orderlens.models.enums import Granularity, RangeToken
from orderlens.models.series import Bucket, BucketSeries, Selection
from tests.conftest import REFERENCE_NOW, make_transaction


class TestFitLine:
    def test_perfect_line(self):
        slope, intercept = fit_line([100, 200, 300])
        assert slope == pytest.approx(100.0)
        assert intercept == pytest.approx(100.0)

    def test_needs_two_points(self):
        assert fit_line([]) is None
        assert fit_line([5]) is None

    def test_flat_series_has_zero_slope(self):
        slope, intercept = fit_line([4, 4, 4, 4])
        assert slope == pytest.approx(0.0)
        assert intercept == pytest.approx(4.0)


class TestRSquared:
    def test_perfect_fit(self):
        assert r_squared([1, 2, 3, 4]) == pytest.approx(1.0)

    def test_undefined_for_constant_or_short_series(self):
        assert r_squared([3, 3, 3]) is None
        assert r_squared([1, 2]) is None


class TestForecast:
    def test_linear_trend_continues(self, forecaster):
        assert forecaster.forecast([100, 200, 300], 3) == [400, 500, 600]

    def test_declining_trend_clamps_at_zero(self, forecaster):
        assert forecaster.forecast([300, 200, 100], 3) == [0, 0, 0]

    def test_empty_history_forecasts_zeros(self, forecaster):
        assert forecaster.forecast([], 2) == [0, 0]

    def test_single_point_repeats(self, forecaster):
        assert forecaster.forecast([42.5], 3) == [42.5, 42.5, 42.5]

    def test_half_rounds_up(self, forecaster):
        # slope 1, intercept 0.5 -> next values 2.5, 3.5
        assert forecaster.forecast([0.5, 1.5], 2) == [3, 4]

    def test_zero_horizon(self, forecaster):
        assert forecaster.forecast([1, 2, 3], 0) == []

    def test_negative_horizon_rejected(self, forecaster):
        with pytest.raises(ValueError):
            forecaster.forecast([1, 2], -1)


class TestZeroEdges:
    def test_bounds(self):
        assert zero_edge_bounds([0, 0, 5, 0, 7, 0]) == (2, 5)
        assert zero_edge_bounds([0, 0]) == (0, 0)

    def test_interior_zeros_kept(self):
        values = [0, 3, 0, 4]
        lo, hi = zero_edge_bounds(values)
        assert values[lo:hi] == [3, 0, 4]


def _series(token, values, start=datetime(2024, 1, 1), last_actual=None):
    buckets = []
    for i, v in enumerate(values):
        day = start.replace(day=start.day + i)
        buckets.append(
            Bucket(label=f"Jan {day.day}", start=day, end=day.replace(day=day.day + 1), value=v)
        )
    return BucketSeries(
        selection=Selection(range_token=token),
        granularity=Granularity.DAY,
        buckets=buckets,
        last_actual_index=len(values) - 1 if last_actual is None else last_actual,
    )


class TestForecastSeries:
    def test_history_stops_at_last_actual_bucket(self, forecaster):
        series = _series(RangeToken.THIS_MONTH, [10, 20, 30, 0, 0], last_actual=2)
        result = forecaster.forecast_series(series, 2, REFERENCE_NOW)
        assert result.history_values == [10, 20, 30]
        assert result.forecast_labels == ["Jan 4", "Jan 5"]
        assert result.forecast_values == [40, 50]

    def test_zero_edges_not_trimmed_for_month_ranges(self, forecaster):
        series = _series(RangeToken.THIS_MONTH, [0, 10, 20])
        result = forecaster.forecast_series(series, 1, REFERENCE_NOW)
        assert result.history_values == [0, 10, 20]

    def test_zero_edges_trimmed_for_this_year(self, forecaster):
        series = _series(RangeToken.THIS_YEAR, [0, 10, 20, 0])
        result = forecaster.forecast_series(series, 1, REFERENCE_NOW)
        assert result.history_labels == ["Jan 2", "Jan 3"]
        assert result.forecast_labels == ["Jan 4"]
        assert result.forecast_values == [30]

    def test_empty_history_anchors_on_clock(self, forecaster):
        series = BucketSeries(
            selection=Selection(range_token=RangeToken.ALL_TIME),
            granularity=Granularity.MONTH,
        )
        result = forecaster.forecast_series(series, 2, REFERENCE_NOW)
        assert result.history_values == []
        assert result.forecast_labels == ["Feb 2024", "Mar 2024"]
        assert result.forecast_values == [0, 0]
        assert result.slope is None


class TestForecastFromBuckets:
    def test_today_forecast_continues_after_current_hour(self, facade):
        orders = [make_transaction(datetime(2024, 1, 20, h, 5), 10.0 * h) for h in (9, 10, 11)]
        result = facade.forecast(orders, "today")
        assert len(result.history_values) == 13
        assert result.forecast_labels == ["13:00", "14:00", "15:00"]

    def test_this_month_forecast_labels(self, facade, january_orders):
        result = facade.forecast(january_orders, "thisMonth")
        assert result.forecast_labels == ["Jan 21", "Jan 22", "Jan 23"]
        assert len(result.history_values) == 20

    def test_last_60_days_forecast_labels(self, facade, january_orders):
        result = facade.forecast(january_orders, "last60Days", horizon=2)
        assert result.forecast_labels == ["Jan 21 - Jan 27", "Jan 28 - Feb 3"]


def test_default_engine_has_logger():
    assert ForecastEngine().logger is not None
