"""
Forecast Engine: least-squares projection of bucketed series.

Fits y = slope * i + intercept over bucket index i = 0..n-1 using the
closed-form ordinary least squares estimates, then projects `horizon`
further buckets. Projections are rounded and clamped at zero: revenue and
order counts cannot go negative.

Wide, ragged ranges (thisYear, allTime) have leading/trailing all-zero
buckets stripped before fitting so that months outside the data's coverage
do not drag the slope toward zero.
"""

from datetime import datetime
from typing import Optional, Sequence

import numpy as np
import structlog
from scipy import stats

from orderlens.engine.bucketizer import following_buckets, next_bucket_start
from orderlens.models.enums import RangeToken
from orderlens.models.series import BucketSeries, ForecastResult
from orderlens.utils.numbers import round_half_up

ZERO_TRIM_TOKENS = frozenset({RangeToken.THIS_YEAR, RangeToken.ALL_TIME})


def fit_line(values: Sequence[float]) -> Optional[tuple[float, float]]:
    """
    Closed-form OLS over index vs. value.

    slope = (nΣxy − ΣxΣy) / (nΣx² − (Σx)²), intercept = (Σy − slope·Σx) / n

    Returns:
        (slope, intercept), or None with fewer than two points
    """
    n = len(values)
    if n < 2:
        return None
    y = np.asarray(values, dtype=np.float64)
    x = np.arange(n, dtype=np.float64)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_xx = (x * x).sum()
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x**2)
    intercept = (sum_y - slope * sum_x) / n
    return float(slope), float(intercept)


def r_squared(values: Sequence[float]) -> Optional[float]:
    """Coefficient of determination; None when undefined."""
    if len(values) < 3 or len(set(values)) < 2:
        return None
    result = stats.linregress(np.arange(len(values), dtype=np.float64), values)
    return float(result.rvalue**2)


def zero_edge_bounds(values: Sequence[float]) -> tuple[int, int]:
    """Slice bounds [lo, hi) that drop leading and trailing zeros."""
    lo = 0
    hi = len(values)
    while lo < hi and values[lo] == 0:
        lo += 1
    while hi > lo and values[hi - 1] == 0:
        hi -= 1
    return lo, hi


class ForecastEngine:
    """
    Projects bucketed history forward.

    Example:
        >>> ForecastEngine().forecast([100, 200, 300], 3)
        [400, 500, 600]
    """

    def __init__(self):
        self.logger = structlog.get_logger()

    def forecast(self, history_values: Sequence[float], horizon: int) -> list[float]:
        """
        Project `horizon` values past the end of the history.

        Fewer than two points cannot define a trend: the single value (or 0)
        is repeated instead.
        """
        if horizon < 0:
            raise ValueError("Forecast horizon must be non-negative")
        n = len(history_values)
        if n == 0:
            return [0] * horizon
        line = fit_line(history_values)
        if line is None:
            return [max(0, history_values[0])] * horizon
        slope, intercept = line
        return [max(0, round_half_up(slope * i + intercept)) for i in range(n, n + horizon)]

    def forecast_series(
        self,
        series: BucketSeries,
        horizon: int,
        now: datetime,
    ) -> ForecastResult:
        """
        Forecast a bucket series from its actual (non-future) buckets.

        Args:
            series: Series produced by Bucketizer.build_series
            horizon: Number of buckets to project
            now: Reference instant anchoring an empty history

        Returns:
            ForecastResult with aligned history and forecast labels/values
        """
        if series.last_actual_index is None:
            history = []
        else:
            history = series.buckets[: series.last_actual_index + 1]

        selection = series.selection
        if not selection.is_explicit and selection.range_token in ZERO_TRIM_TOKENS:
            lo, hi = zero_edge_bounds([b.value for b in history])
            history = history[lo:hi]
        labels = [b.label for b in history]
        values = [b.value for b in history]

        forecast_values = self.forecast(values, horizon)
        anchor = history[-1].end if history else next_bucket_start(series.granularity, now)
        forecast_labels = [b.label for b in following_buckets(series.granularity, anchor, horizon)]

        line = fit_line(values)
        result = ForecastResult(
            granularity=series.granularity,
            history_labels=labels,
            history_values=values,
            forecast_labels=forecast_labels,
            forecast_values=forecast_values,
            slope=line[0] if line else None,
            intercept=line[1] if line else None,
            r_squared=r_squared(values),
        )
        self.logger.debug(
            "forecast_computed",
            granularity=series.granularity.value,
            history_points=len(values),
            horizon=horizon,
            slope=result.slope,
        )
        return result
