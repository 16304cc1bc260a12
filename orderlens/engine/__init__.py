"""
Analytics engine components.

- calendar_math: Monday-anchored weeks, month/quarter/year boundaries, labels
- clock: Injectable reference clock
- range_resolver: Range tokens / explicit dates to concrete periods
- bucketizer: Granularity-aware bucket series
- metrics_calculator: Growth, retention, rates, busiest periods, top-N
- forecast: Least-squares projection with zero-edge trimming
- facade: Entry points for the presentation layer

All components are pure and synchronous over immutable inputs.
"""

__all__ = [
    "AnalyticsFacade",
    "Bucketizer",
    "Clock",
    "DateRangeResolver",
    "FixedClock",
    "ForecastEngine",
    "MetricsCalculator",
    "SystemClock",
    "coerce_range_token",
]

from orderlens.engine.bucketizer import Bucketizer
from orderlens.engine.clock import Clock, FixedClock, SystemClock
from orderlens.engine.facade import AnalyticsFacade
from orderlens.engine.forecast import ForecastEngine
from orderlens.engine.metrics_calculator import MetricsCalculator
from orderlens.engine.range_resolver import DateRangeResolver, coerce_range_token
