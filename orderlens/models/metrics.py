"""
Result models for scalar and grouped metrics.

Percentages are whole numbers; None means "undefined" (e.g. no baseline),
which presentation must render differently from 0.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .series import Selection


class GrowthComparison(BaseModel):
    """A metric in the current period next to its comparison period."""

    current: float
    previous: float
    percent_change: Optional[int] = Field(
        default=None, description="Whole-percent change; None when previous is 0"
    )


class GroupTotal(BaseModel):
    """Aggregate for one group in a top-N view or breakdown."""

    key: str
    name: str
    total: float
    count: int


class ItemTotal(BaseModel):
    """Line-item popularity aggregate."""

    name: str
    quantity: float
    revenue: float


class NamedValue(BaseModel):
    """A labeled count for small categorical distributions."""

    name: str
    value: float


class RevenueSplit(BaseModel):
    """First-time vs. repeat revenue within a window."""

    first_time_revenue: float = 0.0
    repeat_revenue: float = 0.0
    first_time_percent: int = 0
    repeat_percent: int = 0


class DeliverySplit(BaseModel):
    """Share of orders per fulfilment channel, each rounded independently."""

    delivery: int = 0
    pickup: int = 0


class DashboardSnapshot(BaseModel):
    """Every summary figure for one selection, from one filtered subset."""

    selection: Selection
    range_label: str
    total_revenue: float
    total_orders: int
    unique_customers: int
    average_order_value: float
    success_rate: int
    completion_rate: int
    discount_utilization: int
    pending_orders: int
    completed_orders: int
    retention_rate: int
    revenue_growth: GrowthComparison
    busiest_day: Optional[str] = None
    busiest_hour: Optional[str] = None
    busiest_month: Optional[str] = None
    delivery_split: DeliverySplit
    revenue_split: RevenueSplit
    top_customers: list[GroupTotal] = Field(default_factory=list)
    payment_methods: list[GroupTotal] = Field(default_factory=list)
    delivery_methods: list[GroupTotal] = Field(default_factory=list)
