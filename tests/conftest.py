"""
Pytest configuration and shared fixtures for the orderlens test suite.

All relative ranges are resolved against a pinned clock:
Saturday 2024-01-20 12:00 (the Monday of that week is 2024-01-15).
"""

from datetime import datetime
from typing import Optional

import pytest

from orderlens.config import Settings, get_settings
from orderlens.engine.bucketizer import Bucketizer
from orderlens.engine.clock import FixedClock
from orderlens.engine.facade import AnalyticsFacade
from orderlens.engine.forecast import ForecastEngine
from orderlens.engine.metrics_calculator import MetricsCalculator
from orderlens.engine.range_resolver import DateRangeResolver
from orderlens.models.transactions import LineItem, Transaction

REFERENCE_NOW = datetime(2024, 1, 20, 12, 0)

_counter = {"id": 0}


# ---------------------------------------------------------------------------
# Model factories, reusable across all test suites
# ---------------------------------------------------------------------------


def make_transaction(
    timestamp: Optional[datetime] = REFERENCE_NOW,
    amount: float = 100.0,
    customer_key: Optional[str] = None,
    payment_status: Optional[str] = "FullyPaid",
    **overrides,
) -> Transaction:
    """Factory function for creating test Transaction objects."""
    _counter["id"] += 1
    defaults = dict(
        id=_counter["id"],
        timestamp=timestamp,
        amount=amount,
        payment_status=payment_status,
        payment_method="Card",
        delivery_method="Delivery",
        discount=0.0,
        customer_key=customer_key,
        customer_name=customer_key.title() if customer_key else None,
        is_closed=True,
    )
    defaults.update(overrides)
    return Transaction(**defaults)


def make_item(name: str = "Jollof Rice", quantity: float = 1, price: float = 2500.0) -> LineItem:
    """Factory function for creating test LineItem objects."""
    return LineItem(name=name, quantity=quantity, price=price)


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, **overrides)


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Clears the settings cache before and after each test for isolation."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def clock():
    return FixedClock(REFERENCE_NOW)


@pytest.fixture
def resolver(clock, settings):
    return DateRangeResolver(clock=clock, settings=settings)


@pytest.fixture
def bucketizer(resolver):
    return Bucketizer(resolver)


@pytest.fixture
def calculator(resolver, settings):
    return MetricsCalculator(resolver, settings)


@pytest.fixture
def forecaster():
    return ForecastEngine()


@pytest.fixture
def facade(clock, settings):
    return AnalyticsFacade(clock=clock, settings=settings)


@pytest.fixture
def january_orders():
    """Three Friday orders in January 2024."""
    return [
        make_transaction(datetime(2024, 1, 5, 10, 0), 100.0, customer_key="ada@example.com"),
        make_transaction(datetime(2024, 1, 12, 13, 30), 200.0, customer_key="ben@example.com"),
        make_transaction(datetime(2024, 1, 19, 18, 45), 150.0, customer_key="ada@example.com"),
    ]
