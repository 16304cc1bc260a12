"""
Unit tests for Bucketizer.

Tests bucket granularity, labels, tiling, and aggregation against the
pinned reference clock (Saturday 2024-01-20 12:00).
"""

from datetime import date, datetime, timedelta

import pytest

from orderlens.engine.bucketizer import (
    Bucketizer,
    following_buckets,
    granularity_for,
    next_bucket_start,
    weekly_buckets,
)
from orderlens.models.enums import Granularity, Projection, RangeToken
from orderlens.models.series import Selection
from tests.conftest import make_transaction


class TestGranularity:
    @pytest.mark.parametrize(
        "token,expected",
        [
            (RangeToken.TODAY, Granularity.HOUR),
            (RangeToken.YESTERDAY, Granularity.HOUR),
            (RangeToken.THIS_WEEK, Granularity.DAY),
            (RangeToken.LAST_7_DAYS, Granularity.DAY),
            (RangeToken.LAST_30_DAYS, Granularity.DAY),
            (RangeToken.THIS_MONTH, Granularity.DAY),
            (RangeToken.LAST_2_MONTHS, Granularity.DAY),
            (RangeToken.LAST_60_DAYS, Granularity.WEEK),
            (RangeToken.LAST_90_DAYS, Granularity.WEEK),
            (RangeToken.THIS_QUARTER, Granularity.MONTH),
            (RangeToken.LAST_YEAR, Granularity.MONTH),
            (RangeToken.ALL_TIME, Granularity.MONTH),
        ],
    )
    def test_granularity_for_token(self, token, expected):
        assert granularity_for(Selection(range_token=token)) == expected

    def test_explicit_date_is_hourly(self):
        selection = Selection(range_token=RangeToken.THIS_YEAR, explicit_date=date(2024, 1, 3))
        assert granularity_for(selection) == Granularity.HOUR


class TestBucketShapes:
    def test_today_has_24_hourly_buckets(self, bucketizer):
        series = bucketizer.build_series("today", [])
        assert len(series.buckets) == 24
        assert series.labels[0] == "00:00"
        assert series.labels[-1] == "23:00"
        assert series.last_actual_index == 12

    def test_this_week_runs_monday_through_today(self, bucketizer):
        series = bucketizer.build_series("thisWeek", [])
        assert series.labels == ["Jan 15", "Jan 16", "Jan 17", "Jan 18", "Jan 19", "Jan 20"]

    def test_last_7_days_has_eight_daily_buckets(self, bucketizer):
        series = bucketizer.build_series("last7Days", [])
        assert len(series.buckets) == 8
        assert series.labels[0] == "Jan 13"
        assert series.labels[-1] == "Jan 20"

    def test_this_month_covers_every_day(self, bucketizer):
        series = bucketizer.build_series("thisMonth", [])
        assert len(series.buckets) == 31
        assert series.last_actual_index == 19
        assert series.labels[19] == "Jan 20"

    def test_last_60_days_weekly_blocks_end_today(self, bucketizer):
        series = bucketizer.build_series("last60Days", [])
        assert len(series.buckets) == 9
        assert series.labels[0] == "Nov 21 - Nov 25"
        assert series.labels[-1] == "Jan 14 - Jan 20"

    def test_last_90_days_is_thirteen_full_weeks(self, bucketizer):
        series = bucketizer.build_series("last90Days", [])
        assert len(series.buckets) == 13
        assert all(b.end - b.start == timedelta(days=7) for b in series.buckets)

    def test_this_quarter_and_year_are_monthly(self, bucketizer):
        assert bucketizer.build_series("thisQuarter", []).labels == ["Jan 2024", "Feb 2024", "Mar 2024"]
        year = bucketizer.build_series("thisYear", [])
        assert len(year.buckets) == 12
        assert year.labels[-1] == "Dec 2024"
        assert year.last_actual_index == 0

    def test_explicit_date_gives_hours_of_that_day(self, bucketizer):
        series = bucketizer.build_series(date(2023, 6, 2), [])
        assert len(series.buckets) == 24
        assert series.buckets[0].start == datetime(2023, 6, 2)
        assert series.last_actual_index == 23

    def test_explicit_date_buckets_only_that_days_orders(self, bucketizer):
        orders = [
            make_transaction(datetime(2024, 1, 9, 23, 59), 40.0),
            make_transaction(datetime(2024, 1, 10, 0, 0), 100.0),
            make_transaction(datetime(2024, 1, 10, 13, 30), 250.0),
            make_transaction(datetime(2024, 1, 11, 0, 0), 70.0),
        ]
        revenue = bucketizer.build_series(date(2024, 1, 10), orders)
        expected = [0.0] * 24
        expected[0] = 100.0
        expected[13] = 250.0
        assert revenue.values == expected
        assert revenue.labels[0] == "00:00"
        assert revenue.labels[13] == "13:00"
        assert revenue.total == 350.0

        counts = bucketizer.build_series(date(2024, 1, 10), orders, Projection.COUNT)
        assert counts.total == 2
        assert [i for i, v in enumerate(counts.values) if v] == [0, 13]

    def test_buckets_are_contiguous(self, bucketizer):
        for token in ("last14Days", "last60Days", "thisQuarter", "lastMonth"):
            buckets = bucketizer.build_series(token, []).buckets
            for left, right in zip(buckets, buckets[1:]):
                assert left.end == right.start


class TestAllTime:
    def test_only_populated_months(self, bucketizer):
        orders = [
            make_transaction(datetime(2024, 7, 4, 9), 50.0),
            make_transaction(datetime(2023, 3, 15, 9), 25.0),
            make_transaction(datetime(2023, 3, 1, 0), 5.0),
        ]
        series = bucketizer.build_series("allTime", orders)
        assert series.labels == ["Mar 2023", "Jul 2024"]
        assert series.values == [30.0, 50.0]

    def test_empty_collection_has_no_buckets(self, bucketizer):
        series = bucketizer.build_series("allTime", [])
        assert series.buckets == []
        assert series.last_actual_index is None

    def test_undated_transactions_are_ignored(self, bucketizer):
        series = bucketizer.build_series("allTime", [make_transaction(None, 99.0)])
        assert series.buckets == []


class TestAggregation:
    def test_sum_and_count_projections(self, bucketizer, january_orders):
        revenue = bucketizer.build_series("thisMonth", january_orders)
        orders = bucketizer.build_series("thisMonth", january_orders, Projection.COUNT)
        assert revenue.values[4] == 100.0
        assert revenue.values[11] == 200.0
        assert revenue.values[18] == 150.0
        assert revenue.total == 450.0
        assert orders.total == 3

    def test_hour_bucket_includes_start_excludes_end(self, bucketizer):
        orders = [
            make_transaction(datetime(2024, 1, 20, 9, 0), 1.0),
            make_transaction(datetime(2024, 1, 20, 9, 59, 59), 2.0),
            make_transaction(datetime(2024, 1, 20, 10, 0), 4.0),
        ]
        series = bucketizer.build_series("today", orders)
        assert series.values[9] == 3.0
        assert series.values[10] == 4.0

    def test_out_of_range_transactions_do_not_count(self, bucketizer):
        orders = [
            make_transaction(datetime(2024, 1, 12, 23, 59), 10.0),
            make_transaction(datetime(2024, 1, 13, 0, 0), 20.0),
        ]
        assert bucketizer.build_series("last7Days", orders).total == 20.0


class TestFollowingBuckets:
    def test_daily_labels_after_anchor(self):
        labels = [b.label for b in following_buckets(Granularity.DAY, datetime(2024, 1, 21), 3)]
        assert labels == ["Jan 21", "Jan 22", "Jan 23"]

    def test_weekly_labels_span_seven_days(self):
        labels = [b.label for b in following_buckets(Granularity.WEEK, datetime(2024, 1, 21), 2)]
        assert labels == ["Jan 21 - Jan 27", "Jan 28 - Feb 3"]

    def test_monthly_labels_cross_year(self):
        labels = [b.label for b in following_buckets(Granularity.MONTH, datetime(2023, 12, 1), 2)]
        assert labels == ["Dec 2023", "Jan 2024"]

    def test_next_bucket_start(self):
        now = datetime(2024, 1, 20, 12, 30)
        assert next_bucket_start(Granularity.HOUR, now) == datetime(2024, 1, 20, 13)
        assert next_bucket_start(Granularity.DAY, now) == datetime(2024, 1, 21)
        assert next_bucket_start(Granularity.MONTH, now) == datetime(2024, 2, 1)

    def test_weekly_buckets_clamp_oldest_block(self):
        buckets = weekly_buckets(date(2024, 1, 1), date(2024, 1, 10))
        assert [b.label for b in buckets] == ["Jan 1 - Jan 3", "Jan 4 - Jan 10"]


def test_default_bucketizer_uses_system_clock():
    bucketizer = Bucketizer()
    assert isinstance(bucketizer.resolver.now(), datetime)
