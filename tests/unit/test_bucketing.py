"""
Unit Tests - Revenue Bucketing
"""
from datetime import datetime, timezone
from zoneinfo import available_timezones

import pytest

from scr_agro.reporting.bucketing import bucket_revenue, month_window
from scr_agro.reporting.models import BucketPolicy


NOW = datetime(2024, 2, 20, 12, 0)


class TestMonthWindow:
    """Tests for month_window"""

    def test_window_crosses_year_boundary(self):
        assert month_window(NOW, 4) == [(2023, 11), (2023, 12), (2024, 1), (2024, 2)]

    def test_single_month(self):
        assert month_window(datetime(2024, 7, 1), 1) == [(2024, 7)]

    def test_twelve_months_end_on_current(self):
        keys = month_window(datetime(2024, 12, 31), 12)
        assert keys[0] == (2024, 1)
        assert keys[-1] == (2024, 12)


class TestBucketRevenue:
    """Tests for bucket_revenue"""

    def test_monthly_scenario(self, sample_orders):
        """Last four months, the malformed order skipped"""
        buckets = bucket_revenue(sample_orders, BucketPolicy.MONTHLY, now=NOW)

        assert [b.label for b in buckets] == ["Nov", "Dec", "Jan", "Feb"]
        assert [b.value for b in buckets] == [0.0, 0.0, 100.0, 200.0]

    @pytest.mark.parametrize("policy,expected", [
        (BucketPolicy.MONTHLY, 4),
        (BucketPolicy.QUARTERLY, 4),
        (BucketPolicy.HALF_YEARLY, 2),
        (BucketPolicy.YEARLY, 3),
    ])
    def test_fixed_bucket_counts_for_empty_input(self, policy, expected):
        buckets = bucket_revenue([], policy, now=NOW)

        assert len(buckets) == expected
        assert all(b.value == 0.0 for b in buckets)

    def test_policy_accepts_string_tag(self):
        buckets = bucket_revenue([], "half-yearly", now=NOW)
        assert [b.label for b in buckets] == ["H1 (Jan–Jun)", "H2 (Jul–Dec)"]

    def test_unknown_policy_raises(self):
        with pytest.raises(ValueError):
            bucket_revenue([], "weekly", now=NOW)

    def test_monthly_excludes_same_month_of_previous_year(self):
        orders = [
            {"id": "a", "total": 40, "createdAt": "2023-02-10"},
            {"id": "b", "total": 60, "createdAt": "2023-12-24T18:30:00"},
        ]
        buckets = bucket_revenue(orders, BucketPolicy.MONTHLY, now=NOW)

        assert [b.value for b in buckets] == [0.0, 60.0, 0.0, 0.0]

    def test_quarterly_covers_current_year_only(self):
        now = datetime(2024, 6, 15)
        orders = [
            {"id": "a", "total": 100, "createdAt": "2024-02-01"},
            {"id": "b", "total": 50, "createdAt": "2024-05-31"},
            {"id": "c", "total": 25, "createdAt": "2024-11-02"},
            {"id": "d", "total": 999, "createdAt": "2023-03-01"},
        ]
        buckets = bucket_revenue(orders, BucketPolicy.QUARTERLY, now=now)

        assert [b.label for b in buckets] == ["Q1", "Q2", "Q3", "Q4"]
        assert [b.value for b in buckets] == [100.0, 50.0, 0.0, 25.0]

    def test_half_yearly_boundary(self):
        orders = [
            {"id": "a", "total": 10, "createdAt": "2024-06-30T23:59:59"},
            {"id": "b", "total": 20, "createdAt": "2024-07-01T00:00:00"},
        ]
        buckets = bucket_revenue(orders, BucketPolicy.HALF_YEARLY, now=NOW)

        assert [b.value for b in buckets] == [10.0, 20.0]

    def test_yearly_window(self):
        orders = [
            {"id": "a", "total": 5, "createdAt": "2021-12-31"},
            {"id": "b", "total": 7, "createdAt": "2022-01-01"},
            {"id": "c", "total": 9, "createdAt": "2024-02-01"},
        ]
        buckets = bucket_revenue(orders, BucketPolicy.YEARLY, now=NOW)

        assert [b.label for b in buckets] == ["2022", "2023", "2024"]
        assert [b.value for b in buckets] == [7.0, 0.0, 9.0]

    def test_configurable_window_sizes(self):
        assert len(bucket_revenue([], BucketPolicy.MONTHLY, now=NOW, monthly_window=12)) == 12
        assert len(bucket_revenue([], BucketPolicy.YEARLY, now=NOW, yearly_window=5)) == 5

    def test_buckets_never_exceed_total_revenue(self, sample_orders):
        """Windowed revenue is a subset of all revenue"""
        orders = sample_orders + [{"id": "old", "total": 500, "createdAt": "2019-05-05"}]
        total = sum(o["total"] or 0 for o in orders)

        for policy in BucketPolicy:
            buckets = bucket_revenue(orders, policy, now=NOW)
            assert sum(b.value for b in buckets) <= total

    def test_input_is_not_modified(self, sample_orders):
        before = [dict(o) for o in sample_orders]
        bucket_revenue(sample_orders, BucketPolicy.MONTHLY, now=NOW)
        assert sample_orders == before

    def test_aware_timestamps_use_their_instant(self):
        orders = [{"id": "a", "total": 30, "createdAt": "2024-01-31T23:30:00-02:00"}]
        now = datetime(2024, 2, 20, tzinfo=timezone.utc)

        buckets = bucket_revenue(orders, BucketPolicy.MONTHLY, now=now, tz_name="UTC")

        # 2024-02-01 01:30 UTC
        assert buckets[-1].value == 30.0

    @pytest.mark.skipif("Asia/Kolkata" not in available_timezones(), reason="tz database not installed")
    def test_reporting_timezone_moves_order_into_next_month(self):
        orders = [{"id": "a", "total": 30, "createdAt": "2024-01-31T20:00:00+00:00"}]
        now = datetime(2024, 2, 20, tzinfo=timezone.utc)

        buckets = bucket_revenue(orders, BucketPolicy.MONTHLY, now=now, tz_name="Asia/Kolkata")

        assert buckets[-2].value == 0.0
        assert buckets[-1].value == 30.0
