"""
Unit Tests - Order Statistics
"""
from datetime import datetime

import pytest

from scr_agro.reporting.models import Order
from scr_agro.reporting.statistics import orders_frame, peak_hour, revenue_since, summarize_orders


class TestSummarizeOrders:
    """Tests for summarize_orders"""

    def test_scenario_statistics(self, sample_orders):
        stats = summarize_orders(sample_orders)

        assert stats.total_orders == 3
        assert stats.total_revenue == 300.0
        assert stats.average_order_value == 100.0
        assert stats.status_counts == {"completed": 1, "pending": 1, "cancelled": 1}
        assert stats.delivered_orders_count == 1

    def test_empty_snapshot(self):
        stats = summarize_orders([])

        assert stats.total_orders == 0
        assert stats.total_revenue == 0.0
        assert stats.average_order_value == 0.0
        assert stats.status_counts == {}
        assert stats.delivered_orders_count == 0

    def test_status_counts_sum_to_total(self):
        orders = [
            {"id": str(i), "total": i, "status": status}
            for i, status in enumerate(["paid", "paid", "shipped", None, "", "delivered"])
        ]
        stats = summarize_orders(orders)

        assert sum(stats.status_counts.values()) == stats.total_orders
        assert stats.status_counts["unknown"] == 2

    def test_cancelled_order_not_delivered(self):
        orders = [
            {"id": "a", "total": 10, "status": "delivered"},
            {"id": "b", "total": 10, "status": "delivered", "cancelledAt": "2024-02-01T10:00:00"},
        ]
        stats = summarize_orders(orders)

        assert stats.delivered_orders_count == 1

    def test_empty_delivered_statuses_count_nothing(self):
        orders = [{"id": "a", "total": 10, "status": "completed"}]
        assert summarize_orders(orders, delivered_statuses=[]).delivered_orders_count == 0

    def test_custom_delivered_statuses(self):
        orders = [
            {"id": "a", "total": 10, "status": "completed"},
            {"id": "b", "total": 10, "status": "delivered"},
        ]
        stats = summarize_orders(orders, delivered_statuses=["delivered"])

        assert stats.delivered_orders_count == 1

    def test_accepts_records(self):
        orders = [Order(id="a", total=12.5, status="paid")]
        assert summarize_orders(orders).total_revenue == 12.5


class TestPeakHour:
    """Tests for peak_hour"""

    def test_busiest_hour(self):
        orders = [
            {"id": "a", "createdAt": "2024-02-01T10:00:00"},
            {"id": "b", "createdAt": "2024-02-02T10:45:00"},
            {"id": "c", "createdAt": "2024-02-02T14:00:00"},
            {"id": "d", "createdAt": "2024-02-03T09:00:00"},
        ]
        assert peak_hour(orders) == 10

    def test_tie_resolves_to_earliest_hour(self):
        orders = [
            {"id": "a", "createdAt": "2024-02-01T14:00:00"},
            {"id": "b", "createdAt": "2024-02-01T09:00:00"},
        ]
        assert peak_hour(orders) == 9

    def test_no_timestamps(self):
        assert peak_hour([{"id": "a", "createdAt": "invalid"}]) is None
        assert peak_hour([]) is None


class TestRevenueSince:
    """Tests for revenue_since"""

    @pytest.fixture
    def todays_orders(self):
        return [
            {"id": "a", "total": 100, "status": "paid", "createdAt": "2024-02-20T10:00:00"},
            {"id": "b", "total": 50, "status": "delivered", "createdAt": "2024-02-19T23:00:00"},
            {"id": "c", "total": 30, "status": "pending", "createdAt": "2024-02-20T11:00:00"},
            {"id": "d", "total": 20, "status": "shipped", "createdAt": None},
        ]

    def test_counts_recognised_statuses_since(self, todays_orders):
        assert revenue_since(todays_orders, datetime(2024, 2, 20)) == 100.0

    def test_custom_statuses(self, todays_orders):
        total = revenue_since(todays_orders, datetime(2024, 2, 20), statuses=["paid", "pending"])
        assert total == 130.0

    def test_empty_statuses_recognise_nothing(self, todays_orders):
        assert revenue_since(todays_orders, datetime(2024, 2, 20), statuses=[]) == 0.0

    def test_empty(self):
        assert revenue_since([], datetime(2024, 2, 20)) == 0.0


class TestOrdersFrame:
    """Tests for orders_frame"""

    def test_columns(self, sample_orders):
        df = orders_frame(sample_orders)

        assert df.columns == ["id", "status", "total", "is_cancelled", "created_ts", "hour"]
        assert df["total"].to_list() == [100.0, 200.0, 0.0]
        assert df["created_ts"].null_count() == 1
