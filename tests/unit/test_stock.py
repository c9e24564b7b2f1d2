"""
Unit Tests - Low-Stock Derivation
"""
import pytest

from scr_agro.reporting.models import AlertSeverity
from scr_agro.reporting.stock import (
    classify_stock,
    derive_low_stock_alerts,
    latest_movements,
    resolve_actual_stock,
    stock_message,
)

UREA = {"id": "p1", "title": "Urea 5 kg", "min_stock_level": 10, "stock_quantity": 5}


class TestLatestMovements:
    """Tests for latest_movements"""

    def test_latest_by_timestamp_not_feed_order(self):
        movements = [
            {"product_id": "p1", "new_quantity": 30, "created_at": "2024-03-05T10:00:00"},
            {"product_id": "p1", "new_quantity": 3, "created_at": "2024-03-10T10:00:00"},
            {"product_id": "p1", "new_quantity": 50, "created_at": "2024-03-01T10:00:00"},
        ]
        assert latest_movements(movements)["p1"].new_quantity == 3

    def test_equal_timestamps_later_record_wins(self):
        movements = [
            {"product_id": "p1", "new_quantity": 4, "created_at": "2024-03-10T10:00:00"},
            {"product_id": "p1", "new_quantity": 9, "created_at": "2024-03-10T10:00:00"},
        ]
        assert latest_movements(movements)["p1"].new_quantity == 9

    def test_movements_without_timestamp_ignored(self):
        movements = [
            {"product_id": "p1", "new_quantity": 4, "created_at": "2024-03-10T10:00:00"},
            {"product_id": "p1", "new_quantity": 0, "created_at": None},
        ]
        assert latest_movements(movements)["p1"].new_quantity == 4

    def test_mixed_offsets_compare_by_instant(self):
        movements = [
            # 04:30 UTC
            {"product_id": "p1", "new_quantity": 1, "created_at": "2024-03-10T10:00:00+05:30"},
            {"product_id": "p1", "new_quantity": 2, "created_at": "2024-03-10T05:00:00+00:00"},
        ]
        assert latest_movements(movements)["p1"].new_quantity == 2


class TestResolveActualStock:
    """Tests for resolve_actual_stock"""

    def test_fallback_to_stored_quantity(self, sample_products, sample_movements):
        actual = resolve_actual_stock(sample_products, sample_movements)
        assert actual == {"p1": 5, "p2": 7, "p3": 0}

    def test_movement_for_unknown_product_ignored(self):
        actual = resolve_actual_stock([UREA], [{"product_id": "zz", "new_quantity": 1, "created_at": "2024-01-01"}])
        assert actual == {"p1": 5}


class TestClassifyStock:
    """Tests for classify_stock"""

    @pytest.mark.parametrize("actual,minimum,expected", [
        (0, 10, AlertSeverity.CRITICAL),
        (1, 10, AlertSeverity.WARNING),
        (10, 10, AlertSeverity.WARNING),
        (11, 10, None),
        (-2, 10, AlertSeverity.WARNING),
        (0, 0, AlertSeverity.CRITICAL),
    ])
    def test_severity(self, actual, minimum, expected):
        assert classify_stock(actual, minimum) == expected

    def test_messages(self):
        assert stock_message(0, 10) == "Out of stock"
        assert stock_message(5, 10) == "Stock is 5 (min 10)"


class TestDeriveLowStockAlerts:
    """Tests for derive_low_stock_alerts"""

    def test_scenario_without_movements(self):
        alerts = derive_low_stock_alerts([UREA], [])

        assert len(alerts) == 1
        assert alerts[0].severity == AlertSeverity.WARNING
        assert alerts[0].message == "Stock is 5 (min 10)"
        assert alerts[0].actual_stock == 5

    def test_scenario_with_zero_movement(self):
        movements = [{"product_id": "p1", "new_quantity": 0, "created_at": "2024-03-01T10:00:00"}]
        alerts = derive_low_stock_alerts([UREA], movements)

        assert len(alerts) == 1
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert alerts[0].message == "Out of stock"

    def test_product_feed_order_preserved(self, sample_products, sample_movements):
        alerts = derive_low_stock_alerts(sample_products, sample_movements)

        assert [a.product_id for a in alerts] == ["p1", "p2", "p3"]
        assert [a.severity for a in alerts] == [
            AlertSeverity.WARNING,
            AlertSeverity.WARNING,
            AlertSeverity.CRITICAL,
        ]

    def test_default_min_stock_level(self):
        products = [{"id": "p3", "title": "Raw Honey 500 g", "stock_quantity": 10}]

        assert derive_low_stock_alerts(products, [])[0].min_stock_level == 10
        assert derive_low_stock_alerts(products, [], default_min_stock_level=5) == []

    def test_limit(self, sample_products, sample_movements):
        alerts = derive_low_stock_alerts(sample_products, sample_movements, limit=2)
        assert [a.product_id for a in alerts] == ["p1", "p2"]

    def test_only_products_at_or_below_minimum(self, sample_products, sample_movements):
        alerts = derive_low_stock_alerts(sample_products, sample_movements)
        assert all(a.actual_stock <= a.min_stock_level for a in alerts)

    def test_to_dict_uses_plain_severity(self):
        data = derive_low_stock_alerts([UREA], [])[0].to_dict()

        assert data == {
            "product_id": "p1",
            "title": "Urea 5 kg",
            "message": "Stock is 5 (min 10)",
            "severity": "warning",
            "actual_stock": 5,
            "min_stock_level": 10,
        }
