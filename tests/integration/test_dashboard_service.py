"""
Integration Tests - Admin Dashboard Service
"""
from datetime import datetime

import pytest

from scr_agro.database.notifications import ChangeFeed, ChangeNotification
from scr_agro.database.models import StockMovementRow
from scr_agro.serving.dashboard import DashboardService
from scr_agro.serving.refresh import DashboardRefresher

NOW = datetime(2024, 2, 20, 12, 0)


@pytest.fixture
def service(seeded_db, cache, test_settings):
    return DashboardService(cache, session_factory=seeded_db, settings=test_settings, clock=lambda: NOW)


class TestDashboardHome:
    """Tests for the dashboard home values"""

    async def test_summary(self, service):
        summary = await service.summary()

        assert summary["orders_pending"] == 2
        assert summary["sales_today"] == 150.0
        assert summary["recent_customers"] == 1
        assert summary["low_stock_count"] == 3
        assert [a["product_id"] for a in summary["alerts"]] == ["p-honey", "p-seeds", "p-urea"]

    async def test_alerts_truncated_on_home(self, seeded_db, cache, test_settings):
        test_settings.reporting.dashboard_alert_limit = 1
        service = DashboardService(cache, session_factory=seeded_db, settings=test_settings, clock=lambda: NOW)

        summary = await service.summary()

        assert summary["low_stock_count"] == 3
        assert len(summary["alerts"]) == 1

    async def test_live_stock(self, service):
        assert await service.live_stock() == {"p-urea": 5, "p-seeds": 0, "p-honey": 8, "p-oil": 3}

    async def test_values_are_cached(self, service, fake_redis):
        await service.orders_pending()

        assert fake_redis.store["admin:orders_pending"] == "2"


class TestSalesReport:
    """Tests for the cached sales report"""

    async def test_monthly(self, service):
        report = await service.sales_report("monthly")

        assert report["policy"] == "monthly"
        assert [b["label"] for b in report["buckets"]] == ["Nov", "Dec", "Jan", "Feb"]
        assert [b["value"] for b in report["buckets"]] == [0.0, 0.0, 100.0, 425.0]
        assert report["peak_period"] == "Feb"
        assert report["stats"]["total_revenue"] == 525.0
        assert report["generated_at"] == NOW.isoformat()

    async def test_cached_per_policy(self, service, fake_redis):
        await service.sales_report("monthly")
        await service.sales_report("quarterly")

        assert "admin:sales_report:monthly" in fake_redis.store
        assert "admin:sales_report:quarterly" in fake_redis.store

    async def test_unknown_policy(self, service):
        with pytest.raises(ValueError):
            await service.sales_report("weekly")


class TestAlertFeed:
    """Tests for the combined alerts feed"""

    async def test_feed(self, service):
        data = await service.alert_feed()

        assert [a["id"] for a in data["alerts"]] == ["p-honey", "p-seeds", "p-urea", "o5", "o2"]
        assert data["alerts"][-1]["title"] == "Order #SCR-0002 Pending"
        assert data["summary"] == {"critical": 1, "warning": 2, "pending": 2, "total": 5}


class TestChangeDrivenRefresh:
    """Cached values follow backend writes once the refresher runs"""

    async def test_stock_movement_refreshes_low_stock(self, service, seeded_db, cache):
        feed = ChangeFeed()
        DashboardRefresher(feed, cache).start()

        before = await service.low_stock_alerts()
        assert "p-oil" not in [a["product_id"] for a in before]

        async with seeded_db() as session:
            session.add(StockMovementRow(id="m4", product_id="p-oil", new_quantity=0, created_at=NOW))
            await session.commit()

        # still served from cache until the change arrives
        assert await service.low_stock_alerts() == before

        await feed.publish(ChangeNotification(table="stock_movements", operation="INSERT"))

        after = await service.low_stock_alerts()
        assert after[-1]["product_id"] == "p-oil"
        assert after[-1]["message"] == "Out of stock"

    async def test_refresh_all(self, service, fake_redis):
        await service.summary()
        await service.sales_report("yearly")

        removed = await service.refresh_all()

        assert removed == 5
        assert fake_redis.store == {}
