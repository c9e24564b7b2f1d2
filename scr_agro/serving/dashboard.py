"""
Admin Dashboard Service

Owns fetching snapshots from the backend, running them through the
reporting engine and caching the derived values. Cached values are dropped
by the DashboardRefresher when the underlying tables change.
"""

import time
from datetime import datetime, timedelta
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional, Union

import structlog
from prometheus_client import Histogram
from sqlalchemy.ext.asyncio import AsyncSession

from scr_agro.config import Settings, get_settings
from scr_agro.database import repository
from scr_agro.database.connection import get_db
from scr_agro.reporting import (
    BucketPolicy,
    SalesReportEngine,
    build_alert_feed,
    derive_low_stock_alerts,
    derive_pending_order_alerts,
    resolve_actual_stock,
    revenue_since,
)
from scr_agro.serving.cache import CacheManager

logger = structlog.get_logger(__name__)

REPORT_BUILD_SECONDS = Histogram(
    "scr_agro_report_build_seconds",
    "Time spent loading a snapshot and building a sales report",
    ["policy"],
)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class CacheKeys:
    """Keys of the cached dashboard values within the "admin" namespace"""
    ORDERS_PENDING = "orders_pending"
    SALES_TODAY = "sales_today"
    RECENT_CUSTOMERS = "recent_customers"
    LIVE_STOCK = "live_stock"
    LOW_STOCK_ALERTS = "low_stock_alerts"
    ALERT_FEED = "alert_feed"
    SALES_REPORT = "sales_report"

    @classmethod
    def sales_report(cls, policy: Union[BucketPolicy, str]) -> str:
        return f"{cls.SALES_REPORT}:{BucketPolicy(policy).value}"


class DashboardService:
    """
    Cached dashboard queries over the backend.

    Example:
        service = DashboardService(CacheManager("admin"))
        summary = await service.summary()
    """

    def __init__(
        self,
        cache: CacheManager,
        session_factory: SessionFactory = get_db,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.cache = cache
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.engine = SalesReportEngine(self.settings.reporting)
        self._clock = clock or self.engine.now

    @property
    def ttl(self) -> int:
        return self.settings.reporting.cache_ttl_seconds

    def now(self) -> datetime:
        return self._clock()

    def start_of_today(self) -> datetime:
        return self.now().replace(hour=0, minute=0, second=0, microsecond=0)

    # -------------------------------------------------------------------------
    # Home dashboard
    # -------------------------------------------------------------------------

    async def orders_pending(self) -> int:
        """Number of orders still waiting to be processed"""
        async def compute() -> int:
            async with self.session_factory() as session:
                return await repository.count_orders(session, self.settings.reporting.pending_statuses)

        return await self.cache.get_or_set(CacheKeys.ORDERS_PENDING, compute, self.ttl)

    async def sales_today(self) -> float:
        """Recognised revenue of orders placed since local midnight"""
        async def compute() -> float:
            since = self.start_of_today()
            statuses = self.settings.reporting.revenue_statuses
            async with self.session_factory() as session:
                orders = await repository.fetch_orders(session, statuses=statuses, since=since)
            return revenue_since(orders, since, statuses)

        return await self.cache.get_or_set(CacheKeys.SALES_TODAY, compute, self.ttl)

    async def recent_customers(self) -> int:
        """Customer profiles created within the recent-customers window"""
        async def compute() -> int:
            since = self.now() - timedelta(days=self.settings.reporting.recent_customer_days)
            async with self.session_factory() as session:
                return await repository.count_profiles_since(session, since)

        return await self.cache.get_or_set(CacheKeys.RECENT_CUSTOMERS, compute, self.ttl)

    async def live_stock(self) -> Dict[str, int]:
        """Live stock per product id"""
        async def compute() -> Dict[str, int]:
            async with self.session_factory() as session:
                products, movements = await repository.load_stock_snapshot(session)
            return resolve_actual_stock(products, movements)

        return await self.cache.get_or_set(CacheKeys.LIVE_STOCK, compute, self.ttl)

    async def low_stock_alerts(self) -> List[Dict[str, Any]]:
        """Every low-stock alert, in product feed order"""
        async def compute() -> List[Dict[str, Any]]:
            async with self.session_factory() as session:
                products, movements = await repository.load_stock_snapshot(session)
            alerts = derive_low_stock_alerts(
                products,
                movements,
                default_min_stock_level=self.settings.reporting.default_min_stock_level,
            )
            return [a.to_dict() for a in alerts]

        return await self.cache.get_or_set(CacheKeys.LOW_STOCK_ALERTS, compute, self.ttl)

    async def summary(self) -> Dict[str, Any]:
        """Values shown on the dashboard home"""
        low_stock = await self.low_stock_alerts()
        return {
            "orders_pending": await self.orders_pending(),
            "sales_today": await self.sales_today(),
            "recent_customers": await self.recent_customers(),
            "low_stock_count": len(low_stock),
            "alerts": low_stock[: self.settings.reporting.dashboard_alert_limit],
        }

    # -------------------------------------------------------------------------
    # Sales analytics
    # -------------------------------------------------------------------------

    async def sales_report(self, policy: Union[BucketPolicy, str] = BucketPolicy.MONTHLY) -> Dict[str, Any]:
        """Full sales report for a bucketing policy"""
        policy = BucketPolicy(policy)

        async def compute() -> Dict[str, Any]:
            start = time.perf_counter()
            async with self.session_factory() as session:
                snapshot = await repository.load_snapshot(session)
            report = self.engine.build(snapshot, policy, now=self.now())
            REPORT_BUILD_SECONDS.labels(policy=policy.value).observe(time.perf_counter() - start)
            logger.info(
                "Sales report computed",
                policy=policy.value,
                orders=report.stats.total_orders,
                peak_period=report.peak_period,
            )
            return report.to_dict()

        return await self.cache.get_or_set(CacheKeys.sales_report(policy), compute, self.ttl)

    # -------------------------------------------------------------------------
    # Alerts
    # -------------------------------------------------------------------------

    async def alert_feed(self) -> Dict[str, Any]:
        """Combined low-stock and pending-order alerts with severity counts"""
        async def compute() -> Dict[str, Any]:
            async with self.session_factory() as session:
                snapshot = await repository.load_snapshot(session)
            stock_alerts = derive_low_stock_alerts(
                snapshot.products,
                snapshot.stock_movements,
                default_min_stock_level=self.settings.reporting.default_min_stock_level,
            )
            order_alerts = derive_pending_order_alerts(
                snapshot.orders,
                self.settings.reporting.pending_statuses,
            )
            feed, counts = build_alert_feed(stock_alerts, order_alerts, self.now())
            return {
                "alerts": [a.to_dict() for a in feed],
                "summary": counts.to_dict(),
            }

        return await self.cache.get_or_set(CacheKeys.ALERT_FEED, compute, self.ttl)

    async def refresh_all(self) -> int:
        """Drop every cached dashboard value"""
        removed = await self.cache.invalidate_all()
        logger.info("Dashboard cache cleared", removed=removed)
        return removed
