"""
Change-Driven Dashboard Refresh

Maps backend table changes to the cached dashboard values derived from them
and drops those values, so the next request recomputes them from a fresh
snapshot. The reporting engine itself never sees subscriptions.
"""

from typing import Callable, Dict, List, Mapping, Optional, Sequence

import structlog
from prometheus_client import Counter

from scr_agro.database.notifications import ALL_TABLES, ChangeFeed, ChangeNotification
from scr_agro.serving.cache import CacheManager
from scr_agro.serving.dashboard import CacheKeys

logger = structlog.get_logger(__name__)

CACHE_INVALIDATIONS = Counter(
    "scr_agro_cache_invalidations_total",
    "Dashboard cache invalidations triggered by table changes",
    ["table"],
)

SALES_REPORTS = f"{CacheKeys.SALES_REPORT}:*"

# table -> cached values derived from it
INVALIDATION_MAP: Dict[str, Sequence[str]] = {
    "orders": (
        CacheKeys.ORDERS_PENDING,
        CacheKeys.SALES_TODAY,
        CacheKeys.RECENT_CUSTOMERS,
        CacheKeys.ALERT_FEED,
        SALES_REPORTS,
    ),
    "stock_movements": (
        CacheKeys.LIVE_STOCK,
        CacheKeys.LOW_STOCK_ALERTS,
        CacheKeys.ALERT_FEED,
        SALES_REPORTS,
    ),
    "products": (
        CacheKeys.LIVE_STOCK,
        CacheKeys.LOW_STOCK_ALERTS,
        CacheKeys.ALERT_FEED,
        SALES_REPORTS,
    ),
    "profiles": (
        CacheKeys.RECENT_CUSTOMERS,
    ),
}


class DashboardRefresher:
    """
    Subscribes to table changes and invalidates the dependent cache keys.

    Example:
        refresher = DashboardRefresher(feed, CacheManager("admin"))
        refresher.start()
    """

    def __init__(
        self,
        feed: ChangeFeed,
        cache: CacheManager,
        invalidation_map: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        self.feed = feed
        self.cache = cache
        self.invalidation_map = dict(invalidation_map or INVALIDATION_MAP)
        self._unsubscribers: List[Callable[[], None]] = []

    @property
    def is_running(self) -> bool:
        return bool(self._unsubscribers)

    def start(self) -> None:
        """Subscribe to every mapped table and to all-tables resyncs"""
        if self._unsubscribers:
            return
        for table in self.invalidation_map:
            self._unsubscribers.append(self.feed.subscribe(table, self.handle))
        self._unsubscribers.append(self.feed.subscribe(ALL_TABLES, self.resync))
        logger.info("Dashboard refresher subscribed", tables=list(self.invalidation_map))

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def keys_for(self, table: str) -> Sequence[str]:
        return self.invalidation_map.get(table, ())

    async def handle(self, notification: ChangeNotification) -> int:
        """
        Invalidate the cached values derived from the changed table.

        Cache failures are logged; the refresher keeps listening.
        """
        keys = self.keys_for(notification.table)
        if not keys:
            return 0

        try:
            removed = await self.cache.invalidate(keys)
        except Exception as e:
            logger.error(
                "Cache invalidation failed",
                table=notification.table,
                error=str(e),
                error_type=type(e).__name__,
            )
            return 0

        CACHE_INVALIDATIONS.labels(table=notification.table).inc()
        logger.debug(
            "Dashboard values invalidated",
            table=notification.table,
            operation=notification.operation,
            keys=list(keys),
            removed=removed,
        )
        return removed

    async def resync(self, notification: ChangeNotification) -> int:
        """
        Drop every cached value after an all-tables notification.

        Sent when the change listener reconnects, since writes made while it
        was down were missed. Per-table notifications are left to handle().
        """
        if notification.table != ALL_TABLES:
            return 0

        try:
            removed = await self.cache.invalidate_all()
        except Exception as e:
            logger.error("Cache resync failed", error=str(e), error_type=type(e).__name__)
            return 0

        CACHE_INVALIDATIONS.labels(table=ALL_TABLES).inc()
        logger.info("Dashboard values resynced", operation=notification.operation, removed=removed)
        return removed
