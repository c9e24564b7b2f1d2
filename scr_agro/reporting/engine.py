"""
Sales Reporting Engine

Assembles a complete sales report from one snapshot. Pure: no I/O, no state
kept between calls, safe to re-run on every refreshed snapshot.
"""

from datetime import datetime
from typing import Optional, Union

import structlog

from scr_agro.config import ReportingSettings
from scr_agro.reporting.bucketing import bucket_revenue
from scr_agro.reporting.insights import build_trend_chart, peak_label
from scr_agro.reporting.models import BucketPolicy, ReportSnapshot, SalesReport
from scr_agro.reporting.statistics import peak_hour, summarize_orders
from scr_agro.reporting.stock import derive_low_stock_alerts
from scr_agro.reporting.timeutils import local_now, to_local

logger = structlog.get_logger(__name__)


class SalesReportEngine:
    """
    Report builder bound to a reporting configuration.

    Example:
        engine = SalesReportEngine(settings.reporting)
        report = engine.build(snapshot, BucketPolicy.QUARTERLY)
    """

    def __init__(self, settings: Optional[ReportingSettings] = None):
        self.settings = settings or ReportingSettings()

    def now(self) -> datetime:
        return local_now(self.settings.timezone)

    def build(
        self,
        snapshot: ReportSnapshot,
        policy: Union[BucketPolicy, str] = BucketPolicy.MONTHLY,
        now: Optional[datetime] = None,
        alert_limit: Optional[int] = None,
    ) -> SalesReport:
        """
        Build the sales report for one snapshot.

        Args:
            snapshot: Orders, products and stock movements captured together
            policy: Bucketing policy of the revenue trend
            now: Anchor of the bucket windows
            alert_limit: Truncate the low-stock alert list

        Returns:
            SalesReport
        """
        policy = BucketPolicy(policy)
        cfg = self.settings
        anchor = to_local(now, cfg.timezone) if now is not None else self.now()

        buckets = bucket_revenue(
            snapshot.orders,
            policy,
            now=anchor,
            tz_name=cfg.timezone,
            monthly_window=cfg.monthly_window,
            yearly_window=cfg.yearly_window,
        )

        report = SalesReport(
            policy=policy,
            stats=summarize_orders(snapshot.orders, cfg.delivered_statuses),
            buckets=buckets,
            chart=build_trend_chart(buckets, policy),
            peak_period=peak_label(buckets),
            peak_hour=peak_hour(snapshot.orders, cfg.timezone),
            low_stock=derive_low_stock_alerts(
                snapshot.products,
                snapshot.stock_movements,
                limit=alert_limit,
                default_min_stock_level=cfg.default_min_stock_level,
            ),
            generated_at=anchor,
        )

        logger.debug(
            "Sales report built",
            policy=policy.value,
            orders=report.stats.total_orders,
            peak_period=report.peak_period,
            low_stock=len(report.low_stock),
        )
        return report


def build_sales_report(
    snapshot: ReportSnapshot,
    policy: Union[BucketPolicy, str] = BucketPolicy.MONTHLY,
    now: Optional[datetime] = None,
    settings: Optional[ReportingSettings] = None,
) -> SalesReport:
    """Convenience wrapper around SalesReportEngine.build"""
    return SalesReportEngine(settings).build(snapshot, policy, now=now)
