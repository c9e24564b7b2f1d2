"""
Alerts Feed

Combines low-stock alerts and pending-order alerts into a single feed,
newest first, with counts by severity.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from scr_agro.reporting.insights import format_currency
from scr_agro.reporting.models import (
    AlertSeverity,
    AlertSummary,
    AlertType,
    FeedAlert,
    OrderLike,
    StockAlert,
    as_orders,
)
from scr_agro.reporting.timeutils import sort_key

DEFAULT_PENDING_STATUSES = ("pending", "pending_payment", "processing")


def derive_pending_order_alerts(
    orders: Iterable[OrderLike],
    pending_statuses: Optional[Iterable[str]] = None,
) -> List[FeedAlert]:
    """One info alert per order still waiting to be processed"""
    pending = set(DEFAULT_PENDING_STATUSES if pending_statuses is None else pending_statuses)
    alerts = []
    for order in as_orders(orders):
        if order.status not in pending:
            continue
        reference = order.order_number or order.id or "?"
        alerts.append(
            FeedAlert(
                id=order.id or reference,
                type=AlertType.PENDING_ORDER,
                title=f"Order #{reference} Pending",
                description=f"Total: {format_currency(order.total)}",
                severity=AlertSeverity.INFO,
                timestamp=order.created_at,
            )
        )
    return alerts


def stock_feed_alerts(stock_alerts: Iterable[StockAlert], now: datetime) -> List[FeedAlert]:
    """Low-stock alerts are current conditions and are stamped with `now`"""
    return [
        FeedAlert(
            id=alert.product_id,
            type=AlertType.LOW_STOCK,
            title=alert.title,
            description=alert.message,
            severity=alert.severity,
            timestamp=now,
        )
        for alert in stock_alerts
    ]


def summarize_alerts(alerts: Iterable[FeedAlert]) -> AlertSummary:
    items = list(alerts)
    return AlertSummary(
        critical=sum(1 for a in items if a.severity == AlertSeverity.CRITICAL),
        warning=sum(1 for a in items if a.severity == AlertSeverity.WARNING),
        pending=sum(1 for a in items if a.type == AlertType.PENDING_ORDER),
        total=len(items),
    )


def build_alert_feed(
    stock_alerts: Iterable[StockAlert],
    order_alerts: Iterable[FeedAlert],
    now: datetime,
) -> Tuple[List[FeedAlert], AlertSummary]:
    """
    Merge stock and order alerts into one feed sorted newest first.

    Alerts without a timestamp sort last. The sort is stable, so alerts with
    equal timestamps keep stock-before-order input order.
    """
    feed = stock_feed_alerts(stock_alerts, now) + list(order_alerts)
    feed.sort(key=lambda a: sort_key(a.timestamp), reverse=True)
    return feed, summarize_alerts(feed)
