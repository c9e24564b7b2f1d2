"""
Order Statistics

Summary metrics over a full order snapshot, computed with Polars:
- Order count, revenue and average order value
- Status histogram
- Fulfilled (delivered) order count
- Busiest hour of day
- Recognised revenue since a point in time
"""

from datetime import datetime
from typing import Iterable, Optional

import polars as pl
import structlog

from scr_agro.reporting.models import OrderLike, OrderStats, as_orders
from scr_agro.reporting.timeutils import sort_key, to_local

logger = structlog.get_logger(__name__)

DEFAULT_DELIVERED_STATUSES = ("completed", "delivered")
DEFAULT_REVENUE_STATUSES = ("paid", "shipped", "delivered")

ORDERS_SCHEMA = {
    "id": pl.Utf8,
    "status": pl.Utf8,
    "total": pl.Float64,
    "is_cancelled": pl.Boolean,
    "created_ts": pl.Float64,
    "hour": pl.Int32,
}


def orders_frame(orders: Iterable[OrderLike], tz_name: str = "UTC") -> pl.DataFrame:
    """
    Build an orders DataFrame from a snapshot.

    Timestamps are reduced to an epoch key (`created_ts`) and a local hour
    of day so that naive and aware values can share one column.
    """
    records = as_orders(orders)
    return pl.DataFrame(
        {
            "id": [o.id for o in records],
            "status": [o.status for o in records],
            "total": [o.total for o in records],
            "is_cancelled": [o.cancelled_at is not None for o in records],
            "created_ts": [sort_key(o.created_at) if o.created_at else None for o in records],
            "hour": [to_local(o.created_at, tz_name).hour if o.created_at else None for o in records],
        },
        schema=ORDERS_SCHEMA,
    )


def summarize_orders(
    orders: Iterable[OrderLike],
    delivered_statuses: Optional[Iterable[str]] = None,
) -> OrderStats:
    """
    Compute summary statistics over every order in the snapshot.

    Args:
        orders: Order snapshot (not windowed)
        delivered_statuses: Statuses counted as fulfilled

    Returns:
        OrderStats; all-zero for an empty snapshot
    """
    delivered = list(DEFAULT_DELIVERED_STATUSES if delivered_statuses is None else delivered_statuses)
    df = orders_frame(orders)

    total_orders = df.height
    if total_orders == 0:
        return OrderStats(
            total_orders=0,
            total_revenue=0.0,
            average_order_value=0.0,
            status_counts={},
            delivered_orders_count=0,
        )

    total_revenue = float(df["total"].sum())

    counts = df.group_by("status").agg(pl.len().alias("count"))
    status_counts = {
        status: int(count)
        for status, count in zip(counts["status"].to_list(), counts["count"].to_list())
    }

    delivered_count = df.filter(
        pl.col("status").is_in(pl.Series(delivered, dtype=pl.Utf8)) & ~pl.col("is_cancelled")
    ).height

    logger.debug("Order statistics computed", orders=total_orders, statuses=len(status_counts))

    return OrderStats(
        total_orders=total_orders,
        total_revenue=total_revenue,
        average_order_value=total_revenue / total_orders,
        status_counts=status_counts,
        delivered_orders_count=delivered_count,
    )


def peak_hour(orders: Iterable[OrderLike], tz_name: str = "UTC") -> Optional[int]:
    """
    Hour of day (0-23) with the most orders.

    Ties resolve to the earliest hour. Returns None when no order carries a
    creation time.
    """
    df = orders_frame(orders, tz_name).drop_nulls("hour")
    if df.is_empty():
        return None

    hours = (
        df.group_by("hour")
        .agg(pl.len().alias("orders"))
        .sort(["orders", "hour"], descending=[True, False])
    )
    return int(hours["hour"][0])


def revenue_since(
    orders: Iterable[OrderLike],
    since: datetime,
    statuses: Optional[Iterable[str]] = None,
) -> float:
    """Revenue of orders in the revenue status set created at or after `since`"""
    recognised = list(DEFAULT_REVENUE_STATUSES if statuses is None else statuses)
    df = orders_frame(orders)
    if df.is_empty():
        return 0.0

    selected = df.filter(
        pl.col("created_ts").is_not_null()
        & (pl.col("created_ts") >= sort_key(since))
        & pl.col("status").is_in(pl.Series(recognised, dtype=pl.Utf8))
    )
    return float(selected["total"].sum()) if selected.height else 0.0
