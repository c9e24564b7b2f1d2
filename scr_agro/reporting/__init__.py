"""
Sales Reporting Engine Module
"""
from .models import (
    AlertSeverity,
    AlertSummary,
    AlertType,
    BucketPolicy,
    FeedAlert,
    Order,
    OrderStats,
    Product,
    ReportSnapshot,
    SalesReport,
    StockAlert,
    StockMovement,
    TimeBucket,
    TrendChart,
)
from .bucketing import bucket_revenue
from .statistics import summarize_orders, peak_hour, revenue_since
from .insights import peak_label, peak_index, build_trend_chart, format_currency
from .stock import resolve_actual_stock, derive_low_stock_alerts
from .alerts import derive_pending_order_alerts, build_alert_feed
from .engine import SalesReportEngine, build_sales_report

__all__ = [
    "AlertSeverity",
    "AlertSummary",
    "AlertType",
    "BucketPolicy",
    "FeedAlert",
    "Order",
    "OrderStats",
    "Product",
    "ReportSnapshot",
    "SalesReport",
    "StockAlert",
    "StockMovement",
    "TimeBucket",
    "TrendChart",
    "bucket_revenue",
    "summarize_orders",
    "peak_hour",
    "revenue_since",
    "peak_label",
    "peak_index",
    "build_trend_chart",
    "format_currency",
    "resolve_actual_stock",
    "derive_low_stock_alerts",
    "derive_pending_order_alerts",
    "build_alert_feed",
    "SalesReportEngine",
    "build_sales_report",
]
