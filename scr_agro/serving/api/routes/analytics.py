"""
Analytics API Endpoints

Sales statistics, revenue trend and insights for the analytics view.
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
import structlog

from scr_agro.reporting import BucketPolicy
from scr_agro.serving.api.dependencies import get_dashboard_service
from scr_agro.serving.dashboard import DashboardService

router = APIRouter()
logger = structlog.get_logger(__name__)


class SalesOverview(BaseModel):
    """Order summary statistics"""
    total_orders: int
    total_revenue: float
    average_order_value: float
    status_counts: Dict[str, int]
    delivered_orders_count: int


class Bucket(BaseModel):
    """Revenue of one time bucket"""
    label: str
    value: float


class TrendChart(BaseModel):
    """Chart payload with the peak point highlighted"""
    title: str
    dataset_label: str
    labels: List[str]
    values: List[float]
    point_colors: List[str]
    point_radii: List[int]
    peak_index: Optional[int]


class SalesTrend(BaseModel):
    """Revenue trend for a bucketing policy"""
    range: BucketPolicy
    buckets: List[Bucket]
    chart: TrendChart
    peak_period: str


class StockAlert(BaseModel):
    """Low-stock alert"""
    product_id: str
    title: str
    message: str
    severity: str
    actual_stock: int
    min_stock_level: int


class SalesReport(BaseModel):
    """Complete analytics view payload"""
    policy: BucketPolicy
    stats: SalesOverview
    buckets: List[Bucket]
    chart: TrendChart
    peak_period: str
    peak_hour: Optional[int]
    low_stock: List[StockAlert]
    generated_at: datetime


RANGE_QUERY = Query(BucketPolicy.MONTHLY, alias="range", description="Bucketing policy of the trend")


@router.get("/sales/overview", response_model=SalesOverview)
async def get_sales_overview(
    service: DashboardService = Depends(get_dashboard_service),
) -> SalesOverview:
    """
    Get order count, revenue, average order value and status breakdown.
    """
    report = await service.sales_report(BucketPolicy.MONTHLY)
    return SalesOverview(**report["stats"])


@router.get("/sales/trend", response_model=SalesTrend)
async def get_sales_trend(
    policy: BucketPolicy = RANGE_QUERY,
    service: DashboardService = Depends(get_dashboard_service),
) -> SalesTrend:
    """
    Get the bucketed revenue trend.

    Ranges:
    - monthly: last 4 months
    - quarterly: quarters of the current year
    - half-yearly: halves of the current year
    - yearly: last 3 years
    """
    logger.info("get_sales_trend called", range=policy.value)
    report = await service.sales_report(policy)
    return SalesTrend(
        range=policy,
        buckets=report["buckets"],
        chart=report["chart"],
        peak_period=report["peak_period"],
    )


@router.get("/sales/report", response_model=SalesReport)
async def get_sales_report(
    policy: BucketPolicy = RANGE_QUERY,
    service: DashboardService = Depends(get_dashboard_service),
) -> SalesReport:
    """Get statistics, trend, insights and low-stock alerts in one payload."""
    report = await service.sales_report(policy)
    return SalesReport(**report)
