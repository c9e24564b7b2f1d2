"""
Dashboard API Endpoints

Values shown on the admin home screen.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from scr_agro.serving.api.dependencies import get_dashboard_service
from scr_agro.serving.api.routes.analytics import StockAlert
from scr_agro.serving.dashboard import DashboardService

router = APIRouter()


class DashboardSummary(BaseModel):
    """Admin home summary"""
    orders_pending: int
    sales_today: float
    recent_customers: int
    low_stock_count: int
    alerts: List[StockAlert]


class RefreshResponse(BaseModel):
    """Manual refresh result"""
    status: str
    invalidated: int


class LiveStock(BaseModel):
    """Live stock per product id, from the latest stock movement"""
    stock: Dict[str, int]


@router.get("/summary", response_model=DashboardSummary)
async def get_dashboard_summary(
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardSummary:
    """
    Get pending orders, today's sales, recent customers and low-stock alerts.
    """
    return DashboardSummary(**await service.summary())


@router.get("/stock", response_model=LiveStock)
async def get_live_stock(
    service: DashboardService = Depends(get_dashboard_service),
) -> LiveStock:
    """Current stock of every product."""
    return LiveStock(stock=await service.live_stock())


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_dashboard(
    service: DashboardService = Depends(get_dashboard_service),
) -> RefreshResponse:
    """Drop all cached dashboard values so the next read recomputes them."""
    removed = await service.refresh_all()
    return RefreshResponse(status="refreshed", invalidated=removed)
