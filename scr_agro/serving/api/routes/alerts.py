"""
Alerts API Endpoints
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from scr_agro.serving.api.dependencies import get_dashboard_service
from scr_agro.serving.dashboard import DashboardService

router = APIRouter()


class Alert(BaseModel):
    """Alert feed entry"""
    id: str
    type: str
    title: str
    description: str
    severity: str
    timestamp: Optional[datetime]


class AlertCounts(BaseModel):
    """Alert counts by severity"""
    critical: int
    warning: int
    pending: int
    total: int


class AlertFeed(BaseModel):
    """Combined alert feed"""
    alerts: List[Alert]
    summary: AlertCounts


@router.get("", response_model=AlertFeed)
async def list_alerts(
    severity: Optional[str] = Query(None, pattern="^(critical|warning|info)$"),
    service: DashboardService = Depends(get_dashboard_service),
) -> AlertFeed:
    """
    List low-stock and pending-order alerts, newest first.

    The summary always counts the whole feed, regardless of the severity filter.
    """
    feed = await service.alert_feed()
    alerts = feed["alerts"]
    if severity:
        alerts = [a for a in alerts if a["severity"] == severity]
    return AlertFeed(alerts=alerts, summary=feed["summary"])
