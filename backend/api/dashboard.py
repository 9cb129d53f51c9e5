"""Dashboard endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter

from backend.schemas.common import ApiResponse
from backend.schemas.dashboard import Activity, DashboardStats, StockAlert
from backend.services import dashboard as dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=ApiResponse[DashboardStats])
def get_dashboard_stats():
    stats, degraded = dashboard_service.fetch_stats()
    return {"success": True, "data": stats, "degraded": degraded}


@router.get("/recent-activities", response_model=ApiResponse[List[Activity]])
def get_recent_activities():
    activities, degraded = dashboard_service.fetch_recent_activities()
    return {"success": True, "data": activities, "total": len(activities), "degraded": degraded}


@router.get("/alerts", response_model=ApiResponse[List[StockAlert]])
def get_alerts():
    alerts, degraded = dashboard_service.fetch_alerts()
    return {"success": True, "data": alerts, "total": len(alerts), "degraded": degraded}
