"""Analytics tracking and dashboard endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from ..repository import Record
from ..schemas.analytics import DashboardAnalytics, ResourceAnalytics
from ..schemas.common import DataResponse, MessageResponse
from ..schemas.content import TrackEventRequest
from ..services.analytics import DEFAULT_TIMEFRAME, AnalyticsService
from .dependencies import client_ip, get_analytics_service, require_admin

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.post("/track", response_model=MessageResponse, status_code=201)
async def track_event(
    body: TrackEventRequest,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, str]:
    await service.record_event(
        body.type,
        resource_id=body.resource_id,
        resource_type=body.resource_type,
        path=body.path,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )
    return {"message": "Event tracked successfully"}


@router.get("/dashboard", response_model=DataResponse[DashboardAnalytics])
async def get_dashboard(
    _: Record = Depends(require_admin),
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    return {"data": await service.dashboard()}


@router.get(
    "/resource/{resource_type}/{resource_id}",
    response_model=DataResponse[ResourceAnalytics],
)
async def get_resource_analytics(
    resource_type: str,
    resource_id: str,
    timeframe: str = DEFAULT_TIMEFRAME,
    _: Record = Depends(require_admin),
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    analytics = await service.resource(resource_type, resource_id, timeframe=timeframe)
    return {"data": analytics}
