"""Admin analytics API routes, proxied from Vercel Web Analytics."""

from fastapi import APIRouter, Depends, Query

from ..middleware.auth import CurrentUser, require_admin
from ..responses import success
from ...services.analytics_service import AnalyticsService, get_analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("")
async def get_analytics(
    timeframe: str = Query(default="7d", max_length=10),
    current_user: CurrentUser = Depends(require_admin),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    """Traffic summary for the admin dashboard."""
    return success(await analytics.get_summary(timeframe))


@router.get("/web-vitals")
async def get_web_vitals(
    timeframe: str = Query(default="7d", max_length=10),
    current_user: CurrentUser = Depends(require_admin),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    data = await analytics.get_web_vitals()
    return success({"timeframe": timeframe, **data})
