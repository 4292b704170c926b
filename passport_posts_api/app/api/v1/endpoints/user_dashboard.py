"""
Per‑user dashboard endpoints for API v1.

Any authenticated user may call these routes; the figures always cover
the caller's own posts only.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from passport_posts_api.app.core.security import get_current_user
from passport_posts_api.app.schemas.base import DataResponse, ListResponse
from passport_posts_api.app.services.user_dashboard_service import UserDashboardService


router = APIRouter()


@router.get("", response_model=DataResponse[Dict[str, Any]])
async def user_dashboard(current_user: dict = Depends(get_current_user)) -> DataResponse[Dict[str, Any]]:
    return DataResponse(data=await UserDashboardService.overview(current_user["user_id"]))


@router.get("/summary", response_model=DataResponse[Dict[str, Any]])
async def user_dashboard_summary(current_user: dict = Depends(get_current_user)) -> DataResponse[Dict[str, Any]]:
    """Totals and today's change compared with yesterday."""
    return DataResponse(data=await UserDashboardService.summary(current_user["user_id"]))


@router.get("/posts-by-country", response_model=ListResponse[Dict[str, Any]])
async def user_posts_by_country(current_user: dict = Depends(get_current_user)) -> ListResponse[Dict[str, Any]]:
    data = await UserDashboardService.posts_by_country(current_user["user_id"])
    return ListResponse(count=len(data), data=data)


@router.get("/activity-periods", response_model=DataResponse[Dict[str, Any]])
async def user_activity_periods(current_user: dict = Depends(get_current_user)) -> DataResponse[Dict[str, Any]]:
    """Entries per hour of day (UTC) and per weekday, 1 being Sunday."""
    return DataResponse(data=await UserDashboardService.activity_periods(current_user["user_id"]))
