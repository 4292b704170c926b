"""
Administrator dashboard endpoints for API v1.

Aggregated statistics over all users and passport posts.  Every route
requires the ``admin`` role.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from passport_posts_api.app.core.security import ROLE_ADMIN, require_roles
from passport_posts_api.app.schemas.base import DataResponse, ListResponse
from passport_posts_api.app.services.dashboard_service import DashboardService


router = APIRouter(dependencies=[Depends(require_roles(ROLE_ADMIN))])


@router.get("/stats", response_model=DataResponse[Dict[str, Any]])
async def dashboard_stats() -> DataResponse[Dict[str, Any]]:
    return DataResponse(data=await DashboardService.stats())


@router.get("/graph/daily", response_model=DataResponse[Dict[str, Any]])
async def daily_posts_graph(
    days: int = Query(30, ge=1, le=366, description="Number of days, today included"),
) -> DataResponse[Dict[str, Any]]:
    """Passport entries posted per day, zero‑filled."""
    return DataResponse(data=await DashboardService.daily_graph(days))


@router.get("/graph/countries", response_model=ListResponse[Dict[str, Any]])
async def country_distribution_graph() -> ListResponse[Dict[str, Any]]:
    """Top ten issuing countries by number of entries."""
    data = await DashboardService.country_graph()
    return ListResponse(count=len(data), data=data)


@router.get("/graph/users", response_model=DataResponse[Dict[str, Any]])
async def user_registration_trend(
    months: int = Query(12, ge=1, le=120, description="Number of months, the current one included"),
) -> DataResponse[Dict[str, Any]]:
    return DataResponse(data=await DashboardService.user_registrations(months))


@router.get("/all", response_model=DataResponse[Dict[str, Any]])
async def all_dashboard_data() -> DataResponse[Dict[str, Any]]:
    """Stats, charts and the most recent users and posts in a single call."""
    return DataResponse(data=await DashboardService.overview())
