"""
Audit log endpoints for API v1.

Provides access to the audit trail for the administrator.  Logs
capture create, update and delete actions on passport posts, passport
entries and users, and support filtering by user, object type, action
and date range.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from passport_posts_api.app.core.security import ROLE_ADMIN, require_roles
from passport_posts_api.app.schemas.base import ListResponse
from passport_posts_api.app.services.audit_service import AuditService


router = APIRouter()


@router.get("/logs", response_model=ListResponse[Dict[str, Any]])
async def list_audit_logs(
    user_id: Optional[int] = Query(None, description="Filter by acting user ID"),
    object_type: Optional[str] = Query(None, description="Filter by object type (passport_post, passport, user)"),
    action: Optional[str] = Query(None, description="Filter by action (create, update, delete)"),
    start_date: Optional[date] = Query(None, description="First day (YYYY-MM-DD), inclusive"),
    end_date: Optional[date] = Query(None, description="Last day (YYYY-MM-DD), inclusive"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of logs to return"),
    offset: int = Query(0, ge=0, description="Number of logs to skip"),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> ListResponse[Dict[str, Any]]:
    """Retrieve audit logs with optional filters, newest first."""
    logs: List[Dict[str, Any]] = await AuditService.list_logs(
        user_id=user_id,
        object_type=object_type,
        action=action,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return ListResponse(count=len(logs), data=logs)
