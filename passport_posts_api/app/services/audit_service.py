"""
Audit service for recording and querying system actions.

This module provides a centralized API for writing audit events to the
``audit_logs`` table and retrieving them with filters and pagination.
Use this service to record significant actions (create, update,
delete) performed by users.  Only the administrator may read audit
logs.
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from passport_posts_api.app.core.db import get_connection, utc_now


logger = logging.getLogger(__name__)


class AuditService:
    """Service class for writing and retrieving audit logs."""

    @classmethod
    async def log(
        cls,
        user_id: Optional[int],
        action: str,
        object_type: str,
        object_id: Optional[Any] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Insert a new audit record.

        Parameters
        ----------
        user_id : Optional[int]
            ID of the user performing the action.  ``None`` for
            anonymous actions such as registration.
        action : str
            Short description of the action (e.g. "create", "update", "delete").
        object_type : str
            Type of object affected (e.g. "passport_post", "passport", "user").
        object_id : Optional[Any]
            Identifier of the affected object, stored as text.
        details : Optional[dict]
            Additional structured data about the action, stored as JSON.
        """
        conn = get_connection()
        try:
            details_json = json.dumps(details, default=str) if details else None
            conn.execute(
                """
                INSERT INTO audit_logs (user_id, action, object_type, object_id, timestamp, details)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    action,
                    object_type,
                    str(object_id) if object_id is not None else None,
                    utc_now(),
                    details_json,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def record(cls, *args: Any, **kwargs: Any) -> None:
        """Like ``log`` but never raises; audit failures must not block the caller."""
        try:
            await cls.log(*args, **kwargs)
        except Exception:
            logger.warning("Failed to write audit record %s", kwargs.get("action"), exc_info=True)

    @classmethod
    async def list_logs(
        cls,
        user_id: Optional[int] = None,
        object_type: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Retrieve audit records with optional filters and pagination.

        Date filters are inclusive calendar days (UTC) applied to the
        ``timestamp`` column.  Sorting is always by ``timestamp``
        descending.
        """
        conn = get_connection()
        try:
            where_clauses: List[str] = []
            params: List[Any] = []
            if user_id is not None:
                where_clauses.append("user_id = ?")
                params.append(user_id)
            if object_type:
                where_clauses.append("object_type = ?")
                params.append(object_type)
            if action:
                where_clauses.append("action = ?")
                params.append(action)
            if start_date:
                where_clauses.append("timestamp >= ?")
                params.append(start_date.isoformat())
            if end_date:
                where_clauses.append("timestamp < ?")
                params.append((end_date + timedelta(days=1)).isoformat())
            query = "SELECT id, user_id, action, object_type, object_id, timestamp, details FROM audit_logs"
            if where_clauses:
                query += " WHERE " + " AND ".join(where_clauses)
            query += " ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?"
            params.extend([limit, offset])
            rows = conn.execute(query, tuple(params)).fetchall()
            logs = []
            for row in rows:
                details_data = None
                if row["details"]:
                    try:
                        details_data = json.loads(row["details"])
                    except json.JSONDecodeError:
                        details_data = row["details"]
                logs.append(
                    {
                        "id": row["id"],
                        "userId": row["user_id"],
                        "action": row["action"],
                        "objectType": row["object_type"],
                        "objectId": row["object_id"],
                        "timestamp": row["timestamp"],
                        "details": details_data,
                    }
                )
            return logs
        finally:
            conn.close()
