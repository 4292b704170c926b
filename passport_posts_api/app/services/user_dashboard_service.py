"""
Service layer for the per‑user dashboard.

Every metric is restricted to posts created by the calling user.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from passport_posts_api.app.core.db import get_connection
from passport_posts_api.app.core.errors import NotFound
from passport_posts_api.app.services.dashboard_service import (
    collect_entries,
    country_counts,
    daily_series,
    parse_timestamp,
    shift_month,
    today_utc,
)
from passport_posts_api.app.services.passport_service import PassportService


WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def day_of_week(when) -> int:
    """1 for Sunday through 7 for Saturday."""
    return (when.weekday() + 1) % 7 + 1


def _activity_row(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": entry["_id"],
        "passportNumber": entry.get("passportNumber"),
        "issuedCountry": entry.get("issuedCountry"),
        "postDate": entry["postDate"],
        "postId": entry["postId"],
    }


class UserDashboardService:

    @classmethod
    def _load(cls, user_id: int) -> Tuple[List[Any], List[Dict[str, Any]]]:
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT id, created_by, updated_by, passports, created_at, updated_at "
                "FROM passport_posts WHERE created_by = ? ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return rows, collect_entries(rows)

    @classmethod
    async def overview(cls, user_id: int) -> Dict[str, Any]:
        """Profile, headline numbers, charts and recent activity of one user."""
        conn = get_connection()
        try:
            user = conn.execute(
                "SELECT id, full_name, email, mobile_number, created_at FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        finally:
            conn.close()
        if not user:
            raise NotFound("User not found")

        rows, entries = cls._load(user_id)
        today = today_utc()

        # rows are newest first
        first_post_date: Optional[str] = rows[-1]["created_at"] if rows else None
        account_age = (today - parse_timestamp(first_post_date).date()).days if first_post_date else 0

        last_week = daily_series(entries, 7, today)
        months = ["%04d-%02d" % shift_month(today.year, today.month, offset) for offset in range(-5, 1)]
        month_counts = {label: 0 for label in months}
        for entry in entries:
            label = entry["_when"].strftime("%Y-%m")
            if label in month_counts:
                month_counts[label] += 1
        countries = country_counts(entries, 5)

        conn = get_connection()
        try:
            recent_posts = PassportService.populate(conn, rows[:5])
        finally:
            conn.close()
        recent_activity = sorted(entries, key=lambda entry: entry["_when"], reverse=True)[:10]

        return {
            "user": {
                "_id": user["id"],
                "fullName": user["full_name"],
                "email": user["email"],
                "mobileNumber": user["mobile_number"],
                "createdAt": user["created_at"],
            },
            "stats": {
                "totalPosts": len(rows),
                "todayPosts": sum(1 for entry in entries if entry["_when"].date() == today),
                "accountAge": account_age,
                "firstPostDate": first_post_date,
            },
            "charts": {
                "dailyChart": {
                    "labels": [point["date"][5:] for point in last_week],
                    "data": [point["count"] for point in last_week],
                },
                "monthlyChart": {
                    "labels": [label[5:] for label in months],
                    "data": [month_counts[label] for label in months],
                },
                "countryChart": {
                    "labels": [item["country"] for item in countries],
                    "data": [item["count"] for item in countries],
                },
            },
            "recentPosts": [post.model_dump(by_alias=True, mode="json") for post in recent_posts],
            "recentActivity": [_activity_row(entry) for entry in recent_activity],
            "dateInfo": {"today": today.isoformat()},
        }

    @classmethod
    async def summary(cls, user_id: int) -> Dict[str, Any]:
        """Totals plus the change in entries posted today compared to yesterday."""
        rows, entries = cls._load(user_id)
        today = today_utc()
        yesterday = today - timedelta(days=1)
        today_count = sum(1 for entry in entries if entry["_when"].date() == today)
        yesterday_count = sum(1 for entry in entries if entry["_when"].date() == yesterday)

        change = 0.0
        if yesterday_count > 0:
            change = (today_count - yesterday_count) / yesterday_count * 100
        elif today_count > 0:
            change = 100.0

        most_recent = max(entries, key=lambda entry: entry["_when"]) if entries else None
        return {
            "totalPosts": len(rows),
            "todayPosts": today_count,
            "dailyChange": {"percentage": f"{change:.1f}", "isPositive": change >= 0},
            "mostRecentPost": _activity_row(most_recent) if most_recent else None,
            "date": today.isoformat(),
        }

    @classmethod
    async def posts_by_country(cls, user_id: int) -> List[Dict[str, Any]]:
        _, entries = cls._load(user_id)
        return country_counts(entries)

    @classmethod
    async def activity_periods(cls, user_id: int) -> Dict[str, Any]:
        """Entry counts per UTC hour of day and per weekday."""
        _, entries = cls._load(user_id)
        hours = [0] * 24
        weekdays = [0] * 7
        for entry in entries:
            hours[entry["_when"].hour] += 1
            weekdays[day_of_week(entry["_when"]) - 1] += 1
        return {
            "hourlyActivity": [{"hour": hour, "count": count} for hour, count in enumerate(hours)],
            "weekdayActivity": [
                {"dayOfWeek": index + 1, "dayName": WEEKDAY_NAMES[index], "count": count}
                for index, count in enumerate(weekdays)
            ],
        }

