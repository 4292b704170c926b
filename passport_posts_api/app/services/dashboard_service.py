"""
Service layer for the administrator dashboard.

Metrics are computed in Python over the loaded posts.  Date based
metrics count passport entries by their ``postDate`` (UTC calendar
days); country metrics count entries by ``issuedCountry``.  The
helpers at module level are shared with the per‑user dashboard.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from passport_posts_api.app.core.db import get_connection
from passport_posts_api.app.core.security import ROLE_USER
from passport_posts_api.app.services.passport_service import PassportService, load_entries


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO timestamp into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``(year, month)`` by ``delta`` months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def collect_entries(rows: Iterable[Any]) -> List[Dict[str, Any]]:
    """Flatten posts into entries, each tagged with ``postId`` and a parsed ``_when``."""
    entries = []
    for row in rows:
        for entry in load_entries(row):
            item = dict(entry)
            item["postId"] = row["id"]
            item["_when"] = parse_timestamp(entry["postDate"])
            entries.append(item)
    return entries


def count_by_day(entries: Iterable[Dict[str, Any]]) -> Counter:
    return Counter(entry["_when"].date() for entry in entries)


def daily_series(entries: Iterable[Dict[str, Any]], days: int, end: Optional[date] = None) -> List[Dict[str, Any]]:
    """One ``{date, count}`` point per day for ``days`` days ending at ``end``, zero‑filled."""
    end = end or today_utc()
    counts = count_by_day(entries)
    start = end - timedelta(days=days - 1)
    return [
        {"date": (start + timedelta(days=i)).isoformat(), "count": counts.get(start + timedelta(days=i), 0)}
        for i in range(days)
    ]


def country_counts(entries: Iterable[Dict[str, Any]], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """``{country, count}`` rows sorted by count descending, then name."""
    counts = Counter(entry.get("issuedCountry") for entry in entries)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0] or ""))
    if limit is not None:
        ranked = ranked[:limit]
    return [{"country": country, "count": count} for country, count in ranked]


class DashboardService:
    """Aggregated statistics for the administrator."""

    @classmethod
    def _load(cls) -> Tuple[int, List[Dict[str, Any]]]:
        conn = get_connection()
        try:
            total_users = conn.execute("SELECT COUNT(*) FROM users WHERE role = ?", (ROLE_USER,)).fetchone()[0]
            rows = conn.execute("SELECT id, passports FROM passport_posts ORDER BY rowid").fetchall()
        finally:
            conn.close()
        return total_users, collect_entries(rows)

    @classmethod
    async def stats(cls) -> Dict[str, Any]:
        """Headline numbers: users, posts, entries posted today and during the last week."""
        total_users, entries = cls._load()
        today = today_utc()
        week_start = today - timedelta(days=7)
        conn = get_connection()
        try:
            total_posts = conn.execute("SELECT COUNT(*) FROM passport_posts").fetchone()[0]
        finally:
            conn.close()
        return {
            "totalUsers": total_users,
            "totalPosts": total_posts,
            "todayPosts": sum(1 for entry in entries if entry["_when"].date() == today),
            "recentPosts": sum(1 for entry in entries if week_start <= entry["_when"].date() <= today),
            "dateInfo": {"today": today.isoformat()},
        }

    @classmethod
    async def daily_graph(cls, days: int = 30) -> Dict[str, Any]:
        _, entries = cls._load()
        series = daily_series(entries, days)
        return {
            "range": {"start": series[0]["date"], "end": series[-1]["date"], "days": days},
            "graphData": series,
        }

    @classmethod
    async def country_graph(cls, limit: int = 10) -> List[Dict[str, Any]]:
        _, entries = cls._load()
        return country_counts(entries, limit)

    @classmethod
    async def user_registrations(cls, months: int = 12) -> Dict[str, Any]:
        """Registrations of regular users per month, the current month last."""
        today = today_utc()
        labels = [
            "%04d-%02d" % shift_month(today.year, today.month, offset)
            for offset in range(-(months - 1), 1)
        ]
        conn = get_connection()
        try:
            rows = conn.execute("SELECT created_at FROM users WHERE role = ?", (ROLE_USER,)).fetchall()
        finally:
            conn.close()
        counts = Counter(parse_timestamp(row["created_at"]).strftime("%Y-%m") for row in rows)
        return {
            "range": {"start": labels[0], "end": labels[-1], "months": months},
            "graphData": [{"month": label, "count": counts.get(label, 0)} for label in labels],
        }

    @classmethod
    async def overview(cls) -> Dict[str, Any]:
        """Everything the admin dashboard page needs in one response."""
        total_users, entries = cls._load()
        today = today_utc()
        last_week = daily_series(entries, 7, today)
        countries = country_counts(entries, 5)
        conn = get_connection()
        try:
            total_posts = conn.execute("SELECT COUNT(*) FROM passport_posts").fetchone()[0]
            recent_users = conn.execute(
                "SELECT id, full_name, email, created_at FROM users WHERE role = ? "
                "ORDER BY created_at DESC, id DESC LIMIT 5",
                (ROLE_USER,),
            ).fetchall()
            post_rows = conn.execute(
                "SELECT id, created_by, updated_by, passports, created_at, updated_at "
                "FROM passport_posts ORDER BY created_at DESC, rowid DESC LIMIT 5"
            ).fetchall()
            recent_posts = PassportService.populate(conn, post_rows)
        finally:
            conn.close()
        return {
            "stats": {
                "totalUsers": total_users,
                "totalPosts": total_posts,
                "todayPosts": sum(1 for entry in entries if entry["_when"].date() == today),
            },
            "dailyChart": {
                "labels": [point["date"] for point in last_week],
                "data": [point["count"] for point in last_week],
            },
            "countryChart": {
                "labels": [item["country"] for item in countries],
                "data": [item["count"] for item in countries],
            },
            "recentUsers": [
                {"_id": row["id"], "fullName": row["full_name"], "email": row["email"], "createdAt": row["created_at"]}
                for row in recent_users
            ],
            "recentPosts": [post.model_dump(by_alias=True, mode="json") for post in recent_posts],
            "dateInfo": {"today": today.isoformat()},
        }
