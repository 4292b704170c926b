"""Admin and per-user dashboards."""

import json
from datetime import date, datetime, timedelta, timezone

from conftest import API, auth, create_post, entry

from passport_posts_api.app.core.db import get_connection
from passport_posts_api.app.services.dashboard_service import daily_series, shift_month
from passport_posts_api.app.services.user_dashboard_service import day_of_week


def backdate(post_id, days):
    """Move every entry of a post ``days`` days into the past."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT passports FROM passport_posts WHERE id = ?", (post_id,)).fetchone()
        entries = json.loads(row["passports"])
        when = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        for item in entries:
            item["postDate"] = when
        conn.execute("UPDATE passport_posts SET passports = ? WHERE id = ?", (json.dumps(entries), post_id))
        conn.commit()
    finally:
        conn.close()


def test_helpers():
    assert shift_month(2026, 1, -1) == (2025, 12)
    assert shift_month(2025, 11, 3) == (2026, 2)
    assert day_of_week(date(2024, 6, 2)) == 1  # a Sunday
    assert day_of_week(date(2024, 6, 8)) == 7

    series = daily_series([], 3, date(2024, 3, 1))
    assert series == [
        {"date": "2024-02-28", "count": 0},
        {"date": "2024-02-29", "count": 0},
        {"date": "2024-03-01", "count": 0},
    ]


def test_dashboard_is_admin_only(client, user):
    for path in ("stats", "graph/daily", "graph/countries", "graph/users", "all"):
        assert client.get(f"{API}/dashboard/{path}", headers=auth(user[0])).status_code == 403


def test_admin_stats(client, admin, user, other):
    create_post(client, user[0], entry(), entry(issuedCountry="Nepal"))
    old = create_post(client, other[0], entry(issuedCountry="Nepal"))
    backdate(old["_id"], 3)

    data = client.get(f"{API}/dashboard/stats", headers=auth(admin[0])).json()["data"]

    assert data["totalUsers"] == 2
    assert data["totalPosts"] == 2
    assert data["todayPosts"] == 2
    assert data["recentPosts"] == 3
    assert data["dateInfo"]["today"] == datetime.now(timezone.utc).date().isoformat()


def test_admin_graphs(client, admin, user):
    create_post(client, user[0], entry(issuedCountry="Nepal"), entry(issuedCountry="Nepal"), entry())
    old = create_post(client, user[0], entry(issuedCountry="Bhutan"))
    backdate(old["_id"], 2)

    daily = client.get(f"{API}/dashboard/graph/daily", headers=auth(admin[0])).json()["data"]
    assert daily["range"]["days"] == 30
    assert len(daily["graphData"]) == 30
    assert daily["graphData"][-1]["count"] == 3
    assert daily["graphData"][-3]["count"] == 1
    assert sum(point["count"] for point in daily["graphData"]) == 4

    week = client.get(f"{API}/dashboard/graph/daily", params={"days": 7}, headers=auth(admin[0])).json()["data"]
    assert len(week["graphData"]) == 7

    countries = client.get(f"{API}/dashboard/graph/countries", headers=auth(admin[0])).json()
    assert countries["data"][0] == {"country": "Nepal", "count": 2}
    assert countries["count"] == 3

    users = client.get(f"{API}/dashboard/graph/users", headers=auth(admin[0])).json()["data"]
    assert len(users["graphData"]) == 12
    assert users["graphData"][-1] == {"month": datetime.now(timezone.utc).strftime("%Y-%m"), "count": 1}


def test_admin_overview(client, admin, user):
    create_post(client, user[0], entry(issuedCountry="Nepal"))

    data = client.get(f"{API}/dashboard/all", headers=auth(admin[0])).json()["data"]

    assert data["stats"] == {"totalUsers": 1, "totalPosts": 1, "todayPosts": 1}
    assert len(data["dailyChart"]["labels"]) == 7
    assert data["dailyChart"]["data"][-1] == 1
    assert data["countryChart"] == {"labels": ["Nepal"], "data": [1]}
    assert [item["email"] for item in data["recentUsers"]] == ["user@example.com"]
    assert data["recentPosts"][0]["createdBy"]["email"] == "user@example.com"


def test_user_dashboard_covers_own_posts_only(client, user, other):
    create_post(client, user[0], entry(issuedCountry="Nepal"), entry())
    create_post(client, other[0], entry(issuedCountry="Japan"))

    data = client.get(f"{API}/user-dashboard", headers=auth(user[0])).json()["data"]

    assert data["user"]["email"] == "user@example.com"
    assert data["stats"]["totalPosts"] == 1
    assert data["stats"]["todayPosts"] == 2
    assert data["stats"]["accountAge"] == 0
    assert data["stats"]["firstPostDate"] is not None
    assert len(data["charts"]["dailyChart"]["labels"]) == 7
    assert len(data["charts"]["monthlyChart"]["data"]) == 6
    assert data["charts"]["monthlyChart"]["data"][-1] == 2
    assert "Japan" not in data["charts"]["countryChart"]["labels"]
    assert len(data["recentPosts"]) == 1
    assert len(data["recentActivity"]) == 2

    by_country = client.get(f"{API}/user-dashboard/posts-by-country", headers=auth(user[0])).json()
    assert by_country["count"] == 2
    assert {item["country"] for item in by_country["data"]} == {"Nepal", "India"}


def test_user_summary_daily_change(client, user):
    token, _ = user
    empty = client.get(f"{API}/user-dashboard/summary", headers=auth(token)).json()["data"]
    assert empty["dailyChange"] == {"percentage": "0.0", "isPositive": True}
    assert empty["mostRecentPost"] is None

    today = create_post(client, token, entry(passportNumber="TODAY01"))
    summary = client.get(f"{API}/user-dashboard/summary", headers=auth(token)).json()["data"]
    assert summary["dailyChange"]["percentage"] == "100.0"
    assert summary["mostRecentPost"]["passportNumber"] == "TODAY01"

    yesterday = create_post(client, token, entry(), entry())
    backdate(yesterday["_id"], 1)
    summary = client.get(f"{API}/user-dashboard/summary", headers=auth(token)).json()["data"]
    assert summary["totalPosts"] == 2
    assert summary["todayPosts"] == 1
    assert summary["dailyChange"] == {"percentage": "-50.0", "isPositive": False}
    assert summary["mostRecentPost"]["postId"] == today["_id"]


def test_user_activity_periods(client, user):
    create_post(client, user[0], entry(), entry())

    data = client.get(f"{API}/user-dashboard/activity-periods", headers=auth(user[0])).json()["data"]

    assert [item["hour"] for item in data["hourlyActivity"]] == list(range(24))
    assert sum(item["count"] for item in data["hourlyActivity"]) == 2
    assert data["weekdayActivity"][0] == {"dayOfWeek": 1, "dayName": "Sunday", "count": data["weekdayActivity"][0]["count"]}
    assert sum(item["count"] for item in data["weekdayActivity"]) == 2
    today = day_of_week(datetime.now(timezone.utc))
    assert data["weekdayActivity"][today - 1]["count"] == 2
