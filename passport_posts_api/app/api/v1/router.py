"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers (passport posts, auth, users,
dashboards, audit) under a unified prefix.  When new domains are
introduced, update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import (
    audit,
    auth,
    dashboard,
    passport_posts,
    user_dashboard,
    users,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(passport_posts.router, prefix="/passport-posts", tags=["passport-posts"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
router.include_router(user_dashboard.router, prefix="/user-dashboard", tags=["user-dashboard"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
