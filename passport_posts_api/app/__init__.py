"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Each domain (passport posts, users, dashboards, audit)
exposes a router defined in ``api/v1/endpoints`` backed by a service
class in ``services``.
"""

from .main import app  # noqa: F401
