"""
Top‑level package for the Passport Posts API.

This file makes ``passport_posts_api`` a Python package so that
modules within ``app`` can be imported using fully qualified names
like ``passport_posts_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
