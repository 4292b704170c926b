"""
Main entrypoint for the Passport Posts API.

This module assembles the FastAPI application, sets up logging, error
handlers and CORS, and includes the versioned routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``::

    uvicorn passport_posts_api.app.main:app --reload

Routes are served under ``/api/v1`` and, for existing clients, under
``/api`` as well.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import get_database_path, init_db
from .core.errors import register_exception_handlers
from .core.logging_config import configure_logging


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Initialise logging before anything else so that the modules below
    # can safely log messages.
    configure_logging(settings)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)

    origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(v1_router, prefix="/api", include_in_schema=False)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {"success": True, "message": f"{settings.project_name} is running"}

    # Apply migrations at startup.  This creates the database file if it
    # does not exist and ensures all tables are up to date.
    @app.on_event("startup")
    async def startup_event() -> None:
        init_db()
        logger.info("Database ready at %s", get_database_path())

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
