"""Entry point for serving the Passport Posts API.

Host and port are read from the environment variables ``HOST`` and
``PORT`` (defaults ``0.0.0.0`` and ``5000``).  Other configuration is
described in ``passport_posts_api/app/core/config.py``.

Usage:
    python run.py
"""
import asyncio
import os

from uvicorn import Config, Server

from passport_posts_api.app.core.config import settings
from passport_posts_api.app.main import app


async def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "5000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
