"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  In a
production deployment you should override at least ``SECRET_KEY`` and
``DATABASE_URL`` via the environment.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Passport Posts API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Optional path of a log file.  When empty only the console handler
    # is installed.
    log_file: str = os.getenv("LOG_FILE", "")

    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    # Tokens are valid for 30 days unless overridden.
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Path for the SQLite database.  Relative paths are resolved against
    # the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "passport_posts.db")

    # Directory receiving the JSON archive of deleted passports.  Relative
    # paths are resolved against the project root as well.
    deleted_log_dir: str = os.getenv("DELETED_LOG_DIR", "logs")

    # Comma‑separated list of allowed CORS origins ("*" allows any).
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module.
settings = Settings()
