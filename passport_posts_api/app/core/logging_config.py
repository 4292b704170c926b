"""
Logging for the Passport Posts API.

``configure_logging`` builds a ``logging.config.dictConfig`` document
from :class:`Settings`: records from the ``passport_posts_api`` package
go to the console and, when ``log_file`` is set, to that file.  Uvicorn
keeps its own loggers.
"""

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict

from .config import Settings


PACKAGE_LOGGER = "passport_posts_api"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(config: Settings) -> str:
    if config.debug:
        return "DEBUG"
    name = config.log_level.upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


def build_logging_config(config: Settings) -> Dict[str, Any]:
    """Return the ``dictConfig`` document for ``config``."""
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    }
    if config.log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "standard",
            "filename": str(Path(config.log_file).resolve()),
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            PACKAGE_LOGGER: {
                "level": _level(config),
                "handlers": list(handlers),
                "propagate": False,
            },
        },
    }


def configure_logging(config: Settings) -> None:
    """Apply :func:`build_logging_config`.

    Does nothing once the package logger has handlers, so building the
    app twice (tests, reloads) does not duplicate output.
    """
    if logging.getLogger(PACKAGE_LOGGER).handlers:
        return
    if config.log_file:
        Path(config.log_file).resolve().parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(config))
