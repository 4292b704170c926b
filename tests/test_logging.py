"""Logging setup driven by ``Settings``."""

import logging

import pytest

from passport_posts_api.app.core.config import Settings
from passport_posts_api.app.core.logging_config import PACKAGE_LOGGER, build_logging_config, configure_logging


@pytest.fixture
def package_logger(monkeypatch):
    """The package logger with its handlers, level and propagation restored afterwards."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setattr(logger, "level", logger.level)
    monkeypatch.setattr(logger, "propagate", logger.propagate)
    yield logger
    for handler in logger.handlers:
        handler.close()


def test_levels():
    assert build_logging_config(Settings(log_level="warning"))["loggers"][PACKAGE_LOGGER]["level"] == "WARNING"
    assert build_logging_config(Settings(log_level="chatty"))["loggers"][PACKAGE_LOGGER]["level"] == "INFO"
    assert build_logging_config(Settings(log_level="ERROR", debug=True))["loggers"][PACKAGE_LOGGER]["level"] == "DEBUG"


def test_console_only_without_log_file():
    config = build_logging_config(Settings(log_file=""))
    assert list(config["handlers"]) == ["console"]
    assert config["loggers"][PACKAGE_LOGGER]["handlers"] == ["console"]


def test_log_file_receives_package_records(tmp_path, package_logger):
    path = tmp_path / "logs" / "api.log"

    configure_logging(Settings(log_level="INFO", log_file=str(path)))
    logging.getLogger(f"{PACKAGE_LOGGER}.app.services").info("database ready")
    logging.getLogger(f"{PACKAGE_LOGGER}.app.services").debug("not shown")
    for handler in package_logger.handlers:
        handler.flush()

    text = path.read_text(encoding="utf-8")
    assert "[INFO] passport_posts_api.app.services: database ready" in text
    assert "not shown" not in text


def test_configure_logging_runs_once(tmp_path, package_logger):
    configure_logging(Settings(log_file=""))
    handlers = list(package_logger.handlers)

    configure_logging(Settings(log_file=str(tmp_path / "second.log")))

    assert package_logger.handlers == handlers
    assert not (tmp_path / "second.log").exists()
