"""
Environment-driven settings and logging setup.

Values come from the process environment, optionally seeded from a .env
file in the working directory.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from subdeck_core.fsrs.constants import (
    DEFAULT_ENABLE_FUZZ,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_REQUESTED_RETENTION,
)


DEFAULT_DATABASE_URL = "sqlite:///subdeck.db"
PROD_DB_NAME = "subdeck"
TEST_DB_NAME = "test_subdeck"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    test_mode: bool = False
    requested_retention: float = DEFAULT_REQUESTED_RETENTION
    maximum_interval_days: int = DEFAULT_MAXIMUM_INTERVAL
    enable_fuzz: bool = DEFAULT_ENABLE_FUZZ
    log_level: str = "INFO"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url(test_mode: bool) -> str:
    """
    Get the database URL from the environment.

    In test mode the production database name is swapped for the test one,
    so the same DATABASE_URL can serve both.
    """
    url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    if test_mode:
        return url.replace(PROD_DB_NAME, TEST_DB_NAME)
    return url


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build settings from the environment (and .env, unless disabled).
    """
    if dotenv:
        load_dotenv()

    test_mode = is_test_mode()
    return Settings(
        database_url=get_database_url(test_mode),
        test_mode=test_mode,
        requested_retention=_env_number(
            "SUBDECK_REQUESTED_RETENTION", DEFAULT_REQUESTED_RETENTION, float
        ),
        maximum_interval_days=_env_number(
            "SUBDECK_MAXIMUM_INTERVAL", DEFAULT_MAXIMUM_INTERVAL, int
        ),
        enable_fuzz=_env_bool("SUBDECK_ENABLE_FUZZ", DEFAULT_ENABLE_FUZZ),
        log_level=os.getenv("SUBDECK_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """
    Attach a single stream handler to the package loggers.
    """
    for name in ("subdeck_core", "subdeck_app"):
        package_logger = logging.getLogger(name)
        package_logger.setLevel(level)
        if not package_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            package_logger.addHandler(handler)
