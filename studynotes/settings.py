"""Django settings for the study-notes review scheduler.

Everything that varies between environments is read from ``STUDYNOTES_*``
environment variables; the defaults suit local development and tests.
"""

import logging
import os
from pathlib import Path

import structlog

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    return os.environ.get(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


DEBUG = _env_bool("STUDYNOTES_DEBUG", False)
SECRET_KEY = os.environ.get("STUDYNOTES_SECRET_KEY", "insecure-dev-key-change-me")
ALLOWED_HOSTS = os.environ.get("STUDYNOTES_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "review_scheduler.apps.ReviewSchedulerConfig",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("STUDYNOTES_DB_PATH", str(BASE_DIR / "studynotes.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# "Today" for due/overdue decisions and streaks is a calendar day in this zone.
TIME_ZONE = os.environ.get("STUDYNOTES_TIME_ZONE", "UTC")
USE_TZ = True
USE_I18N = False

REST_FRAMEWORK = {
    "UNAUTHENTICATED_USER": None,
}

# Logging: structlog on top of stdlib logging
LOG_LEVEL = os.environ.get("STUDYNOTES_LOG_LEVEL", "INFO").upper()
LOG_JSON = _env_bool("STUDYNOTES_LOG_JSON", not DEBUG)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
}

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if LOG_JSON else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(LOG_LEVEL)
    ),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)
