import logging
import os
import sys
from logging.config import dictConfig
from app.core.config import APP_ENV

LOG_LEVEL = os.getenv(
    "LOG_LEVEL",
    "DEBUG" if APP_ENV == "development" else "INFO",
).upper()

ACCESS_FIELDS = ("client_addr", "method", "path", "status_code", "process_time_ms", "company_id", "user_id")


class AccessDefaultsFilter(logging.Filter):
    """Fill access fields missing on a record so the formatter never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in ACCESS_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, "-")
        return True


def setup_logging():
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            # -----------------
            # FILTERS
            # -----------------
            "filters": {
                "access_defaults": {"()": AccessDefaultsFilter},
            },

            # -----------------
            # FORMATTERS
            # -----------------
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
                "access": {
                    "format": (
                        "%(asctime)s | ACCESS | %(client_addr)s | "
                        "%(method)s %(path)s | %(status_code)s | "
                        "%(process_time_ms)sms | company=%(company_id)s user=%(user_id)s"
                    ),
                },
            },

            # -----------------
            # HANDLERS
            # -----------------
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "access",
                    "filters": ["access_defaults"],
                },
            },

            # -----------------
            # LOGGERS
            # -----------------
            "loggers": {
                # fed by request_logging_middleware
                "access": {
                    "handlers": ["access_console"],
                    "level": "INFO",
                    "propagate": False,
                },
                # gateway HTTP traffic is noisy at DEBUG
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
                "apscheduler": {"level": "INFO"},
                "sqlalchemy.engine": {"level": "WARNING"},
                # uvicorn's own access log duplicates ours
                "uvicorn.access": {"level": "WARNING"},
            },

            # -----------------
            # ROOT LOGGER
            # -----------------
            "root": {
                "level": LOG_LEVEL,
                "handlers": ["console"],
            },
        }
    )
