import sys
from logging.config import dictConfig

from quoteflow.settings import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL) -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            # -----------------
            # FORMATTERS
            # -----------------
            "formatters": {
                "default": {
                    "format": (
                        "%(asctime)s | %(levelname)s | "
                        "%(name)s | %(message)s"
                    ),
                },
            },

            # -----------------
            # HANDLERS
            # -----------------
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stderr,
                    "formatter": "default",
                },
            },

            # -----------------
            # LOGGERS
            # -----------------
            "loggers": {
                # APScheduler is chatty at INFO on every job submission
                "apscheduler": {
                    "level": "WARNING",
                },
            },

            # -----------------
            # ROOT LOGGER
            # -----------------
            "root": {
                "level": level,
                "handlers": ["console"],
            },
        }
    )
