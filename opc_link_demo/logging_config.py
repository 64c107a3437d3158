import logging
from logging.config import dictConfig

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING") -> None:
    """Send log records to stderr so they never mix with demo output."""

    normalized_level = getattr(logging, level.upper(), logging.WARNING)
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                }
            },
            "root": {
                "handlers": ["default"],
                "level": normalized_level,
            },
        }
    )
