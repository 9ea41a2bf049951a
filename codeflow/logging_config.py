import logging.config
import sys

from .config import CODEFLOW_LOG_LEVEL


def configure_logging(level: str | None = None):
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,

        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
        },

        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "stream": sys.stdout,
            },
        },

        "loggers": {
            "": {
                "handlers": ["console"],
                "level": level or CODEFLOW_LOG_LEVEL,
                "propagate": True
            },
            "uvicorn.access": {  # Request lines are noise for a single-player game
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False
            },
        }
    }

    logging.config.dictConfig(logging_config)
