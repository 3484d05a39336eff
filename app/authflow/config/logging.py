"""Logging configuration"""
import logging.config

from decouple import config

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "[%(asctime)s] %(levelname)s [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        # Application logging
        "authflow": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        # Third party libraries
        "urllib3": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}


def configure_logging(level: str = None) -> None:
    """Apply LOGGING, taking the authflow level from APP_LOG_LEVEL"""
    settings = {**LOGGING, "loggers": {k: dict(v) for k, v in LOGGING["loggers"].items()}}
    settings["loggers"]["authflow"]["level"] = (level or config("APP_LOG_LEVEL", default="INFO")).upper()
    logging.config.dictConfig(settings)
