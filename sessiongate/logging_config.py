"""
Logging configuration for SessionGate and uvicorn.

Health probes hit the API every few seconds; their access lines are dropped.
"""

import logging
from typing import Any, Dict, Iterable


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access lines for health probe paths."""

    def __init__(self, paths: Iterable[str] = ("/health",)):
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        return not ("GET" in message and any(path in message for path in self.paths))


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """
    Build a dictConfig dictionary.

    Args:
        level: Level for the sessiongate loggers (DEBUG shows session lookups)

    Returns:
        Dictionary for logging.config.dictConfig or uvicorn's log_config
    """
    level = level.upper()

    def logger(handler: str, logger_level: str = "INFO") -> Dict[str, Any]:
        return {"handlers": [handler], "level": logger_level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {"()": HealthCheckFilter},
        },
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"],
            },
        },
        "loggers": {
            "uvicorn": logger("default"),
            "uvicorn.error": logger("default"),
            "uvicorn.access": logger("access"),
            "sessiongate": logger("default", level),
        },
        "root": {"level": "INFO", "handlers": ["default"]},
    }
