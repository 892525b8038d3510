"""
Structured (JSON) logging configuration for Prepdeck.

Copyright (C) 2025 Prepdeck
"""

import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from ..config import Settings, get_settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that enriches every record with standard fields
    (timestamp, level, logger, module, function, line).
    """

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        if "message" not in log_record and hasattr(record, "getMessage"):
            log_record["message"] = record.getMessage()


def configure_logging(settings: Settings | None = None) -> None:
    """
    Send JSON logs for the whole process to stdout.

    Called once from the app lifespan. The level comes from LOG_LEVEL; when
    that is unset, development runs at DEBUG and other environments at INFO.
    """
    settings = settings or get_settings()
    environment = settings.ENVIRONMENT.lower()
    level_name = settings.LOG_LEVEL.upper() or ("DEBUG" if environment == "development" else "INFO")
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level, level_name = logging.INFO, "INFO"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            static_fields={"environment": environment, "application": "prepdeck-backend"},
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    root.info("Structured logging configured", extra={"log_level": level_name})

    # Third-party noise
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("prisma").setLevel(logging.WARNING)
