"""
Logging configuration for the marketplace API.

Log calls attach structured context with ``extra={"extra_fields": {...}}``.
The text format appends it as ``key=value`` pairs; the JSON format merges
it into the log object.
"""

import json
import logging
import sys
from typing import Any, Dict

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ContextFormatter(logging.Formatter):
    """Plain-text formatter that appends ``extra_fields`` to the message."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = getattr(record, "extra_fields", None)
        if fields:
            context = " ".join(f"{key}={value}" for key, value in fields.items())
            message = f"{message} [{context}]"
        return message


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def __init__(self, service_name: str):
        super().__init__(datefmt=DATE_FORMAT)
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "service": self.service_name,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        log_data.update(getattr(record, "extra_fields", None) or {})
        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str = "INFO",
    service_name: str = "marketplace-api",
    use_json: bool = False,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Name of the service for log identification
        use_json: Emit JSON lines instead of plain text
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    formatter: logging.Formatter
    if use_json:
        formatter = JSONFormatter(service_name)
    else:
        formatter = ContextFormatter(
            f"%(asctime)s - {service_name} - %(name)s - %(levelname)s - %(message)s",
            datefmt=DATE_FORMAT,
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Supabase requests go through httpx; keep per-request lines out of INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given module name."""
    return logging.getLogger(name)
