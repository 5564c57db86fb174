"""
Logging configuration for flow_engine.

Process logs go through stdlib logging. structlog is configured to render
through the same handlers, and python-json-logger backs the json format.
Run-visible logs (ExecutionContext.logs) are kept separately by the context.
"""

import logging
import logging.config
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from pythonjsonlogger import jsonlogger

from .config import get_settings

_RUN_FIELDS = ("run_id", "flow_id", "node_id")


class StructuredFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line with timestamp, level, logger and run fields when present."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        for field in _RUN_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)


class SimpleFormatter(logging.Formatter):
    """Compact human-readable format: `LEVEL:logger:message [run_id=...]`."""

    def format(self, record: logging.LogRecord) -> str:
        message = f"{record.levelname}:{record.name}:{record.getMessage()}"
        extras = [
            f"{field}={getattr(record, field)}" for field in _RUN_FIELDS if hasattr(record, field)
        ]
        if extras:
            message = f"{message} [{' '.join(extras)}]"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def run_fields(context: Any, node_id: Optional[str] = None) -> Dict[str, Any]:
    """`extra=` fields identifying the run (and node) a record belongs to."""
    fields = {"run_id": context.run_id, "flow_id": context.flow_id}
    if node_id is not None:
        fields["node_id"] = node_id
    return fields


def _formatter_config(log_format: str) -> Dict[str, Any]:
    if log_format == "json":
        return {
            "()": StructuredFormatter,
            "fmt": "%(message)s",
        }
    if log_format == "standard":
        return {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"}
    return {"()": SimpleFormatter}


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure stdlib logging and structlog for the engine.

    Arguments default to the FLOW_ENGINE_LOG_LEVEL / FLOW_ENGINE_LOG_FORMAT settings.
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    log_format = log_format or settings.log_format

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
            if log_format == "json"
            else structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": _formatter_config(log_format)},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "default",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "flow_engine": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(config)
    logging.getLogger("flow_engine").debug(
        f"Logging configured: level={level_name}, format={log_format}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a stdlib logger under the flow_engine namespace."""
    if not name.startswith("flow_engine"):
        name = f"flow_engine.{name}"
    return logging.getLogger(name)


def get_struct_logger(name: str, **initial_values: Any):
    """Get a structlog logger bound to `initial_values` (e.g. run_id)."""
    return structlog.get_logger(name).bind(**initial_values)
