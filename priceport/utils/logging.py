"""
Structured logging utilities for the priceport service.

One handler serves the CLI, the pipeline modules and the uvicorn server, so an
ingest log line and the access line of the request that triggered it land in
the same stream with the same format. JSON output is meant for log shippers;
every `extra=` field becomes a top-level key.

Usage:
    from priceport.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=True)
    log = get_logger(__name__)
    log.info("Ingest completed", extra={"total_items": 1000})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra", "color_message"}

# uvicorn installs its own handlers unless told otherwise.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Pool maintenance is chatty at INFO (connection checks, grow/shrink).
_NOISY_LOGGERS = ("psycopg.pool",)


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as JSON string."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(
        (key, value) for key, value in vars(record).items() if key not in _RESERVED_ATTRS
    )
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def build_logging_config(level: str = "INFO", json_logs: bool = False) -> Dict[str, Any]:
    """
    Return the `dictConfig` mapping used by `configure_logging`.

    Server loggers are attached to the shared handler with propagation off so
    uvicorn lines are not printed twice. Noisy library loggers stay at WARNING
    unless `level` is DEBUG.
    """
    level = level.upper()
    library_level = "DEBUG" if level == "DEBUG" else "WARNING"
    loggers: Dict[str, Any] = {
        name: {"handlers": ["default"], "level": level, "propagate": False}
        for name in _SERVER_LOGGERS
    }
    loggers.update({name: {"level": library_level} for name in _NOISY_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_logs else "console",
                "level": level,
            }
        },
        "loggers": loggers,
        "root": {"handlers": ["default"], "level": level},
    }


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure root, server and library logging.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    """
    logging.config.dictConfig(build_logging_config(level, json_logs))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "build_logging_config", "configure_logging", "get_logger"]
