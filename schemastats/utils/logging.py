"""
Structured logging for schema-stats.

Every module logs through `get_logger(__name__)` and passes context with
`extra=` (schema_id, record_id, field names, counts). `configure_logging`
installs one stderr handler on the root logger, either with a console line
format or as one JSON object per line, where the `extra=` context becomes
top-level keys.

Usage:
    from schemastats.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=True)
    log = get_logger(__name__)
    log.info("[RECORD STORED]", extra={"schema_id": schema.id, "record_id": record.id})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Libraries whose INFO output is noise for a CLI run.
_CHATTY_LOGGERS = ("psycopg", "psycopg.pool")

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    context = {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        context.update(nested)
    return context


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as a single JSON line."""
    payload: Dict[str, Any] = {
        "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    payload.update(_context(record))
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def _dict_config(level: str, formatter_name: str) -> Dict[str, Any]:
    library_level = "DEBUG" if level == "DEBUG" else "WARNING"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": formatter_name,
                "stream": "ext://sys.stderr",
            }
        },
        "loggers": {name: {"level": library_level} for name in _CHATTY_LOGGERS},
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    level : str
        Logging level name, case-insensitive (e.g. "debug", "INFO").
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    force : bool
        Replace an existing configuration. When False and the root logger
        already has handlers, the call is a no-op.
    """
    if not force and logging.getLogger().handlers:
        return
    logging.config.dictConfig(_dict_config(level.upper(), "json" if json_logs else "console"))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["CONSOLE_FORMAT", "JsonFormatter", "configure_logging", "get_logger"]
