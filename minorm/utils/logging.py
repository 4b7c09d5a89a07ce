"""
Logging setup for minorm.

Engine modules log under the `minorm.*` namespace: every executed statement at
DEBUG with its SQL and bind count, and a key recovery that found no row at
WARNING. `configure_logging` installs one stream handler on the root logger,
rendering records either as text lines or as one JSON object per line with
the `extra=` fields as top-level keys.
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes present on every LogRecord; the rest came in through `extra=`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


def _record_to_json(record: logging.LogRecord) -> str:
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key not in _RECORD_ATTRS:
            payload[key] = value
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    # bind values and driver objects are not always JSON-native
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, `extra=` fields included."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _record_to_json(record)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Install minorm's root handler.

    Parameters
    ----------
    level : str
        Level name for the root logger and its handler. "DEBUG" shows every
        statement the engine executes.
    json_logs : bool
        Use `JsonFormatter` instead of the text format.
    force : bool
        Replace an existing root configuration. With False, a root logger that
        already has handlers is left alone, so embedding applications keep
        their own setup.
    """
    if not force and logging.getLogger().handlers:
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "text": {"format": TEXT_FORMAT, "datefmt": TEXT_DATEFMT},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "stream": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "text",
                    "level": level,
                }
            },
            "root": {"handlers": ["stream"], "level": level},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "get_logger"]
