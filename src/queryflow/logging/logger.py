"""Structured logging for query execution.

Records are rendered as one JSON object per line. The query context bound
by :func:`queryflow.logging.filters.query_context` comes first, followed by
the ``extra=`` fields of the call site and, when a span is active, the
OpenTelemetry trace and span ids.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

from opentelemetry import trace

from queryflow.logging.filters import set_logging_context

ROOT_LOGGER = "queryflow"

_CONTEXT_KEYS = ("query_id", "datasource", "user_id")

# Attributes every LogRecord carries; anything else came in through extra= or a filter.
_STANDARD_KEYS: FrozenSet[str] = frozenset(
    vars(logging.makeLogRecord({})).keys() | {"asctime", "message"}
)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class CustomJsonFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        for key, value in vars(record).items():
            if key not in _STANDARD_KEYS and key not in entry and key not in _CONTEXT_KEYS:
                entry[key] = value

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            entry["trace_id"] = format(span_context.trace_id, "032x")
            entry["span_id"] = format(span_context.span_id, "016x")

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    environment: Optional[str] = None,
) -> None:
    """Attach a stdout handler to the ``queryflow`` logger.

    The root logger is left alone so that host applications keep their own
    configuration; ``queryflow`` records do not propagate to it.

    Args:
        level: Log level name
        json_format: JSON lines when True, a plain text line otherwise
        environment: Static ``environment`` field added to every record
    """
    set_logging_context(environment=environment)

    formatters: Dict[str, Any] = {
        "queryflow_json": {"()": "queryflow.logging.logger.CustomJsonFormatter"},
        "queryflow_text": {
            "format": "%(asctime)s %(levelname)s %(name)s [%(query_id)s] %(message)s",
        },
    }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": {
            "queryflow_context": {"()": "queryflow.logging.filters.ContextFilter"},
        },
        "handlers": {
            "queryflow_console": {
                "class": "logging.StreamHandler",
                "formatter": "queryflow_json" if json_format else "queryflow_text",
                "filters": ["queryflow_context"],
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {
            ROOT_LOGGER: {
                "level": level.upper(),
                "handlers": ["queryflow_console"],
                "propagate": False,
            }
        },
    })
