"""Logging filters for context injection.

This module provides filters that inject context variables into log records,
enabling correlation of logs across the lifetime of a single query, whether
it runs on the caller's thread or on a worker of the dispatch pool.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from queryflow.__version__ import __version__

query_id_var: ContextVar[Optional[str]] = ContextVar("query_id", default=None)
datasource_var: ContextVar[Optional[str]] = ContextVar("datasource", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

_static_context: Dict[str, Any] = {}


class ContextFilter(logging.Filter):
    """Logging filter that adds context variables to log records.

    Static fields configured with :func:`set_logging_context` are added first,
    then the per-query context variables.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context variables to the log record.

        Args:
            record: Log record to enhance

        Returns:
            Always True (doesn't filter out any records)
        """
        for key, value in _static_context.items():
            setattr(record, key, value)

        setattr(record, "query_id", query_id_var.get())
        setattr(record, "datasource", datasource_var.get())
        setattr(record, "user_id", user_id_var.get())
        setattr(record, "sdk_name", "queryflow")
        setattr(record, "core_version", __version__)

        return True


def set_logging_context(
    environment: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Replace the static fields attached to every record."""
    _static_context.clear()
    if environment is not None:
        _static_context["environment"] = environment
    if extra:
        _static_context.update(extra)


def set_query_context(
    query_id: Optional[str] = None,
    datasource: Optional[str] = None,
    user_id: Optional[str] = None,
) -> None:
    """Set query context variables."""
    if query_id is not None:
        query_id_var.set(query_id)
    if datasource is not None:
        datasource_var.set(datasource)
    if user_id is not None:
        user_id_var.set(user_id)


def clear_query_context() -> None:
    """Clear all query context variables."""
    query_id_var.set(None)
    datasource_var.set(None)
    user_id_var.set(None)


@contextmanager
def query_context(query_id: str, datasource: str, user_id: Optional[str] = None) -> Iterator[None]:
    """Bind the query context for the duration of the block."""
    set_query_context(query_id=query_id, datasource=datasource, user_id=user_id)
    try:
        yield
    finally:
        clear_query_context()
