"""Logging infrastructure for QueryFlow.

This module provides structured logging with JSON output and per-query
context tracking.
"""

from queryflow.logging.filters import ContextFilter
from queryflow.logging.logger import CustomJsonFormatter, get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
    "CustomJsonFormatter",
    "ContextFilter",
]
